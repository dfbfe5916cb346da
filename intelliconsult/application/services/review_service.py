from dataclasses import dataclass
from typing import List, Optional

from ..ports.reviews_repo import ReviewRepository, ReviewDto
from ..ports.appointments_repo import AppointmentsRepository
from ..ports.user_repo import UserRepository
from .access_control import Caller, ensure_owning_patient
from ...exceptions import AlreadyExists, NotFound, ValidationError


@dataclass
class ReviewService:
    reviews_repo: ReviewRepository
    appointments_repo: AppointmentsRepository
    user_repo: UserRepository

    def create(self, caller: Caller, appointment_id: str, rating: int, comment: Optional[str] = None) -> ReviewDto:
        appt = self.appointments_repo.get_by_id(appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        ensure_owning_patient(caller, appt)
        if appt.status != "completed":
            raise ValidationError("You can only review completed appointments.")
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5.")
        if self.reviews_repo.get_by_appointment(appt.id):
            raise AlreadyExists("You have already reviewed this appointment.")

        review = self.reviews_repo.create(appt.doctor_id, caller.user_id, appt.id, rating, (comment or "").strip() or None)
        average, count = self.reviews_repo.rating_summary(appt.doctor_id)
        self.user_repo.set_rating(appt.doctor_id, average, count)
        return review

    def list_for_doctor(self, doctor_id: str) -> List[ReviewDto]:
        return self.reviews_repo.list_for_doctor(doctor_id)
