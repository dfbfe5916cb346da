from dataclasses import dataclass
from typing import List, Optional, Tuple
from datetime import datetime


@dataclass
class ReviewDto:
    id: str
    doctor_id: str
    patient_id: str
    appointment_id: str
    rating: int
    comment: Optional[str]
    created_at: datetime


class ReviewRepository:
    def create(self, doctor_id: str, patient_id: str, appointment_id: str, rating: int, comment: Optional[str]) -> ReviewDto:
        """Raises AlreadyExists when the appointment was already reviewed."""
        ...

    def get_by_appointment(self, appointment_id: str) -> Optional[ReviewDto]:
        ...

    def list_for_doctor(self, doctor_id: str) -> List[ReviewDto]:
        ...

    def rating_summary(self, doctor_id: str) -> Tuple[float, int]:
        ...
