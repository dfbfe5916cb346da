from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import Review
from .....application.ports.reviews_repo import ReviewRepository, ReviewDto
from .....exceptions import AlreadyExists
from .....utils import as_utc


class SqlReviewRepository(ReviewRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, r: Review) -> ReviewDto:
        return ReviewDto(
            id=r.id,
            doctor_id=r.doctor_id,
            patient_id=r.patient_id,
            appointment_id=r.appointment_id,
            rating=r.rating,
            comment=r.comment,
            created_at=as_utc(r.created_at),
        )

    def create(self, doctor_id: str, patient_id: str, appointment_id: str, rating: int, comment: Optional[str]) -> ReviewDto:
        r = Review(doctor_id=doctor_id, patient_id=patient_id, appointment_id=appointment_id, rating=rating, comment=comment)
        self.session.add(r)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise AlreadyExists("You have already reviewed this appointment.")
        self.session.refresh(r)
        return self._to_dto(r)

    def get_by_appointment(self, appointment_id: str) -> Optional[ReviewDto]:
        r = self.session.exec(select(Review).where(Review.appointment_id == appointment_id)).first()
        return self._to_dto(r) if r else None

    def list_for_doctor(self, doctor_id: str) -> List[ReviewDto]:
        rows = self.session.exec(
            select(Review).where(Review.doctor_id == doctor_id).order_by(Review.created_at.desc())
        ).all()
        return [self._to_dto(r) for r in rows]

    def rating_summary(self, doctor_id: str) -> Tuple[float, int]:
        avg, count = self.session.exec(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.doctor_id == doctor_id)
        ).one()
        return round(float(avg or 0.0), 1), int(count or 0)
