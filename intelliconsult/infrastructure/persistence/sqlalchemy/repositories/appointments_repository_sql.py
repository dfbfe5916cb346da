from datetime import datetime, date
from typing import List, Optional, Set, Tuple
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import Appointment
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    NewAppointment,
)
from .....exceptions import AlreadyExists, SlotUnavailable
from .....utils import as_utc, utcnow


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            patient_id=a.patient_id,
            doctor_id=a.doctor_id,
            appointment_date=a.appointment_date,
            appointment_time=a.appointment_time,
            intake=dict(a.intake or {}),
            consultation_fee_at_booking=a.consultation_fee_at_booking,
            status=a.status,
            payment_status=a.payment_status,
            order_id=a.order_id,
            payment_id=a.payment_id,
            triage_priority=a.triage_priority,
            triage_label=a.triage_label,
            created_at=as_utc(a.created_at),
            completed_at=as_utc(a.completed_at),
            cancelled_at=as_utc(a.cancelled_at),
            doctor_summary=a.doctor_summary,
            summary_generated_at=as_utc(a.summary_generated_at),
        )

    def create(self, new_appointment: NewAppointment) -> AppointmentDto:
        appt = Appointment(
            patient_id=new_appointment.patient_id,
            doctor_id=new_appointment.doctor_id,
            appointment_date=new_appointment.appointment_date,
            appointment_time=new_appointment.appointment_time,
            intake=new_appointment.intake,
            consultation_fee_at_booking=new_appointment.consultation_fee_at_booking,
            status="upcoming",
            payment_status=new_appointment.payment_status,
            order_id=new_appointment.order_id,
            payment_id=new_appointment.payment_id,
        )
        self.session.add(appt)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            if new_appointment.order_id and self.get_by_order_id(new_appointment.order_id):
                raise AlreadyExists("An appointment was already booked for this payment.")
            raise SlotUnavailable()
        self.session.refresh(appt)
        return self._to_dto(appt)

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        return self._to_dto(a) if a else None

    def get_by_order_id(self, order_id: str) -> Optional[AppointmentDto]:
        a = self.session.exec(select(Appointment).where(Appointment.order_id == order_id)).first()
        return self._to_dto(a) if a else None

    def slot_taken(self, doctor_id: str, appointment_date: date, appointment_time: str) -> bool:
        existing = self.session.exec(
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_date == appointment_date)
            .where(Appointment.appointment_time == appointment_time)
            .where(Appointment.status != "cancelled")
        ).first()
        return existing is not None

    def booked_slots(self, doctor_id: str, from_date: date) -> Set[Tuple[date, str]]:
        rows = self.session.exec(
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_date >= from_date)
            .where(Appointment.status != "cancelled")
        ).all()
        return {(r.appointment_date, r.appointment_time) for r in rows}

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        rows = self.session.exec(
            select(Appointment)
            .where(Appointment.patient_id == patient_id)
            .order_by(Appointment.appointment_date.desc(), Appointment.created_at.desc())
        ).all()
        return [self._to_dto(r) for r in rows]

    def list_for_doctor(self, doctor_id: str, status: Optional[str] = None) -> List[AppointmentDto]:
        stmt = select(Appointment).where(Appointment.doctor_id == doctor_id)
        if status:
            stmt = stmt.where(Appointment.status == status)
        rows = self.session.exec(stmt.order_by(Appointment.appointment_date.asc(), Appointment.created_at.asc())).all()
        return [self._to_dto(r) for r in rows]

    def list_all(self) -> List[AppointmentDto]:
        rows = self.session.exec(
            select(Appointment).order_by(Appointment.appointment_date.desc(), Appointment.created_at.desc())
        ).all()
        return [self._to_dto(r) for r in rows]

    def transition_status(self, appointment_id: str, from_status: str, to_status: str) -> bool:
        now = utcnow()
        values = {"status": to_status, "updated_at": now}
        if to_status == "completed":
            values["completed_at"] = now
        elif to_status == "cancelled":
            values["cancelled_at"] = now
        stmt = (
            update(Appointment)
            .where(Appointment.id == appointment_id)
            .where(Appointment.status == from_status)
            .values(**values)
        )
        result = self.session.connection().execute(stmt)
        self.session.commit()
        return result.rowcount == 1

    def set_triage(self, appointment_id: str, priority: Optional[str], label: Optional[str]) -> None:
        a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        if not a:
            return
        a.triage_priority = priority
        a.triage_label = label
        a.updated_at = utcnow()
        self.session.add(a)
        self.session.commit()

    def set_summary(self, appointment_id: str, summary: str, generated_at: datetime) -> None:
        a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        if not a:
            return
        a.doctor_summary = summary
        a.summary_generated_at = generated_at
        a.updated_at = utcnow()
        self.session.add(a)
        self.session.commit()
