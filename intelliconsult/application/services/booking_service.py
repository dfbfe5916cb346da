import logging
from dataclasses import dataclass, field
from datetime import datetime, date, timedelta, time
from typing import Callable, Dict, Any, List, Optional, Iterable, Tuple

from ..ports.user_repo import UserRepository, UserDto
from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto, NewAppointment
from ..ports.payment_orders_repo import PaymentOrderRepository, PaymentOrderDto
from ..ports.payment_gateway import PaymentGateway
from ..ports.schedule_repo import ScheduleRepository, BlockedTimeDto
from .access_control import Caller, require_role
from ...core.config import settings
from ...exceptions import (
    AlreadyExists,
    AccessDenied,
    ExternalServiceFailure,
    NotFound,
    PaymentVerificationFailed,
    SlotUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
SLOT_TIME_FORMAT = "%I:%M %p"


@dataclass(frozen=True)
class Slot:
    slot_date: date
    slot_time: str  # "10:00 AM"

    @property
    def starts_at(self) -> datetime:
        return slot_datetime(self.slot_date, self.slot_time)


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


def slot_datetime(slot_date: date, slot_time: str) -> datetime:
    return datetime.combine(slot_date, datetime.strptime(slot_time.strip().upper(), SLOT_TIME_FORMAT).time())


def generate_slots(working_hours: Dict[str, Any], start_date: date, days: int, duration_minutes: int) -> List[Slot]:
    """Expand weekly working hours into concrete slots for `days` days from start_date."""
    slots: List[Slot] = []
    step = timedelta(minutes=duration_minutes)
    for offset in range(days):
        day = start_date + timedelta(days=offset)
        hours = (working_hours or {}).get(WEEKDAYS[day.weekday()]) or {}
        if not hours.get("enabled"):
            continue
        try:
            cursor = datetime.combine(day, parse_hhmm(hours["start"]))
            end = datetime.combine(day, parse_hhmm(hours["end"]))
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Skipping malformed working hours for {WEEKDAYS[day.weekday()]}: {hours}")
            continue
        while cursor < end:
            slots.append(Slot(day, cursor.strftime(SLOT_TIME_FORMAT)))
            cursor += step
    return slots


def filter_future_slots(slots: Iterable[Slot], now: datetime) -> List[Slot]:
    """Only slots that start strictly after `now`."""
    return [s for s in slots if s.starts_at > now]


def is_blocked(slot: Slot, blocks: Iterable[BlockedTimeDto]) -> bool:
    hhmm = slot.starts_at.strftime("%H:%M")
    for block in blocks:
        if block.block_date == slot.slot_date and block.start_time <= hhmm < block.end_time:
            return True
    return False


@dataclass
class BookingService:
    user_repo: UserRepository
    appointments_repo: AppointmentsRepository
    orders_repo: PaymentOrderRepository
    schedule_repo: ScheduleRepository
    gateway: Optional[PaymentGateway] = None
    now: Callable[[], datetime] = field(default=datetime.now)

    def _bookable_doctor(self, doctor_id: str) -> UserDto:
        doctor = self.user_repo.get_by_id(doctor_id)
        if not doctor or doctor.user_type != "doctor" or doctor.doctor is None:
            raise NotFound("Doctor not found.")
        if not doctor.is_verified:
            raise ValidationError("This doctor is not accepting appointments.")
        return doctor

    def _check_slot(self, doctor_id: str, slot_date: date, slot_time: str) -> Slot:
        try:
            slot = Slot(slot_date, slot_datetime(slot_date, slot_time).strftime(SLOT_TIME_FORMAT))
        except ValueError:
            raise ValidationError("Invalid appointment time format. Use hh:mm AM/PM")
        if slot.starts_at <= self.now():
            raise ValidationError("Appointment slot must be in the future.")
        if is_blocked(slot, self.schedule_repo.list_blocked(doctor_id, slot_date)):
            raise SlotUnavailable()
        if self.appointments_repo.slot_taken(doctor_id, slot.slot_date, slot.slot_time):
            raise SlotUnavailable()
        return slot

    def available_slots(self, doctor_id: str) -> List[Slot]:
        doctor = self._bookable_doctor(doctor_id)
        now = self.now()
        today = now.date()
        slots = generate_slots(doctor.doctor.working_hours, today, settings.SLOT_LOOKAHEAD_DAYS, settings.SLOT_DURATION_MINUTES)
        booked = self.appointments_repo.booked_slots(doctor_id, today)
        blocks = self.schedule_repo.list_blocked(doctor_id, today)
        free = [s for s in slots if (s.slot_date, s.slot_time) not in booked and not is_blocked(s, blocks)]
        return filter_future_slots(free, now)

    def create_order(self, caller: Caller, doctor_id: str, slot_date: date, slot_time: str, intake: Dict[str, Any]) -> PaymentOrderDto:
        """Reserve nothing; ask the gateway for an order and remember what it is for."""
        require_role(caller, "patient")
        if self.gateway is None:
            raise ExternalServiceFailure("Payment gateway is not configured.")
        doctor = self._bookable_doctor(doctor_id)
        fee = doctor.doctor.consultation_fee or 0
        if fee <= 0:
            raise ValidationError("This doctor has not set a consultation fee.")
        slot = self._check_slot(doctor_id, slot_date, slot_time)

        amount = fee * 100
        receipt = f"order_{int(self.now().timestamp() * 1000)}"
        try:
            order = self.gateway.create_order(amount, settings.PAYMENT_CURRENCY, receipt)
        except ExternalServiceFailure:
            raise
        except Exception as e:
            logger.error(f"Payment order creation failed: {e}")
            raise ExternalServiceFailure("Failed to create payment order")

        return self.orders_repo.create(PaymentOrderDto(
            order_id=order.order_id,
            patient_id=caller.user_id,
            doctor_id=doctor_id,
            amount=order.amount,
            currency=order.currency,
            appointment_date=slot.slot_date,
            appointment_time=slot.slot_time,
            intake=intake,
        ))

    def verify_payment(self, caller: Caller, order_id: str, payment_id: str, signature: str) -> Tuple[AppointmentDto, bool]:
        """Persist the appointment for a verified payment. Returns (appointment, created)."""
        require_role(caller, "patient")
        if self.gateway is None:
            raise ExternalServiceFailure("Payment gateway is not configured.")
        if not order_id or not payment_id or not signature:
            raise PaymentVerificationFailed()
        try:
            valid = self.gateway.verify_signature(order_id, payment_id, signature)
        except Exception as e:
            logger.error(f"Payment signature check failed for order {order_id}: {e}")
            raise PaymentVerificationFailed()
        if not valid:
            logger.warning(f"Payment signature mismatch for order {order_id}")
            raise PaymentVerificationFailed()

        order = self.orders_repo.get(order_id)
        if not order:
            raise NotFound("Payment order not found.")
        if order.patient_id != caller.user_id:
            raise AccessDenied("Access denied. This payment order does not belong to you.")

        # Re-delivery of the same payment
        existing = self.appointments_repo.get_by_order_id(order_id)
        if existing:
            return existing, False

        try:
            appointment = self.appointments_repo.create(NewAppointment(
                patient_id=order.patient_id,
                doctor_id=order.doctor_id,
                appointment_date=order.appointment_date,
                appointment_time=order.appointment_time,
                consultation_fee_at_booking=order.amount // 100,
                intake=order.intake,
                payment_status="paid",
                order_id=order.order_id,
                payment_id=payment_id,
            ))
        except AlreadyExists:
            existing = self.appointments_repo.get_by_order_id(order_id)
            if existing:
                return existing, False
            raise
        self.orders_repo.mark_paid(order_id)
        logger.info(f"Appointment {appointment.id} booked for order {order_id}")
        return appointment, True

    def book_direct(self, caller: Caller, doctor_id: str, slot_date: date, slot_time: str, intake: Dict[str, Any]) -> AppointmentDto:
        """Legacy booking path without payment."""
        require_role(caller, "patient")
        doctor = self._bookable_doctor(doctor_id)
        slot = self._check_slot(doctor_id, slot_date, slot_time)
        return self.appointments_repo.create(NewAppointment(
            patient_id=caller.user_id,
            doctor_id=doctor_id,
            appointment_date=slot.slot_date,
            appointment_time=slot.slot_time,
            consultation_fee_at_booking=doctor.doctor.consultation_fee or 0,
            intake=intake,
            payment_status="pending",
        ))
