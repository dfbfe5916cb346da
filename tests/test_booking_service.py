from datetime import datetime, date, timedelta

import pytest
from sqlmodel import select

from intelliconsult.application.services.access_control import Caller
from intelliconsult.application.services.booking_service import (
    BookingService,
    Slot,
    filter_future_slots,
    generate_slots,
    is_blocked,
)
from intelliconsult.application.ports.schedule_repo import BlockedTimeDto
from intelliconsult.db.models import Appointment, PaymentOrder
from intelliconsult.exceptions import (
    AccessDenied,
    NotFound,
    PaymentVerificationFailed,
    SlotUnavailable,
    ValidationError,
)
from intelliconsult.infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from intelliconsult.infrastructure.persistence.sqlalchemy.repositories.payment_orders_repository_sql import SqlPaymentOrderRepository
from intelliconsult.infrastructure.persistence.sqlalchemy.repositories.schedule_repository_sql import SqlScheduleRepository
from intelliconsult.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from intelliconsult.utils import utcnow

from conftest import FakePaymentGateway, sign, valid_intake

FAR_FUTURE = date(2099, 1, 1)


def make_service(session, now=None, gateway=None):
    svc = BookingService(
        user_repo=SqlUserRepository(session),
        appointments_repo=SqlAppointmentsRepository(session),
        orders_repo=SqlPaymentOrderRepository(session),
        schedule_repo=SqlScheduleRepository(session),
        gateway=gateway or FakePaymentGateway(),
    )
    if now is not None:
        svc.now = lambda: now
    return svc


def appointment_count(session) -> int:
    return len(session.exec(select(Appointment)).all())


# ---- pure slot helpers ----

def test_generate_slots_uses_enabled_weekdays_only():
    monday = date(2030, 1, 7)
    hours = {
        "monday": {"enabled": True, "start": "09:00", "end": "11:00"},
        "tuesday": {"enabled": False, "start": "09:00", "end": "17:00"},
    }
    slots = generate_slots(hours, monday, days=2, duration_minutes=60)
    assert slots == [Slot(monday, "09:00 AM"), Slot(monday, "10:00 AM")]


def test_generate_slots_skips_malformed_hours():
    monday = date(2030, 1, 7)
    assert generate_slots({"monday": {"enabled": True, "start": "nine"}}, monday, 1, 60) == []


def test_filter_future_slots_drops_past():
    now = datetime(2030, 1, 7, 12, 0)
    yesterday = Slot(date(2030, 1, 6), "10:00 AM")
    tomorrow = Slot(date(2030, 1, 8), "10:00 AM")
    assert filter_future_slots([yesterday, tomorrow], now) == [tomorrow]


def test_filter_future_slots_is_strict():
    now = datetime(2030, 1, 7, 10, 0)
    assert filter_future_slots([Slot(date(2030, 1, 7), "10:00 AM")], now) == []


def test_is_blocked_matches_start_inside_block():
    block = BlockedTimeDto("b1", "d1", "Conference", date(2030, 1, 7), "13:00", "15:00", utcnow())
    assert is_blocked(Slot(date(2030, 1, 7), "01:00 PM"), [block])
    assert is_blocked(Slot(date(2030, 1, 7), "02:00 PM"), [block])
    assert not is_blocked(Slot(date(2030, 1, 7), "03:00 PM"), [block])
    assert not is_blocked(Slot(date(2030, 1, 8), "01:00 PM"), [block])


# ---- available slots ----

def test_available_slots_excludes_booked_blocked_and_past(session, make_user):
    doctor = make_user("doctor", working_hours={"monday": {"enabled": True, "start": "09:00", "end": "13:00"}})
    patient = make_user("patient")
    monday = date(2030, 1, 7)
    now = datetime(2030, 1, 7, 9, 30)
    svc = make_service(session, now=now)

    SqlScheduleRepository(session).add_blocked(doctor.id, "Rounds", monday, "11:00", "12:00")
    svc.book_direct(Caller(patient.id, "patient"), doctor.id, monday, "10:00 AM", valid_intake())

    slots = [s for s in svc.available_slots(doctor.id) if s.slot_date == monday]
    assert [s.slot_time for s in slots] == ["12:00 PM"]


def test_available_slots_unknown_doctor(session):
    with pytest.raises(NotFound):
        make_service(session).available_slots("missing")


# ---- payment order + verification ----

def test_create_order_uses_fee_in_subunits_and_creates_no_appointment(session, make_user):
    doctor = make_user("doctor", fee=500)
    patient = make_user("patient")
    svc = make_service(session)

    order = svc.create_order(Caller(patient.id, "patient"), doctor.id, FAR_FUTURE, "10:00 AM", valid_intake())

    assert order.amount == 50000
    assert order.currency == "INR"
    assert appointment_count(session) == 0
    stored = session.get(PaymentOrder, order.order_id)
    assert stored.status == "created"


def test_verified_payment_persists_appointment_with_fee_snapshot(session, make_user):
    doctor = make_user("doctor", fee=500)
    patient = make_user("patient")
    caller = Caller(patient.id, "patient")
    svc = make_service(session)
    order = svc.create_order(caller, doctor.id, FAR_FUTURE, "10:00 AM", valid_intake())

    appt, created = svc.verify_payment(caller, order.order_id, "pay_1", sign(order.order_id, "pay_1"))

    assert created is True
    assert appt.consultation_fee_at_booking == 500
    assert appt.status == "upcoming"
    assert appt.payment_status == "paid"
    assert appt.appointment_date == FAR_FUTURE
    assert appt.appointment_time == "10:00 AM"
    assert appt.intake["primary_reason"] == "Persistent headache"
    assert session.get(PaymentOrder, order.order_id).status == "paid"


def test_fee_change_after_order_does_not_change_snapshot(session, make_user):
    doctor = make_user("doctor", fee=500)
    patient = make_user("patient")
    caller = Caller(patient.id, "patient")
    svc = make_service(session)
    order = svc.create_order(caller, doctor.id, FAR_FUTURE, "10:00 AM", valid_intake())

    from intelliconsult.application.ports.user_repo import DoctorProfileInput
    SqlUserRepository(session).complete_profile(doctor.id, None, DoctorProfileInput("Cardiology", 10, "LIC-X", None, 900))

    appt, _ = svc.verify_payment(caller, order.order_id, "pay_1", sign(order.order_id, "pay_1"))
    assert appt.consultation_fee_at_booking == 500


def test_bad_signature_creates_nothing(session, make_user):
    doctor = make_user("doctor")
    patient = make_user("patient")
    caller = Caller(patient.id, "patient")
    svc = make_service(session)
    order = svc.create_order(caller, doctor.id, FAR_FUTURE, "10:00 AM", valid_intake())

    with pytest.raises(PaymentVerificationFailed):
        svc.verify_payment(caller, order.order_id, "pay_1", "not-a-signature")
    assert appointment_count(session) == 0


def test_duplicate_verification_returns_existing_appointment(session, make_user):
    doctor = make_user("doctor")
    patient = make_user("patient")
    caller = Caller(patient.id, "patient")
    svc = make_service(session)
    order = svc.create_order(caller, doctor.id, FAR_FUTURE, "10:00 AM", valid_intake())
    signature = sign(order.order_id, "pay_1")

    first, created_first = svc.verify_payment(caller, order.order_id, "pay_1", signature)
    second, created_second = svc.verify_payment(caller, order.order_id, "pay_1", signature)

    assert created_first is True
    assert created_second is False
    assert first.id == second.id
    assert appointment_count(session) == 1


def test_other_patient_cannot_redeem_order(session, make_user):
    doctor = make_user("doctor")
    patient = make_user("patient")
    intruder = make_user("patient")
    svc = make_service(session)
    order = svc.create_order(Caller(patient.id, "patient"), doctor.id, FAR_FUTURE, "10:00 AM", valid_intake())

    with pytest.raises(AccessDenied):
        svc.verify_payment(Caller(intruder.id, "patient"), order.order_id, "pay_1", sign(order.order_id, "pay_1"))
    assert appointment_count(session) == 0


def test_only_patients_book(session, make_user):
    doctor = make_user("doctor")
    with pytest.raises(AccessDenied):
        make_service(session).create_order(Caller(doctor.id, "doctor"), doctor.id, FAR_FUTURE, "10:00 AM", valid_intake())


def test_pending_doctor_cannot_be_booked(session, make_user):
    doctor = make_user("doctor", is_verified=False)
    patient = make_user("patient")
    with pytest.raises(ValidationError):
        make_service(session).create_order(Caller(patient.id, "patient"), doctor.id, FAR_FUTURE, "10:00 AM", valid_intake())


def test_past_slot_rejected(session, make_user):
    doctor = make_user("doctor")
    patient = make_user("patient")
    yesterday = date.today() - timedelta(days=1)
    with pytest.raises(ValidationError):
        make_service(session).create_order(Caller(patient.id, "patient"), doctor.id, yesterday, "10:00 AM", valid_intake())


def test_malformed_time_rejected(session, make_user):
    doctor = make_user("doctor")
    patient = make_user("patient")
    with pytest.raises(ValidationError):
        make_service(session).create_order(Caller(patient.id, "patient"), doctor.id, FAR_FUTURE, "25:99", valid_intake())


def test_taken_slot_rejected_at_order_time(session, make_user):
    doctor = make_user("doctor")
    first = make_user("patient")
    second = make_user("patient")
    svc = make_service(session)
    svc.book_direct(Caller(first.id, "patient"), doctor.id, FAR_FUTURE, "10:00 AM", valid_intake())

    with pytest.raises(SlotUnavailable):
        svc.create_order(Caller(second.id, "patient"), doctor.id, FAR_FUTURE, "10:00 AM", valid_intake())


def test_book_direct_leaves_payment_pending(session, make_user):
    doctor = make_user("doctor", fee=700)
    patient = make_user("patient")
    appt = make_service(session).book_direct(Caller(patient.id, "patient"), doctor.id, FAR_FUTURE, "11:00 am", valid_intake())
    assert appt.payment_status == "pending"
    assert appt.consultation_fee_at_booking == 700
    assert appt.appointment_time == "11:00 AM"
