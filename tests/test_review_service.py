from datetime import date

import pytest

from intelliconsult.application.ports.appointments_repo import NewAppointment
from intelliconsult.application.services.access_control import Caller
from intelliconsult.application.services.doctor_directory_service import DoctorDirectoryService
from intelliconsult.application.services.review_service import ReviewService
from intelliconsult.application.services.schedule_service import ScheduleService, normalize_working_hours
from intelliconsult.exceptions import AccessDenied, AlreadyExists, NotFound, ValidationError
from intelliconsult.infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from intelliconsult.infrastructure.persistence.sqlalchemy.repositories.reviews_repository_sql import SqlReviewRepository
from intelliconsult.infrastructure.persistence.sqlalchemy.repositories.schedule_repository_sql import SqlScheduleRepository
from intelliconsult.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository


@pytest.fixture
def visit(session, make_user):
    doctor = make_user("doctor")
    patient = make_user("patient")
    appt = SqlAppointmentsRepository(session).create(NewAppointment(
        patient_id=patient.id,
        doctor_id=doctor.id,
        appointment_date=date(2099, 1, 1),
        appointment_time="10:00 AM",
        consultation_fee_at_booking=500,
    ))
    return doctor, patient, appt


def review_service(session):
    return ReviewService(SqlReviewRepository(session), SqlAppointmentsRepository(session), SqlUserRepository(session))


def test_review_requires_completed_visit(session, visit):
    _, patient, appt = visit
    with pytest.raises(ValidationError):
        review_service(session).create(Caller(patient.id, "patient"), appt.id, 5)


def test_review_updates_doctor_rating(session, visit):
    doctor, patient, appt = visit
    SqlAppointmentsRepository(session).transition_status(appt.id, "upcoming", "completed")
    svc = review_service(session)

    review = svc.create(Caller(patient.id, "patient"), appt.id, 4, "  Kind and thorough ")
    assert review.comment == "Kind and thorough"
    rated = SqlUserRepository(session).get_by_id(doctor.id)
    assert rated.doctor.average_rating == 4.0
    assert rated.doctor.review_count == 1

    with pytest.raises(AlreadyExists):
        svc.create(Caller(patient.id, "patient"), appt.id, 5)
    assert [r.id for r in svc.list_for_doctor(doctor.id)] == [review.id]


def test_review_rating_bounds(session, visit):
    _, patient, appt = visit
    SqlAppointmentsRepository(session).transition_status(appt.id, "upcoming", "completed")
    with pytest.raises(ValidationError):
        review_service(session).create(Caller(patient.id, "patient"), appt.id, 6)


def test_only_owning_patient_reviews(session, visit, make_user):
    _, _, appt = visit
    other = make_user("patient")
    with pytest.raises(AccessDenied):
        review_service(session).create(Caller(other.id, "patient"), appt.id, 5)


def test_normalize_working_hours():
    hours = normalize_working_hours({"Monday": {"enabled": True, "start": "08:00", "end": "12:00"}, "sunday": {}})
    assert hours == {
        "monday": {"enabled": True, "start": "08:00", "end": "12:00"},
        "sunday": {"enabled": False, "start": "09:00", "end": "17:00"},
    }
    with pytest.raises(ValidationError):
        normalize_working_hours({"funday": {}})
    with pytest.raises(ValidationError):
        normalize_working_hours({"monday": {"enabled": True, "start": "12:00", "end": "08:00"}})


def test_blocked_time_owner_only(session, make_user):
    doctor = make_user("doctor")
    other = make_user("doctor")
    svc = ScheduleService(SqlUserRepository(session), SqlScheduleRepository(session))
    block = svc.add_blocked_time(Caller(doctor.id, "doctor"), "Conference", date(2099, 1, 1), "09:00", "12:00")

    with pytest.raises(AccessDenied):
        svc.delete_blocked_time(Caller(other.id, "doctor"), block.id)
    svc.delete_blocked_time(Caller(doctor.id, "doctor"), block.id)
    assert svc.list_blocked_times(Caller(doctor.id, "doctor")) == []


def test_working_hours_round_trip(session, make_user):
    doctor = make_user("doctor", working_hours={})
    svc = ScheduleService(SqlUserRepository(session), SqlScheduleRepository(session))
    caller = Caller(doctor.id, "doctor")
    svc.set_working_hours(caller, {"friday": {"enabled": True, "start": "10:00", "end": "14:00"}})
    assert svc.get_working_hours(caller)["friday"]["start"] == "10:00"


def test_directory_hides_unapproved_doctors(session, make_user):
    approved = make_user("doctor", full_name="Anil Kumar")
    pending = make_user("doctor", full_name="Anita Das", is_verified=False)
    svc = DoctorDirectoryService(SqlUserRepository(session))

    assert [d.id for d in svc.list_doctors(search="ani")] == [approved.id]
    assert svc.get_doctor(approved.id).id == approved.id
    with pytest.raises(NotFound):
        svc.get_doctor(pending.id)
