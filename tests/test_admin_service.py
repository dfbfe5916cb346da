import pytest

from intelliconsult.application.ports.user_repo import UserSearch
from intelliconsult.application.services.access_control import Caller
from intelliconsult.application.services.admin_service import AdminService
from intelliconsult.exceptions import AccessDenied, NotFound, ValidationError
from intelliconsult.infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from intelliconsult.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, to, subject, html):
        self.sent.append((to, subject))


class RecordingAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, email=None, user_id=None, success=True, details=None):
        self.entries.append((action, user_id))


@pytest.fixture
def admin(make_user):
    return make_user("admin")


def make_service(session, notifier=None, audit=None):
    return AdminService(
        user_repo=SqlUserRepository(session),
        appointments_repo=SqlAppointmentsRepository(session),
        notifier=notifier,
        audit=audit,
    )


def as_caller(user):
    return Caller(user.id, user.user_type)


def test_only_admins(session, make_user):
    patient = make_user("patient")
    with pytest.raises(AccessDenied):
        make_service(session).list_users(as_caller(patient), "doctor", UserSearch())


def test_list_users_rejects_admin_listing(session, admin):
    with pytest.raises(ValidationError):
        make_service(session).list_users(as_caller(admin), "admin", UserSearch())


def test_list_users_filters(session, admin, make_user):
    pending = make_user("doctor", is_verified=False, full_name="Meera Iyer")
    make_user("doctor", full_name="Rahul Shah")
    svc = make_service(session)

    assert [u.id for u in svc.list_users(as_caller(admin), "doctor", UserSearch(is_verified=False))] == [pending.id]
    assert [u.id for u in svc.list_users(as_caller(admin), "doctor", UserSearch(name_prefix="mee"))] == [pending.id]
    assert [u.id for u in svc.list_users(as_caller(admin), "doctor", UserSearch(license_prefix=pending.doctor.license_number))] == [pending.id]
    assert len(svc.list_users(as_caller(admin), "doctor", UserSearch(specialization="cardiology"))) == 2


def test_name_prefix_wildcards_are_literal(session, admin, make_user):
    make_user("patient", full_name="Anita")
    assert make_service(session).list_users(as_caller(admin), "patient", UserSearch(name_prefix="%")) == []


def test_verify_doctor_notifies_and_audits(session, admin, make_user):
    doctor = make_user("doctor", is_verified=False)
    notifier, audit = RecordingNotifier(), RecordingAudit()
    updated = make_service(session, notifier, audit).verify_doctor(as_caller(admin), doctor.id)

    assert updated.is_verified is True
    assert updated.doctor.approved_at is not None
    assert notifier.sent[0][0] == doctor.email
    assert audit.entries == [("admin_verified_doctor", doctor.id)]


def test_verify_doctor_wrong_type(session, admin, make_user):
    patient = make_user("patient")
    with pytest.raises(NotFound):
        make_service(session).verify_doctor(as_caller(admin), patient.id)


def test_suspend_keeps_record(session, admin, make_user):
    doctor = make_user("doctor")
    svc = make_service(session)
    svc.suspend_doctor(as_caller(admin), doctor.id)
    stored = SqlUserRepository(session).get_by_id(doctor.id)
    assert stored is not None
    assert stored.is_verified is False


def test_reject_pending_doctor_deletes(session, admin, make_user):
    doctor = make_user("doctor", is_verified=False)
    make_service(session).reject_doctor(as_caller(admin), doctor.id)
    assert SqlUserRepository(session).get_by_id(doctor.id) is None


def test_reject_verified_doctor_refused(session, admin, make_user):
    doctor = make_user("doctor")
    with pytest.raises(ValidationError):
        make_service(session).reject_doctor(as_caller(admin), doctor.id)


def test_reject_previously_approved_doctor_refused(session, admin, make_user):
    doctor = make_user("doctor")
    svc = make_service(session)
    svc.suspend_doctor(as_caller(admin), doctor.id)
    with pytest.raises(ValidationError):
        svc.reject_doctor(as_caller(admin), doctor.id)


def test_patient_status_changes(session, admin, make_user):
    patient = make_user("patient")
    svc = make_service(session)
    assert svc.suspend_patient(as_caller(admin), patient.id).is_verified is False
    assert svc.verify_patient(as_caller(admin), patient.id).is_verified is True


def test_get_user(session, admin, make_user):
    patient = make_user("patient")
    svc = make_service(session)
    assert svc.get_user(as_caller(admin), patient.id).email == patient.email
    with pytest.raises(NotFound):
        svc.get_user(as_caller(admin), "missing")
