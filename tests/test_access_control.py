from dataclasses import dataclass

import pytest

from intelliconsult.application.services.access_control import (
    Caller,
    can_access,
    ensure_owner,
    ensure_owning_doctor,
    ensure_owning_patient,
    require_role,
)
from intelliconsult.exceptions import AccessDenied


@dataclass
class Record:
    doctor_id: str
    patient_id: str


RECORD = Record(doctor_id="doc-1", patient_id="pat-1")


def test_owning_doctor_and_patient_can_access():
    assert can_access(Caller("doc-1", "doctor"), RECORD)
    assert can_access(Caller("pat-1", "patient"), RECORD)


def test_other_doctor_is_denied():
    assert not can_access(Caller("doc-2", "doctor"), RECORD)
    with pytest.raises(AccessDenied):
        ensure_owner(Caller("doc-2", "doctor"), RECORD)


def test_role_must_match_the_referenced_side():
    # A doctor whose id happens to equal the patient reference is still not the owner
    assert not can_access(Caller("pat-1", "doctor"), RECORD)
    assert not can_access(Caller("doc-1", "patient"), RECORD)


def test_admin_is_not_an_owner():
    assert not can_access(Caller("admin-1", "admin"), RECORD)


def test_ensure_owning_doctor_rejects_patient():
    with pytest.raises(AccessDenied) as exc:
        ensure_owning_doctor(Caller("pat-1", "patient"), RECORD)
    assert exc.value.status_code == 403


def test_ensure_owning_patient_rejects_doctor():
    with pytest.raises(AccessDenied):
        ensure_owning_patient(Caller("doc-1", "doctor"), RECORD)
    ensure_owning_patient(Caller("pat-1", "patient"), RECORD)


def test_require_role():
    require_role(Caller("a", "admin"), "admin")
    with pytest.raises(AccessDenied):
        require_role(Caller("d", "doctor"), "admin")
