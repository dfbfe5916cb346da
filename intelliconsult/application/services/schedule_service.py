from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List

from ..ports.user_repo import UserRepository
from ..ports.schedule_repo import ScheduleRepository, BlockedTimeDto
from .access_control import Caller, require_role
from .booking_service import WEEKDAYS, parse_hhmm
from ...exceptions import AccessDenied, NotFound, ValidationError


def _valid_range(start: str, end: str) -> bool:
    try:
        return parse_hhmm(start) < parse_hhmm(end)
    except (TypeError, ValueError):
        return False


def normalize_working_hours(hours: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    normalized = {}
    for day, value in (hours or {}).items():
        key = day.strip().lower()
        if key not in WEEKDAYS:
            raise ValidationError(f"Unknown weekday '{day}'.")
        value = value or {}
        enabled = bool(value.get("enabled"))
        start = value.get("start") or "09:00"
        end = value.get("end") or "17:00"
        if enabled and not _valid_range(start, end):
            raise ValidationError(f"Working hours for {key} need HH:MM times with start before end.")
        normalized[key] = {"enabled": enabled, "start": start, "end": end}
    return normalized


@dataclass
class ScheduleService:
    user_repo: UserRepository
    schedule_repo: ScheduleRepository

    def get_working_hours(self, caller: Caller) -> Dict[str, Any]:
        require_role(caller, "doctor")
        doctor = self.user_repo.get_by_id(caller.user_id)
        if not doctor or not doctor.doctor:
            raise NotFound("Doctor not found.")
        return doctor.doctor.working_hours or {}

    def set_working_hours(self, caller: Caller, hours: Dict[str, Any]) -> Dict[str, Any]:
        require_role(caller, "doctor")
        normalized = normalize_working_hours(hours)
        self.user_repo.set_working_hours(caller.user_id, normalized)
        return normalized

    def add_blocked_time(self, caller: Caller, reason: str, block_date: date, start_time: str, end_time: str) -> BlockedTimeDto:
        require_role(caller, "doctor")
        if not (reason or "").strip() or not block_date or not start_time or not end_time:
            raise ValidationError("Reason, date, start time and end time are required.")
        if not _valid_range(start_time, end_time):
            raise ValidationError("Blocked time needs HH:MM times with start before end.")
        return self.schedule_repo.add_blocked(caller.user_id, reason.strip(), block_date, start_time, end_time)

    def list_blocked_times(self, caller: Caller) -> List[BlockedTimeDto]:
        require_role(caller, "doctor")
        return self.schedule_repo.list_blocked(caller.user_id)

    def delete_blocked_time(self, caller: Caller, block_id: str) -> None:
        require_role(caller, "doctor")
        block = self.schedule_repo.get_blocked(block_id)
        if not block:
            raise NotFound("Blocked time not found.")
        if block.doctor_id != caller.user_id:
            raise AccessDenied()
        self.schedule_repo.delete_blocked(block_id)
