from typing import List
from datetime import datetime
from fastapi import APIRouter, Depends

from ..core.dependencies import get_current_caller, get_schedule_service
from ..application.services.access_control import Caller
from ..application.services.schedule_service import ScheduleService
from ..schemas.common.common import MessageResponse
from ..schemas.schedule.schedule import (
    BlockedTimeRequest,
    BlockedTimeResponse,
    WorkingHoursRequest,
    WorkingHoursResponse,
)

router = APIRouter(prefix="/api/schedule", tags=["Schedule"])


@router.get("/working-hours", response_model=WorkingHoursResponse)
def get_working_hours(caller: Caller = Depends(get_current_caller), service: ScheduleService = Depends(get_schedule_service)):
    return WorkingHoursResponse(working_hours=service.get_working_hours(caller))


@router.post("/working-hours", response_model=WorkingHoursResponse)
def set_working_hours(
    payload: WorkingHoursRequest,
    caller: Caller = Depends(get_current_caller),
    service: ScheduleService = Depends(get_schedule_service),
):
    hours = {day: value.model_dump() for day, value in payload.working_hours.items()}
    return WorkingHoursResponse(working_hours=service.set_working_hours(caller, hours))


@router.post("/blocked-times", response_model=BlockedTimeResponse, status_code=201)
def add_blocked_time(
    payload: BlockedTimeRequest,
    caller: Caller = Depends(get_current_caller),
    service: ScheduleService = Depends(get_schedule_service),
):
    block_date = datetime.strptime(payload.date, "%Y-%m-%d").date()
    block = service.add_blocked_time(caller, payload.reason, block_date, payload.start_time, payload.end_time)
    return BlockedTimeResponse.from_dto(block)


@router.get("/blocked-times", response_model=List[BlockedTimeResponse])
def list_blocked_times(caller: Caller = Depends(get_current_caller), service: ScheduleService = Depends(get_schedule_service)):
    return [BlockedTimeResponse.from_dto(b) for b in service.list_blocked_times(caller)]


@router.delete("/blocked-times/{block_id}", response_model=MessageResponse)
def delete_blocked_time(
    block_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ScheduleService = Depends(get_schedule_service),
):
    service.delete_blocked_time(caller, block_id)
    return MessageResponse(message="Blocked time removed.")
