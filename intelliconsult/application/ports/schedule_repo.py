from dataclasses import dataclass
from typing import List, Optional
from datetime import datetime, date


@dataclass
class BlockedTimeDto:
    id: str
    doctor_id: str
    reason: str
    block_date: date
    start_time: str
    end_time: str
    created_at: datetime


class ScheduleRepository:
    def list_blocked(self, doctor_id: str, from_date: Optional[date] = None) -> List[BlockedTimeDto]:
        ...

    def add_blocked(self, doctor_id: str, reason: str, block_date: date, start_time: str, end_time: str) -> BlockedTimeDto:
        ...

    def get_blocked(self, block_id: str) -> Optional[BlockedTimeDto]:
        ...

    def delete_blocked(self, block_id: str) -> None:
        ...
