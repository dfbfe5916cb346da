from datetime import date
from typing import List, Optional
from sqlmodel import Session, select

from .....db.models import BlockedTime
from .....application.ports.schedule_repo import ScheduleRepository, BlockedTimeDto
from .....utils import as_utc


class SqlScheduleRepository(ScheduleRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, b: BlockedTime) -> BlockedTimeDto:
        return BlockedTimeDto(
            id=b.id,
            doctor_id=b.doctor_id,
            reason=b.reason,
            block_date=b.block_date,
            start_time=b.start_time,
            end_time=b.end_time,
            created_at=as_utc(b.created_at),
        )

    def list_blocked(self, doctor_id: str, from_date: Optional[date] = None) -> List[BlockedTimeDto]:
        stmt = select(BlockedTime).where(BlockedTime.doctor_id == doctor_id)
        if from_date:
            stmt = stmt.where(BlockedTime.block_date >= from_date)
        rows = self.session.exec(stmt.order_by(BlockedTime.block_date.asc(), BlockedTime.start_time.asc())).all()
        return [self._to_dto(b) for b in rows]

    def add_blocked(self, doctor_id: str, reason: str, block_date: date, start_time: str, end_time: str) -> BlockedTimeDto:
        b = BlockedTime(doctor_id=doctor_id, reason=reason, block_date=block_date, start_time=start_time, end_time=end_time)
        self.session.add(b)
        self.session.commit()
        self.session.refresh(b)
        return self._to_dto(b)

    def get_blocked(self, block_id: str) -> Optional[BlockedTimeDto]:
        b = self.session.exec(select(BlockedTime).where(BlockedTime.id == block_id)).first()
        return self._to_dto(b) if b else None

    def delete_blocked(self, block_id: str) -> None:
        b = self.session.exec(select(BlockedTime).where(BlockedTime.id == block_id)).first()
        if not b:
            return
        self.session.delete(b)
        self.session.commit()
