from typing import Optional
from sqlmodel import Session, select

from .....db.models import PaymentOrder
from .....application.ports.payment_orders_repo import PaymentOrderRepository, PaymentOrderDto
from .....utils import as_utc


class SqlPaymentOrderRepository(PaymentOrderRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, o: PaymentOrder) -> PaymentOrderDto:
        return PaymentOrderDto(
            order_id=o.order_id,
            patient_id=o.patient_id,
            doctor_id=o.doctor_id,
            amount=o.amount,
            currency=o.currency,
            appointment_date=o.appointment_date,
            appointment_time=o.appointment_time,
            intake=dict(o.intake or {}),
            status=o.status,
            created_at=as_utc(o.created_at),
        )

    def create(self, order: PaymentOrderDto) -> PaymentOrderDto:
        row = PaymentOrder(
            order_id=order.order_id,
            patient_id=order.patient_id,
            doctor_id=order.doctor_id,
            amount=order.amount,
            currency=order.currency,
            appointment_date=order.appointment_date,
            appointment_time=order.appointment_time,
            intake=order.intake,
            status="created",
        )
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return self._to_dto(row)

    def get(self, order_id: str) -> Optional[PaymentOrderDto]:
        o = self.session.exec(select(PaymentOrder).where(PaymentOrder.order_id == order_id)).first()
        return self._to_dto(o) if o else None

    def mark_paid(self, order_id: str) -> None:
        o = self.session.exec(select(PaymentOrder).where(PaymentOrder.order_id == order_id)).first()
        if not o:
            return
        o.status = "paid"
        self.session.add(o)
        self.session.commit()
