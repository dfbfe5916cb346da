from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from datetime import datetime, date


@dataclass
class PaymentOrderDto:
    order_id: str
    patient_id: str
    doctor_id: str
    amount: int
    currency: str
    appointment_date: date
    appointment_time: str
    intake: Dict[str, Any] = field(default_factory=dict)
    status: str = "created"
    created_at: Optional[datetime] = None


class PaymentOrderRepository:
    def create(self, order: PaymentOrderDto) -> PaymentOrderDto:
        ...

    def get(self, order_id: str) -> Optional[PaymentOrderDto]:
        ...

    def mark_paid(self, order_id: str) -> None:
        ...
