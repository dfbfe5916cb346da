# intelliconsult/db/models/billing/payment_order.py
from typing import Dict, Any
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, DateTime
from datetime import datetime, date

from ....utils import utcnow


class PaymentOrder(SQLModel, table=True):
    __tablename__ = "payment_orders"
    # Gateway order handle
    order_id: str = Field(primary_key=True, max_length=64)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: str = Field(foreign_key="users.id")
    amount: int  # currency subunits
    currency: str = Field(default="INR", max_length=3)
    appointment_date: date
    appointment_time: str = Field(max_length=8)
    intake: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    status: str = Field(default="created", max_length=10)  # created | paid
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
