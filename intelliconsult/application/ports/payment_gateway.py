from dataclasses import dataclass
from typing import Protocol


@dataclass
class GatewayOrder:
    order_id: str
    amount: int
    currency: str


class PaymentGateway(Protocol):
    def create_order(self, amount: int, currency: str, receipt: str) -> GatewayOrder:
        ...

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        ...
