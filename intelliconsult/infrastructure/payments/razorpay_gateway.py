import logging

from ...application.ports.payment_gateway import PaymentGateway, GatewayOrder
from ...exceptions import ExternalServiceFailure

logger = logging.getLogger(__name__)


class RazorpayGateway(PaymentGateway):
    def __init__(self, key_id: str, key_secret: str) -> None:
        if not key_id or not key_secret:
            raise ExternalServiceFailure("Payment gateway is not configured.")
        # Deferred so importing this module never needs the SDK
        import razorpay
        from razorpay.errors import SignatureVerificationError

        self._signature_error = SignatureVerificationError
        self.client = razorpay.Client(auth=(key_id, key_secret))

    def create_order(self, amount: int, currency: str, receipt: str) -> GatewayOrder:
        try:
            order = self.client.order.create(data={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "payment_capture": 1,
            })
        except Exception as e:
            logger.error(f"Razorpay order creation failed: {e}")
            raise ExternalServiceFailure("Failed to create payment order")
        return GatewayOrder(order_id=order["id"], amount=int(order["amount"]), currency=order["currency"])

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Checkout signs "order_id|payment_id" with the key secret; the SDK checks it in constant time."""
        try:
            self.client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature or "",
            })
        except self._signature_error:
            return False
        return True
