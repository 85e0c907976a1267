"""In-memory payment gateway for development and tests.

Mints order ids locally and keeps payments registered with ``record_payment``.
``configure(should_fail=True)`` makes every call raise ``UpstreamUnavailable``
the way a timed-out Razorpay call would.
"""

from typing import Dict, List, Optional
from uuid import uuid4

from utils.errors import NotFound, UpstreamUnavailable
from utils.gateway.port import GatewayOrder, PaymentDetails, PaymentGateway, RefundDetails


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_fail = False
        self.failure_reason = "Payment gateway unavailable"
        self.next_order_id: Optional[str] = None
        self.orders: Dict[str, GatewayOrder] = {}
        self.payments: Dict[str, PaymentDetails] = {}
        self.refunds: List[RefundDetails] = []
        self.calls: List[dict] = []

    def configure(self, should_fail: bool, failure_reason: str = "Payment gateway unavailable") -> None:
        self.should_fail = should_fail
        self.failure_reason = failure_reason

    def _check(self, method: str, **kwargs) -> None:
        self.calls.append({"method": method, **kwargs})
        if self.should_fail:
            raise UpstreamUnavailable(self.failure_reason)

    def record_payment(self, order_id: str, payment_id: str, status: str = "captured",
                       method: str = "card") -> PaymentDetails:
        order = self.orders.get(order_id)
        payment = PaymentDetails(
            id=payment_id,
            amount=order.amount if order else 0,
            currency=order.currency if order else "INR",
            status=status,
            order_id=order_id,
            method=method,
            email="buyer@example.com",
            contact="+919999999999",
        )
        self.payments[payment_id] = payment
        return payment

    async def create_order(self, amount: int, currency: str, receipt: str, notes: dict) -> GatewayOrder:
        self._check("create_order", amount=amount, currency=currency, receipt=receipt, notes=notes)
        order_id = self.next_order_id or f"order_{uuid4().hex[:14]}"
        self.next_order_id = None
        order = GatewayOrder(id=order_id, amount=amount, currency=currency, receipt=receipt,
                             status="created", notes=dict(notes))
        self.orders[order_id] = order
        return order

    async def fetch_payment(self, payment_id: str) -> PaymentDetails:
        self._check("fetch_payment", payment_id=payment_id)
        if payment_id not in self.payments:
            raise NotFound("The id provided does not exist")
        return self.payments[payment_id]

    async def fetch_order(self, order_id: str) -> GatewayOrder:
        self._check("fetch_order", order_id=order_id)
        if order_id not in self.orders:
            raise NotFound("The id provided does not exist")
        return self.orders[order_id]

    async def fetch_order_payments(self, order_id: str) -> List[PaymentDetails]:
        self._check("fetch_order_payments", order_id=order_id)
        return [p for p in self.payments.values() if p.order_id == order_id]

    async def refund(self, payment_id: str, amount: Optional[int] = None, notes: Optional[dict] = None) -> RefundDetails:
        self._check("refund", payment_id=payment_id, amount=amount, notes=notes)
        payment = self.payments.get(payment_id)
        if payment is None:
            raise NotFound("The id provided does not exist")
        refund = RefundDetails(
            id=f"rfnd_{uuid4().hex[:14]}",
            payment_id=payment_id,
            amount=payment.amount if amount is None else amount,
            status="processed",
        )
        self.refunds.append(refund)
        return refund
