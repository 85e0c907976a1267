"""Payment gateway port.

The rest of the backend talks to the payment processor only through this
interface, so the Razorpay adapter can be swapped for the in-memory fake in
development and tests. Amounts crossing the port are integer minor units
(paise for INR).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


def from_minor_units(amount: Optional[int]) -> float:
    return (amount or 0) / 100


@dataclass(frozen=True)
class GatewayOrder:
    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None
    status: Optional[str] = None
    notes: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentDetails:
    id: str
    amount: int
    currency: str
    status: str
    order_id: Optional[str] = None
    method: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    created_at: Optional[int] = None


@dataclass(frozen=True)
class RefundDetails:
    id: str
    payment_id: str
    amount: int
    status: str
    created_at: Optional[int] = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def create_order(self, amount: int, currency: str, receipt: str, notes: dict) -> GatewayOrder:
        """Mint a gateway order the client can pay against."""

    @abstractmethod
    async def fetch_payment(self, payment_id: str) -> PaymentDetails:
        ...

    @abstractmethod
    async def fetch_order(self, order_id: str) -> GatewayOrder:
        ...

    @abstractmethod
    async def fetch_order_payments(self, order_id: str) -> List[PaymentDetails]:
        ...

    @abstractmethod
    async def refund(self, payment_id: str, amount: Optional[int] = None, notes: Optional[dict] = None) -> RefundDetails:
        """Refund a captured payment, fully when ``amount`` is None."""
