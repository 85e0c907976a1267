"""Payment gateway factory.

``get_gateway()`` returns the adapter selected by ``PAYMENT_GATEWAY``;
``set_gateway()`` / ``reset_gateway()`` let tests install a fake.
"""

from typing import Optional

from config import settings
from utils.gateway.fake import FakeGateway
from utils.gateway.port import PaymentGateway
from utils.gateway.razorpay_client import RazorpayClient

_current_gateway: Optional[PaymentGateway] = None


def _build_gateway() -> PaymentGateway:
    if settings.PAYMENT_GATEWAY == "fake":
        return FakeGateway()
    return RazorpayClient(
        api_url=settings.RAZORPAY_API_URL,
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        timeout=settings.GATEWAY_TIMEOUT_SECONDS,
    )


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
