# backend/utils/signatures.py
"""HMAC-SHA256 signatures used by Razorpay.

Checkout completion is signed over ``"<order_id>|<payment_id>"`` with the API
key secret; webhooks are signed over the raw request body with the separate
webhook secret. Both are lowercase hex digests.
"""
import hashlib
import hmac
from typing import Optional, Union


def hmac_sha256_hex(secret: str, message: Union[str, bytes]) -> str:
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def payment_signature(order_id: str, payment_id: str, secret: str) -> str:
    return hmac_sha256_hex(secret, f"{order_id}|{payment_id}")


def _matches(expected: str, presented: Optional[str]) -> bool:
    if not presented:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8"))


def verify_payment_signature(order_id: str, payment_id: str, signature: Optional[str], secret: str) -> bool:
    return _matches(payment_signature(order_id, payment_id, secret), signature)


def verify_webhook_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    return _matches(hmac_sha256_hex(secret, body), signature)
