# backend/utils/gateway/razorpay_client.py
import httpx
import logging
from typing import List, Optional

from utils.errors import NotFound, UpstreamUnavailable
from utils.gateway.port import GatewayOrder, PaymentDetails, PaymentGateway, RefundDetails

logger = logging.getLogger(__name__)


def _error_description(response: httpx.Response) -> str:
    # Razorpay wraps failures as {"error": {"code": ..., "description": ...}}
    try:
        return response.json()["error"]["description"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200] or f"HTTP {response.status_code}"


def _to_order(data: dict) -> GatewayOrder:
    return GatewayOrder(
        id=data["id"],
        amount=data["amount"],
        currency=data["currency"],
        receipt=data.get("receipt"),
        status=data.get("status"),
        notes=data.get("notes") or {},
    )


def _to_payment(data: dict) -> PaymentDetails:
    return PaymentDetails(
        id=data["id"],
        amount=data["amount"],
        currency=data["currency"],
        status=data["status"],
        order_id=data.get("order_id"),
        method=data.get("method"),
        email=data.get("email"),
        contact=data.get("contact"),
        created_at=data.get("created_at"),
    )


class RazorpayClient(PaymentGateway):
    def __init__(self, api_url: str, key_id: str, key_secret: str, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_url = api_url.rstrip("/")
        self.key_id = key_id
        self.key_secret = key_secret
        self.timeout = timeout
        # Tests pass an httpx.MockTransport here
        self.transport = transport

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        url = f"{self.api_url}{path}"
        async with httpx.AsyncClient(
            auth=(self.key_id, self.key_secret), timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                response = await client.request(method, url, json=json)
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException as e:
                logger.error("Razorpay %s %s timed out after %ss", method, path, self.timeout)
                raise UpstreamUnavailable("Payment gateway timed out") from e
            except httpx.HTTPStatusError as e:
                description = _error_description(e.response)
                logger.error("Razorpay %s %s failed with %s: %s", method, path, e.response.status_code, description)
                if e.response.status_code == 404:
                    raise NotFound(description) from e
                raise UpstreamUnavailable("Payment gateway rejected the request", error=description) from e
            except httpx.RequestError as e:
                logger.error("Razorpay %s %s unreachable: %s", method, path, e)
                raise UpstreamUnavailable("Payment gateway unavailable") from e
            except ValueError as e:
                logger.error("Razorpay %s %s returned a non-JSON body", method, path)
                raise UpstreamUnavailable("Payment gateway returned an invalid response") from e

    async def create_order(self, amount: int, currency: str, receipt: str, notes: dict) -> GatewayOrder:
        data = await self._request("POST", "/orders", json={
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        })
        return _to_order(data)

    async def fetch_payment(self, payment_id: str) -> PaymentDetails:
        return _to_payment(await self._request("GET", f"/payments/{payment_id}"))

    async def fetch_order(self, order_id: str) -> GatewayOrder:
        return _to_order(await self._request("GET", f"/orders/{order_id}"))

    async def fetch_order_payments(self, order_id: str) -> List[PaymentDetails]:
        data = await self._request("GET", f"/orders/{order_id}/payments")
        return [_to_payment(p) for p in data.get("items", [])]

    async def refund(self, payment_id: str, amount: Optional[int] = None, notes: Optional[dict] = None) -> RefundDetails:
        body = {"notes": notes or {}}
        if amount is not None:
            body["amount"] = amount
        data = await self._request("POST", f"/payments/{payment_id}/refund", json=body)
        return RefundDetails(
            id=data["id"],
            payment_id=data["payment_id"],
            amount=data["amount"],
            status=data["status"],
            created_at=data.get("created_at"),
        )
