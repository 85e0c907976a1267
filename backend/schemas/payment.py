from datetime import datetime
from pydantic import AliasChoices, Field
from typing import List, Optional, Union

from schemas.common import APIModel
from schemas.order import OrderLine, OrderOut, ShippingAddress


class CartItemIn(APIModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)
    size: str = Field(default="M", min_length=1)


class CreateOrderRequest(APIModel):
    amount: float = Field(allow_inf_nan=False)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    cart_items: Optional[List[CartItemIn]] = None
    shipping_address: Optional[ShippingAddress] = None
    receipt: Optional[str] = Field(default=None, max_length=40)


# Fields the browser checkout needs; amount is in minor units as the gateway reports it
class GatewayOrderOut(APIModel):
    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None


class CreateOrderResponse(APIModel):
    success: bool = True
    message: str
    order: GatewayOrderOut
    public_key: str


# Accepts the field names the Razorpay checkout handler returns as well
class VerifyPaymentRequest(APIModel):
    external_order_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("externalOrderId", "external_order_id", "razorpay_order_id"),
    )
    external_payment_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("externalPaymentId", "external_payment_id", "razorpay_payment_id"),
    )
    signature: str = Field(
        min_length=1,
        validation_alias=AliasChoices("signature", "razorpay_signature"),
    )


# Gateway payment with the amount converted to major units
class GatewayPaymentOut(APIModel):
    id: str
    order_id: Optional[str] = None
    amount: float
    currency: str
    status: str
    method: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    created_at: Optional[int] = None


class VerifyPaymentResponse(APIModel):
    success: bool = True
    message: str
    payment: Optional[GatewayPaymentOut] = None
    order: Optional[OrderOut] = None


class PaymentDetailsResponse(APIModel):
    success: bool = True
    payment: GatewayPaymentOut


class GatewayOrderDetailsOut(APIModel):
    id: str
    amount: float
    currency: str
    status: Optional[str] = None
    receipt: Optional[str] = None


class OrderPaymentsResponse(APIModel):
    success: bool = True
    order: GatewayOrderDetailsOut
    payments: List[GatewayPaymentOut]


class RefundRequest(APIModel):
    payment_id: Optional[str] = None
    amount: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    reason: Optional[str] = None


class RefundOut(APIModel):
    id: str
    payment_id: str
    amount: float
    status: str
    created_at: Optional[int] = None


class RefundResponse(APIModel):
    success: bool = True
    message: str
    refund: RefundOut


class PaymentIntentOut(APIModel):
    id: int
    user_id: int
    external_order_id: str
    receipt: Optional[str] = None
    amount: float
    currency: str
    status: str
    cart_items: List[OrderLine] = []
    payment_id: Optional[str] = None
    failure_reason: Optional[str] = None
    refund_id: Optional[str] = None
    refund_ids: List[str] = []
    refunded_amount: Optional[float] = None
    created_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None


class PaymentListResponse(APIModel):
    success: bool = True
    count: int
    payments: List[PaymentIntentOut]


class PaymentStats(APIModel):
    total_payments: int
    successful_payments: int
    failed_payments: int
    total_revenue: float
    # Percentage with two decimals, or 0 when nothing has been attempted yet
    success_rate: Union[str, int]


class PaymentStatsResponse(APIModel):
    success: bool = True
    stats: PaymentStats
