from datetime import datetime
from pydantic import AliasChoices, Field
from typing import List, Optional

from schemas.common import APIModel


class ShippingAddress(APIModel):
    full_name: str = Field(min_length=1)
    line1: str = Field(min_length=1)
    line2: Optional[str] = None
    city: str = Field(min_length=1)
    state: Optional[str] = None
    postal_code: str = Field(min_length=1)
    country: str = "India"
    phone: Optional[str] = None


# Denormalised line item, shared by payment snapshots and orders
class OrderLine(APIModel):
    product_id: int
    name: str
    price: float
    quantity: int
    size: str


# Confirms the order behind a verified payment
class PlaceOrderRequest(APIModel):
    external_order_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("externalOrderId", "external_order_id", "razorpay_order_id"),
    )
    shipping_address: Optional[ShippingAddress] = None


class OrderOut(APIModel):
    id: int
    items: List[OrderLine]
    shipping_address: Optional[ShippingAddress] = None
    total_amount: float
    currency: str
    payment_status: str
    external_order_id: str
    created_at: Optional[datetime] = None


class OrderResponse(APIModel):
    success: bool = True
    message: str
    order: OrderOut


class OrderListResponse(APIModel):
    success: bool = True
    count: int
    orders: List[OrderOut]
