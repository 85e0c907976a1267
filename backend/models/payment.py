# backend/models/payment.py
import enum
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, JSON, func
from database import Base


class PaymentStatus(str, enum.Enum):
    CREATED = "created"
    SUCCESS = "success"
    FAILED = "failed"


# One checkout attempt, keyed by the gateway order id.
# Status only moves created -> success or created -> failed.
class PaymentIntent(Base):
    __tablename__ = "payment_intents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    external_order_id = Column(String, unique=True, index=True, nullable=False)
    receipt = Column(String, nullable=True)
    amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False, default="INR")
    status = Column(String, nullable=False, default=PaymentStatus.CREATED.value, index=True)

    # Snapshot taken at creation: [{product_id, name, price, quantity, size}]
    cart_items = Column(JSON, nullable=False, default=list)
    shipping_address = Column(JSON, nullable=True)
    gateway_order = Column(JSON, nullable=True)

    payment_id = Column(String, nullable=True, index=True)
    signature = Column(String, nullable=True)
    failure_reason = Column(String, nullable=True)

    # Latest refund, plus every refund id already counted into refunded_amount
    refund_id = Column(String, nullable=True)
    refund_ids = Column(JSON, nullable=False, default=list)
    refunded_amount = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    verified_at = Column(DateTime(timezone=True), nullable=True)
