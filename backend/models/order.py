from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Completed purchase. Created only by fulfilment of a successful payment intent,
# line items are denormalised copies of the intent's cart snapshot.
class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    payment_intent_id = Column(Integer, ForeignKey("payment_intents.id"), unique=True, nullable=False)
    total_amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False, default="INR")
    payment_status = Column(String, nullable=False, default="completed")
    shipping_address = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan",
                         order_by="OrderItem.id")
    payment_intent = relationship("PaymentIntent")

class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    product_id = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)
    size = Column(String, nullable=False)

    order = relationship("Order", back_populates="items")
