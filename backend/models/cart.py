# backend/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# One cart per user, created lazily on first read or write
class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan",
                         order_by="CartItem.id")


# A (product, size) line in a cart. product_id is a plain reference: a product
# removed from the catalogue leaves the line in place with no product behind it.
class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), index=True, nullable=False)
    product_id = Column(Integer, index=True, nullable=False)
    size = Column(String, nullable=False, default="M")
    quantity = Column(Integer, CheckConstraint("quantity > 0", name="ck_cart_items_quantity"),
                      nullable=False, default=1)

    cart = relationship("Cart", back_populates="items")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", "size", name="uq_cartitem_cart_product_size"),
    )
