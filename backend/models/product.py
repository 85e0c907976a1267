# backend/models/product.py
import enum
from sqlalchemy import Column, Integer, String, Float, DateTime, JSON, Enum, CheckConstraint, func
from database import Base


class ProductCategory(str, enum.Enum):
    MEN = "Men"
    WOMEN = "Women"
    FOOTWEAR = "Footwear"
    ACCESSORIES = "Accessories"


DEFAULT_SIZES = ["One Size"]


# Catalogue entry. Price and stock are guarded by check constraints,
# images and sizes are stored as JSON lists.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    price = Column(Float, CheckConstraint("price >= 0", name="ck_products_price"), nullable=False)
    category = Column(
        Enum(ProductCategory, values_callable=lambda e: [c.value for c in e], name="productcategory"),
        nullable=False,
        index=True,
    )
    images = Column(JSON, nullable=False, default=list)
    badge = Column(String, nullable=False, default="")
    description = Column(String, nullable=False, default="")
    stock = Column(Integer, CheckConstraint("stock >= 0", name="ck_products_stock"), nullable=False, default=0)
    sizes = Column(JSON, nullable=False, default=lambda: list(DEFAULT_SIZES))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
