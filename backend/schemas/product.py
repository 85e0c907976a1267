# backend/schemas/product.py
from datetime import datetime
from pydantic import Field
from typing import Optional, List

from models.product import ProductCategory
from schemas.common import APIModel


# Admin payload for a new catalogue entry
class ProductCreate(APIModel):
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    category: ProductCategory
    images: List[str] = Field(default_factory=list)
    badge: str = ""
    description: str = ""
    stock: int = Field(default=0, ge=0)
    sizes: List[str] = Field(default_factory=lambda: ["One Size"], min_length=1)


class ProductOut(APIModel):
    id: int
    name: str
    price: float
    category: ProductCategory
    images: List[str] = []
    badge: str = ""
    description: str = ""
    stock: int
    sizes: List[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductListResponse(APIModel):
    success: bool = True
    count: int
    products: List[ProductOut]


class ProductResponse(APIModel):
    success: bool = True
    product: ProductOut
