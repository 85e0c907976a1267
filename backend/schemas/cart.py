from pydantic import Field
from typing import List, Optional

from schemas.common import APIModel

# Request schema for adding an item to the cart
class CartAddItem(APIModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)
    size: str = Field(default="M", min_length=1)

# Product fields joined in when the cart is read
class CartProduct(APIModel):
    name: str
    price: float
    images: List[str] = []

# One (product, size) line; product is null once the product left the catalogue
class CartLine(APIModel):
    product_id: int
    product: Optional[CartProduct] = None
    quantity: int
    size: str

class CartResponse(APIModel):
    success: bool = True
    message: Optional[str] = None
    cart: List[CartLine]
    total: float
