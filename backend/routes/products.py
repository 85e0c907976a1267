# backend/routes/products.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product, ProductCategory
from models.users import User
from schemas import product as product_schemas
from utils.audit import client_ip, write_log
from utils.errors import NotFound
from utils.tokenJWT import admin_required

router = APIRouter(prefix="/products", tags=["Products"])


# Public catalogue listing with optional category filter and name search
@router.get("", response_model=product_schemas.ProductListResponse)
def list_products(
    category: Optional[ProductCategory] = Query(None),
    q: Optional[str] = Query(None, description="Search in name and description"),
    db: Session = Depends(get_db),
):
    query = db.query(Product)
    if category:
        query = query.filter(Product.category == category)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like), Product.description.ilike(like)))

    products = query.order_by(Product.id.asc()).all()
    return {"count": len(products), "products": products}


@router.get("/{product_id}", response_model=product_schemas.ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = db.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")
    return {"product": product}


@router.post("", response_model=product_schemas.ProductResponse, status_code=status.HTTP_201_CREATED)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    product = Product(**payload.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"id": product.id, "name": product.name})
    return {"product": product}
