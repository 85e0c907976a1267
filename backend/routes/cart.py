# backend/routes/cart.py
import logging
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from models.cart import Cart, CartItem
from models.product import Product
from models.users import User
from schemas.cart import CartAddItem, CartResponse
from utils.audit import client_ip, write_log
from utils.errors import NotFound
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/cart", tags=["Cart"])
logger = logging.getLogger(__name__)


def _get_cart(db: Session, user_id: int) -> Cart:
    # Retrieve the user's cart or create an empty one
    cart = db.query(Cart).filter(Cart.user_id == user_id).first()
    if cart:
        return cart

    db.add(Cart(user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        # Another request created it first; unique user_id keeps it to one cart
        db.rollback()
    return db.query(Cart).filter(Cart.user_id == user_id).one()


def _empty_cart(db: Session, user_id: int) -> None:
    # Remove all lines of the user's cart without committing
    db.execute(
        delete(CartItem).where(CartItem.cart_id.in_(select(Cart.id).where(Cart.user_id == user_id)))
    )


def _cart_to_out(db: Session, cart: Cart, message: str = None) -> dict:
    items = db.query(CartItem).filter(CartItem.cart_id == cart.id).order_by(CartItem.id).all()
    product_ids = {it.product_id for it in items}
    products = {}
    if product_ids:
        products = {p.id: p for p in db.query(Product).filter(Product.id.in_(product_ids)).all()}

    lines, total = [], 0.0
    for it in items:
        product = products.get(it.product_id)
        snapshot = None
        if product:
            snapshot = {"name": product.name, "price": product.price, "images": product.images or []}
            total += product.price * it.quantity
        lines.append({"product_id": it.product_id, "product": snapshot, "quantity": it.quantity, "size": it.size})

    return {"message": message, "cart": lines, "total": round(total, 2)}


@router.get("", response_model=CartResponse)
def get_cart(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    cart = _get_cart(db, current_user.id)
    return _cart_to_out(db, cart)


@router.post("", response_model=CartResponse)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = db.get(Product, payload.product_id)
    if not product:
        raise NotFound("Product not found")

    cart = _get_cart(db, current_user.id)

    # Increment in place so concurrent adds of the same line never lose an update
    increment = (
        update(CartItem)
        .where(CartItem.cart_id == cart.id, CartItem.product_id == product.id, CartItem.size == payload.size)
        .values(quantity=CartItem.quantity + payload.quantity)
    )
    if db.execute(increment).rowcount:
        db.commit()
    else:
        db.add(CartItem(cart_id=cart.id, product_id=product.id, size=payload.size, quantity=payload.quantity))
        try:
            db.commit()
        except IntegrityError:
            # The line was inserted concurrently, add to it instead
            db.rollback()
            db.execute(increment)
            db.commit()

    write_log(db, user_id=current_user.id, action="CART_ADD", resource="cart", status="SUCCESS",
              ip=client_ip(request), meta={"product_id": product.id, "quantity": payload.quantity, "size": payload.size})
    return _cart_to_out(db, cart, "Product added to cart")


# Declared before /{product_id} so "clear" is not parsed as a product id
@router.delete("/clear", response_model=CartResponse)
@router.delete("", response_model=CartResponse)
def clear_cart(request: Request, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    cart = _get_cart(db, current_user.id)
    _empty_cart(db, current_user.id)
    db.commit()

    write_log(db, user_id=current_user.id, action="CART_CLEAR", resource="cart", status="SUCCESS",
              ip=client_ip(request))
    return _cart_to_out(db, cart, "Cart cleared successfully")


@router.delete("/{product_id}", response_model=CartResponse)
def remove_from_cart(
    product_id: int,
    request: Request,
    size: str = Query("M", min_length=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cart = _get_cart(db, current_user.id)
    removed = db.execute(
        delete(CartItem).where(CartItem.cart_id == cart.id, CartItem.product_id == product_id, CartItem.size == size)
    ).rowcount
    db.commit()

    write_log(db, user_id=current_user.id, action="CART_REMOVE", resource="cart", status="SUCCESS",
              ip=client_ip(request), meta={"product_id": product_id, "size": size, "removed": removed})
    return _cart_to_out(db, cart, "Product removed from cart")
