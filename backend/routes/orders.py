# backend/routes/orders.py
import logging
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.order import Order, OrderItem
from models.payment import PaymentIntent, PaymentStatus
from models.product import Product
from models.users import User
from routes.cart import _empty_cart
from schemas.order import OrderListResponse, OrderResponse, PlaceOrderRequest
from utils.audit import client_ip, write_log
from utils.errors import InvalidArgument, NotFound
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


def _order_to_out(order: Order) -> dict:
    return {
        "id": order.id,
        "items": [
            {"product_id": it.product_id, "name": it.name, "price": it.price, "quantity": it.quantity, "size": it.size}
            for it in order.items
        ],
        "shipping_address": order.shipping_address,
        "total_amount": round(order.total_amount, 2),
        "currency": order.currency,
        "payment_status": order.payment_status,
        "external_order_id": order.payment_intent.external_order_id,
        "created_at": order.created_at,
    }


def _fulfill_order(db: Session, intent: PaymentIntent) -> Order:
    """
    Turns a successful payment intent into an order: copies the cart snapshot
    into order lines, takes the quantities off stock and empties the cart.
    Safe to call more than once, an intent backs at most one order.
    """
    existing = db.query(Order).filter(Order.payment_intent_id == intent.id).first()
    if existing:
        return existing

    order = Order(
        user_id=intent.user_id,
        payment_intent_id=intent.id,
        total_amount=intent.amount,
        currency=intent.currency,
        payment_status="completed",
        shipping_address=intent.shipping_address,
    )
    order.items = [
        OrderItem(
            product_id=line["product_id"], name=line["name"], price=line["price"],
            quantity=line["quantity"], size=line["size"],
        )
        for line in intent.cart_items or []
    ]
    db.add(order)

    # Conditional decrement keeps stock non-negative; the payment is already taken,
    # so a shortfall is reported rather than failing the order
    for line in intent.cart_items or []:
        taken = db.execute(
            update(Product)
            .where(Product.id == line["product_id"], Product.stock >= line["quantity"])
            .values(stock=Product.stock - line["quantity"])
        ).rowcount
        if not taken:
            logger.warning("Insufficient stock for product %s on payment %s (wanted %s)",
                           line["product_id"], intent.external_order_id, line["quantity"])

    _empty_cart(db, intent.user_id)

    try:
        db.commit()
    except IntegrityError:
        # Fulfilled concurrently through the other confirmation channel
        db.rollback()
        return db.query(Order).filter(Order.payment_intent_id == intent.id).one()

    db.refresh(order)
    logger.info("Order %s created for payment %s", order.id, intent.external_order_id)
    return order


# Confirm the order behind a verified payment
@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: PlaceOrderRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    intent = db.query(PaymentIntent).filter(
        PaymentIntent.external_order_id == payload.external_order_id,
        PaymentIntent.user_id == current_user.id,
    ).first()
    if not intent:
        raise NotFound("Payment not found")
    if intent.status != PaymentStatus.SUCCESS.value:
        write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="FAIL",
                  ip=client_ip(request), meta={"external_order_id": intent.external_order_id, "payment_status": intent.status})
        raise InvalidArgument("Payment has not been verified")

    order = _fulfill_order(db, intent)
    if payload.shipping_address and not order.shipping_address:
        order.shipping_address = payload.shipping_address.model_dump()
        db.commit()
        db.refresh(order)

    write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "external_order_id": intent.external_order_id})
    return {"message": "Order placed", "order": _order_to_out(order)}


# List the user's orders, newest first
@router.get("", response_model=OrderListResponse)
def list_my_orders(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    orders = (
        db.query(Order)
        .options(joinedload(Order.items), joinedload(Order.payment_intent))
        .filter(Order.user_id == current_user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    return {"count": len(orders), "orders": [_order_to_out(o) for o in orders]}


@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(order_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    order = db.query(Order).filter(Order.id == order_id, Order.user_id == current_user.id).first()
    if not order:
        raise NotFound("Order not found")
    return {"message": "Order found", "order": _order_to_out(order)}
