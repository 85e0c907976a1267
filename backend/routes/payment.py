# backend/routes/payment.py
import json
import logging
import time
from dataclasses import asdict
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from sqlalchemy import func, update
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.cart import Cart, CartItem
from models.payment import PaymentIntent, PaymentStatus
from models.product import Product
from models.users import User
from routes.orders import _fulfill_order, _order_to_out
from schemas import payment as schemas
from utils.audit import client_ip, write_log
from utils.errors import InvalidArgument, NotFound, UpstreamUnavailable
from utils.gateway import get_gateway
from utils.gateway.port import PaymentDetails, PaymentGateway, from_minor_units, to_minor_units
from utils.signatures import verify_payment_signature, verify_webhook_signature
from utils.tokenJWT import admin_required, get_current_user

router = APIRouter(prefix="/payment", tags=["Payment"])
logger = logging.getLogger(__name__)


# ---- HELPERS ----

def _snapshot_items(db: Session, user_id: int, items: Optional[List[schemas.CartItemIn]]) -> List[dict]:
    """Cart lines with product name and price frozen at checkout time.

    Uses the lines sent by the client when present, the stored cart otherwise.
    """
    if items is None:
        rows = (
            db.query(CartItem)
            .join(Cart, Cart.id == CartItem.cart_id)
            .filter(Cart.user_id == user_id)
            .order_by(CartItem.id)
            .all()
        )
        lines = [(r.product_id, r.quantity, r.size) for r in rows]
    else:
        lines = [(it.product_id, it.quantity, it.size) for it in items]

    products = {}
    if lines:
        ids = {pid for pid, _, _ in lines}
        products = {p.id: p for p in db.query(Product).filter(Product.id.in_(ids)).all()}

    snapshot = []
    for product_id, quantity, size in lines:
        product = products.get(product_id)
        if not product:
            raise NotFound("Product not found")
        snapshot.append({
            "product_id": product.id,
            "name": product.name,
            "price": product.price,
            "quantity": quantity,
            "size": size,
        })
    return snapshot


def _payment_to_out(payment: PaymentDetails) -> dict:
    return {
        "id": payment.id,
        "order_id": payment.order_id,
        "amount": from_minor_units(payment.amount),
        "currency": payment.currency,
        "status": payment.status,
        "method": payment.method,
        "email": payment.email,
        "contact": payment.contact,
        "created_at": payment.created_at,
    }


def _transition(db: Session, intent: PaymentIntent, new_status: PaymentStatus, **values) -> bool:
    """Moves a ``created`` intent to a terminal status.

    A single conditional UPDATE, so of two concurrent confirmations only one
    applies; returns False when the intent was already terminal.
    """
    applied = db.execute(
        update(PaymentIntent)
        .where(PaymentIntent.id == intent.id, PaymentIntent.status == PaymentStatus.CREATED.value)
        .values(status=new_status.value, **values)
    ).rowcount == 1
    db.commit()
    db.refresh(intent)
    return applied


def _mark_success(db: Session, intent: PaymentIntent, payment_id: Optional[str], signature: Optional[str]) -> bool:
    values = {"verified_at": datetime.now(timezone.utc)}
    if payment_id:
        values["payment_id"] = payment_id
    if signature:
        values["signature"] = signature
    return _transition(db, intent, PaymentStatus.SUCCESS, **values)


def _mark_failed(db: Session, intent: PaymentIntent, reason: str) -> bool:
    return _transition(db, intent, PaymentStatus.FAILED, failure_reason=reason)


def _intent_for_order(db: Session, external_order_id: Optional[str]) -> Optional[PaymentIntent]:
    if not external_order_id:
        return None
    return db.query(PaymentIntent).filter(PaymentIntent.external_order_id == external_order_id).first()


def _record_refund(db: Session, intent: PaymentIntent, refund_id: str, amount: float) -> None:
    # Webhook redelivery and the admin endpoint can both report the same refund,
    # in any order relative to later refunds
    recorded = list(intent.refund_ids or [])
    if refund_id in recorded:
        return
    intent.refund_ids = recorded + [refund_id]
    intent.refund_id = refund_id
    intent.refunded_amount = round((intent.refunded_amount or 0.0) + amount, 2)
    db.commit()


def _entity(payload: dict, kind: str) -> dict:
    return (payload.get(kind) or {}).get("entity") or {}


def _handle_webhook_event(db: Session, event_name: Optional[str], payload: dict) -> None:
    if event_name == "payment.authorized":
        payment = _entity(payload, "payment")
        intent = _intent_for_order(db, payment.get("order_id"))
        if intent and not intent.payment_id:
            intent.payment_id = payment.get("id")
            db.commit()
        logger.info("Payment authorized: %s", payment.get("id"))

    elif event_name in ("payment.captured", "order.paid"):
        payment = _entity(payload, "payment")
        order = _entity(payload, "order")
        intent = _intent_for_order(db, payment.get("order_id") or order.get("id"))
        if intent is None:
            logger.info("%s for unknown order %s ignored", event_name, payment.get("order_id") or order.get("id"))
            return
        _mark_success(db, intent, payment.get("id"), None)
        if intent.status == PaymentStatus.SUCCESS.value:
            _fulfill_order(db, intent)
        elif intent.status == PaymentStatus.FAILED.value:
            # Captured by the gateway after the local attempt was failed; needs manual review
            logger.warning("%s for order %s already marked failed (%s), payment %s left unfulfilled",
                           event_name, intent.external_order_id, intent.failure_reason, payment.get("id"))

    elif event_name == "payment.failed":
        payment = _entity(payload, "payment")
        intent = _intent_for_order(db, payment.get("order_id"))
        if intent is None:
            logger.info("payment.failed for unknown order %s ignored", payment.get("order_id"))
            return
        _mark_failed(db, intent, payment.get("error_description") or "Payment failed")
        logger.info("Payment failed: %s", payment.get("id"))

    elif event_name == "refund.created":
        refund = _entity(payload, "refund")
        intent = db.query(PaymentIntent).filter(PaymentIntent.payment_id == refund.get("payment_id")).first()
        if intent and refund.get("id"):
            _record_refund(db, intent, refund["id"], from_minor_units(refund.get("amount")))
        logger.info("Refund created: %s", refund.get("id"))

    else:
        logger.info("Unhandled webhook event: %s", event_name)


# ---- CHECKOUT ----

@router.post("/create-order", response_model=schemas.CreateOrderResponse)
async def create_payment_order(
    payload: schemas.CreateOrderRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_gateway),
):
    if payload.amount <= 0:
        raise InvalidArgument("Invalid amount")

    currency = (payload.currency or settings.DEFAULT_CURRENCY).upper()
    lines = _snapshot_items(db, current_user.id, payload.cart_items)
    if lines:
        cart_total = round(sum(line["price"] * line["quantity"] for line in lines), 2)
        if cart_total != round(payload.amount, 2):
            logger.warning("Checkout amount %s does not match cart total %s for user %s",
                           payload.amount, cart_total, current_user.id)
            raise InvalidArgument("Amount does not match cart total")
    receipt = payload.receipt or f"receipt_{int(time.time() * 1000)}"

    try:
        gateway_order = await gateway.create_order(
            amount=to_minor_units(payload.amount),
            currency=currency,
            receipt=receipt,
            notes={"userId": str(current_user.id), "itemCount": len(lines)},
        )
    except UpstreamUnavailable:
        write_log(db, user_id=current_user.id, action="PAYMENT_CREATE", resource="payment", status="FAIL",
                  ip=client_ip(request), meta={"amount": payload.amount, "currency": currency})
        raise

    intent = PaymentIntent(
        user_id=current_user.id,
        external_order_id=gateway_order.id,
        receipt=gateway_order.receipt,
        amount=payload.amount,
        currency=gateway_order.currency,
        status=PaymentStatus.CREATED.value,
        cart_items=lines,
        shipping_address=payload.shipping_address.model_dump() if payload.shipping_address else None,
        gateway_order=asdict(gateway_order),
    )
    db.add(intent)
    db.commit()

    write_log(db, user_id=current_user.id, action="PAYMENT_CREATE", resource="payment", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": gateway_order.id, "amount": payload.amount})
    logger.info("Payment order %s created for user %s", gateway_order.id, current_user.id)

    return {
        "message": "Order created successfully",
        "order": {
            "id": gateway_order.id,
            "amount": gateway_order.amount,
            "currency": gateway_order.currency,
            "receipt": gateway_order.receipt,
        },
        "public_key": settings.RAZORPAY_KEY_ID,
    }


@router.post("/verify-payment", response_model=schemas.VerifyPaymentResponse)
async def verify_payment(
    payload: schemas.VerifyPaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_gateway),
):
    # The signature is checked whether or not a local record exists
    authentic = verify_payment_signature(
        payload.external_order_id, payload.external_payment_id, payload.signature, settings.RAZORPAY_KEY_SECRET
    )

    intent = db.query(PaymentIntent).filter(
        PaymentIntent.external_order_id == payload.external_order_id,
        PaymentIntent.user_id == current_user.id,
    ).first()

    if intent is None:
        logger.warning("Verification for unknown payment order %s", payload.external_order_id)
        succeeded = authentic
    else:
        if authentic:
            _mark_success(db, intent, payload.external_payment_id, payload.signature)
        else:
            _mark_failed(db, intent, "Invalid signature")
        # Terminal intents keep their first outcome
        succeeded = authentic and intent.status == PaymentStatus.SUCCESS.value

    write_log(db, user_id=current_user.id, action="PAYMENT_VERIFY", resource="payment",
              status="SUCCESS" if succeeded else "FAIL", ip=client_ip(request),
              meta={"order_id": payload.external_order_id, "payment_id": payload.external_payment_id})

    if not succeeded:
        logger.warning("Payment verification failed for order %s", payload.external_order_id)
        raise InvalidArgument("Payment verification failed")

    order = _fulfill_order(db, intent) if intent is not None else None

    payment = None
    try:
        payment = _payment_to_out(await gateway.fetch_payment(payload.external_payment_id))
    except (NotFound, UpstreamUnavailable) as e:
        logger.warning("Payment %s verified but details unavailable: %s", payload.external_payment_id, e.message)

    return {
        "message": "Payment verified successfully",
        "payment": payment,
        "order": _order_to_out(order) if order is not None else None,
    }


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    db: Session = Depends(get_db),
    x_razorpay_signature: Optional[str] = Header(None),
):
    body = await request.body()

    if not x_razorpay_signature:
        raise InvalidArgument("Missing webhook signature")
    if not verify_webhook_signature(body, x_razorpay_signature, settings.RAZORPAY_WEBHOOK_SECRET):
        logger.warning("Webhook signature verification failed")
        raise InvalidArgument("Invalid webhook signature")

    try:
        event = json.loads(body)
    except ValueError:
        raise InvalidArgument("Invalid webhook payload")
    if not isinstance(event, dict):
        raise InvalidArgument("Invalid webhook payload")

    event_name = event.get("event")
    logger.info("Webhook received: %s", event_name)

    try:
        _handle_webhook_event(db, event_name, event.get("payload") or {})
        write_log(db, user_id=None, action="PAYMENT_WEBHOOK", resource="payment", status="SUCCESS",
                  ip=client_ip(request), meta={"event": event_name})
    except Exception:
        # Authenticated events are acknowledged even when processing fails,
        # otherwise the gateway keeps redelivering them
        db.rollback()
        logger.exception("Webhook %s processing failed", event_name)

    return {"status": "ok"}


# ---- GATEWAY LOOKUPS ----

@router.get("/payment/{payment_id}", response_model=schemas.PaymentDetailsResponse)
async def get_payment_details(
    payment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_gateway),
):
    if not current_user.is_admin:
        owned = db.query(PaymentIntent).filter(
            PaymentIntent.payment_id == payment_id, PaymentIntent.user_id == current_user.id
        ).first()
        if not owned:
            raise NotFound("Payment not found")

    payment = await gateway.fetch_payment(payment_id)
    return {"payment": _payment_to_out(payment)}


@router.get("/order/{order_id}", response_model=schemas.OrderPaymentsResponse)
async def get_order_payments(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_gateway),
):
    if not current_user.is_admin:
        owned = db.query(PaymentIntent).filter(
            PaymentIntent.external_order_id == order_id, PaymentIntent.user_id == current_user.id
        ).first()
        if not owned:
            raise NotFound("Order not found")

    order = await gateway.fetch_order(order_id)
    payments = await gateway.fetch_order_payments(order_id)
    return {
        "order": {
            "id": order.id,
            "amount": from_minor_units(order.amount),
            "currency": order.currency,
            "status": order.status,
            "receipt": order.receipt,
        },
        "payments": [_payment_to_out(p) for p in payments],
    }


# ---- ADMIN ----

@router.post("/refund", response_model=schemas.RefundResponse)
async def refund_payment(
    payload: schemas.RefundRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
    gateway: PaymentGateway = Depends(get_gateway),
):
    if not payload.payment_id:
        raise InvalidArgument("Payment ID is required")

    refund = await gateway.refund(
        payload.payment_id,
        amount=to_minor_units(payload.amount) if payload.amount is not None else None,
        notes={"reason": payload.reason or "Customer request"},
    )

    intent = db.query(PaymentIntent).filter(PaymentIntent.payment_id == payload.payment_id).first()
    if intent:
        _record_refund(db, intent, refund.id, from_minor_units(refund.amount))

    write_log(db, user_id=current_user.id, action="PAYMENT_REFUND", resource="payment", status="SUCCESS",
              ip=client_ip(request), meta={"payment_id": payload.payment_id, "refund_id": refund.id})

    return {
        "message": "Refund initiated successfully",
        "refund": {
            "id": refund.id,
            "payment_id": refund.payment_id,
            "amount": from_minor_units(refund.amount),
            "status": refund.status,
            "created_at": refund.created_at,
        },
    }


@router.get("/all", response_model=schemas.PaymentListResponse)
def list_payments(
    status: Optional[PaymentStatus] = Query(None),
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    query = db.query(PaymentIntent)
    if status:
        query = query.filter(PaymentIntent.status == status.value)
    if user_id is not None:
        query = query.filter(PaymentIntent.user_id == user_id)

    payments = query.order_by(PaymentIntent.created_at.desc(), PaymentIntent.id.desc()).all()
    return {"count": len(payments), "payments": payments}


@router.get("/stats", response_model=schemas.PaymentStatsResponse)
def payment_stats(db: Session = Depends(get_db), current_user: User = Depends(admin_required)):
    total = db.query(func.count(PaymentIntent.id)).scalar() or 0
    successful = db.query(func.count(PaymentIntent.id)).filter(
        PaymentIntent.status == PaymentStatus.SUCCESS.value
    ).scalar() or 0
    failed = db.query(func.count(PaymentIntent.id)).filter(
        PaymentIntent.status == PaymentStatus.FAILED.value
    ).scalar() or 0
    revenue = db.query(func.sum(PaymentIntent.amount)).filter(
        PaymentIntent.status == PaymentStatus.SUCCESS.value
    ).scalar() or 0.0

    return {
        "stats": {
            "total_payments": total,
            "successful_payments": successful,
            "failed_payments": failed,
            "total_revenue": revenue,
            "success_rate": f"{successful / total * 100:.2f}" if total else 0,
        }
    }
