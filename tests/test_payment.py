import pytest

from models.log import Log
from models.order import Order
from models.payment import PaymentIntent


def verify(client, headers, order_id, payment_id, signature):
    return client.post(
        "/payment/verify-payment",
        json={"externalOrderId": order_id, "externalPaymentId": payment_id, "signature": signature},
        headers=headers,
    )


def intent_for(db, order_id):
    db.expire_all()
    return db.query(PaymentIntent).filter(PaymentIntent.external_order_id == order_id).one()


@pytest.fixture()
def paid_order(client, gateway, auth_headers, checkout, sign):
    """A 500 INR checkout verified as order_abc / pay_123."""
    order_id = checkout(auth_headers, amount=500, order_id="order_abc")
    gateway.record_payment(order_id, "pay_123")
    response = verify(client, auth_headers, order_id, "pay_123", sign(order_id, "pay_123"))
    assert response.status_code == 200, response.text
    return order_id


# ---- create-order ----

def test_create_order_returns_gateway_order(client, gateway, user, auth_headers):
    gateway.next_order_id = "order_abc"
    response = client.post("/payment/create-order", json={"amount": 500, "currency": "INR"}, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Order created successfully"
    assert body["order"]["id"] == "order_abc"
    assert body["order"]["amount"] == 50000
    assert body["order"]["currency"] == "INR"
    assert body["order"]["receipt"].startswith("receipt_")
    assert body["publicKey"] == "rzp_test_publickey"
    assert "test_key_secret" not in response.text
    assert gateway.calls[0]["notes"] == {"userId": str(user.id), "itemCount": 0}


def test_create_order_stores_pending_intent(client, db, user, auth_headers, checkout):
    order_id = checkout(auth_headers, amount=750, currency="usd", receipt="rcpt_42")

    intent = intent_for(db, order_id)
    assert intent.status == "created"
    assert intent.user_id == user.id
    assert intent.amount == 750
    assert intent.currency == "USD"
    assert intent.receipt == "rcpt_42"
    assert intent.verified_at is None


@pytest.mark.parametrize("amount", [0, -10])
def test_create_order_rejects_non_positive_amount(client, db, gateway, auth_headers, amount):
    response = client.post("/payment/create-order", json={"amount": amount}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid amount"}
    assert db.query(PaymentIntent).count() == 0
    assert gateway.calls == []


def test_create_order_snapshots_stored_cart(client, db, product, auth_headers, checkout):
    client.post("/cart", json={"productId": product.id, "quantity": 2, "size": "L"}, headers=auth_headers)

    order_id = checkout(auth_headers, amount=1998)

    assert intent_for(db, order_id).cart_items == [
        {"product_id": product.id, "name": product.name, "price": 999.0, "quantity": 2, "size": "L"}
    ]


def test_create_order_uses_submitted_lines(client, db, product, auth_headers, checkout):
    order_id = checkout(auth_headers, amount=999, cartItems=[{"productId": product.id, "size": "S"}])

    assert intent_for(db, order_id).cart_items == [
        {"product_id": product.id, "name": product.name, "price": 999.0, "quantity": 1, "size": "S"}
    ]


def test_create_order_with_unknown_product(client, db, auth_headers):
    response = client.post(
        "/payment/create-order",
        json={"amount": 100, "cartItems": [{"productId": 777, "quantity": 1}]},
        headers=auth_headers,
    )

    assert response.status_code == 404
    assert db.query(PaymentIntent).count() == 0


def test_create_order_gateway_unavailable(client, db, gateway, auth_headers):
    gateway.configure(should_fail=True)

    response = client.post("/payment/create-order", json={"amount": 500}, headers=auth_headers)

    assert response.status_code == 502
    assert response.json() == {"success": False, "message": "Payment gateway unavailable"}
    assert db.query(PaymentIntent).count() == 0
    assert db.query(Log).filter(Log.action == "PAYMENT_CREATE", Log.status == "FAIL").count() == 1


def test_create_order_requires_authentication(client):
    assert client.post("/payment/create-order", json={"amount": 500}).status_code == 401


# ---- verify-payment ----

def test_checkout_end_to_end(client, db, gateway, product, user, auth_headers, checkout, sign, cart_lines):
    client.post("/cart", json={"productId": product.id, "quantity": 2, "size": "L"}, headers=auth_headers)
    order_id = checkout(auth_headers, amount=1998, order_id="order_abc",
                        shippingAddress={"fullName": "Asha Rao", "line1": "12 MG Road",
                                         "city": "Bengaluru", "postalCode": "560001"})
    gateway.record_payment(order_id, "pay_123")

    response = verify(client, auth_headers, "order_abc", "pay_123", sign("order_abc", "pay_123"))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Payment verified successfully"
    assert body["payment"]["id"] == "pay_123"
    assert body["payment"]["amount"] == 1998.0
    assert body["order"]["externalOrderId"] == "order_abc"
    assert body["order"]["totalAmount"] == 1998.0
    assert body["order"]["paymentStatus"] == "completed"
    assert body["order"]["shippingAddress"]["city"] == "Bengaluru"
    assert body["order"]["items"] == [
        {"productId": product.id, "name": product.name, "price": 999.0, "quantity": 2, "size": "L"}
    ]

    intent = intent_for(db, "order_abc")
    assert intent.status == "success"
    assert intent.payment_id == "pay_123"
    assert intent.verified_at is not None
    assert cart_lines(user.id) == []
    db.refresh(product)
    assert product.stock == 48


def test_verify_is_idempotent(client, db, auth_headers, paid_order, sign):
    again = verify(client, auth_headers, paid_order, "pay_123", sign(paid_order, "pay_123"))

    assert again.status_code == 200
    assert intent_for(db, paid_order).status == "success"
    assert db.query(Order).count() == 1


def test_verify_without_payment_details(client, auth_headers, checkout, sign):
    order_id = checkout(auth_headers)

    response = verify(client, auth_headers, order_id, "pay_unknown", sign(order_id, "pay_unknown"))

    assert response.status_code == 200
    assert response.json()["payment"] is None
    assert response.json()["order"] is not None


def test_tampered_signature_fails_payment(client, db, auth_headers, checkout, sign):
    order_id = checkout(auth_headers, order_id="order_abc")
    expected = sign(order_id, "pay_123")

    response = verify(client, auth_headers, order_id, "pay_123", "0" * 64)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Payment verification failed"}
    assert expected not in response.text
    intent = intent_for(db, order_id)
    assert intent.status == "failed"
    assert intent.failure_reason == "Invalid signature"
    assert db.query(Order).count() == 0
    assert db.query(Log).filter(Log.action == "PAYMENT_VERIFY", Log.status == "FAIL").count() == 1


def test_signature_for_other_payment_is_rejected(client, db, auth_headers, checkout, sign):
    order_id = checkout(auth_headers)

    response = verify(client, auth_headers, order_id, "pay_123", sign(order_id, "pay_456"))

    assert response.status_code == 400
    assert intent_for(db, order_id).status == "failed"


def test_failed_payment_stays_failed(client, db, auth_headers, checkout, sign):
    order_id = checkout(auth_headers)
    verify(client, auth_headers, order_id, "pay_123", "bad")

    response = verify(client, auth_headers, order_id, "pay_123", sign(order_id, "pay_123"))

    assert response.status_code == 400
    assert intent_for(db, order_id).status == "failed"
    assert db.query(Order).count() == 0


def test_tampered_retry_does_not_undo_success(client, db, auth_headers, paid_order):
    response = verify(client, auth_headers, paid_order, "pay_123", "f" * 64)

    assert response.status_code == 400
    intent = intent_for(db, paid_order)
    assert intent.status == "success"
    assert intent.failure_reason is None


def test_verify_accepts_checkout_field_names(client, db, auth_headers, checkout, sign):
    order_id = checkout(auth_headers)

    response = client.post(
        "/payment/verify-payment",
        json={
            "razorpay_order_id": order_id,
            "razorpay_payment_id": "pay_123",
            "razorpay_signature": sign(order_id, "pay_123"),
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert intent_for(db, order_id).status == "success"


def test_verify_missing_fields(client, auth_headers):
    response = client.post("/payment/verify-payment", json={"externalOrderId": "order_abc"}, headers=auth_headers)

    assert response.status_code == 400


def test_verify_without_local_record(client, auth_headers, sign):
    ok = verify(client, auth_headers, "order_elsewhere", "pay_1", sign("order_elsewhere", "pay_1"))
    bad = verify(client, auth_headers, "order_elsewhere", "pay_1", "0" * 64)

    assert ok.status_code == 200
    assert ok.json()["order"] is None
    assert bad.status_code == 400


def test_verify_never_touches_another_users_payment(client, db, make_user, headers_for, auth_headers, checkout, sign):
    order_id = checkout(auth_headers)
    intruder = headers_for(make_user(email="ravi@example.com", name="Ravi"))

    verify(client, intruder, order_id, "pay_123", sign(order_id, "pay_123"))
    verify(client, intruder, order_id, "pay_123", "0" * 64)

    assert intent_for(db, order_id).status == "created"
    assert db.query(Order).count() == 0


# ---- gateway lookups ----

def test_payment_details_for_owner(client, auth_headers, paid_order):
    response = client.get("/payment/payment/pay_123", headers=auth_headers)

    assert response.status_code == 200
    payment = response.json()["payment"]
    assert payment["orderId"] == paid_order
    assert payment["amount"] == 500.0
    assert payment["method"] == "card"


def test_payment_details_hidden_from_other_users(client, make_user, headers_for, admin_headers, paid_order):
    other = headers_for(make_user(email="ravi@example.com", name="Ravi"))

    assert client.get("/payment/payment/pay_123", headers=other).status_code == 404
    assert client.get("/payment/payment/pay_123", headers=admin_headers).status_code == 200


def test_order_payments_lookup(client, auth_headers, paid_order):
    response = client.get(f"/payment/order/{paid_order}", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["order"]["id"] == paid_order
    assert body["order"]["amount"] == 500.0
    assert [p["id"] for p in body["payments"]] == ["pay_123"]


def test_lookup_gateway_unavailable(client, gateway, admin_headers):
    gateway.configure(should_fail=True, failure_reason="Payment gateway timed out")

    response = client.get("/payment/payment/pay_123", headers=admin_headers)

    assert response.status_code == 502
    assert response.json()["message"] == "Payment gateway timed out"


# ---- admin ----

def test_refund_requires_admin(client, auth_headers):
    response = client.post("/payment/refund", json={"paymentId": "pay_123"}, headers=auth_headers)

    assert response.status_code == 403


def test_refund_requires_payment_id(client, admin_headers):
    response = client.post("/payment/refund", json={}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Payment ID is required"


def test_partial_refund_is_recorded(client, db, gateway, admin_headers, paid_order):
    response = client.post(
        "/payment/refund", json={"paymentId": "pay_123", "amount": 200, "reason": "Damaged"}, headers=admin_headers
    )

    assert response.status_code == 200
    refund = response.json()["refund"]
    assert refund["amount"] == 200.0
    assert refund["status"] == "processed"
    assert gateway.refunds[0].amount == 20000
    intent = intent_for(db, paid_order)
    assert intent.refund_id == refund["id"]
    assert intent.refunded_amount == 200.0


def test_refund_unknown_payment(client, admin_headers):
    response = client.post("/payment/refund", json={"paymentId": "pay_missing"}, headers=admin_headers)

    assert response.status_code == 404


def test_list_payments_admin_only(client, auth_headers):
    assert client.get("/payment/all", headers=auth_headers).status_code == 403


def test_list_payments_filters(client, user, auth_headers, admin_headers, checkout, paid_order):
    checkout(auth_headers, amount=300)

    everything = client.get("/payment/all", headers=admin_headers).json()
    succeeded = client.get("/payment/all", params={"status": "success"}, headers=admin_headers).json()
    nobody = client.get("/payment/all", params={"userId": user.id + 100}, headers=admin_headers).json()

    assert everything["count"] == 2
    assert [p["externalOrderId"] for p in succeeded["payments"]] == [paid_order]
    assert nobody["count"] == 0


def test_payment_stats(client, auth_headers, admin_headers, checkout, paid_order):
    failed = checkout(auth_headers, amount=300)
    verify(client, auth_headers, failed, "pay_999", "bad")

    stats = client.get("/payment/stats", headers=admin_headers).json()["stats"]

    assert stats == {
        "totalPayments": 2,
        "successfulPayments": 1,
        "failedPayments": 1,
        "totalRevenue": 500.0,
        "successRate": "50.00",
    }


def test_payment_stats_without_payments(client, admin_headers):
    stats = client.get("/payment/stats", headers=admin_headers).json()["stats"]

    assert stats["totalPayments"] == 0
    assert stats["successRate"] == 0


def test_create_order_rejects_amount_not_matching_cart(client, db, gateway, product, auth_headers):
    client.post("/cart", json={"productId": product.id, "quantity": 3}, headers=auth_headers)

    response = client.post("/payment/create-order", json={"amount": 1}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Amount does not match cart total"}
    assert db.query(PaymentIntent).count() == 0
    assert gateway.calls == []


def test_create_order_accepts_exact_cart_total(client, db, product, auth_headers, checkout):
    client.post("/cart", json={"productId": product.id, "quantity": 3}, headers=auth_headers)

    order_id = checkout(auth_headers, amount=2997)

    assert intent_for(db, order_id).amount == 2997


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
def test_create_order_rejects_non_finite_amount(client, db, gateway, auth_headers, literal):
    response = client.post(
        "/payment/create-order",
        content=f'{{"amount": {literal}}}'.encode(),
        headers={**auth_headers, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert db.query(PaymentIntent).count() == 0
    assert gateway.calls == []


def test_refund_rejects_non_finite_amount(client, gateway, admin_headers):
    response = client.post(
        "/payment/refund",
        content=b'{"paymentId": "pay_123", "amount": NaN}',
        headers={**admin_headers, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert gateway.refunds == []


def test_refunds_reported_out_of_order_are_counted_once(client, db, admin_headers, paid_order, post_webhook):
    first = client.post("/payment/refund", json={"paymentId": "pay_123", "amount": 100}, headers=admin_headers)
    second = client.post("/payment/refund", json={"paymentId": "pay_123", "amount": 50}, headers=admin_headers)
    first_id = first.json()["refund"]["id"]

    # The gateway's notification for the first refund arrives after the second refund
    post_webhook({
        "event": "refund.created",
        "payload": {"refund": {"entity": {"id": first_id, "payment_id": "pay_123", "amount": 10000}}},
    })

    intent = intent_for(db, paid_order)
    assert intent.refunded_amount == 150.0
    assert intent.refund_ids == [first_id, second.json()["refund"]["id"]]
