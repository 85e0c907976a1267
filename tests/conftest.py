import os

# Settings are read at import time, so the environment is fixed before the app loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_publickey"
os.environ["RAZORPAY_KEY_SECRET"] = "test_key_secret"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "test_webhook_secret"
os.environ["PAYMENT_GATEWAY"] = "fake"

import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings
from database import Base, get_db
from main import app
from models.cart import Cart, CartItem
from models.product import Product, ProductCategory
from models.users import User
from utils.gateway import reset_gateway, set_gateway
from utils.gateway.fake import FakeGateway
from utils.signatures import hmac_sha256_hex, payment_signature
from utils.tokenJWT import create_user_token


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def gateway():
    fake = FakeGateway()
    set_gateway(fake)
    yield fake
    reset_gateway()


@pytest.fixture()
def client(session_factory, gateway):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make_user(email="asha@example.com", name="Asha", is_admin=False):
        # Users created here cannot log in; tests needing a password go through /auth/register
        user = User(email=email, name=name, password_hash="!", is_admin=is_admin)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture()
def headers_for():
    def _headers_for(user):
        return {"Authorization": f"Bearer {create_user_token(user)}"}
    return _headers_for


@pytest.fixture()
def user(make_user):
    return make_user()


@pytest.fixture()
def auth_headers(user, headers_for):
    return headers_for(user)


@pytest.fixture()
def admin_headers(make_user, headers_for):
    return headers_for(make_user(email="admin@example.com", name="Admin", is_admin=True))


@pytest.fixture()
def make_product(db):
    def _make_product(name="NINEHOOD BASIC TEE - BLACK", price=999.0, stock=50,
                      category=ProductCategory.MEN, sizes=None):
        product = Product(
            name=name, price=price, stock=stock, category=category,
            images=["https://cdn.example.com/tee.png"], sizes=sizes or ["S", "M", "L"],
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make_product


@pytest.fixture()
def product(make_product):
    return make_product()


@pytest.fixture()
def cart_lines(db):
    def _cart_lines(user_id):
        db.expire_all()
        return (
            db.query(CartItem)
            .join(Cart, Cart.id == CartItem.cart_id)
            .filter(Cart.user_id == user_id)
            .all()
        )
    return _cart_lines


@pytest.fixture()
def sign():
    def _sign(order_id, payment_id):
        return payment_signature(order_id, payment_id, settings.RAZORPAY_KEY_SECRET)
    return _sign


@pytest.fixture()
def post_webhook(client):
    def _post_webhook(event, secret=None, signature=None):
        body = json.dumps(event).encode("utf-8")
        if signature is None:
            signature = hmac_sha256_hex(secret or settings.RAZORPAY_WEBHOOK_SECRET, body)
        return client.post(
            "/payment/webhook",
            content=body,
            headers={"Content-Type": "application/json", "X-Razorpay-Signature": signature},
        )
    return _post_webhook


@pytest.fixture()
def checkout(client, gateway):
    """Creates a gateway order through the API and returns its id."""
    def _checkout(headers, amount=500, order_id=None, **extra):
        gateway.next_order_id = order_id
        response = client.post("/payment/create-order", json={"amount": amount, **extra}, headers=headers)
        assert response.status_code == 200, response.text
        return response.json()["order"]["id"]
    return _checkout
