"""Shared fixtures: an in-memory MongoDB, seed data, a fake gateway and an API client."""

import os

# Settings are read once at import time, so configure them before importing the app.
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("JWT_AUDIENCE", "authenticated")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("MONGODB_USE_TRANSACTIONS", "false")

import itertools
from datetime import UTC, datetime, timedelta

import httpx
import jwt
import pytest
from mongomock_motor import AsyncMongoMockClient

from storefront.config import get_settings
from storefront.database.mongodb import (
    ADDRESSES,
    CART_ITEMS,
    PRODUCTS,
    SHIPPING_RULES,
    mongodb,
)
from storefront.models.context import RequestContext
from storefront.models.payment import GatewayIntent, PaymentProof
from storefront.services.payment_gateway import RazorpayGateway

USER_ID = "user-1"
OTHER_USER_ID = "user-2"

PRODUCTS_SEED = [
    {"productId": "kurta", "name": "Cotton Kurta", "price": 450.0, "category": "apparel"},
    {"productId": "scarf", "name": "Silk Scarf", "price": 150.0, "category": "apparel"},
    {"productId": "saree", "name": "Banarasi Saree", "price": 1000.0, "category": "apparel"},
]

ADDRESSES_SEED = [
    {"addressId": "addr-home", "userId": USER_ID, "city": "Pune", "isDefault": True},
    {"addressId": "addr-work", "userId": USER_ID, "city": "Mumbai", "isDefault": False},
    {"addressId": "addr-other", "userId": OTHER_USER_ID, "city": "Delhi", "isDefault": True},
]

RULES_SEED = [
    {"minOrderValue": 500.0, "charge": 0.0, "isActive": True},
    {"minOrderValue": 0.0, "charge": 40.0, "isActive": True},
]


class FakeGateway(RazorpayGateway):
    """Gateway that issues intents locally but verifies signatures for real."""

    def __init__(self) -> None:
        super().__init__(key_id="rzp_test_key", key_secret="rzp_test_secret")
        self._ids = itertools.count(1)
        self.created: list[GatewayIntent] = []

    async def create_intent(self, amount: int, currency: str, receipt: str) -> GatewayIntent:
        intent = GatewayIntent(
            intentId=f"order_test_{next(self._ids)}",
            amount=amount,
            currency=currency,
            receipt=receipt,
        )
        self.created.append(intent)
        return intent

    def proof(self, gateway_order_id: str, gateway_payment_id: str) -> PaymentProof:
        """A correctly signed proof, as the checkout widget would return it."""
        return PaymentProof(
            method="ONLINE",
            gatewayOrderId=gateway_order_id,
            gatewayPaymentId=gateway_payment_id,
            signature=self.create_signature(gateway_order_id, gateway_payment_id),
        )


def make_token(user_id: str, *, expires_in: timedelta = timedelta(hours=1), secret: str = "test-secret") -> str:
    payload = {
        "sub": user_id,
        "aud": "authenticated",
        "exp": datetime.now(UTC) + expires_in,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id: str = USER_ID) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
async def db():
    """Bind the global connection manager to an in-memory database."""
    client = AsyncMongoMockClient()
    mongodb.client = client
    mongodb.db = client["storefront_test"]
    await mongodb.create_indexes()
    yield mongodb.db
    mongodb.client = None
    mongodb.db = None


@pytest.fixture
async def seeded(db):
    await db[PRODUCTS].insert_many([dict(doc) for doc in PRODUCTS_SEED])
    await db[ADDRESSES].insert_many([dict(doc) for doc in ADDRESSES_SEED])
    await db[SHIPPING_RULES].insert_many([dict(doc) for doc in RULES_SEED])
    return db


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext(user_id=USER_ID, request_id="req-test")


@pytest.fixture
def add_to_cart(seeded):
    async def _add(product_id: str, quantity: int, user_id: str = USER_ID) -> None:
        await seeded[CART_ITEMS].insert_one(
            {
                "userId": user_id,
                "productId": product_id,
                "quantity": quantity,
                "addedAt": datetime.now(UTC),
            }
        )

    return _add


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
async def client(seeded, gateway, monkeypatch):
    """API client against the ASGI app, with the fake gateway installed."""
    from storefront.main import app
    from storefront.services.payment_service import payment_service

    monkeypatch.setattr(payment_service, "gateway", gateway)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as api:
        yield api
