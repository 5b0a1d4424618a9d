"""Order and order item data models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    """Lifecycle states of an order."""

    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Forward-only transitions; cancellation is the single way back out.
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.PROCESSING, OrderStatus.PAID, OrderStatus.CANCELLED}
    ),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Check whether an order may move from ``current`` to ``target``."""
    return target in ALLOWED_TRANSITIONS[current]


class PaymentMethod(str, Enum):
    """Payment method recorded on an order."""

    COD = "COD"
    PAID = "Paid"


class RequestedPaymentMethod(str, Enum):
    """Payment method chosen by the client at checkout."""

    COD = "COD"
    ONLINE = "ONLINE"


class OrderMode(str, Enum):
    """Where the items of an order come from."""

    CART = "CART"
    BUY_NOW = "BUY_NOW"


class LineItem(BaseModel):
    """Client-supplied line in a buy-now request. Prices are never taken from here."""

    productId: str = Field(..., min_length=1)
    quantity: int


class OrderRequest(BaseModel):
    """Request-scoped checkout attempt; never persisted as-is."""

    mode: OrderMode
    addressId: Optional[str] = None
    paymentMethod: RequestedPaymentMethod
    items: list[LineItem] = Field(default_factory=list)


class PricedItem(BaseModel):
    """Line item with its price snapshot, ready for persistence."""

    productId: str
    quantity: int = Field(..., ge=1)
    priceAtPurchase: float = Field(..., ge=0)


class NormalizedOrder(BaseModel):
    """Validated, priced payload handed to the order repository."""

    userId: str
    shippingAddressId: str
    paymentMethod: PaymentMethod
    mode: OrderMode
    subtotal: float
    shippingFee: float
    totalPrice: float = Field(..., gt=0)
    items: list[PricedItem] = Field(..., min_length=1)


class OrderItem(BaseModel):
    """Order item as stored in database. Immutable once created."""

    itemId: str
    orderId: str
    productId: str
    quantity: int = Field(..., ge=1)
    priceAtPurchase: float = Field(..., ge=0)


class OrderInDB(BaseModel):
    """Order header as stored in database."""

    orderId: str = Field(..., description="Generated order identifier")
    userId: str = Field(..., description="User who placed the order")
    shippingAddressId: str = Field(..., description="Address the order ships to")
    subtotal: float = Field(..., ge=0)
    shippingFee: float = Field(..., ge=0)
    totalPrice: float = Field(..., gt=0, description="Subtotal plus shipping at creation time")
    paymentMethod: PaymentMethod
    status: OrderStatus
    gatewayPaymentId: Optional[str] = None
    gatewayOrderId: Optional[str] = None
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Order(OrderInDB):
    """Order header together with its items."""

    items: list[OrderItem] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "example": {
                "orderId": "6f1d4c1e-0a8b-4f8e-b0f4-2f5d3c9b7e21",
                "userId": "8b0e5f6a-3d1c-4c59-9a65-0d2f3a1b4c5d",
                "shippingAddressId": "addr_001",
                "subtotal": 450.0,
                "shippingFee": 40.0,
                "totalPrice": 490.0,
                "paymentMethod": "COD",
                "status": "processing",
                "items": [
                    {
                        "itemId": "2d7c0f9e-5b4a-4e31-8c2d-1a0b9e8f7d6c",
                        "orderId": "6f1d4c1e-0a8b-4f8e-b0f4-2f5d3c9b7e21",
                        "productId": "c2a3f6de-2f0b-4f1e-9a57-6f8c1f0d1a11",
                        "quantity": 1,
                        "priceAtPurchase": 450.0,
                    }
                ],
                "createdAt": "2025-02-22T00:00:00Z",
                "updatedAt": "2025-02-22T00:00:00Z",
            }
        }
    }
