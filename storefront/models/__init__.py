"""Data models package."""

from storefront.models.address import Address
from storefront.models.context import RequestContext
from storefront.models.order import (
    ALLOWED_TRANSITIONS,
    LineItem,
    NormalizedOrder,
    Order,
    OrderInDB,
    OrderItem,
    OrderMode,
    OrderRequest,
    OrderStatus,
    PaymentMethod,
    PricedItem,
    RequestedPaymentMethod,
    can_transition,
)
from storefront.models.payment import (
    GatewayIntent,
    IntentStatus,
    PaymentIntentInDB,
    PaymentProof,
)
from storefront.models.product import CartLine, Product
from storefront.models.request import (
    CartItemUpdate,
    CartResponse,
    CreateIntentRequest,
    ErrorResponse,
    FinalizeOrderRequest,
    HealthResponse,
    IntentResponse,
    OrderCreatedResponse,
    PaymentFailureRequest,
    SubmitOrderRequest,
)
from storefront.models.shipping import ShippingQuote, ShippingRule

__all__ = [
    # Catalog models
    "Product",
    "CartLine",
    "Address",
    "RequestContext",
    "ShippingRule",
    "ShippingQuote",
    # Order models
    "OrderStatus",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "PaymentMethod",
    "RequestedPaymentMethod",
    "OrderMode",
    "LineItem",
    "OrderRequest",
    "PricedItem",
    "NormalizedOrder",
    "OrderItem",
    "OrderInDB",
    "Order",
    # Payment models
    "IntentStatus",
    "GatewayIntent",
    "PaymentIntentInDB",
    "PaymentProof",
    # Request/Response models
    "SubmitOrderRequest",
    "FinalizeOrderRequest",
    "OrderCreatedResponse",
    "CreateIntentRequest",
    "IntentResponse",
    "PaymentFailureRequest",
    "CartItemUpdate",
    "CartResponse",
    "ErrorResponse",
    "HealthResponse",
]
