"""API request and response models."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from storefront.models.order import (
    LineItem,
    OrderMode,
    OrderRequest,
    RequestedPaymentMethod,
)
from storefront.models.payment import PaymentProof
from storefront.models.product import CartLine
from storefront.models.shipping import ShippingQuote


class CheckoutBody(BaseModel):
    """Fields shared by order submission and finalization."""

    addressId: Optional[str] = Field(None, description="Owned address; defaults to the default address")
    items: Optional[list[LineItem]] = Field(
        None, description="Buy-now item. Omit to check out the current cart."
    )
    mode: Optional[OrderMode] = None

    def resolve_mode(self) -> OrderMode:
        if self.mode is not None:
            return self.mode
        return OrderMode.BUY_NOW if self.items else OrderMode.CART


class SubmitOrderRequest(CheckoutBody):
    """Body of ``POST /orders``."""

    paymentMethod: RequestedPaymentMethod

    model_config = {
        "json_schema_extra": {
            "example": {
                "addressId": "addr_001",
                "paymentMethod": "COD",
                "items": [{"productId": "c2a3f6de-2f0b-4f1e-9a57-6f8c1f0d1a11", "quantity": 1}],
            }
        }
    }

    def to_order_request(self) -> OrderRequest:
        return OrderRequest(
            mode=self.resolve_mode(),
            addressId=self.addressId,
            paymentMethod=self.paymentMethod,
            items=self.items or [],
        )


class FinalizeOrderRequest(CheckoutBody):
    """Body of ``POST /orders/finalize``, sent after the gateway reports success."""

    total: float = Field(..., description="Total the client displayed and paid")
    payment: PaymentProof

    def to_order_request(self) -> OrderRequest:
        return OrderRequest(
            mode=self.resolve_mode(),
            addressId=self.addressId,
            paymentMethod=RequestedPaymentMethod.ONLINE,
            items=self.items or [],
        )


class OrderCreatedResponse(BaseModel):
    """Successful submission."""

    orderId: str


class CreateIntentRequest(BaseModel):
    """Body of ``POST /payments/intent``."""

    amount: float = Field(..., description="Amount in major currency units")
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    receipt: Optional[str] = Field(None, max_length=40)


class IntentResponse(BaseModel):
    """Gateway intent handed to the client checkout widget."""

    intentId: str
    amount: int = Field(..., description="Amount in minor currency units")
    currency: str
    receipt: str
    keyId: str = Field(..., description="Public gateway key for the checkout widget")


class PaymentFailureRequest(BaseModel):
    """Body of ``POST /payments/failure``."""

    gatewayOrderId: str = Field(..., min_length=1)
    reason: Optional[str] = Field(None, max_length=500)


class CartItemUpdate(BaseModel):
    quantity: int


class CartResponse(BaseModel):
    items: list[CartLine]
    quote: ShippingQuote


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str
    detail: Optional[Any] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    services: dict[str, str]
