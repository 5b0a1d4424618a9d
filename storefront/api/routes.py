"""API routes for checkout, payments and order tracking."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response, status

from storefront.api.dependencies import get_request_context
from storefront.config import get_settings
from storefront.database.mongodb import mongodb
from storefront.exceptions import ReferenceDataError
from storefront.models.context import RequestContext
from storefront.models.order import Order, OrderStatus
from storefront.models.request import (
    CartItemUpdate,
    CartResponse,
    CreateIntentRequest,
    FinalizeOrderRequest,
    HealthResponse,
    IntentResponse,
    OrderCreatedResponse,
    PaymentFailureRequest,
    SubmitOrderRequest,
)
from storefront.models.shipping import ShippingQuote
from storefront.services.cart_service import cart_service
from storefront.services.order_assembler import require_user
from storefront.services.order_service import order_service
from storefront.services.payment_service import payment_service
from storefront.services.pricing import calculate_subtotal, shipping_service

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix=settings.api_prefix)


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    mongodb_status = "connected" if mongodb.is_connected else "disconnected"
    gateway_status = "configured" if payment_service.gateway.is_configured else "not_configured"

    return HealthResponse(
        status="healthy" if mongodb_status == "connected" else "degraded",
        version=settings.app_version,
        services={"mongodb": mongodb_status, "payment_gateway": gateway_status},
    )


@router.get("/shipping/quote", response_model=ShippingQuote)
async def shipping_quote(subtotal: float = Query(..., ge=0)) -> ShippingQuote:
    """Shipping fee and free-shipping progress for a subtotal."""
    return await shipping_service.quote(subtotal)


@router.get("/cart", response_model=CartResponse)
async def get_cart(ctx: RequestContext = Depends(get_request_context)) -> CartResponse:
    """Current cart with its price summary."""
    lines = await cart_service.get_cart_items(require_user(ctx))
    subtotal = calculate_subtotal((line.product.price, line.quantity) for line in lines)
    quote = await shipping_service.quote(subtotal)
    return CartResponse(items=lines, quote=quote)


@router.put("/cart/items/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def set_cart_item(
    product_id: str,
    body: CartItemUpdate,
    ctx: RequestContext = Depends(get_request_context),
) -> Response:
    """Add a product to the cart or change its quantity."""
    await cart_service.set_item(require_user(ctx), product_id, body.quantity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/cart/items/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_cart_item(
    product_id: str,
    ctx: RequestContext = Depends(get_request_context),
) -> Response:
    """Remove a product from the cart."""
    if not await cart_service.remove_item(require_user(ctx), product_id):
        raise ReferenceDataError("Item is not in your cart")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/orders", response_model=OrderCreatedResponse)
async def submit_order(
    body: SubmitOrderRequest,
    ctx: RequestContext = Depends(get_request_context),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
) -> OrderCreatedResponse:
    """Place a cash-on-delivery order from the cart or a single buy-now item.

    Body:
        addressId: Owned address (defaults to the default address)
        paymentMethod: 'COD' ('ONLINE' orders go through /orders/finalize)
        items: One buy-now item; omit to check out the cart
    """
    order_id = await order_service.submit(ctx, body.to_order_request(), idempotency_key)
    return OrderCreatedResponse(orderId=order_id)


@router.post("/payments/intent", response_model=IntentResponse)
async def create_payment_intent(
    body: CreateIntentRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> IntentResponse:
    """Create a gateway payment intent for the checkout total."""
    return await payment_service.create_intent(ctx, body.amount, body.currency, body.receipt)


@router.post("/payments/failure", status_code=status.HTTP_204_NO_CONTENT)
async def record_payment_failure(
    body: PaymentFailureRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Response:
    """Record that the gateway reported a failed payment."""
    await payment_service.record_failure(ctx, body.gatewayOrderId, body.reason)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/orders/finalize", response_model=OrderCreatedResponse)
async def finalize_order(
    body: FinalizeOrderRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> OrderCreatedResponse:
    """Create the paid order once the gateway has confirmed payment.

    The payment proof is verified here; duplicate callbacks for the same
    payment return the original order id.
    """
    order_id = await payment_service.finalize(ctx, body)
    return OrderCreatedResponse(orderId=order_id)


@router.get("/orders", response_model=list[Order])
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    ctx: RequestContext = Depends(get_request_context),
) -> list[Order]:
    """The caller's orders, newest first."""
    return await order_service.list_orders(ctx, status_filter)


@router.get("/orders/{order_id}", response_model=Order)
async def get_order(
    order_id: str,
    ctx: RequestContext = Depends(get_request_context),
) -> Order:
    """One order with its items."""
    return await order_service.get_order(ctx, order_id)


@router.post("/orders/{order_id}/cancel", response_model=Order)
async def cancel_order(
    order_id: str,
    ctx: RequestContext = Depends(get_request_context),
) -> Order:
    """Cancel an order that has not shipped."""
    return await order_service.cancel_order(ctx, order_id)
