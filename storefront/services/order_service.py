"""Order submission pipeline and order tracking."""

import asyncio
import logging
from typing import Optional

from storefront.database.claims import ClaimRegistry
from storefront.database.mongodb import ORDER_REQUESTS
from storefront.database.order_repository import OrderRepository, order_repository
from storefront.exceptions import ReferenceDataError, ValidationError
from storefront.models.context import RequestContext
from storefront.models.order import (
    Order,
    OrderMode,
    OrderRequest,
    OrderStatus,
    RequestedPaymentMethod,
)
from storefront.services.cart_service import CartService, cart_service
from storefront.services.order_assembler import OrderAssembler, order_assembler, require_user

logger = logging.getLogger(__name__)

MAX_IDEMPOTENCY_KEY_LENGTH = 255


class OrderService:
    """Runs cash-on-delivery submissions and serves the user's orders."""

    def __init__(
        self,
        assembler: OrderAssembler = order_assembler,
        repository: OrderRepository = order_repository,
        carts: CartService = cart_service,
    ) -> None:
        self.assembler = assembler
        self.repository = repository
        self.carts = carts
        self.requests = ClaimRegistry(ORDER_REQUESTS)

    async def submit(
        self,
        ctx: RequestContext,
        request: OrderRequest,
        idempotency_key: Optional[str] = None,
    ) -> str:
        """Validate, price and persist a cash-on-delivery order.

        Repeating a call with the same ``idempotency_key`` returns the order
        created by the first call instead of creating another one.
        """
        user_id = require_user(ctx)

        if request.paymentMethod == RequestedPaymentMethod.ONLINE:
            raise ValidationError(
                "Online payments are confirmed after payment. Create a payment intent first."
            )

        claim_key = None
        if idempotency_key:
            if len(idempotency_key) > MAX_IDEMPOTENCY_KEY_LENGTH:
                raise ValidationError("Idempotency key is too long.")
            claim_key = {"userId": user_id, "key": idempotency_key}
            existing_order_id = await self.requests.acquire(claim_key)
            if existing_order_id:
                return existing_order_id

        try:
            order = await self.assembler.assemble(ctx, request)
            order_id = await self.repository.create_order(order)
        except (Exception, asyncio.CancelledError):
            if claim_key:
                await asyncio.shield(self.requests.release(claim_key))
            raise

        if claim_key:
            await self.requests.complete(claim_key, order_id)

        # Only now that the order is durable may the checkout source go away.
        if order.mode == OrderMode.CART:
            await self.carts.clear_after_order(user_id, order_id)

        return order_id

    async def list_orders(
        self, ctx: RequestContext, status: Optional[OrderStatus] = None
    ) -> list[Order]:
        """Orders of the caller, newest first."""
        return await self.repository.list_orders(require_user(ctx), status)

    async def get_order(self, ctx: RequestContext, order_id: str) -> Order:
        """One of the caller's orders."""
        order = await self.repository.get_order(order_id, require_user(ctx))
        if order is None:
            raise ReferenceDataError("Order not found")
        return order

    async def cancel_order(self, ctx: RequestContext, order_id: str) -> Order:
        """Cancel an order that has not shipped yet."""
        user_id = require_user(ctx)
        order = await self.repository.update_status(order_id, user_id, OrderStatus.CANCELLED)
        logger.info("Order cancelled by customer", extra={"userId": user_id, "orderId": order_id})
        return order


# Global order service instance
order_service = OrderService()
