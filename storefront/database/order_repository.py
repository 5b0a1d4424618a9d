"""Order persistence.

An order header and its items are written as one logical unit. With
transactions enabled both inserts share a client session; otherwise the header
is written hidden (``itemsCommitted: False``), the items follow, and the header
is only revealed once they are in. Any failure in between deletes what was
written.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Optional

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from storefront.config import get_settings
from storefront.database.mongodb import ORDER_ITEMS, ORDERS, mongodb
from storefront.exceptions import ConflictError, PersistenceError, ReferenceDataError, ValidationError
from storefront.models.order import (
    NormalizedOrder,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    can_transition,
)
from storefront.utils.helpers import generate_uuid, utc_now

logger = logging.getLogger(__name__)
settings = get_settings()


def initial_status(payment_method: PaymentMethod) -> OrderStatus:
    """Status a new order starts in."""
    if payment_method == PaymentMethod.PAID:
        return OrderStatus.PAID
    return OrderStatus.PROCESSING


class OrderRepository:
    """Creates and reads orders together with their items."""

    @property
    def orders(self):
        return mongodb.collection(ORDERS)

    @property
    def order_items(self):
        return mongodb.collection(ORDER_ITEMS)

    async def create_order(
        self,
        order: NormalizedOrder,
        *,
        gateway_payment_id: Optional[str] = None,
        gateway_order_id: Optional[str] = None,
    ) -> str:
        """Persist the header and items of ``order`` and return the new order id."""
        order_id = generate_uuid()
        now = utc_now()
        header = {
            "orderId": order_id,
            "userId": order.userId,
            "shippingAddressId": order.shippingAddressId,
            "subtotal": order.subtotal,
            "shippingFee": order.shippingFee,
            "totalPrice": order.totalPrice,
            "paymentMethod": order.paymentMethod.value,
            "status": initial_status(order.paymentMethod).value,
            "gatewayPaymentId": gateway_payment_id,
            "gatewayOrderId": gateway_order_id,
            "itemsCommitted": False,
            "createdAt": now,
            "updatedAt": now,
        }
        items = [
            {
                "itemId": generate_uuid(),
                "orderId": order_id,
                "productId": item.productId,
                "quantity": item.quantity,
                "priceAtPurchase": item.priceAtPurchase,
            }
            for item in order.items
        ]
        log_context = {"userId": order.userId, "orderId": order_id}

        if settings.mongodb_use_transactions:
            await self._create_in_transaction(header, items, log_context)
        else:
            await self._create_with_compensation(header, items, log_context)

        logger.info(
            "Order created with %d item(s), total %.2f",
            len(items),
            order.totalPrice,
            extra={**log_context, "paymentMethod": order.paymentMethod.value},
        )
        return order_id

    async def _create_in_transaction(
        self, header: dict[str, Any], items: list[dict[str, Any]], log_context: dict[str, str]
    ) -> None:
        header["itemsCommitted"] = True
        try:
            async with mongodb.transaction() as session:
                await self.orders.insert_one(header, session=session)
                await self.order_items.insert_many(items, session=session)
        except PyMongoError as e:
            logger.error("Order transaction aborted: %s", e, extra=log_context)
            raise PersistenceError(cause=str(e)) from e

    async def _create_with_compensation(
        self, header: dict[str, Any], items: list[dict[str, Any]], log_context: dict[str, str]
    ) -> None:
        try:
            await self.orders.insert_one(header)
        except PyMongoError as e:
            logger.error("Error creating order header: %s", e, extra=log_context)
            raise PersistenceError(cause=str(e)) from e

        try:
            await self.order_items.insert_many(items)
            await self.orders.update_one(
                {"orderId": header["orderId"]}, {"$set": {"itemsCommitted": True}}
            )
        except asyncio.CancelledError:
            logger.warning("Order creation cancelled after header insert", extra=log_context)
            await asyncio.shield(self._discard(header["orderId"], log_context))
            raise
        except PyMongoError as e:
            logger.error("Error inserting order items: %s", e, extra=log_context)
            await self._discard(header["orderId"], log_context)
            raise PersistenceError("Failed to create order items.", cause=str(e)) from e

    async def _discard(self, order_id: str, log_context: dict[str, str]) -> None:
        """Remove a partially written order.

        The header goes first and regardless of ``itemsCommitted``: a reveal
        whose acknowledgement was lost may already have flipped the flag.
        """
        try:
            await self.orders.delete_one({"orderId": order_id})
            await self.order_items.delete_many({"orderId": order_id})
            logger.info("Discarded partially created order", extra=log_context)
        except PyMongoError as e:
            # The header stays hidden and is removed by purge_incomplete_orders.
            logger.error("Failed to discard partial order: %s", e, extra=log_context)

    async def _items_for(self, order_ids: list[str]) -> dict[str, list[OrderItem]]:
        grouped: dict[str, list[OrderItem]] = {order_id: [] for order_id in order_ids}
        cursor = self.order_items.find({"orderId": {"$in": order_ids}}, {"_id": 0})
        async for doc in cursor:
            grouped.setdefault(doc["orderId"], []).append(OrderItem(**doc))
        return grouped

    async def get_order(self, order_id: str, user_id: str) -> Optional[Order]:
        """Get one of the user's orders with its items."""
        doc = await self.orders.find_one(
            {"orderId": order_id, "userId": user_id, "itemsCommitted": True}, {"_id": 0}
        )
        if not doc:
            return None
        items = await self._items_for([order_id])
        return Order(**doc, items=items[order_id])

    async def list_orders(
        self, user_id: str, status: Optional[OrderStatus] = None, limit: int = 100
    ) -> list[Order]:
        """List the user's orders, newest first."""
        query: dict[str, Any] = {"userId": user_id, "itemsCommitted": True}
        if status is not None:
            query["status"] = status.value

        cursor = self.orders.find(query, {"_id": 0}).sort("createdAt", DESCENDING).limit(limit)
        docs = await cursor.to_list(length=limit)
        if not docs:
            return []

        items = await self._items_for([doc["orderId"] for doc in docs])
        return [Order(**doc, items=items[doc["orderId"]]) for doc in docs]

    async def update_status(self, order_id: str, user_id: str, target: OrderStatus) -> Order:
        """Move an order to ``target`` if the lifecycle allows it."""
        order = await self.get_order(order_id, user_id)
        if order is None:
            raise ReferenceDataError("Order not found")

        if not can_transition(order.status, target):
            raise ValidationError(
                f"Order cannot move from '{order.status.value}' to '{target.value}'."
            )

        now = utc_now()
        result = await self.orders.update_one(
            {"orderId": order_id, "userId": user_id, "status": order.status.value},
            {"$set": {"status": target.value, "updatedAt": now}},
        )
        if result.modified_count == 0:
            raise ConflictError("Order status changed, please refresh and try again.")

        logger.info(
            "Order status %s -> %s",
            order.status.value,
            target.value,
            extra={"userId": user_id, "orderId": order_id},
        )
        return order.model_copy(update={"status": target, "updatedAt": now})

    async def purge_incomplete_orders(self, older_than: timedelta) -> int:
        """Delete hidden headers left behind by interrupted writes."""
        # Naive UTC, the form the driver hands stored dates back in.
        cutoff = (utc_now() - older_than).replace(tzinfo=None)
        cursor = self.orders.find(
            {"itemsCommitted": False, "createdAt": {"$lt": cutoff}}, {"_id": 0, "orderId": 1}
        )
        order_ids = [doc["orderId"] async for doc in cursor]
        if not order_ids:
            return 0

        await self.order_items.delete_many({"orderId": {"$in": order_ids}})
        result = await self.orders.delete_many(
            {"orderId": {"$in": order_ids}, "itemsCommitted": False}
        )
        logger.info("Purged %d incomplete order(s)", result.deleted_count)
        return result.deleted_count


# Global order repository instance
order_repository = OrderRepository()
