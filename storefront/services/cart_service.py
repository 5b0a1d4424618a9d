"""Cart storage for the order pipeline."""

import logging

from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from storefront.config import get_settings
from storefront.database.mongodb import CART_ITEMS, mongodb
from storefront.exceptions import ReferenceDataError, ValidationError
from storefront.models.product import CartLine
from storefront.services.catalog_service import catalog_service
from storefront.utils.helpers import utc_now

logger = logging.getLogger(__name__)
settings = get_settings()


class CartService:
    """Per-user cart lines. Every call is scoped by the authenticated user id."""

    @staticmethod
    async def get_cart_items(user_id: str) -> list[CartLine]:
        """Cart lines joined with their products.

        Lines whose product has left the catalog are dropped by the join.
        """
        cursor = (
            mongodb.collection(CART_ITEMS)
            .find({"userId": user_id}, {"_id": 0})
            .sort("addedAt", ASCENDING)
        )
        rows = [doc async for doc in cursor]
        products = await catalog_service.get_products([row["productId"] for row in rows])

        lines = []
        for row in rows:
            product = products.get(row["productId"])
            if product is None:
                logger.debug("Dropping cart line for missing product %s", row["productId"])
                continue
            lines.append(
                CartLine(
                    productId=row["productId"],
                    quantity=row["quantity"],
                    product=product,
                    addedAt=row.get("addedAt"),
                )
            )
        return lines

    @staticmethod
    async def set_item(user_id: str, product_id: str, quantity: int) -> None:
        """Add a product to the cart or change its quantity."""
        if quantity < 1 or quantity > settings.max_item_quantity:
            raise ValidationError(
                f"Invalid quantity. Must be between 1 and {settings.max_item_quantity}."
            )
        if await catalog_service.get_product(product_id) is None:
            raise ReferenceDataError("Product not found")

        await mongodb.collection(CART_ITEMS).update_one(
            {"userId": user_id, "productId": product_id},
            {"$set": {"quantity": quantity}, "$setOnInsert": {"addedAt": utc_now()}},
            upsert=True,
        )

    @staticmethod
    async def remove_item(user_id: str, product_id: str) -> bool:
        """Remove one product from the cart."""
        result = await mongodb.collection(CART_ITEMS).delete_one(
            {"userId": user_id, "productId": product_id}
        )
        return result.deleted_count > 0

    @staticmethod
    async def clear_cart(user_id: str) -> int:
        """Empty the user's cart."""
        result = await mongodb.collection(CART_ITEMS).delete_many({"userId": user_id})
        logger.info("Cleared %d cart line(s)", result.deleted_count, extra={"userId": user_id})
        return result.deleted_count

    async def clear_after_order(self, user_id: str, order_id: str) -> None:
        """Empty the cart once its order is persisted.

        The order already exists at this point, so a failure here only leaves
        the cart populated and is not reported to the caller.
        """
        try:
            await self.clear_cart(user_id)
        except PyMongoError as e:
            logger.warning(
                "Order placed but cart could not be cleared: %s",
                e,
                extra={"userId": user_id, "orderId": order_id},
            )


# Global cart service instance
cart_service = CartService()
