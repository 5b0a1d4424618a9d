"""Catalog lookups."""

import logging
from typing import Optional

from pymongo.errors import PyMongoError

from storefront.database.mongodb import PRODUCTS, mongodb
from storefront.exceptions import CatalogUnavailableError
from storefront.models.product import Product

logger = logging.getLogger(__name__)


class CatalogService:
    """Read-only access to products."""

    @staticmethod
    async def get_product(product_id: str) -> Optional[Product]:
        """Get product by ID."""
        try:
            doc = await mongodb.collection(PRODUCTS).find_one({"productId": product_id}, {"_id": 0})
        except PyMongoError as e:
            logger.error("Error getting product %s: %s", product_id, e)
            raise CatalogUnavailableError(cause=str(e)) from e

        if doc:
            return Product.from_document(doc)
        return None

    @staticmethod
    async def get_products(product_ids: list[str]) -> dict[str, Product]:
        """Get products by ID, keyed by ID. Unknown IDs are absent."""
        if not product_ids:
            return {}
        try:
            cursor = mongodb.collection(PRODUCTS).find(
                {"productId": {"$in": product_ids}}, {"_id": 0}
            )
            return {doc["productId"]: Product.from_document(doc) async for doc in cursor}
        except PyMongoError as e:
            logger.error("Error getting products: %s", e)
            raise CatalogUnavailableError(cause=str(e)) from e


# Global catalog service instance
catalog_service = CatalogService()
