"""MongoDB database connection and index management."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure

from storefront.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Collection names
PRODUCTS = "products"
ADDRESSES = "addresses"
SHIPPING_RULES = "shipping_rules"
CART_ITEMS = "cart_items"
ORDERS = "orders"
ORDER_ITEMS = "order_items"
PAYMENT_INTENTS = "payment_intents"
PAYMENT_CLAIMS = "payment_claims"
ORDER_REQUESTS = "order_requests"


class MongoDB:
    """MongoDB connection manager."""

    def __init__(self) -> None:
        """Initialize MongoDB connection."""
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        """Connect to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(
                settings.mongodb_url,
                maxPoolSize=settings.mongodb_max_pool_size,
                minPoolSize=settings.mongodb_min_pool_size,
            )
            self.db = self.client[settings.mongodb_database]

            # Test connection
            await self.client.admin.command("ping")
            logger.info("Connected to MongoDB: %s", settings.mongodb_database)

            await self.create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB: %s", e)
            raise

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")
        self.client = None
        self.db = None

    @property
    def is_connected(self) -> bool:
        return self.db is not None

    def collection(self, name: str) -> AsyncIOMotorCollection:
        """Return a collection of the connected database."""
        if self.db is None:
            raise ConnectionError("Database not connected")
        return self.db[name]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncIOMotorClientSession]:
        """Run the enclosed writes in one multi-document transaction."""
        if self.client is None:
            raise ConnectionError("Database not connected")
        async with await self.client.start_session() as session:
            async with session.start_transaction():
                yield session

    async def create_indexes(self) -> None:
        """Create database indexes."""
        if self.db is None:
            return

        await self.db[PRODUCTS].create_index("productId", unique=True, name="productId_unique")
        await self.db[ADDRESSES].create_index("addressId", unique=True, name="addressId_unique")
        await self.db[ADDRESSES].create_index("userId", name="address_user_index")
        await self.db[SHIPPING_RULES].create_index(
            [("isActive", ASCENDING), ("minOrderValue", DESCENDING)], name="active_rules_index"
        )
        await self.db[CART_ITEMS].create_index(
            [("userId", ASCENDING), ("productId", ASCENDING)],
            unique=True,
            name="cart_line_unique",
        )
        await self.db[ORDERS].create_index("orderId", unique=True, name="orderId_unique")
        await self.db[ORDERS].create_index(
            [("userId", ASCENDING), ("createdAt", DESCENDING)], name="orders_by_user"
        )
        await self.db[ORDER_ITEMS].create_index("itemId", unique=True, name="itemId_unique")
        await self.db[ORDER_ITEMS].create_index("orderId", name="items_by_order")
        await self.db[PAYMENT_INTENTS].create_index(
            "gatewayOrderId", unique=True, name="gatewayOrderId_unique"
        )
        await self.db[PAYMENT_CLAIMS].create_index(
            "gatewayPaymentId", unique=True, name="gatewayPaymentId_unique"
        )
        await self.db[ORDER_REQUESTS].create_index(
            [("userId", ASCENDING), ("key", ASCENDING)],
            unique=True,
            name="idempotency_key_unique",
        )
        logger.info("MongoDB indexes created")


# Global MongoDB instance
mongodb = MongoDB()
