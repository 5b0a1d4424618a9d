"""Database package."""

from storefront.database.claims import ClaimRegistry
from storefront.database.mongodb import MongoDB, mongodb
from storefront.database.order_repository import OrderRepository, order_repository

__all__ = [
    "MongoDB",
    "mongodb",
    "ClaimRegistry",
    "OrderRepository",
    "order_repository",
]
