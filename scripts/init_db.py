"""Database initialization script.

Creates indexes and seeds the default shipping rules. Optionally adds a sample
address for a user so checkout can be tried end to end.

Usage:
    python -m scripts.init_db
    python -m scripts.init_db --sample-user <user-id>
"""

import argparse
import asyncio
import logging
from typing import Optional

from storefront.database.mongodb import ADDRESSES, SHIPPING_RULES, mongodb
from storefront.models.address import Address
from storefront.models.shipping import ShippingRule
from storefront.utils.logger import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

DEFAULT_SHIPPING_RULES = [
    ShippingRule(minOrderValue=500, charge=0, isActive=True),
    ShippingRule(minOrderValue=0, charge=40, isActive=True),
]


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Initialize the storefront database")
    parser.add_argument(
        "--sample-user",
        default=None,
        help="Create a default sample address for this user id",
    )
    return parser.parse_args()


async def init_databases(sample_user: Optional[str] = None) -> None:
    """Initialize indexes, shipping rules and an optional sample address."""
    try:
        logger.info("Initializing database...")
        await mongodb.connect()

        rules = mongodb.collection(SHIPPING_RULES)
        if await rules.count_documents({}) == 0:
            await rules.insert_many([rule.model_dump() for rule in DEFAULT_SHIPPING_RULES])
            logger.info("Seeded %d shipping rules", len(DEFAULT_SHIPPING_RULES))
        else:
            logger.info("Shipping rules already present, leaving them unchanged")

        if sample_user:
            address = Address(
                addressId=f"addr_{sample_user}",
                userId=sample_user,
                houseNo="12B",
                streetAddress="MG Road",
                city="Bengaluru",
                state="Karnataka",
                postalCode="560001",
                mobileNumber="+919876543210",
                isDefault=True,
            )
            await mongodb.collection(ADDRESSES).update_one(
                {"addressId": address.addressId},
                {"$set": address.model_dump()},
                upsert=True,
            )
            logger.info("Sample address ready for user %s", sample_user)

        logger.info("Database initialization completed successfully")

    except Exception as e:
        logger.error("Error initializing database: %s", e)
        raise

    finally:
        await mongodb.disconnect()


if __name__ == "__main__":
    args = _parse_args()
    asyncio.run(init_databases(args.sample_user))
