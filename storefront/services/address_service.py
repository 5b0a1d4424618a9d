"""Address lookups scoped to the owning user."""

import logging
from typing import Optional

from pymongo import DESCENDING

from storefront.database.mongodb import ADDRESSES, mongodb
from storefront.exceptions import ValidationError
from storefront.models.address import Address

logger = logging.getLogger(__name__)


class AddressService:
    """Service for resolving shipping addresses."""

    @staticmethod
    async def get_addresses_for_user(user_id: str) -> list[Address]:
        """All addresses of a user, default address first."""
        cursor = (
            mongodb.collection(ADDRESSES)
            .find({"userId": user_id}, {"_id": 0})
            .sort("isDefault", DESCENDING)
        )
        return [Address.from_document(doc) async for doc in cursor]

    async def resolve_address(self, user_id: str, address_id: Optional[str]) -> Address:
        """Pick the shipping address for an order.

        An explicit ``address_id`` must belong to ``user_id``. Without one the
        default address is used, or the first one when none is marked default.
        """
        addresses = await self.get_addresses_for_user(user_id)

        if address_id:
            for address in addresses:
                if address.addressId == address_id:
                    return address
            logger.warning(
                "Address %s does not belong to user",
                address_id,
                extra={"userId": user_id, "addressId": address_id},
            )
            raise ValidationError("Selected address was not found on your account.")

        if not addresses:
            raise ValidationError("No address found. Please add a shipping address.")
        return next((a for a in addresses if a.isDefault), addresses[0])


# Global address service instance
address_service = AddressService()
