"""Idempotency claims backed by a unique index.

Inserting the claim document is the lock: the first writer wins, later writers
hit ``DuplicateKeyError`` and either get the finished order id back or learn
that the first attempt is still running. A claim whose holder died without
finishing is taken over once it is older than ``claim_lease_seconds``.
"""

import logging
from datetime import timedelta
from typing import Any, Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from storefront.config import get_settings
from storefront.database.mongodb import mongodb
from storefront.exceptions import ConflictError
from storefront.utils.helpers import utc_now

logger = logging.getLogger(__name__)
settings = get_settings()

IN_PROGRESS = "in_progress"
COMPLETED = "completed"


class ClaimRegistry:
    """Claims stored in one collection, keyed by the fields of its unique index."""

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    @property
    def _collection(self):
        return mongodb.collection(self.collection_name)

    async def acquire(self, key: dict[str, Any], **fields: Any) -> Optional[str]:
        """Take the claim for ``key``.

        Returns None when the claim is newly taken, or the order id recorded by a
        completed earlier attempt. Raises ConflictError while an earlier attempt
        is still in progress and within its lease.
        """
        now = utc_now()
        doc = {**key, **fields, "state": IN_PROGRESS, "orderId": None, "createdAt": now}
        try:
            await self._collection.insert_one(doc)
            return None
        except DuplicateKeyError:
            existing = await self._collection.find_one(key, {"_id": 0})

        if existing and existing.get("state") == COMPLETED and existing.get("orderId"):
            logger.info(
                "Duplicate submission resolved to existing order %s",
                existing["orderId"],
                extra={"claim": self.collection_name, "orderId": existing["orderId"]},
            )
            return existing["orderId"]

        if await self._take_over_stale(key, fields, now):
            return None

        logger.warning(
            "Duplicate submission while first attempt is in progress",
            extra={"claim": self.collection_name},
        )
        raise ConflictError()

    async def _take_over_stale(self, key: dict[str, Any], fields: dict[str, Any], now) -> bool:
        """Claim ``key`` if its holder stopped without completing or releasing it."""
        # Naive UTC, the form the driver hands stored dates back in.
        cutoff = (now - timedelta(seconds=settings.claim_lease_seconds)).replace(tzinfo=None)
        taken = await self._collection.find_one_and_update(
            {**key, "state": IN_PROGRESS, "createdAt": {"$lt": cutoff}},
            {"$set": {**fields, "createdAt": now}},
        )
        if taken is None:
            return False

        logger.warning(
            "Took over abandoned submission claim",
            extra={"claim": self.collection_name},
        )
        return True

    async def complete(self, key: dict[str, Any], order_id: str) -> None:
        """Record the order created under this claim."""
        await self._collection.update_one(
            key,
            {"$set": {"state": COMPLETED, "orderId": order_id, "completedAt": utc_now()}},
        )

    async def release(self, key: dict[str, Any]) -> None:
        """Drop an unfinished claim so the user can retry."""
        try:
            await self._collection.delete_one({**key, "state": IN_PROGRESS})
        except PyMongoError as e:
            logger.error("Failed to release claim %s: %s", key, e, extra={"claim": self.collection_name})
