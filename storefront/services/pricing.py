"""Shipping fee and order total computation."""

import logging
from typing import Iterable, Optional

from pydantic import ValidationError as PydanticValidationError
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from storefront.config import get_settings
from storefront.database.mongodb import SHIPPING_RULES, mongodb
from storefront.models.shipping import ShippingQuote, ShippingRule
from storefront.utils.helpers import round_money

logger = logging.getLogger(__name__)
settings = get_settings()


def calculate_subtotal(lines: Iterable[tuple[float, int]]) -> float:
    """Sum unit price times quantity over ``(unit_price, quantity)`` pairs."""
    return round_money(sum(price * quantity for price, quantity in lines))


def calculate_shipping(
    subtotal: float,
    rules: Iterable[ShippingRule],
    *,
    default_threshold: Optional[float] = None,
    default_fee: Optional[float] = None,
) -> ShippingQuote:
    """Price ``subtotal`` against the shipping-rule table.

    Rules are ranked by ``minOrderValue`` descending and the highest threshold
    the subtotal meets wins. Reaching the free-shipping threshold always zeroes
    the fee, whatever the matched rule says.
    """
    threshold = settings.default_free_shipping_threshold if default_threshold is None else default_threshold
    fee = settings.default_shipping_fee if default_fee is None else default_fee

    ranked = sorted(
        (rule for rule in rules if rule.isActive),
        key=lambda rule: rule.minOrderValue,
        reverse=True,
    )
    if ranked:
        free_rule = next((rule for rule in ranked if rule.charge == 0), None)
        if free_rule is not None:
            threshold = free_rule.minOrderValue

        applicable = next((rule for rule in ranked if rule.minOrderValue <= subtotal), None)
        fee = applicable.charge if applicable is not None else ranked[-1].charge

    if subtotal <= 0 or subtotal >= threshold:
        fee = 0.0

    return ShippingQuote(
        subtotal=round_money(subtotal),
        shippingFee=round_money(fee),
        freeShippingThreshold=threshold,
        total=round_money(subtotal + fee),
        amountToFreeShipping=round_money(max(threshold - subtotal, 0.0)),
    )


class ShippingService:
    """Loads shipping rules and prices subtotals."""

    @staticmethod
    async def get_active_shipping_rules() -> list[ShippingRule]:
        """Active rules, highest threshold first."""
        cursor = (
            mongodb.collection(SHIPPING_RULES)
            .find({"isActive": True}, {"_id": 0})
            .sort("minOrderValue", DESCENDING)
        )
        return [ShippingRule(**doc) async for doc in cursor]

    async def quote(self, subtotal: float) -> ShippingQuote:
        """Price a subtotal. Never fails on a rule-table read error."""
        try:
            rules = await self.get_active_shipping_rules()
        except (PyMongoError, ConnectionError, PydanticValidationError) as e:
            logger.warning("Shipping rules unavailable, using defaults: %s", e)
            rules = []
        return calculate_shipping(subtotal, rules)


# Global shipping service instance
shipping_service = ShippingService()
