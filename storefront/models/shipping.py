"""Shipping rule and quote models."""

from pydantic import BaseModel, Field


class ShippingRule(BaseModel):
    """Reference row of the shipping-rule table.

    A rule with ``charge == 0`` defines the free-shipping threshold.
    """

    minOrderValue: float = Field(..., ge=0)
    charge: float = Field(..., ge=0)
    isActive: bool = True


class ShippingQuote(BaseModel):
    """Result of pricing a subtotal against the rule table."""

    subtotal: float
    shippingFee: float
    freeShippingThreshold: float
    total: float
    amountToFreeShipping: float = Field(
        ..., description="How much more the customer must add to reach free shipping"
    )
