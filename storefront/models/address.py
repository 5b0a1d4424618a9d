"""Shipping address models."""

from typing import Any, Optional

from pydantic import BaseModel


class Address(BaseModel):
    """A user's shipping address. Each address belongs to exactly one user."""

    addressId: str
    userId: str
    streetAddress: str = ""
    houseNo: Optional[str] = None
    landmark: Optional[str] = None
    city: str = ""
    state: str = ""
    postalCode: str = ""
    country: str = "India"
    mobileNumber: Optional[str] = None
    isDefault: bool = False

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Address":
        return cls(**{k: v for k, v in doc.items() if k in cls.model_fields})
