"""Catalog and cart data models."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class Product(BaseModel):
    """Product as stored in the catalog."""

    productId: str = Field(..., description="Unique product identifier")
    name: str = Field(..., min_length=1, max_length=500)
    price: float = Field(..., ge=0, description="Current selling price")
    mrp: Optional[float] = Field(None, ge=0, description="Maximum retail price, if shown")
    category: str = Field(default="")
    description: str = Field(default="")
    imageUrl: str = Field(default="")

    model_config = {
        "json_schema_extra": {
            "example": {
                "productId": "c2a3f6de-2f0b-4f1e-9a57-6f8c1f0d1a11",
                "name": "Cotton Kurta",
                "price": 449.0,
                "mrp": 599.0,
                "category": "apparel",
                "description": "Hand block printed cotton kurta.",
                "imageUrl": "https://cdn.example.com/products/kurta.jpg",
            }
        }
    }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Product":
        """Build a product from a Mongo document, ignoring storage-only fields."""
        return cls(**{k: v for k, v in doc.items() if k in cls.model_fields})


class CartLine(BaseModel):
    """A cart entry joined with its product."""

    productId: str
    quantity: int = Field(..., ge=1)
    product: Product
    addedAt: Optional[datetime] = None

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity
