"""Payment gateway models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


class IntentStatus(str, Enum):
    """Local view of a gateway payment intent."""

    CREATED = "created"
    FAILED = "failed"
    CONSUMED = "consumed"


class GatewayIntent(BaseModel):
    """What the gateway returns when an intent is created."""

    intentId: str
    amount: int = Field(..., description="Amount in minor currency units")
    currency: str
    receipt: str


class PaymentIntentInDB(BaseModel):
    """Payment intent tracked against the user who created it."""

    gatewayOrderId: str
    userId: str
    amount: int = Field(..., gt=0, description="Amount in minor currency units")
    currency: str
    receipt: str
    status: IntentStatus = IntentStatus.CREATED
    orderId: Optional[str] = None
    failureReason: Optional[str] = None
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))


class PaymentProof(BaseModel):
    """Proof of payment handed to the client by the gateway checkout.

    Treated as untrusted until the signature is verified server-side.
    """

    method: Literal["ONLINE"]
    gatewayPaymentId: str = Field(..., min_length=1, max_length=128)
    gatewayOrderId: str = Field(..., min_length=1, max_length=128)
    signature: str = Field(..., min_length=1, max_length=256)
