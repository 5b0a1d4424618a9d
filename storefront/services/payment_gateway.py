"""Razorpay payment gateway client."""

import hashlib
import hmac
import logging
from typing import Optional

import httpx

from storefront.config import get_settings
from storefront.exceptions import PaymentGatewayError
from storefront.models.payment import GatewayIntent, PaymentProof

logger = logging.getLogger(__name__)
settings = get_settings()


class RazorpayGateway:
    """Creates payment intents (gateway "orders") and verifies payment proofs."""

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.key_id = settings.razorpay_key_id if key_id is None else key_id
        self.key_secret = settings.razorpay_key_secret if key_secret is None else key_secret
        self.api_url = api_url or settings.razorpay_api_url
        self.timeout = timeout or settings.payment_gateway_timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def _require_configured(self) -> None:
        if not self.is_configured:
            logger.error("Razorpay credentials are not configured")
            raise PaymentGatewayError("Online payment is not available right now.")

    async def create_intent(self, amount: int, currency: str, receipt: str) -> GatewayIntent:
        """Reserve ``amount`` (minor units) with the gateway."""
        self._require_configured()

        try:
            async with httpx.AsyncClient(
                base_url=self.api_url,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    "/orders",
                    json={"amount": amount, "currency": currency, "receipt": receipt},
                )
        except httpx.HTTPError as e:
            logger.error("Razorpay request failed: %s", e, extra={"receipt": receipt})
            raise PaymentGatewayError(cause=str(e)) from e

        if response.status_code >= 400:
            description = _error_description(response)
            logger.error(
                "Razorpay rejected intent: %s %s",
                response.status_code,
                description,
                extra={"receipt": receipt},
            )
            raise PaymentGatewayError(cause=description)

        data = response.json()
        if not data.get("id"):
            raise PaymentGatewayError(cause="Gateway response carried no order id")

        logger.info(
            "Payment intent created",
            extra={"gatewayOrderId": data["id"], "amount": data.get("amount"), "receipt": receipt},
        )
        return GatewayIntent(
            intentId=data["id"],
            amount=data.get("amount", amount),
            currency=data.get("currency", currency),
            receipt=data.get("receipt") or receipt,
        )

    def create_signature(self, gateway_order_id: str, gateway_payment_id: str) -> str:
        """Signature the gateway attaches to a successful payment."""
        message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
        return hmac.new(self.key_secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def verify_signature(self, proof: PaymentProof) -> bool:
        """Check the payment proof against our key secret."""
        self._require_configured()
        expected = self.create_signature(proof.gatewayOrderId, proof.gatewayPaymentId)
        # Bytes, so that non-ASCII input compares unequal instead of raising.
        return hmac.compare_digest(expected.encode("ascii"), proof.signature.encode("utf-8", "replace"))


def _error_description(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["description"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200]


# Global gateway instance
razorpay_gateway = RazorpayGateway()
