"""Online payment flow: intent creation, failure callbacks and order finalization.

A checkout attempt moves through these states::

    IntentCreated -> GatewayRedirected -> ProofReceived -> Verified -> OrderCreated
                                       \\-> Failed | Abandoned

The order is only written after the payment proof has been verified, and a
given gateway payment id can produce at most one order.
"""

import asyncio
import logging
import math
from typing import Optional

from storefront.config import get_settings
from storefront.database.claims import ClaimRegistry
from storefront.database.mongodb import PAYMENT_CLAIMS, PAYMENT_INTENTS, mongodb
from storefront.database.order_repository import OrderRepository, order_repository
from storefront.exceptions import (
    ReferenceDataError,
    SignatureVerificationError,
    ValidationError,
)
from storefront.models.context import RequestContext
from storefront.models.order import OrderMode
from storefront.models.payment import IntentStatus, PaymentIntentInDB
from storefront.models.request import FinalizeOrderRequest, IntentResponse
from storefront.services.cart_service import CartService, cart_service
from storefront.services.order_assembler import OrderAssembler, order_assembler, require_user
from storefront.services.payment_gateway import RazorpayGateway, razorpay_gateway
from storefront.utils.helpers import from_minor_units, generate_receipt, to_minor_units, utc_now

logger = logging.getLogger(__name__)
settings = get_settings()

TOTAL_TOLERANCE = 0.01


class PaymentService:
    """Reconciles gateway payments with orders."""

    def __init__(
        self,
        gateway: RazorpayGateway = razorpay_gateway,
        assembler: OrderAssembler = order_assembler,
        repository: OrderRepository = order_repository,
        carts: CartService = cart_service,
    ) -> None:
        self.gateway = gateway
        self.assembler = assembler
        self.repository = repository
        self.carts = carts
        self.claims = ClaimRegistry(PAYMENT_CLAIMS)

    @property
    def intents(self):
        return mongodb.collection(PAYMENT_INTENTS)

    async def create_intent(
        self,
        ctx: RequestContext,
        amount: float,
        currency: Optional[str] = None,
        receipt: Optional[str] = None,
    ) -> IntentResponse:
        """Reserve ``amount`` with the gateway and remember the intent for this user."""
        user_id = require_user(ctx)
        if not math.isfinite(amount) or amount <= 0:
            raise ValidationError("Invalid total amount.")

        currency = (currency or settings.payment_currency).upper()
        receipt = receipt or generate_receipt()

        intent = await self.gateway.create_intent(to_minor_units(amount), currency, receipt)

        record = PaymentIntentInDB(
            gatewayOrderId=intent.intentId,
            userId=user_id,
            amount=intent.amount,
            currency=intent.currency,
            receipt=intent.receipt,
        )
        doc = record.model_dump()
        doc["status"] = record.status.value
        await self.intents.insert_one(doc)

        logger.info(
            "Payment intent stored for %.2f %s",
            from_minor_units(intent.amount),
            intent.currency,
            extra={"userId": user_id, "gatewayOrderId": intent.intentId, "amount": intent.amount},
        )
        return IntentResponse(
            intentId=intent.intentId,
            amount=intent.amount,
            currency=intent.currency,
            receipt=intent.receipt,
            keyId=self.gateway.key_id,
        )

    async def _get_intent(self, user_id: str, gateway_order_id: str) -> Optional[PaymentIntentInDB]:
        doc = await self.intents.find_one(
            {"gatewayOrderId": gateway_order_id, "userId": user_id}, {"_id": 0}
        )
        return PaymentIntentInDB(**doc) if doc else None

    async def _set_intent_status(
        self,
        user_id: str,
        gateway_order_id: str,
        status: IntentStatus,
        *,
        reason: Optional[str] = None,
        order_id: Optional[str] = None,
    ) -> None:
        update = {"status": status.value, "updatedAt": utc_now()}
        if reason is not None:
            update["failureReason"] = reason
        if order_id is not None:
            update["orderId"] = order_id
        await self.intents.update_one(
            {
                "gatewayOrderId": gateway_order_id,
                "userId": user_id,
                "status": {"$ne": IntentStatus.CONSUMED.value},
            },
            {"$set": update},
        )

    async def record_failure(
        self, ctx: RequestContext, gateway_order_id: str, reason: Optional[str] = None
    ) -> None:
        """Record the gateway's payment-failed callback. Cart state is left untouched."""
        user_id = require_user(ctx)
        intent = await self._get_intent(user_id, gateway_order_id)
        if intent is None:
            raise ReferenceDataError("Payment not found")
        if intent.status == IntentStatus.CONSUMED:
            raise ValidationError("This payment has already been completed.")

        await self._set_intent_status(
            user_id, gateway_order_id, IntentStatus.FAILED, reason=reason or "payment failed"
        )
        logger.warning(
            "Payment failed: %s",
            reason or "no reason given",
            extra={"userId": user_id, "gatewayOrderId": gateway_order_id},
        )

    async def finalize(self, ctx: RequestContext, request: FinalizeOrderRequest) -> str:
        """Verify the payment proof and create the paid order.

        Safe to call repeatedly with the same proof: later calls return the
        order created by the first one.
        """
        user_id = require_user(ctx)
        proof = request.payment
        log_context = {
            "userId": user_id,
            "gatewayOrderId": proof.gatewayOrderId,
            "gatewayPaymentId": proof.gatewayPaymentId,
        }

        if not self.gateway.verify_signature(proof):
            logger.critical("Payment signature verification failed", extra=log_context)
            await self._set_intent_status(
                user_id, proof.gatewayOrderId, IntentStatus.FAILED, reason="signature verification failed"
            )
            raise SignatureVerificationError()

        intent = await self._get_intent(user_id, proof.gatewayOrderId)
        if intent is None:
            logger.critical("Verified payment references an unknown intent", extra=log_context)
            raise SignatureVerificationError()

        claim_key = {"gatewayPaymentId": proof.gatewayPaymentId}
        existing_order_id = await self.claims.acquire(
            claim_key, userId=user_id, gatewayOrderId=proof.gatewayOrderId
        )
        if existing_order_id:
            return existing_order_id

        try:
            if intent.status == IntentStatus.CONSUMED:
                raise ValidationError("This payment has already been used for another order.")

            order = await self.assembler.assemble(ctx, request.to_order_request())

            if to_minor_units(order.totalPrice) != intent.amount:
                logger.error(
                    "Paid amount %.2f does not match order total %.2f",
                    from_minor_units(intent.amount),
                    order.totalPrice,
                    extra=log_context,
                )
                raise ValidationError("Paid amount does not match the order total.")
            if not math.isfinite(request.total) or abs(request.total - order.totalPrice) > TOTAL_TOLERANCE:
                raise ValidationError("Order total has changed. Please review your order.")

            order_id = await self.repository.create_order(
                order,
                gateway_payment_id=proof.gatewayPaymentId,
                gateway_order_id=proof.gatewayOrderId,
            )
        except (Exception, asyncio.CancelledError):
            await asyncio.shield(self.claims.release(claim_key))
            raise

        await self.claims.complete(claim_key, order_id)
        await self._set_intent_status(
            user_id, proof.gatewayOrderId, IntentStatus.CONSUMED, order_id=order_id
        )
        logger.info("Paid order finalized", extra={**log_context, "orderId": order_id})

        if order.mode == OrderMode.CART:
            await self.carts.clear_after_order(user_id, order_id)

        return order_id


# Global payment service instance
payment_service = PaymentService()
