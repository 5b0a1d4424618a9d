"""Turns a checkout request into a validated, priced order payload."""

import logging
import math

from storefront.config import get_settings
from storefront.exceptions import AuthError, ReferenceDataError, ValidationError
from storefront.models.context import RequestContext
from storefront.models.order import (
    LineItem,
    NormalizedOrder,
    OrderMode,
    OrderRequest,
    PaymentMethod,
    PricedItem,
    RequestedPaymentMethod,
)
from storefront.services.address_service import AddressService, address_service
from storefront.services.cart_service import CartService, cart_service
from storefront.services.catalog_service import CatalogService, catalog_service
from storefront.services.pricing import ShippingService, calculate_subtotal, shipping_service

logger = logging.getLogger(__name__)
settings = get_settings()


def require_user(ctx: RequestContext) -> str:
    """Return the authenticated user id or raise AuthError."""
    if not ctx.user_id:
        raise AuthError()
    return ctx.user_id


def check_quantity(quantity: object) -> int:
    """Reject anything that is not an integer in 1..max_item_quantity."""
    if (
        isinstance(quantity, bool)
        or not isinstance(quantity, int)
        or quantity < 1
        or quantity > settings.max_item_quantity
    ):
        raise ValidationError(
            f"Invalid quantity. Must be between 1 and {settings.max_item_quantity}."
        )
    return quantity


class OrderAssembler:
    """Validates and prices an order request. Performs no writes."""

    def __init__(
        self,
        catalog: CatalogService = catalog_service,
        addresses: AddressService = address_service,
        carts: CartService = cart_service,
        shipping: ShippingService = shipping_service,
    ) -> None:
        self.catalog = catalog
        self.addresses = addresses
        self.carts = carts
        self.shipping = shipping

    async def assemble(self, ctx: RequestContext, request: OrderRequest) -> NormalizedOrder:
        """Build the persistence-ready payload for ``request``."""
        user_id = require_user(ctx)

        if request.mode == OrderMode.BUY_NOW:
            items = await self._buy_now_items(user_id, request.items)
        else:
            if request.items:
                raise ValidationError("Items can only be supplied for buy-now checkout.")
            items = await self._cart_items(user_id)

        address = await self.addresses.resolve_address(user_id, request.addressId)

        subtotal = calculate_subtotal((item.priceAtPurchase, item.quantity) for item in items)
        quote = await self.shipping.quote(subtotal)
        if not math.isfinite(quote.total) or quote.total <= 0:
            raise ValidationError("Invalid total amount.")

        payment_method = (
            PaymentMethod.PAID
            if request.paymentMethod == RequestedPaymentMethod.ONLINE
            else PaymentMethod.COD
        )
        return NormalizedOrder(
            userId=user_id,
            shippingAddressId=address.addressId,
            paymentMethod=payment_method,
            mode=request.mode,
            subtotal=quote.subtotal,
            shippingFee=quote.shippingFee,
            totalPrice=quote.total,
            items=items,
        )

    async def _buy_now_items(self, user_id: str, items: list[LineItem]) -> list[PricedItem]:
        if not items:
            raise ValidationError("No items to order.")
        if len(items) > 1:
            raise ValidationError("Buy now accepts exactly one product.")

        item = items[0]
        quantity = check_quantity(item.quantity)

        # Price always comes from the catalog, never from the client.
        product = await self.catalog.get_product(item.productId)
        if product is None:
            logger.warning(
                "Product not found in buy-now",
                extra={"userId": user_id, "productId": item.productId},
            )
            raise ReferenceDataError("Product not found")

        return [PricedItem(productId=product.productId, quantity=quantity, priceAtPurchase=product.price)]

    async def _cart_items(self, user_id: str) -> list[PricedItem]:
        lines = await self.carts.get_cart_items(user_id)
        if not lines:
            raise ValidationError("No items to order.")

        return [
            PricedItem(
                productId=line.productId,
                quantity=check_quantity(line.quantity),
                priceAtPurchase=line.product.price,
            )
            for line in lines
        ]


# Global order assembler instance
order_assembler = OrderAssembler()
