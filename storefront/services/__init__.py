"""Services package."""

from storefront.services.address_service import AddressService, address_service
from storefront.services.cart_service import CartService, cart_service
from storefront.services.catalog_service import CatalogService, catalog_service
from storefront.services.data_loader import DataLoader
from storefront.services.order_assembler import OrderAssembler, order_assembler
from storefront.services.order_service import OrderService, order_service
from storefront.services.payment_gateway import RazorpayGateway, razorpay_gateway
from storefront.services.payment_service import PaymentService, payment_service
from storefront.services.pricing import (
    ShippingService,
    calculate_shipping,
    calculate_subtotal,
    shipping_service,
)

__all__ = [
    "AddressService",
    "address_service",
    "CartService",
    "cart_service",
    "CatalogService",
    "catalog_service",
    "DataLoader",
    "OrderAssembler",
    "order_assembler",
    "OrderService",
    "order_service",
    "RazorpayGateway",
    "razorpay_gateway",
    "PaymentService",
    "payment_service",
    "ShippingService",
    "shipping_service",
    "calculate_shipping",
    "calculate_subtotal",
]
