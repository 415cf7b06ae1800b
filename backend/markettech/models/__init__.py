"""
Modelos de base de datos
"""
from .user import User
from .product import Product, ProductImage
from .order import Order, OrderItem
from .notification import Notification
from .site_config import SiteConfig, CommissionSettings
from .payment import GlobalPaymentProfile, SellerPayout, PixPayment, Payment

__all__ = [
    "User",
    "Product",
    "ProductImage",
    "Order",
    "OrderItem",
    "Notification",
    "SiteConfig",
    "CommissionSettings",
    "GlobalPaymentProfile",
    "SellerPayout",
    "PixPayment",
    "Payment",
]
