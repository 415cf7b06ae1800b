"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities and
the request bodies accepted by the API.

Author: TM3
Date: 2025-10-17
"""
from markettech.domain.user import User, UserSummary
from markettech.domain.product import Product, ProductImage
from markettech.domain.order import Order, OrderItem
from markettech.domain.notification import Notification
from markettech.domain.payment import GlobalPaymentProfile, CommissionSettings, SellerPayout, PixPayment, GatewayPayment
from markettech.domain.settings import ShippingConfig, ShippingQuote

__all__ = [
    'User', 'UserSummary', 'Product', 'ProductImage', 'Order', 'OrderItem',
    'Notification', 'GlobalPaymentProfile', 'CommissionSettings', 'SellerPayout',
    'PixPayment', 'GatewayPayment', 'ShippingConfig', 'ShippingQuote',
]
