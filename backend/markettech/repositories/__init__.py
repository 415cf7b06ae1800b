"""
Repository Layer - Data Access

This layer handles all database queries through a SQLAlchemy session.
Repositories abstract away query details from business logic.

Author: TM3
Date: 2025-10-17
"""
from markettech.repositories.user_repository import UserRepository
from markettech.repositories.product_repository import ProductRepository
from markettech.repositories.order_repository import OrderRepository
from markettech.repositories.notification_repository import NotificationRepository
from markettech.repositories.site_config_repository import SiteConfigRepository
from markettech.repositories.payment_repository import PaymentRepository

__all__ = [
    'UserRepository',
    'ProductRepository',
    'OrderRepository',
    'NotificationRepository',
    'SiteConfigRepository',
    'PaymentRepository',
]
