"""
Order Repository - Data Access Layer for Orders

Handles order queries; writes that touch stock and payouts live in
services.order_service so they share one transaction.

Author: TM3
Date: 2025-10-17
Updated: 2026-02-09 (SQLAlchemy session, storefront orders)
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from markettech.models import Order, OrderItem, Product


class OrderRepository:
    """
    Repository for Order data access
    """

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(Order).options(
            selectinload(Order.items).selectinload(OrderItem.product).selectinload(Product.images),
            selectinload(Order.items).selectinload(OrderItem.product).selectinload(Product.user),
        )

    def find_by_id(self, order_id: int) -> Optional[Order]:
        return self._base_query().filter(Order.id == order_id).first()

    def find_all(self, user_id: Optional[int] = None) -> List[Order]:
        """Orders newest first, optionally only those of one user"""
        query = self._base_query()
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    def find_by_statuses(
        self,
        statuses: Optional[List[str]] = None,
        payment_statuses: Optional[List[str]] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Order]:
        """Orders filtered by status / payment status / creation window (used by reports)"""
        query = self._base_query()
        if statuses:
            query = query.filter(Order.status.in_(statuses))
        if payment_statuses:
            query = query.filter(Order.payment_status.in_(payment_statuses))
        if start_date is not None:
            query = query.filter(Order.created_at >= start_date)
        if end_date is not None:
            query = query.filter(Order.created_at <= end_date)
        return query.order_by(Order.created_at).all()

    def count(self) -> int:
        return self.db.query(func.count(Order.id)).scalar() or 0

    def count_items(self) -> int:
        return self.db.query(func.count(OrderItem.id)).scalar() or 0

    def count_where(self, *conditions) -> int:
        return self.db.query(func.count(Order.id)).filter(*conditions).scalar() or 0

    def find_pending_older_than(self, cutoff: datetime) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.status.in_(["PENDING", "PENDING_NO_PAYMENT"]), Order.created_at < cutoff)
            .all()
        )

    def find_without_items(self) -> List[Order]:
        return self.db.query(Order).filter(~Order.items.any()).all()
