"""
Admin Service - database statistics and store health check
"""
import logging
from datetime import timedelta
from typing import Dict, List

from sqlalchemy.orm import Session

from markettech.core.cache import CACHE_TTL, cache_keys, get_cached_data
from markettech.core.database import utcnow
from markettech.models import Order, Product
from markettech.repositories.notification_repository import NotificationRepository
from markettech.repositories.order_repository import OrderRepository
from markettech.repositories.payment_repository import PaymentRepository
from markettech.repositories.product_repository import ProductRepository
from markettech.repositories.site_config_repository import SiteConfigRepository
from markettech.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

PENDING_ORDER_STATUSES = ["PENDING", "PENDING_NO_PAYMENT"]
OLD_PENDING_DAYS = 3
LOW_STOCK_MAX = 5


class AdminService:

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.products = ProductRepository(db)
        self.orders = OrderRepository(db)
        self.notifications = NotificationRepository(db)
        self.payments = PaymentRepository(db)
        self.configs = SiteConfigRepository(db)

    def database_stats(self) -> Dict:
        """Row counts per table (cached)"""
        def fetch() -> Dict:
            return {
                "users": self.users.count(),
                "products": self.products.count(),
                "orders": self.orders.count(),
                "orderItems": self.orders.count_items(),
                "notifications": self.notifications.count(),
                "productImages": self.products.count_images(),
                "sellerPayouts": self.payments.count_payouts(),
                "siteConfigs": self.configs.count(),
                "generatedAt": utcnow().isoformat(),
            }

        return get_cached_data(cache_keys.stats("database"), fetch, CACHE_TTL["ADMIN_STATS"])

    def health_check(self) -> Dict:
        """
        Store health: operational metrics plus critical issues and warnings

        Status is WARNING when any issue is found, HEALTHY otherwise.
        """
        now = utcnow()
        stock = self.products.count_by_stock(LOW_STOCK_MAX)

        metrics = {
            "activeOrders": self.orders.count_where(Order.status.in_(PENDING_ORDER_STATUSES)),
            "pendingPayments": self.orders.count_where(Order.payment_status == "PENDING"),
            "lowStockProducts": stock["lowStock"],
            "outOfStockProducts": stock["outOfStock"],
            "totalUsers": self.users.count(),
            "totalProducts": self.products.count(),
        }

        critical: List[Dict] = []
        warnings: List[Dict] = []

        old_pending = self.orders.find_pending_older_than(now - timedelta(days=OLD_PENDING_DAYS))
        if old_pending:
            critical.append({
                "type": "OLD_PENDING_ORDERS",
                "severity": "critical",
                "message": f"{len(old_pending)} pedidos pendientes hace más de {OLD_PENDING_DAYS} días",
                "count": len(old_pending),
                "orderIds": [order.id for order in old_pending],
            })

        active_out_of_stock = self.products.count_by_stock(LOW_STOCK_MAX, only_active=True)["outOfStock"]
        if active_out_of_stock:
            critical.append({
                "type": "OUT_OF_STOCK",
                "severity": "critical",
                "message": f"{active_out_of_stock} productos activos sin stock",
                "count": active_out_of_stock,
            })

        incomplete = self.orders.find_without_items()
        if incomplete:
            critical.append({
                "type": "INCOMPLETE_ORDERS",
                "severity": "critical",
                "message": f"{len(incomplete)} pedidos sin productos",
                "count": len(incomplete),
                "orderIds": [order.id for order in incomplete],
            })

        if stock["lowStock"]:
            low_stock_rows = (
                self.db.query(Product)
                .filter(Product.stock >= 1, Product.stock <= LOW_STOCK_MAX)
                .order_by(Product.stock)
                .all()
            )
            warnings.append({
                "type": "LOW_STOCK",
                "severity": "warning",
                "message": f"{stock['lowStock']} productos con stock bajo",
                "count": stock["lowStock"],
                "products": [{"id": p.id, "title": p.title, "stock": p.stock} for p in low_stock_rows],
            })

        status = "WARNING" if critical or warnings else "HEALTHY"
        if status != "HEALTHY":
            logger.warning(f"Health check: {len(critical)} critical issues, {len(warnings)} warnings")

        return {
            "status": status,
            "timestamp": now.isoformat(),
            "metrics": metrics,
            "issues": {"critical": critical, "warnings": warnings},
            "summary": {
                "totalIssues": len(critical) + len(warnings),
                "criticalCount": len(critical),
                "warningCount": len(warnings),
            },
        }
