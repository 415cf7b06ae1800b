"""
Report Service
Sales, inventory, user and financial reports for the admin dashboard

All aggregation happens in Python over rows fetched through the
repositories; report sizes are bounded by the store's order volume.

Author: TM3
Date: 2025-11-24
Updated: 2026-02-09 (storefront reports)
"""
import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from dateutil import parser as date_parser
from sqlalchemy.orm import Session, selectinload

from markettech.core.database import utcnow
from markettech.core.errors import CommonErrors
from markettech.domain.base import to_float
from markettech.models import OrderItem, Product, User
from markettech.repositories.order_repository import OrderRepository
from markettech.repositories.site_config_repository import SiteConfigRepository
from markettech.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_DAYS = 30
LOW_STOCK_MAX = 5
TOP_LIMIT = 10
NO_CATEGORY = "Sin categoría"
GROUP_BY_OPTIONS = ("day", "week", "month")


def _round(value: float) -> float:
    return round(value, 2)


def parse_date(value: str, end_of_day: bool = False) -> datetime:
    """
    Parse an ISO date or datetime into naive UTC.

    A bare date (YYYY-MM-DD) used as a range end covers the whole day.
    """
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    if end_of_day and len(value.strip()) == 10:
        parsed = parsed.replace(hour=23, minute=59, second=59, microsecond=999999)
    return parsed


def resolve_period(start_date: Optional[str], end_date: Optional[str]) -> Tuple[datetime, datetime]:
    """
    Turn the startDate/endDate query params into a datetime range.

    Defaults to the last 30 days. Raises AppError (400) for unparsable
    dates or a start after the end.
    """
    now = utcnow()
    try:
        end = parse_date(end_date, end_of_day=True) if end_date else now
        start = parse_date(start_date) if start_date else end - timedelta(days=DEFAULT_PERIOD_DAYS)
    except (ValueError, OverflowError):
        raise CommonErrors.INVALID_INPUT("fechas", "Fechas inválidas")

    if start > end:
        raise CommonErrors.INVALID_INPUT("fechas", "startDate debe ser anterior a endDate")
    return start, end


def period_key(moment: datetime, group_by: str) -> str:
    """day: ISO date, week: Sunday starting the week, month: YYYY-MM"""
    if group_by == "month":
        return moment.strftime("%Y-%m")
    if group_by == "week":
        # weekday(): Monday=0 ... Sunday=6
        days_since_sunday = (moment.weekday() + 1) % 7
        return (moment - timedelta(days=days_since_sunday)).date().isoformat()
    return moment.date().isoformat()


def split_categories(categories: Optional[str]) -> List[str]:
    names = [c.strip() for c in (categories or "").split(",") if c.strip()]
    return names or [NO_CATEGORY]


class ReportService:
    """Builds the admin reports"""

    def __init__(self, db: Session):
        self.db = db
        self.orders = OrderRepository(db)
        self.users = UserRepository(db)
        self.configs = SiteConfigRepository(db)

    def sales_report(self, start: datetime, end: datetime, group_by: str = "day") -> Dict:
        """
        Sales of COMPLETED orders in the period

        Returns totals, top products by revenue, sales per period and
        sales per category.
        """
        if group_by not in GROUP_BY_OPTIONS:
            raise CommonErrors.INVALID_INPUT("groupBy", f"Valores permitidos: {', '.join(GROUP_BY_OPTIONS)}")

        orders = self.orders.find_by_statuses(statuses=["COMPLETED"], start_date=start, end_date=end)

        total_sales = sum(to_float(order.total) for order in orders)
        total_orders = len(orders)

        products: Dict[int, Dict] = {}
        by_period: Dict[str, Dict] = {}
        by_category: Dict[str, float] = defaultdict(float)

        for order in orders:
            key = period_key(order.created_at, group_by)
            bucket = by_period.setdefault(key, {"date": key, "sales": 0.0, "orders": 0})
            bucket["sales"] += to_float(order.total)
            bucket["orders"] += 1

            for item in order.items:
                revenue = to_float(item.price) * item.quantity
                entry = products.setdefault(item.product_id, {
                    "productId": item.product_id,
                    "title": item.product.title if item.product else None,
                    "quantity": 0,
                    "revenue": 0.0,
                })
                entry["quantity"] += item.quantity
                entry["revenue"] += revenue

                categories = split_categories(item.product.categories if item.product else None)
                for category in categories:
                    by_category[category] += revenue

        top_products = sorted(products.values(), key=lambda p: p["revenue"], reverse=True)[:TOP_LIMIT]
        for entry in top_products:
            entry["revenue"] = _round(entry["revenue"])

        category_total = sum(by_category.values())
        sales_by_category = [
            {
                "category": category,
                "sales": _round(sales),
                "percentage": _round(sales / category_total * 100) if category_total > 0 else 0,
            }
            for category, sales in sorted(by_category.items(), key=lambda kv: kv[1], reverse=True)
        ]

        sales_by_day = []
        for key in sorted(by_period):
            bucket = by_period[key]
            bucket["sales"] = _round(bucket["sales"])
            sales_by_day.append(bucket)

        return {
            "period": {"startDate": start.isoformat(), "endDate": end.isoformat(), "groupBy": group_by},
            "totalSales": _round(total_sales),
            "totalOrders": total_orders,
            "averageOrderValue": _round(total_sales / total_orders) if total_orders else 0,
            "topProducts": top_products,
            "salesByDay": sales_by_day,
            "salesByCategory": sales_by_category,
        }

    def inventory_report(self) -> Dict:
        """Stock value, stock alerts, best sellers and category breakdown"""
        products = self.db.query(Product).all()

        total_value = sum(to_float(p.price) * (p.stock or 0) for p in products)
        low_stock = [p for p in products if 1 <= (p.stock or 0) <= LOW_STOCK_MAX]
        out_of_stock = [p for p in products if (p.stock or 0) == 0]

        sold: Dict[int, Dict] = {}
        items = self.db.query(OrderItem).options(selectinload(OrderItem.product)).all()
        for item in items:
            entry = sold.setdefault(item.product_id, {
                "productId": item.product_id,
                "title": item.product.title if item.product else None,
                "quantitySold": 0,
                "revenue": 0.0,
            })
            entry["quantitySold"] += item.quantity
            entry["revenue"] += to_float(item.price) * item.quantity

        top_selling = sorted(sold.values(), key=lambda p: p["quantitySold"], reverse=True)[:TOP_LIMIT]
        for entry in top_selling:
            entry["revenue"] = _round(entry["revenue"])

        categories: Dict[str, Dict] = {}
        for product in products:
            for category in split_categories(product.categories):
                entry = categories.setdefault(category, {"category": category, "count": 0, "totalStock": 0})
                entry["count"] += 1
                entry["totalStock"] += product.stock or 0

        return {
            "totalProducts": len(products),
            "totalValue": _round(total_value),
            "lowStockProducts": len(low_stock),
            "outOfStockProducts": len(out_of_stock),
            "stockAlerts": [
                {
                    "productId": p.id,
                    "title": p.title,
                    "currentStock": p.stock or 0,
                    "status": "OUT" if (p.stock or 0) == 0 else "LOW",
                }
                for p in out_of_stock + low_stock
            ],
            "topSellingProducts": top_selling,
            "categoryBreakdown": sorted(categories.values(), key=lambda c: c["count"], reverse=True),
        }

    def users_report(self) -> Dict:
        """User counts, monthly growth, role split and best customers"""
        now = utcnow()
        since = now - timedelta(days=DEFAULT_PERIOD_DAYS)

        users = self.db.query(User).options(selectinload(User.orders)).order_by(User.created_at).all()

        new_users = sum(1 for u in users if u.created_at and u.created_at >= since)
        active_users = sum(1 for u in users if u.last_login_at and u.last_login_at >= since)

        per_month: Dict[str, int] = defaultdict(int)
        for user in users:
            if user.created_at:
                per_month[user.created_at.strftime("%Y-%m")] += 1

        growth = []
        running_total = 0
        for month in sorted(per_month):
            running_total += per_month[month]
            growth.append({"date": month, "newUsers": per_month[month], "count": running_total})

        customers = []
        for user in users:
            spent = sum(to_float(order.total) for order in user.orders)
            if spent > 0:
                customers.append({
                    "userId": user.id,
                    "name": user.name,
                    "email": user.email,
                    "totalSpent": _round(spent),
                    "orders": len(user.orders),
                })
        customers.sort(key=lambda c: c["totalSpent"], reverse=True)

        return {
            "totalUsers": len(users),
            "newUsers": new_users,
            "activeUsers": active_users,
            "userGrowth": growth,
            "userRoles": self.users.count_by_role(),
            "topCustomers": customers[:TOP_LIMIT],
        }

    def _item_cost(self, item: OrderItem, default_margin: Optional[float]) -> Tuple[float, str]:
        """
        Cost of an order line and which source it came from.

        Fallback order: supplier price, product margin, default margin.
        """
        revenue = to_float(item.price) * item.quantity
        product = item.product

        if product is not None and product.supplier_price is not None:
            return to_float(product.supplier_price) * item.quantity, "supplier_price"
        if product is not None and product.margin_percentage is not None:
            return revenue * (1 - to_float(product.margin_percentage) / 100), "product_margin"
        if default_margin is not None:
            return revenue * (1 - default_margin / 100), "default_margin"
        return 0.0, "no_cost"

    def financial_report(self, start: datetime, end: datetime) -> Dict:
        """Revenue, cost and profit of PAID orders in the period"""
        default_margin = None
        raw_margin = self.configs.get_value("default_product_margin")
        if raw_margin:
            try:
                default_margin = float(raw_margin)
            except ValueError:
                logger.warning(f"Invalid default_product_margin: {raw_margin!r}")

        orders = self.orders.find_by_statuses(payment_statuses=["PAID"], start_date=start, end_date=end)

        total_revenue = 0.0
        total_cost = 0.0
        cost_sources = {"supplier_price": 0, "product_margin": 0, "default_margin": 0, "no_cost": 0}
        by_month: Dict[str, Dict] = {}
        methods: Dict[str, Dict] = {}

        for order in orders:
            revenue = to_float(order.total)
            order_cost = 0.0
            for item in order.items:
                cost, source = self._item_cost(item, default_margin)
                cost_sources[source] += 1
                order_cost += cost

            total_revenue += revenue
            total_cost += order_cost

            month = order.created_at.strftime("%Y-%m")
            bucket = by_month.setdefault(month, {"month": month, "revenue": 0.0, "cost": 0.0, "profit": 0.0})
            bucket["revenue"] += revenue
            bucket["cost"] += order_cost
            bucket["profit"] = bucket["revenue"] - bucket["cost"]

            method = methods.setdefault(order.payment_method, {"count": 0, "total": 0.0})
            method["count"] += 1
            method["total"] += revenue

        gross_profit = total_revenue - total_cost

        revenue_by_month = []
        for month in sorted(by_month):
            bucket = by_month[month]
            revenue_by_month.append({key: _round(v) if key != "month" else v for key, v in bucket.items()})

        return {
            "period": {"startDate": start.isoformat(), "endDate": end.isoformat()},
            "totalRevenue": _round(total_revenue),
            "totalCost": _round(total_cost),
            "grossProfit": _round(gross_profit),
            "profitMargin": _round(gross_profit / total_revenue * 100) if total_revenue > 0 else 0,
            "totalOrders": len(orders),
            "averageOrderValue": _round(total_revenue / len(orders)) if orders else 0,
            "revenueByMonth": revenue_by_month,
            "paymentMethods": {
                name: {"count": data["count"], "total": _round(data["total"])}
                for name, data in methods.items()
            },
            "costSources": cost_sources,
        }
