"""
Order Service
Checkout, status changes, deletion and seller commission split

Order creation validates every item before writing anything and commits
once, so a stock failure leaves no partial order behind.

Author: TM3
Date: 2025-10-03
Updated: 2026-02-09 (storefront checkout with seller payouts)
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from markettech.core.cache import clear_product_cache, clear_user_cache
from markettech.core.errors import AppError, CommonErrors, ErrorType
from markettech.domain.base import to_float
from markettech.domain.order import (
    OrderCreate, OrderStatusUpdate,
    ORDER_STATUSES, PAYMENT_STATUSES, SHIPPING_STATUSES, PAYMENT_METHODS,
)
from markettech.models import Order, OrderItem, SellerPayout
from markettech.repositories.order_repository import OrderRepository
from markettech.repositories.payment_repository import PaymentRepository
from markettech.repositories.product_repository import ProductRepository
from markettech.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def _bad_request(message: str, code: str = "INVALID_INPUT", details=None) -> AppError:
    return AppError(ErrorType.VALIDATION, message, 400, details, code)


def _money(value: float) -> float:
    return round(value, 2)


def reserve_stock(order: Order) -> bool:
    """
    Take the order's quantities out of product stock.

    Returns False when the order already holds its stock.
    """
    if order.stock_reserved:
        return False
    for item in order.items:
        product = item.product
        if product is None:
            continue
        product.stock = (product.stock or 0) - item.quantity
        if product.stock < 0:
            logger.warning(f"Product {product.id} oversold by order {order.id}: stock {product.stock}")
    order.stock_reserved = True
    return True


def release_stock(order: Order) -> bool:
    """
    Give the order's quantities back to product stock.

    Returns False when the order holds no stock.
    """
    if not order.stock_reserved:
        return False
    for item in order.items:
        if item.product is not None:
            item.product.stock = (item.product.stock or 0) + item.quantity
    order.stock_reserved = False
    return True


class OrderService:
    """
    Service for storefront orders

    Handles:
    - Checkout (stock check, seller assignment, payouts)
    - Status updates with customer notifications
    - Order deletion with stock restoration
    - Commission split per seller
    """

    def __init__(self, db: Session):
        self.db = db
        self.orders = OrderRepository(db)
        self.products = ProductRepository(db)
        self.payments = PaymentRepository(db)
        self.notifications = NotificationService(db)

    def create_order(self, data: OrderCreate, user_id: Optional[int] = None) -> Order:
        """
        Create an order with its items and seller payouts.

        Args:
            data: Checkout payload
            user_id: Customer account (None for guest checkout)

        Returns:
            The stored Order with items loaded
        """
        if not data.customer_name or not data.customer_email or not data.items:
            raise _bad_request(
                "Faltan datos requeridos (customerName, customerEmail, items)",
                "MISSING_REQUIRED_FIELD",
            )
        if data.payment_method not in PAYMENT_METHODS:
            raise _bad_request(f"Método de pago inválido: {data.payment_method}")

        if self.payments.get_active_profile() is None:
            raise _bad_request("No hay perfil de pago global configurado", "NO_PAYMENT_PROFILE")

        products = self.products.find_by_ids([item.product_id for item in data.items])

        # Validate everything before writing
        requested: Dict[int, int] = {}
        for item in data.items:
            product = products.get(item.product_id)
            if product is None:
                raise CommonErrors.PRODUCT_NOT_FOUND(item.product_id)

            requested[product.id] = requested.get(product.id, 0) + item.quantity
            available = product.stock or 0
            if available < requested[product.id]:
                raise _bad_request(
                    f'Stock insuficiente para "{product.title}". '
                    f"Disponible: {available}, Solicitado: {requested[product.id]}",
                    "INSUFFICIENT_STOCK",
                    {"productId": product.id, "available": available, "requested": requested[product.id]},
                )

        rate = data.commission_rate
        is_direct = data.payment_method == "DIRECT_SELLER"
        total = data.total
        if total is None:
            total = sum(item.price * item.quantity for item in data.items)

        order = Order(
            user_id=user_id,
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            customer_phone=data.customer_phone,
            customer_address=data.customer_address,
            total=_money(total),
            notes=data.notes,
            status="PENDING_NO_PAYMENT" if is_direct else "PENDING",
            payment_status="PENDING",
            shipping_status="PENDING",
            payment_method=data.payment_method,
            commission_rate=rate,
            stock_reserved=is_direct,
        )
        self.db.add(order)

        try:
            for item in data.items:
                product = products[item.product_id]
                seller = product.user
                order_item = OrderItem(
                    product_id=product.id,
                    quantity=item.quantity,
                    price=item.price,
                    seller_id=product.user_id,
                    seller_name=(seller.name or seller.email) if seller else None,
                    seller_commission=_money(item.price * rate),
                )
                order.items.append(order_item)

                if is_direct:
                    product.stock = (product.stock or 0) - item.quantity

                if product.user_id:
                    gross = item.price * item.quantity
                    order.payouts.append(SellerPayout(
                        seller_id=product.user_id,
                        order_item=order_item,
                        amount=_money(gross * (1 - rate)),
                        commission=_money(gross * rate),
                        status="PENDING",
                    ))

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Order {order.id} created: {len(data.items)} items, total {to_float(order.total)}")

        try:
            self.notifications.notify_order(order, "ORDER_CREATED")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Could not create ORDER_CREATED notification for order {order.id}: {e}")

        if order.user_id:
            clear_user_cache(order.user_id)
        clear_product_cache()
        return self.orders.find_by_id(order.id)

    def update_statuses(self, order_id: int, data: OrderStatusUpdate) -> Order:
        """
        Update status / payment status / shipping status.

        Each field that actually changes produces one notification for the
        order's user. DEVOLUCION gives the order's stock back and is final;
        a payment moving to PAID takes the stock for orders that hold none.
        """
        order = self.orders.find_by_id(order_id)
        if order is None:
            raise CommonErrors.ORDER_NOT_FOUND(order_id)

        if data.status is not None and data.status not in ORDER_STATUSES:
            raise _bad_request(f"Estado de pedido inválido: {data.status}")
        if data.payment_status is not None and data.payment_status not in PAYMENT_STATUSES:
            raise _bad_request(f"Estado de pago inválido: {data.payment_status}")
        if data.shipping_status is not None and data.shipping_status not in SHIPPING_STATUSES:
            raise _bad_request(f"Estado de envío inválido: {data.shipping_status}")
        if order.status == "DEVOLUCION" and data.status is not None and data.status != "DEVOLUCION":
            raise _bad_request(
                f"El pedido #{order.id} ya fue devuelto y no puede cambiar de estado",
                "INVALID_STATUS_TRANSITION",
            )

        events: List[str] = []
        stock_changed = False
        stock_restored = False

        if data.status is not None and data.status != order.status:
            order.status = data.status
            if data.status == "CANCELLED":
                for payout in order.payouts:
                    payout.status = "CANCELLED"
                events.append("ORDER_CANCELLED")
            elif data.status == "DEVOLUCION":
                stock_restored = release_stock(order)
                stock_changed = stock_restored
                events.append("ORDER_DEVOLUCION")
            else:
                events.append("ORDER_STATUS_CHANGED")

        if data.payment_status is not None and data.payment_status != order.payment_status:
            order.payment_status = data.payment_status
            if data.payment_status == "PAID" and order.status not in ("CANCELLED", "DEVOLUCION"):
                stock_changed = reserve_stock(order) or stock_changed
            events.append("PAYMENT_RECEIVED" if data.payment_status == "PAID" else "PAYMENT_STATUS_CHANGED")

        if data.shipping_status is not None and data.shipping_status != order.shipping_status:
            order.shipping_status = data.shipping_status
            events.append("SHIPPING_STATUS_CHANGED")

        self.db.commit()
        if order.user_id:
            clear_user_cache(order.user_id)

        for event in events:
            try:
                self.notifications.notify_order(order, event, stock_restored=stock_restored)
            except Exception as e:
                self.db.rollback()
                logger.error(f"Could not create {event} notification for order {order.id}: {e}")

        if stock_changed:
            clear_product_cache()

        logger.info(f"Order {order.id} updated: {', '.join(events) or 'no changes'}")
        return self.orders.find_by_id(order.id)

    def delete_order(self, order_id: int) -> None:
        """Delete an order, its items and payouts; held stock goes back to the products"""
        order = self.orders.find_by_id(order_id)
        if order is None:
            raise CommonErrors.ORDER_NOT_FOUND(order_id)

        restored = release_stock(order)
        user_id = order.user_id

        self.db.delete(order)
        self.db.commit()
        clear_product_cache()
        if user_id:
            clear_user_cache(user_id)
        logger.info(f"Order {order_id} deleted{' (stock restored)' if restored else ''}")

    def calculate_commission(self, order_id: int, commission_rate: float) -> Dict:
        """
        Split an order between its sellers and the platform.

        Replaces the order's payouts with one PENDING payout per seller.

        Returns:
            {orderId, commissionRate, sellers: [...], totalPlatformFee}
        """
        order = self.orders.find_by_id(order_id)
        if order is None:
            raise CommonErrors.ORDER_NOT_FOUND(order_id)

        groups: "OrderedDict[int, Dict]" = OrderedDict()
        for item in order.items:
            if item.seller_id is None:
                continue
            group = groups.setdefault(item.seller_id, {
                "sellerId": item.seller_id,
                "sellerName": item.seller_name,
                "items": [],
                "total": 0.0,
                "firstItem": item,
            })
            subtotal = to_float(item.price) * item.quantity
            group["items"].append({
                "orderItemId": item.id,
                "productId": item.product_id,
                "title": item.product.title if item.product else None,
                "quantity": item.quantity,
                "price": to_float(item.price),
                "subtotal": _money(subtotal),
            })
            group["total"] += subtotal

        order.payouts.clear()

        sellers = []
        total_platform_fee = 0.0
        for group in groups.values():
            platform_fee = _money(group["total"] * commission_rate)
            seller_amount = _money(group["total"] - platform_fee)
            total_platform_fee += platform_fee

            order.payouts.append(SellerPayout(
                seller_id=group["sellerId"],
                order_item=group["firstItem"],
                amount=seller_amount,
                commission=platform_fee,
                status="PENDING",
            ))
            sellers.append({
                "sellerId": group["sellerId"],
                "sellerName": group["sellerName"],
                "items": group["items"],
                "total": _money(group["total"]),
                "platformFee": platform_fee,
                "sellerAmount": seller_amount,
            })

        order.commission_rate = commission_rate
        self.db.commit()
        if order.user_id:
            clear_user_cache(order.user_id)

        return {
            "orderId": order.id,
            "commissionRate": commission_rate,
            "sellers": sellers,
            "totalPlatformFee": _money(total_platform_fee),
        }
