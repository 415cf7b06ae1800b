"""
Notification Service - Order notifications for customers

Builds the Portuguese notification texts for order events and stores
them through NotificationRepository.

Author: TM3
Date: 2026-02-09
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from markettech.domain.base import to_float
from markettech.models import Notification, Order
from markettech.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)


ORDER_STATUS_TEXT = {
    "PENDING": "Pendente",
    "PENDING_NO_PAYMENT": "Sem Pagamento",
    "CONFIRMED": "Confirmado",
    "PREPARING": "Preparando",
    "IN_TRANSIT": "Em Trânsito",
    "DELIVERED": "Entregue",
    "COMPLETED": "Completado",
    "DEVOLUCION": "Devolução",
    "CANCELLED": "Cancelado",
}

PAYMENT_STATUS_TEXT = {
    "PENDING": "Pendente",
    "PAID": "Pago",
    "FAILED": "Falhou",
    "REFUNDED": "Reembolsado",
}

SHIPPING_STATUS_TEXT = {
    "PENDING": "Pendente",
    "CONFIRMED": "Confirmado",
    "PREPARING": "Preparando",
    "IN_TRANSIT": "Em Trânsito",
    "DELIVERED": "Entregue",
    "RETURNED": "Devolvido",
}

ORDER_NOTIFICATION_TYPES = (
    "ORDER_CREATED",
    "ORDER_STATUS_CHANGED",
    "PAYMENT_RECEIVED",
    "PAYMENT_STATUS_CHANGED",
    "SHIPPING_STATUS_CHANGED",
    "ORDER_DEVOLUCION",
    "ORDER_CANCELLED",
)


def format_brl(amount: Any) -> str:
    """1234.5 -> '1.234,50' (pt-BR)"""
    value = f"{float(amount or 0):,.2f}"
    return value.replace(",", "_").replace(".", ",").replace("_", ".")


def build_order_template(notification_type: str, order: Order, stock_restored: bool = False) -> Dict[str, str]:
    """Title and message for an order notification"""
    order_id = order.id
    total = format_brl(order.total)

    templates = {
        "ORDER_CREATED": (
            "Pedido Criado",
            f"Seu pedido #{order_id} foi criado com sucesso por R$ {total}.",
        ),
        "ORDER_STATUS_CHANGED": (
            "Status do Pedido Atualizado",
            f"O status do seu pedido #{order_id} mudou para: "
            f"{ORDER_STATUS_TEXT.get(order.status, order.status)}.",
        ),
        "PAYMENT_RECEIVED": (
            "Pagamento Recebido",
            f"Recebemos o pagamento do seu pedido #{order_id} no valor de R$ {total}.",
        ),
        "PAYMENT_STATUS_CHANGED": (
            "Status de Pagamento Atualizado",
            f"O status de pagamento do seu pedido #{order_id} foi atualizado para: "
            f"{PAYMENT_STATUS_TEXT.get(order.payment_status, order.payment_status)}.",
        ),
        "SHIPPING_STATUS_CHANGED": (
            "Status de Envío Atualizado",
            f"O status de envío do seu pedido #{order_id} foi atualizado para: "
            f"{SHIPPING_STATUS_TEXT.get(order.shipping_status, order.shipping_status)}.",
        ),
        "ORDER_DEVOLUCION": (
            "Pedido em Devolução",
            f"Seu pedido #{order_id} foi marcado como devolução."
            + (" O estoque foi restaurado." if stock_restored else ""),
        ),
        "ORDER_CANCELLED": (
            "Pedido Cancelado",
            f"Seu pedido #{order_id} foi cancelado.",
        ),
    }

    if notification_type not in templates:
        raise ValueError(f"Unknown order notification type: {notification_type}")

    title, message = templates[notification_type]
    return {"title": title, "message": message}


class NotificationService:
    """Creates notifications tied to order events"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository(db)

    def create_notification(
        self,
        user_id: int,
        notification_type: str,
        title: str,
        message: str,
        data: Optional[Any] = None,
        order_id: Optional[int] = None,
        commit: bool = True,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            data=data,
            order_id=order_id,
            read=False,
        )
        self.repo.add(notification, commit=commit)
        logger.info(f"Notification {notification_type} created for user {user_id}")
        return notification

    def notify_order(
        self,
        order: Order,
        notification_type: str,
        commit: bool = True,
        stock_restored: bool = False,
    ) -> Optional[Notification]:
        """
        Create an order notification for the order's user.

        Orders placed without an account have nobody to notify; returns None.
        """
        if not order.user_id:
            return None

        template = build_order_template(notification_type, order, stock_restored)
        data = {
            "orderId": order.id,
            "status": order.status,
            "paymentStatus": order.payment_status,
            "shippingStatus": order.shipping_status,
            "total": to_float(order.total),
            "customerName": order.customer_name,
        }
        return self.create_notification(
            user_id=order.user_id,
            notification_type=notification_type,
            title=template["title"],
            message=template["message"],
            data=data,
            order_id=order.id,
            commit=commit,
        )
