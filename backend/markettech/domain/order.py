"""
Order Domain Models

Represents orders and order items as exposed by the API, plus the
request bodies for checkout, status updates and commission splits.

Author: TM3
Date: 2025-10-17
Updated: 2026-02-09 (storefront checkout, seller commission)
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from markettech.domain.base import CamelModel, to_float
from markettech.domain.product import Product


ORDER_STATUSES = (
    "PENDING", "PENDING_NO_PAYMENT", "CONFIRMED", "PREPARING", "IN_TRANSIT",
    "DELIVERED", "COMPLETED", "DEVOLUCION", "CANCELLED",
)
PAYMENT_STATUSES = ("PENDING", "PAID", "FAILED", "REFUNDED")
SHIPPING_STATUSES = ("PENDING", "PREPARING", "IN_TRANSIT", "DELIVERED", "RETURNED")
PAYMENT_METHODS = ("DIRECT_SELLER", "PIX", "CARD", "GATEWAY")

DEFAULT_COMMISSION_RATE = 0.05


class OrderItem(CamelModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: float
    seller_id: Optional[int] = None
    seller_name: Optional[str] = None
    seller_commission: Optional[float] = None
    product: Optional[Product] = None

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    @classmethod
    def from_model(cls, item, include_product: bool = True) -> "OrderItem":
        return cls(
            id=item.id,
            order_id=item.order_id,
            product_id=item.product_id,
            quantity=item.quantity,
            price=to_float(item.price),
            seller_id=item.seller_id,
            seller_name=item.seller_name,
            seller_commission=to_float(item.seller_commission),
            product=Product.from_model(item.product) if include_product and item.product else None,
        )

    def to_dict(self) -> dict:
        data = self.model_dump(by_alias=True, exclude={"product"})
        data["subtotal"] = self.subtotal
        data["product"] = self.product.to_dict() if self.product else None
        return data


class Order(CamelModel):
    """
    Order domain model

    Status flow: PENDING / PENDING_NO_PAYMENT -> CONFIRMED -> PREPARING ->
    IN_TRANSIT -> DELIVERED -> COMPLETED (or CANCELLED / DEVOLUCION)
    """

    id: int = Field(..., description="Order ID")
    user_id: Optional[int] = None
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    total: float
    commission_rate: Optional[float] = None
    status: str
    payment_status: str
    shipping_status: str
    payment_method: str
    stock_reserved: bool = False
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItem] = []

    @classmethod
    def from_model(cls, order, include_products: bool = True) -> "Order":
        return cls(
            id=order.id,
            user_id=order.user_id,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            customer_phone=order.customer_phone,
            customer_address=order.customer_address,
            total=to_float(order.total),
            commission_rate=to_float(order.commission_rate),
            status=order.status,
            payment_status=order.payment_status,
            shipping_status=order.shipping_status,
            payment_method=order.payment_method,
            stock_reserved=bool(order.stock_reserved),
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[OrderItem.from_model(item, include_products) for item in order.items],
        )

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        data = self.model_dump(by_alias=True, exclude={"items"})
        data["items"] = [item.to_dict() for item in self.items]
        data["itemCount"] = self.item_count
        return data


# Request models

class OrderItemInput(CamelModel):
    product_id: int
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)


class OrderCreate(CamelModel):
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    items: List[OrderItemInput] = []
    total: Optional[float] = None
    notes: Optional[str] = None
    user_id: Optional[int] = None
    payment_method: str = "DIRECT_SELLER"
    commission_rate: float = Field(DEFAULT_COMMISSION_RATE, ge=0, le=1)


class OrderStatusUpdate(CamelModel):
    status: Optional[str] = None
    payment_status: Optional[str] = None
    shipping_status: Optional[str] = None


class CommissionRequest(CamelModel):
    order_id: int
    commission_rate: float = Field(DEFAULT_COMMISSION_RATE, ge=0, le=1)
