"""
Modelos relacionados con órdenes/pedidos
"""
from sqlalchemy import Boolean, Column, Integer, String, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from markettech.core.database import Base


class Order(Base):
    """
    Pedido de la tienda
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)

    # Cliente
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50))
    customer_address = Column(Text)

    # Montos
    total = Column(DECIMAL(12, 2), nullable=False)
    commission_rate = Column(DECIMAL(5, 4), default=0.05)

    # Estados
    status = Column(String(30), nullable=False, default="PENDING", index=True)
    payment_status = Column(String(30), nullable=False, default="PENDING", index=True)
    shipping_status = Column(String(30), nullable=False, default="PENDING")
    payment_method = Column(String(30), nullable=False, default="DIRECT_SELLER")

    # True while the order holds its items out of product stock
    stock_reserved = Column(Boolean, nullable=False, default=False)

    notes = Column(Text)

    # Metadata
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    payouts = relationship("SellerPayout", back_populates="order", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="order")
    pix_payments = relationship("PixPayment", back_populates="order", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    """
    Items/productos de cada orden
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)

    quantity = Column(Integer, nullable=False)
    price = Column(DECIMAL(12, 2), nullable=False)

    # Vendedor al momento de la venta
    seller_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    seller_name = Column(String(255))
    seller_commission = Column(DECIMAL(12, 2))

    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")
    payouts = relationship("SellerPayout", back_populates="order_item", cascade="all, delete-orphan")
