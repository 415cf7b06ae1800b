"""
Modelos de pagos: perfil de cobro global, pagos PIX, pagos por pasarela
y liquidaciones a vendedores
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, DECIMAL, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from markettech.core.database import Base


class GlobalPaymentProfile(Base):
    """
    Datos de cobro de la empresa. Solo un perfil activo a la vez.
    """
    __tablename__ = "global_payment_profiles"

    id = Column(Integer, primary_key=True, index=True)

    # Empresa
    company_name = Column(String(255), nullable=False)
    cnpj = Column(String(30), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50))

    # Dirección
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(50), nullable=False)
    zip_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False, default="Brasil")

    # Banco
    bank_name = Column(String(255), nullable=False)
    bank_code = Column(String(20), nullable=False)
    account_type = Column(String(30), nullable=False)
    account_number = Column(String(50), nullable=False)
    agency_number = Column(String(20), nullable=False)
    account_holder = Column(String(255), nullable=False)

    # PIX
    pix_key = Column(String(255))
    pix_key_type = Column(String(20))

    payment_methods = Column(JSON)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class SellerPayout(Base):
    """
    Parte del vendedor por item vendido (precio x cantidad - comisión)
    """
    __tablename__ = "seller_payouts"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    order_item_id = Column(Integer, ForeignKey("order_items.id", ondelete="CASCADE"), index=True)

    amount = Column(DECIMAL(12, 2), nullable=False)
    commission = Column(DECIMAL(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING", index=True)  # PENDING | PAID | CANCELLED
    paid_at = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    seller = relationship("User", back_populates="payouts")
    order = relationship("Order", back_populates="payouts")
    order_item = relationship("OrderItem", back_populates="payouts")


class PixPayment(Base):
    __tablename__ = "pix_payments"

    id = Column(String(64), primary_key=True)  # pix_<epoch_ms>_<random>
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)

    amount = Column(DECIMAL(12, 2), nullable=False)
    description = Column(Text)
    pix_key = Column(String(255))
    pix_code = Column(Text)

    status = Column(String(20), nullable=False, default="PENDING", index=True)  # PENDING | PAID | EXPIRED
    expires_at = Column(DateTime, nullable=False)
    paid_at = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    order = relationship("Order", back_populates="pix_payments")


class Payment(Base):
    """
    Pago procesado por una pasarela externa (Stripe, Mercado Pago, PagSeguro)
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)

    gateway = Column(String(30), nullable=False)
    transaction_id = Column(String(100), nullable=False, unique=True, index=True)
    amount = Column(DECIMAL(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="BRL")
    status = Column(String(20), nullable=False, default="PENDING", index=True)  # PENDING | COMPLETED | FAILED
    confirmed_at = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    order = relationship("Order", back_populates="payments")
