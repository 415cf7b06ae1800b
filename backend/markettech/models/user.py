"""
Modelo de usuarios (clientes, vendedores y administradores)
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from markettech.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash
    name = Column(String(255))
    phone = Column(String(50))

    # Datos personales
    cpf = Column(String(20), unique=True)
    birth_date = Column(DateTime)
    gender = Column(String(20))

    # Dirección
    address = Column(Text)
    city = Column(String(100))
    state = Column(String(50))
    zip_code = Column(String(20))
    country = Column(String(100))

    newsletter = Column(Boolean, default=False)

    # ADMIN | ADMIN_VENDAS | CLIENT
    role = Column(String(20), nullable=False, default="CLIENT", index=True)
    last_login_at = Column(DateTime)

    # Metadata
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    products = relationship("Product", back_populates="user")
    orders = relationship("Order", back_populates="user")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    payouts = relationship("SellerPayout", back_populates="seller", cascade="all, delete-orphan")
