"""
Configuración del sitio (clave/valor) y reparto de comisiones
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, DECIMAL
from sqlalchemy.sql import func

from markettech.core.database import Base


class SiteConfig(Base):
    __tablename__ = "site_configs"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="text")  # text | number | boolean | json
    description = Column(Text)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class CommissionSettings(Base):
    """
    Reparto de la comisión: owner + worker + store = total
    """
    __tablename__ = "commission_settings"

    id = Column(Integer, primary_key=True, index=True)
    total_percentage = Column(DECIMAL(5, 2), nullable=False, default=50)
    owner_percentage = Column(DECIMAL(5, 2), nullable=False, default=20)
    worker_percentage = Column(DECIMAL(5, 2), nullable=False, default=20)
    store_percentage = Column(DECIMAL(5, 2), nullable=False, default=10)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
