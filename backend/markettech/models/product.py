"""
Modelos del catálogo: productos e imágenes
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from markettech.core.database import Base


class Product(Base):
    """
    Producto publicado por un vendedor (user_id)
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text)

    # Precios
    price = Column(DECIMAL(12, 2), nullable=False)
    supplier_price = Column(DECIMAL(12, 2))
    margin_percentage = Column(DECIMAL(5, 2), default=50)
    previous_price = Column(DECIMAL(12, 2))

    # Estado físico
    condition = Column(String(10), default="NEW")  # NEW | USED
    aesthetic_condition = Column(Integer)
    specifications = Column(Text)
    categories = Column(Text)  # lista separada por comas

    # Inventario / publicación
    stock = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="ACTIVE", index=True)

    # Fabricante
    manufacturer_code = Column(String(100), unique=True, index=True)
    manufacturer = Column(String(255), index=True)
    model = Column(String(255))

    published_at = Column(DateTime)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)

    # Metadata
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="products")
    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImage.order",
    )
    order_items = relationship("OrderItem", back_populates="product", cascade="all, delete-orphan")


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)

    path = Column(String(500), nullable=False)
    filename = Column(String(255))
    alt = Column(String(255))
    order = Column(Integer, default=0)

    created_at = Column(DateTime, server_default=func.now())

    product = relationship("Product", back_populates="images")
