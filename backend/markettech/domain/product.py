"""
Product Domain Model

Represents a catalog product as exposed by the API, plus the request
bodies used to create and edit products.

Author: TM3
Date: 2025-10-17
Updated: 2026-02-09 (storefront catalog: images, owner, discount badge)
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from markettech.domain.base import CamelModel, to_float
from markettech.domain.user import UserSummary
from markettech.services.pricing import calculate_discount_percentage, get_price_change


PRODUCT_CONDITIONS = ("NEW", "USED")
PRODUCT_STATUSES = ("ACTIVE", "INACTIVE", "SOLD")
MAX_PRODUCT_IMAGES = 5


class ProductImage(CamelModel):
    id: int
    path: str
    filename: Optional[str] = None
    alt: Optional[str] = None
    order: int = 0


class Product(CamelModel):
    """
    Product domain model

    Fields:
        price: Selling price
        supplier_price: What the seller pays the supplier (cost)
        margin_percentage: Target margin used when supplier_price is unknown
        previous_price: Former price, drives the discount badge
        categories: Comma-separated category list
        user_id: Owner (seller) of the listing
    """

    id: int = Field(..., description="Product ID")
    title: str = Field(..., description="Product title")
    description: Optional[str] = None

    # Pricing
    price: float = Field(..., description="Sale price", ge=0)
    supplier_price: Optional[float] = Field(None, description="Supplier (cost) price")
    margin_percentage: Optional[float] = Field(None, description="Margin percentage")
    previous_price: Optional[float] = Field(None, description="Previous price")

    # Details
    condition: Optional[str] = None
    aesthetic_condition: Optional[int] = None
    specifications: Optional[str] = None
    categories: Optional[str] = None

    # Inventory
    stock: int = 0
    status: str = "ACTIVE"

    # Manufacturer
    manufacturer_code: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None

    # Metadata
    published_at: Optional[datetime] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    images: List[ProductImage] = []
    user: Optional[UserSummary] = None

    @classmethod
    def from_model(cls, product) -> "Product":
        """Map a models.Product row (Decimal columns) to the domain model"""
        return cls(
            id=product.id,
            title=product.title,
            description=product.description,
            price=to_float(product.price),
            supplier_price=to_float(product.supplier_price),
            margin_percentage=to_float(product.margin_percentage),
            previous_price=to_float(product.previous_price),
            condition=product.condition,
            aesthetic_condition=product.aesthetic_condition,
            specifications=product.specifications,
            categories=product.categories,
            stock=product.stock or 0,
            status=product.status,
            manufacturer_code=product.manufacturer_code,
            manufacturer=product.manufacturer,
            model=product.model,
            published_at=product.published_at,
            user_id=product.user_id,
            created_at=product.created_at,
            updated_at=product.updated_at,
            images=[ProductImage.model_validate(image) for image in product.images],
            user=UserSummary.model_validate(product.user) if product.user else None,
        )

    # Computed properties
    @property
    def category_list(self) -> List[str]:
        if not self.categories:
            return []
        return [c.strip() for c in self.categories.split(",") if c.strip()]

    @property
    def discount_percentage(self) -> int:
        return calculate_discount_percentage(self.previous_price, self.price)

    @property
    def has_discount(self) -> bool:
        return self.discount_percentage > 0

    def to_dict(self) -> dict:
        """Convert to dict including computed discount fields"""
        data = super().to_dict()
        data["discountPercentage"] = self.discount_percentage
        data["hasDiscount"] = self.has_discount
        data["priceChange"] = get_price_change(self.previous_price, self.price)
        return data


class ImageInput(CamelModel):
    path: str
    filename: Optional[str] = None
    alt: Optional[str] = None


class ProductCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    supplier_price: Optional[float] = None
    margin_percentage: Optional[float] = 50
    previous_price: Optional[float] = None
    condition: str = "NEW"
    aesthetic_condition: Optional[int] = Field(None, ge=1, le=10)
    specifications: Optional[str] = None
    categories: Optional[str] = None
    stock: int = Field(0, ge=0)
    status: str = "ACTIVE"
    manufacturer_code: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    published_at: Optional[datetime] = None
    images: List[ImageInput] = []


class ProductUpdate(CamelModel):
    """Partial update; images is the full list of paths to keep/append"""
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    supplier_price: Optional[float] = None
    margin_percentage: Optional[float] = None
    previous_price: Optional[float] = None
    condition: Optional[str] = None
    aesthetic_condition: Optional[int] = Field(None, ge=1, le=10)
    specifications: Optional[str] = None
    categories: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    status: Optional[str] = None
    manufacturer_code: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    images: Optional[List[str]] = None
