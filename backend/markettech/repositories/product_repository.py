"""
Product Repository - Data Access Layer for Products

Handles all catalog queries. Callers get ORM rows and map them with
domain.Product.from_model().

Author: TM3
Date: 2025-10-17
Updated: 2026-02-09 (SQLAlchemy session, storefront filters, images)
"""
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from markettech.models import Product, ProductImage


class ProductRepository:
    """
    Repository for Product data access

    All product queries are centralized here.
    """

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(Product).options(
            selectinload(Product.images),
            selectinload(Product.user),
        )

    def find_by_id(self, product_id: int) -> Optional[Product]:
        """
        Find product by ID

        Args:
            product_id: Internal product ID

        Returns:
            Product or None if not found
        """
        return self._base_query().filter(Product.id == product_id).first()

    def find_by_ids(self, product_ids: List[int]) -> Dict[int, Product]:
        if not product_ids:
            return {}
        rows = self._base_query().filter(Product.id.in_(product_ids)).all()
        return {row.id: row for row in rows}

    def find_by_manufacturer_code(self, code: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.manufacturer_code == code).first()

    def find_all(
        self,
        search: Optional[str] = None,
        condition: Optional[str] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        manufacturer: Optional[str] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        limit: int = 12,
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters and pagination

        Returns:
            Tuple of (products list, total count before pagination)
        """
        query = self.db.query(Product)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Product.title.ilike(pattern),
                Product.description.ilike(pattern),
                Product.manufacturer.ilike(pattern),
                Product.model.ilike(pattern),
            ))
        if condition:
            query = query.filter(Product.condition == condition)
        if status:
            query = query.filter(Product.status == status)
        if category:
            query = query.filter(Product.categories.ilike(f"%{category.strip()}%"))
        if manufacturer:
            query = query.filter(Product.manufacturer.ilike(f"%{manufacturer.strip()}%"))
        if user_id is not None:
            query = query.filter(Product.user_id == user_id)

        total = query.count()

        products = (
            query.options(selectinload(Product.images), selectinload(Product.user))
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return products, total

    def find_for_export(self, user_id: Optional[int] = None) -> List[Product]:
        query = self.db.query(Product)
        if user_id is not None:
            query = query.filter(Product.user_id == user_id)
        return query.order_by(Product.id).all()

    def find_related_candidates(
        self,
        exclude_id: int,
        categories: List[str],
        manufacturer: Optional[str],
    ) -> List[Product]:
        """ACTIVE products sharing a category or the manufacturer"""
        conditions = [Product.categories.ilike(f"%{category}%") for category in categories]
        if manufacturer:
            conditions.append(Product.manufacturer == manufacturer)
        if not conditions:
            return []

        return (
            self._base_query()
            .filter(Product.id != exclude_id, Product.status == "ACTIVE")
            .filter(or_(*conditions))
            .all()
        )

    def distinct_manufacturers(self) -> List[str]:
        rows = self.db.query(Product.manufacturer).filter(Product.manufacturer.isnot(None)).distinct().all()
        return sorted(value for (value,) in rows if value)

    def distinct_models(self) -> List[str]:
        rows = self.db.query(Product.model).filter(Product.model.isnot(None)).distinct().all()
        return sorted(value for (value,) in rows if value)

    def find_suggestions(self, query: str, limit: int) -> List[Product]:
        """ACTIVE products whose title, manufacturer, model or categories contain the query"""
        pattern = f"%{query}%"
        return (
            self._base_query()
            .filter(Product.status == "ACTIVE")
            .filter(or_(
                Product.title.ilike(pattern),
                Product.manufacturer.ilike(pattern),
                Product.model.ilike(pattern),
                Product.categories.ilike(pattern),
            ))
            .order_by(Product.title, Product.id)
            .limit(limit)
            .all()
        )

    def distinct_active_values(self, column, query: str) -> List[str]:
        """Distinct non-empty values of a Product column among ACTIVE products matching the query"""
        rows = (
            self.db.query(column)
            .filter(Product.status == "ACTIVE", column.ilike(f"%{query}%"))
            .distinct()
            .all()
        )
        return sorted(value for (value,) in rows if value)

    def create(self, images: Optional[List[Dict]] = None, **fields) -> Product:
        product = Product(**fields)
        for index, image in enumerate(images or []):
            product.images.append(ProductImage(
                path=image["path"],
                filename=image.get("filename") or image["path"].rsplit("/", 1)[-1],
                alt=image.get("alt") or fields.get("title"),
                order=index,
            ))
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update(self, product: Product, fields: Dict, image_paths: Optional[List[str]] = None) -> Product:
        """
        Update product fields.

        image_paths, when given, is the complete ordered list of images the
        product should keep; unknown paths become new ProductImage rows.
        """
        for key, value in fields.items():
            setattr(product, key, value)

        if image_paths is not None:
            existing = {image.path: image for image in product.images}
            for image in list(product.images):
                if image.path not in image_paths:
                    product.images.remove(image)

            for index, path in enumerate(image_paths):
                image = existing.get(path)
                if image is None:
                    product.images.append(ProductImage(
                        path=path,
                        filename=path.rsplit("/", 1)[-1],
                        alt=product.title,
                        order=index,
                    ))
                else:
                    image.order = index

        self.db.commit()
        self.db.refresh(product)
        return product

    def delete(self, product: Product) -> None:
        """Delete product, its images and the order items referencing it"""
        self.db.delete(product)
        self.db.commit()

    def count(self) -> int:
        return self.db.query(func.count(Product.id)).scalar() or 0

    def count_images(self) -> int:
        return self.db.query(func.count(ProductImage.id)).scalar() or 0

    def count_by_stock(self, low_max: int = 5, only_active: bool = False) -> Dict[str, int]:
        """Counts of out-of-stock (0) and low-stock (1..low_max) products"""
        query = self.db.query(Product)
        if only_active:
            query = query.filter(Product.status == "ACTIVE")
        return {
            "outOfStock": query.filter(Product.stock == 0).count(),
            "lowStock": query.filter(Product.stock >= 1, Product.stock <= low_max).count(),
        }
