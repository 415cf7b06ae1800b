"""
Product Service
Catalog listing, related products and product create/update/delete rules

Author: TM3
Date: 2025-10-17
Updated: 2026-02-09 (storefront catalog with owners and cache)
"""
import logging
import math
import secrets
import string
import time
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from markettech.core.auth import TokenUser, ROLE_ADMIN, ROLE_ADMIN_VENDAS, can_view_all_products, is_any_admin
from markettech.core.cache import CACHE_TTL, cache_keys, clear_product_cache, get_cached_data
from markettech.core.database import utcnow
from markettech.core.errors import AppError, CommonErrors, ErrorType
from markettech.domain.product import (
    Product, ProductCreate, ProductUpdate,
    MAX_PRODUCT_IMAGES, PRODUCT_CONDITIONS, PRODUCT_STATUSES,
)
from markettech.models import Product as ProductRow
from markettech.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_manufacturer_code() -> str:
    """AUTO-<epoch_ms>-<9 uppercase alphanumerics>"""
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(9))
    return f"AUTO-{int(time.time() * 1000)}-{suffix}"


def _bad_request(message: str, code: str = "INVALID_INPUT") -> AppError:
    return AppError(ErrorType.VALIDATION, message, 400, None, code)


def _forbidden(message: str) -> AppError:
    return AppError(ErrorType.AUTHORIZATION, message, 403, None, "FORBIDDEN")


def validate_product_fields(
    title: Optional[str],
    price: Optional[float],
    supplier_price: Optional[float],
    condition: Optional[str],
    status: Optional[str],
) -> None:
    """Shared create/update/import validation; raises AppError (400)"""
    if not title or not title.strip():
        raise _bad_request("El título es requerido", "MISSING_REQUIRED_FIELD")
    if price is None or price <= 0:
        raise _bad_request("El precio debe ser mayor que 0")
    if supplier_price is not None and supplier_price >= price:
        raise _bad_request("El precio del proveedor debe ser menor que el precio de venta")
    if condition is not None and condition not in PRODUCT_CONDITIONS:
        raise _bad_request(f"Condición inválida: {condition}")
    if status is not None and status not in PRODUCT_STATUSES:
        raise _bad_request(f"Estado inválido: {status}")


def can_edit_product(user: TokenUser, product: ProductRow) -> bool:
    if user.role == ROLE_ADMIN:
        return True
    return user.role == ROLE_ADMIN_VENDAS and product.user_id == user.id


def price_similarity(price: float, base_price: float) -> float:
    if not base_price or base_price <= 0:
        return 0.0
    return max(0.0, 1 - abs(price - base_price) / base_price)


class ProductService:
    """
    Service for catalog business rules

    Routers call this service; it uses ProductRepository for data access
    and keeps the product cache consistent.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepository(db)

    def list_products(
        self,
        user: Optional[TokenUser],
        admin: bool = False,
        search: Optional[str] = None,
        condition: Optional[str] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        manufacturer: Optional[str] = None,
        page: int = 1,
        limit: int = 12,
    ) -> Dict:
        """
        Paginated catalog

        Public callers only see ACTIVE products. With admin=True an
        ADMIN sees everything and an ADMIN_VENDAS sees only their own
        products.
        """
        owner_id = None
        if admin:
            if user is None:
                raise CommonErrors.UNAUTHORIZED()
            if not is_any_admin(user.role):
                raise CommonErrors.FORBIDDEN()
            if not can_view_all_products(user.role):
                owner_id = user.id
        else:
            status = "ACTIVE"

        filters = {
            "search": search,
            "condition": condition,
            "status": status,
            "category": category,
            "manufacturer": manufacturer,
            "userId": owner_id,
        }

        def fetch() -> Dict:
            rows, total = self.repo.find_all(
                search=search,
                condition=condition,
                status=status,
                category=category,
                manufacturer=manufacturer,
                user_id=owner_id,
                page=page,
                limit=limit,
            )
            return {
                "products": [Product.from_model(row).to_dict() for row in rows],
                "pagination": {
                    "page": page,
                    "limit": limit,
                    "total": total,
                    "pages": math.ceil(total / limit) if limit else 0,
                },
            }

        return get_cached_data(cache_keys.products_list(page, limit, filters), fetch, CACHE_TTL["PRODUCTS"])

    def get_manufacturers(self) -> Dict[str, List[str]]:
        return {
            "manufacturers": self.repo.distinct_manufacturers(),
            "models": self.repo.distinct_models(),
        }

    def search_suggestions(self, query: Optional[str], limit: int = 10) -> Dict:
        """
        Autocomplete for the storefront search box

        Queries shorter than two characters return empty lists. Matching
        categories and manufacturers are capped at five each.
        """
        query = (query or "").strip()
        if len(query) < 2:
            return {"suggestions": [], "categories": [], "manufacturers": [], "query": query}

        def fetch() -> Dict:
            needle = query.lower()
            suggestions = []
            for row in self.repo.find_suggestions(query, limit):
                product = Product.from_model(row)
                image = product.images[0] if product.images else None
                suggestions.append({
                    "id": product.id,
                    "title": product.title,
                    "manufacturer": product.manufacturer,
                    "model": product.model,
                    "categories": product.category_list,
                    "price": product.price,
                    "image": {"path": image.path, "alt": image.alt} if image else None,
                })

            categories: List[str] = []
            for value in self.repo.distinct_active_values(ProductRow.categories, query):
                for category in value.split(","):
                    category = category.strip()
                    if needle in category.lower() and category not in categories:
                        categories.append(category)

            return {
                "suggestions": suggestions,
                "categories": categories[:5],
                "manufacturers": self.repo.distinct_active_values(ProductRow.manufacturer, query)[:5],
            }

        result = get_cached_data(cache_keys.search_suggestions(query.lower(), limit), fetch, CACHE_TTL["SEARCH"])
        return {**result, "query": query}

    def get_product(self, product_id: int, authenticated: bool) -> Dict:
        """Product detail; anonymous callers only see ACTIVE products"""
        def fetch() -> Optional[Dict]:
            row = self.repo.find_by_id(product_id)
            return Product.from_model(row).to_dict() if row else None

        product = get_cached_data(cache_keys.product(product_id), fetch, CACHE_TTL["PRODUCT_DETAIL"])
        if product is None or (not authenticated and product["status"] != "ACTIVE"):
            raise AppError(ErrorType.NOT_FOUND, "Product not found", 404, {"productId": product_id}, "PRODUCT_NOT_FOUND")
        return product

    def get_related(self, product_id: int, limit: int = 6) -> Dict:
        """
        Related ACTIVE products ranked by

            score = 2 * commonCategories + sameManufacturer + priceSimilarity
        """
        def fetch() -> Dict:
            base = self.repo.find_by_id(product_id)
            if base is None:
                return {"notFound": True}

            base_categories = {c.lower() for c in Product.from_model(base).category_list}
            base_price = float(base.price)

            candidates = {
                row.id: row
                for row in self.repo.find_related_candidates(product_id, sorted(base_categories), None)
            }
            if len(candidates) < limit and base.manufacturer:
                for row in self.repo.find_related_candidates(product_id, [], base.manufacturer):
                    candidates.setdefault(row.id, row)

            scored = []
            for row in candidates.values():
                product = Product.from_model(row)
                common = len(base_categories & {c.lower() for c in product.category_list})
                same_manufacturer = 1 if base.manufacturer and row.manufacturer == base.manufacturer else 0
                score = 2 * common + same_manufacturer + price_similarity(product.price, base_price)
                scored.append((score, product))

            scored.sort(key=lambda pair: (-pair[0], pair[1].id))
            related = []
            for score, product in scored[:limit]:
                data = product.to_dict()
                data["score"] = round(score, 4)
                related.append(data)
            return {"relatedProducts": related, "total": len(related)}

        result = get_cached_data(cache_keys.related_products(product_id, limit), fetch, CACHE_TTL["PRODUCTS"])
        if result.get("notFound"):
            raise CommonErrors.PRODUCT_NOT_FOUND(product_id)
        return result

    def create_product(self, data: ProductCreate, user: TokenUser) -> Dict:
        validate_product_fields(data.title, data.price, data.supplier_price, data.condition, data.status)

        if len(data.images) > MAX_PRODUCT_IMAGES:
            raise _bad_request(f"Máximo {MAX_PRODUCT_IMAGES} imágenes por producto", "TOO_MANY_IMAGES")

        code = (data.manufacturer_code or "").strip() or generate_manufacturer_code()
        if self.repo.find_by_manufacturer_code(code):
            raise _bad_request("El código de fabricante ya existe", "DUPLICATE_MANUFACTURER_CODE")

        fields = data.model_dump(exclude={"images", "manufacturer_code", "published_at"})
        fields["title"] = data.title.strip()
        row = self.repo.create(
            images=[image.model_dump() for image in data.images],
            manufacturer_code=code,
            published_at=data.published_at or utcnow(),
            user_id=user.id,
            **fields,
        )

        clear_product_cache()
        logger.info(f"Product {row.id} created by user {user.id}")
        return Product.from_model(self.repo.find_by_id(row.id)).to_dict()

    def update_product(self, product_id: int, data: ProductUpdate, user: TokenUser) -> Dict:
        row = self.repo.find_by_id(product_id)
        if row is None:
            raise CommonErrors.PRODUCT_NOT_FOUND(product_id)
        if not can_edit_product(user, row):
            raise _forbidden("No tienes permisos para editar este producto")

        changes = data.model_dump(exclude_unset=True, exclude={"images"})
        changes = {key: value for key, value in changes.items() if value is not None}

        merged_price = changes.get("price", float(row.price) if row.price is not None else None)
        merged_supplier = changes.get(
            "supplier_price", float(row.supplier_price) if row.supplier_price is not None else None
        )
        validate_product_fields(
            changes.get("title", row.title),
            merged_price,
            merged_supplier,
            changes.get("condition"),
            changes.get("status"),
        )

        if "manufacturer_code" in changes:
            code = changes["manufacturer_code"].strip()
            if not code:
                changes.pop("manufacturer_code")
            else:
                existing = self.repo.find_by_manufacturer_code(code)
                if existing is not None and existing.id != row.id:
                    raise _bad_request("El código de fabricante ya existe", "DUPLICATE_MANUFACTURER_CODE")
                changes["manufacturer_code"] = code

        image_paths = None
        if data.images is not None:
            image_paths = [path for path in data.images if path]
            if len(image_paths) > MAX_PRODUCT_IMAGES:
                raise _bad_request(f"Máximo {MAX_PRODUCT_IMAGES} imágenes por producto", "TOO_MANY_IMAGES")

        self.repo.update(row, changes, image_paths)
        clear_product_cache(product_id)
        logger.info(f"Product {product_id} updated by user {user.id}")
        return Product.from_model(self.repo.find_by_id(product_id)).to_dict()

    def delete_product(self, product_id: int, user: TokenUser) -> Dict:
        row = self.repo.find_by_id(product_id)
        if row is None:
            raise CommonErrors.PRODUCT_NOT_FOUND(product_id)
        if not can_edit_product(user, row):
            raise _forbidden("No tienes permisos para eliminar este producto")

        self.repo.delete(row)
        clear_product_cache(product_id)
        logger.info(f"Product {product_id} deleted by user {user.id} ({user.role})")

        return {
            "message": "Producto eliminado exitosamente",
            "deletedBy": {"id": user.id, "email": user.email, "role": user.role},
        }
