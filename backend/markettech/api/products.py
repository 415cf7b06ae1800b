"""
Products API Endpoints
Handles the public catalog and product management for admins

Author: TM3
Date: 2025-10-03
Updated: 2025-10-17 (refactor: use ProductRepository for data access)
Updated: 2026-02-09 (storefront catalog, xlsx export/import)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from markettech.core.auth import TokenUser, get_current_user, get_current_user_optional, require_any_admin
from markettech.core.database import get_db, utcnow
from markettech.core.errors import AppError
from markettech.domain.product import ProductCreate, ProductUpdate
from markettech.services.inventory_service import InventoryService
from markettech.services.product_service import ProductService

logger = logging.getLogger(__name__)

router = APIRouter()
search_router = APIRouter(prefix="/api/v1/search", tags=["Search"])


@router.get("")
def get_products(
    search: Optional[str] = Query(None, description="Search in title, description, manufacturer and model"),
    condition: Optional[str] = Query(None, description="NEW or USED"),
    status_filter: Optional[str] = Query(None, alias="status", description="Admin only"),
    category: Optional[str] = Query(None, description="Category substring"),
    manufacturer: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    admin: bool = Query(False, description="Admin listing (requires ADMIN or ADMIN_VENDAS)"),
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """
    Get products with optional filters

    Returns {products, pagination}; each product includes images, owner
    and discount fields.
    """
    try:
        return ProductService(db).list_products(
            user=user,
            admin=admin,
            search=search,
            condition=condition,
            status=status_filter,
            category=category,
            manufacturer=manufacturer,
            page=page,
            limit=limit,
        )
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error fetching products: {e}")
        raise HTTPException(status_code=500, detail=f"Error al obtener productos: {str(e)}")


@router.get("/manufacturers")
def get_manufacturers(db: Session = Depends(get_db)):
    """Distinct manufacturers and models for the catalog filters"""
    return ProductService(db).get_manufacturers()


@router.get("/related")
def get_related_products(
    product_id: Optional[int] = Query(None, alias="productId"),
    limit: int = Query(6, ge=1, le=50),
    db: Session = Depends(get_db),
):
    if product_id is None:
        raise HTTPException(status_code=400, detail="productId es requerido")

    try:
        return ProductService(db).get_related(product_id, limit)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error fetching related products for {product_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Error al obtener productos relacionados: {str(e)}")


@router.get("/export")
def export_products(
    user: TokenUser = Depends(require_any_admin),
    db: Session = Depends(get_db),
):
    """Download the catalog as an Excel file"""
    try:
        excel_file = InventoryService(db).export_products(user)
        filename = f"productos_{utcnow().strftime('%Y%m%d_%H%M%S')}.xlsx"

        return StreamingResponse(
            excel_file,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error exporting products: {e}")
        raise HTTPException(status_code=500, detail=f"Error al exportar productos: {str(e)}")


@router.post("/import")
async def import_products(
    file: UploadFile = File(...),
    user: TokenUser = Depends(require_any_admin),
    db: Session = Depends(get_db),
):
    """
    Import products from .xlsx, .xls or .csv

    Rows with a duplicate manufacturerCode or an invalid title/price are
    skipped and reported.
    """
    try:
        content = await file.read()
        return InventoryService(db).import_products(content, file.filename, user)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error importing products from {file.filename}: {e}")
        raise HTTPException(status_code=500, detail=f"Error al importar productos: {str(e)}")


@router.get("/{product_id}")
def get_product(
    product_id: int,
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Product detail; anonymous callers only see ACTIVE products"""
    return ProductService(db).get_product(product_id, authenticated=user is not None)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    user: TokenUser = Depends(require_any_admin),
    db: Session = Depends(get_db),
):
    try:
        return ProductService(db).create_product(body, user)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error creating product: {e}")
        raise HTTPException(status_code=500, detail=f"Error al crear producto: {str(e)}")


@router.put("/{product_id}")
def update_product(
    product_id: int,
    body: ProductUpdate,
    user: TokenUser = Depends(require_any_admin),
    db: Session = Depends(get_db),
):
    try:
        return ProductService(db).update_product(product_id, body, user)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error updating product {product_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Error al actualizar producto: {str(e)}")


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a product (ADMIN, or ADMIN_VENDAS for their own products)"""
    try:
        return ProductService(db).delete_product(product_id, user)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error deleting product {product_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Error al eliminar producto: {str(e)}")


@search_router.get("/suggestions")
def get_search_suggestions(
    q: Optional[str] = Query(None, description="Text typed in the search box"),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """Products, categories and manufacturers matching a partial search"""
    try:
        return ProductService(db).search_suggestions(q, limit)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error getting search suggestions for {q!r}: {e}")
        raise HTTPException(status_code=500, detail=f"Error al obtener sugerencias: {str(e)}")
