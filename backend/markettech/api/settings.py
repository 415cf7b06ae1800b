"""
Site settings, shipping and commission settings API

Three routers:
- settings_router: key/value site configuration
- shipping_router: shipping quotes from the configured strategy
- commission_router: platform commission split
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from markettech.core.auth import TokenUser, require_admin
from markettech.core.database import get_db
from markettech.core.errors import AppError
from markettech.domain.payment import CommissionSettings, CommissionSettingsInput
from markettech.domain.settings import SettingsUpdate, SiteConfigEntry
from markettech.repositories.site_config_repository import SiteConfigRepository
from markettech.services.shipping_service import calculate_shipping, load_shipping_config

logger = logging.getLogger(__name__)

settings_router = APIRouter(prefix="/api/v1/settings", tags=["Settings"])
shipping_router = APIRouter(prefix="/api/v1/shipping", tags=["Shipping"])
commission_router = APIRouter(prefix="/api/v1/commission-settings", tags=["Commission Settings"])


def _entries(rows) -> list:
    return [SiteConfigEntry.model_validate(row).to_dict() for row in rows]


# =============================================================================
# Site configuration
# =============================================================================

@settings_router.get("")
def get_settings(db: Session = Depends(get_db)):
    """All site configs ordered by key; seeds the defaults on first use"""
    try:
        repo = SiteConfigRepository(db)
        rows = repo.find_all()
        if not rows:
            rows = repo.seed_defaults()
            logger.info(f"Seeded {len(rows)} default site configs")
        return {"configs": _entries(rows)}
    except Exception as e:
        logger.error(f"Error fetching settings: {e}")
        raise HTTPException(status_code=500, detail=f"Error al obtener configuraciones: {str(e)}")


@settings_router.put("")
def update_settings(
    body: SettingsUpdate,
    admin: TokenUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Upsert the given configs (values are stored as text)"""
    for entry in body.configs:
        if not entry.key or not entry.key.strip():
            raise HTTPException(status_code=400, detail="La clave de configuración es requerida")

    try:
        repo = SiteConfigRepository(db)
        for entry in body.configs:
            repo.upsert(entry.key.strip(), entry.value, entry.type, commit=False)
        db.commit()

        logger.info(f"Admin {admin.id} updated settings: {', '.join(e.key for e in body.configs)}")
        return {"message": "Configuraciones actualizadas exitosamente", "configs": _entries(repo.find_all())}
    except (HTTPException, AppError):
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating settings: {e}")
        raise HTTPException(status_code=500, detail=f"Error al actualizar configuraciones: {str(e)}")


# =============================================================================
# Shipping
# =============================================================================

@shipping_router.get("/calculate")
def shipping_calculate(
    order_total: float = Query(..., alias="orderTotal", ge=0),
    region: Optional[str] = Query("curitiba"),
    db: Session = Depends(get_db),
):
    config = load_shipping_config(db)
    return calculate_shipping(config, order_total, region).to_dict()


@shipping_router.get("/config")
def shipping_config(db: Session = Depends(get_db)):
    return load_shipping_config(db).to_dict()


# =============================================================================
# Commission settings (ADMIN only)
# =============================================================================

@commission_router.get("")
def get_commission_settings(
    _: TokenUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    row = SiteConfigRepository(db).get_commission_settings()
    settings = CommissionSettings.from_model(row) if row else CommissionSettings()
    return settings.to_dict()


@commission_router.put("")
def update_commission_settings(
    body: CommissionSettingsInput,
    admin: TokenUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Owner + worker + store must add up to the total percentage"""
    parts = body.owner_percentage + body.worker_percentage + body.store_percentage
    if abs(parts - body.total_percentage) > 0.001:
        raise HTTPException(
            status_code=400,
            detail="La suma de los porcentajes (dueño + trabajador + tienda) debe ser igual al porcentaje total",
        )

    row = SiteConfigRepository(db).save_commission_settings(**body.model_dump())
    logger.info(f"Admin {admin.id} updated commission settings")
    return {
        "message": "Configuración de comisiones actualizada",
        **CommissionSettings.from_model(row).to_dict(),
    }
