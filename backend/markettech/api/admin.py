"""
Admin API - Store Maintenance Endpoints
Database statistics, health check, request performance and cache control

Author: TM3
Date: 2026-02-09
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from markettech.core.auth import TokenUser, require_admin, require_any_admin
from markettech.core.cache import cache, clear_all_cache, get_cache_stats
from markettech.core.database import get_db
from markettech.core.errors import AppError
from markettech.core.performance import performance_monitor
from markettech.services.admin_service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/database/stats")
def database_stats(
    _: TokenUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Row counts per table, cached for 30 minutes"""
    try:
        return AdminService(db).database_stats()
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error fetching database stats: {e}")
        raise HTTPException(status_code=500, detail=f"Error obteniendo estadísticas: {str(e)}")


@router.get("/health-check")
def health_check(
    _: TokenUser = Depends(require_any_admin),
    db: Session = Depends(get_db),
):
    """
    Store health check

    Returns:
        status: HEALTHY or WARNING
        metrics: active orders, pending payments and stock counters
        issues: critical issues (old pending orders, active products out of
            stock, orders without items) and warnings (low stock)
    """
    try:
        return AdminService(db).health_check()
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error running health check: {e}")
        raise HTTPException(status_code=500, detail=f"Error en verificación de salud: {str(e)}")


@router.get("/performance")
def performance_metrics(
    time_window: int = Query(60, alias="timeWindow", ge=1, description="Minutes"),
    limit: int = Query(100, ge=1, le=1000),
    _: TokenUser = Depends(require_admin),
):
    return {
        "stats": performance_monitor.get_performance_stats(time_window),
        "alerts": performance_monitor.get_performance_alerts(),
        "detailedMetrics": performance_monitor.get_detailed_metrics(limit),
        "cacheStats": get_cache_stats(),
    }


@router.delete("/performance")
def cleanup_performance_metrics(
    max_age: int = Query(24, alias="maxAge", ge=0, description="Hours"),
    admin: TokenUser = Depends(require_admin),
):
    """Drop metrics older than maxAge hours and expired cache entries"""
    removed = performance_monitor.cleanup_old_metrics(max_age)
    expired = cache.cleanup()
    logger.info(f"Admin {admin.id} removed {removed} performance metrics older than {max_age}h, {expired} expired cache entries")
    return {
        "message": f"Métricas anteriores a {max_age} horas eliminadas",
        "removed": removed,
        "expiredCacheEntries": expired,
    }


@router.delete("/cache")
def clear_cache(admin: TokenUser = Depends(require_admin)):
    clear_all_cache()
    logger.info(f"Admin {admin.id} cleared the cache")
    return {"message": "Caché limpiada exitosamente"}
