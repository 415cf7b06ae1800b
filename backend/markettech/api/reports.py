"""
Reports API Endpoints
Sales, inventory, users and financial reports for the back-office

Author: TM3
Date: 2026-02-09
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from markettech.core.auth import TokenUser, require_admin
from markettech.core.database import get_db
from markettech.core.errors import AppError
from markettech.services.report_service import ReportService, resolve_period

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/sales")
def sales_report(
    start_date: Optional[str] = Query(None, alias="startDate", description="ISO date, default 30 days ago"),
    end_date: Optional[str] = Query(None, alias="endDate", description="ISO date, default now"),
    group_by: str = Query("day", alias="groupBy", description="day, week or month"),
    _: TokenUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Completed-order sales for a period

    Returns totals, top products, sales per period bucket and per category.
    """
    try:
        start, end = resolve_period(start_date, end_date)
        data = ReportService(db).sales_report(start, end, group_by)
        return {"status": "success", "data": data}
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error generating sales report: {e}")
        raise HTTPException(status_code=500, detail=f"Error generando reporte de ventas: {str(e)}")


@router.get("/inventory")
def inventory_report(
    _: TokenUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return {"status": "success", "data": ReportService(db).inventory_report()}
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error generating inventory report: {e}")
        raise HTTPException(status_code=500, detail=f"Error generando reporte de inventario: {str(e)}")


@router.get("/users")
def users_report(
    _: TokenUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return {"status": "success", "data": ReportService(db).users_report()}
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error generating users report: {e}")
        raise HTTPException(status_code=500, detail=f"Error generando reporte de usuarios: {str(e)}")


@router.get("/financial")
def financial_report(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    _: TokenUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Revenue, estimated cost and gross profit of paid orders"""
    try:
        start, end = resolve_period(start_date, end_date)
        return {"status": "success", "data": ReportService(db).financial_report(start, end)}
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error generating financial report: {e}")
        raise HTTPException(status_code=500, detail=f"Error generando reporte financiero: {str(e)}")
