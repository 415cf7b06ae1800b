"""
Orders API Endpoints
Checkout, order listing and order administration

Author: TM3
Date: 2025-10-03
Updated: 2026-02-09 (storefront orders, seller commission)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from markettech.core.auth import TokenUser, get_current_user_optional, is_any_admin, require_any_admin
from markettech.core.cache import CACHE_TTL, cache_keys, get_cached_data
from markettech.core.database import get_db
from markettech.core.errors import AppError, CommonErrors
from markettech.domain.order import CommissionRequest, Order, OrderCreate, OrderStatusUpdate
from markettech.repositories.order_repository import OrderRepository
from markettech.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(
    body: OrderCreate,
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """
    Create an order (guest checkout allowed)

    With a token the order belongs to the caller unless userId is given.
    """
    user_id = body.user_id if body.user_id is not None else (user.id if user else None)

    try:
        order = OrderService(db).create_order(body, user_id=user_id)
        return Order.from_model(order).to_dict()
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error creating order: {e}")
        raise HTTPException(status_code=500, detail=f"Error al crear pedido: {str(e)}")


@router.get("")
def get_orders(
    admin: bool = Query(False, description="All orders (ADMIN / ADMIN_VENDAS)"),
    own: bool = Query(False, alias="user", description="Only the caller's orders"),
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """
    List orders newest first

    - admin=true: every order (admins only)
    - user=true: the caller's orders
    - otherwise: every order for admins, own orders for everyone else
    """
    if user is None:
        raise CommonErrors.UNAUTHORIZED()
    if admin and not is_any_admin(user.role):
        raise CommonErrors.FORBIDDEN()

    try:
        repo = OrderRepository(db)
        if own or (not admin and not is_any_admin(user.role)):
            def fetch():
                return [Order.from_model(order).to_dict() for order in repo.find_all(user_id=user.id)]

            orders = get_cached_data(cache_keys.user_orders(user.id), fetch, CACHE_TTL["USER_ORDERS"])
            return {"orders": orders}

        return {"orders": [Order.from_model(order).to_dict() for order in repo.find_all()]}
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error fetching orders: {e}")
        raise HTTPException(status_code=500, detail=f"Error al obtener pedidos: {str(e)}")


@router.post("/commission")
def calculate_commission(
    body: CommissionRequest,
    _: TokenUser = Depends(require_any_admin),
    db: Session = Depends(get_db),
):
    """Split an order between sellers and the platform"""
    try:
        return OrderService(db).calculate_commission(body.order_id, body.commission_rate)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error calculating commission for order {body.order_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Error al calcular comisión: {str(e)}")


@router.get("/{order_id}")
def get_order(
    order_id: int,
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Order detail for its owner or any admin"""
    if user is None:
        raise CommonErrors.UNAUTHORIZED()

    order = OrderRepository(db).find_by_id(order_id)
    if order is None:
        raise CommonErrors.ORDER_NOT_FOUND(order_id)
    if order.user_id != user.id and not is_any_admin(user.role):
        raise CommonErrors.FORBIDDEN()

    return {"order": Order.from_model(order).to_dict()}


@router.put("/{order_id}")
def update_order(
    order_id: int,
    body: OrderStatusUpdate,
    admin: TokenUser = Depends(require_any_admin),
    db: Session = Depends(get_db),
):
    """Update order / payment / shipping status and notify the customer"""
    try:
        order = OrderService(db).update_statuses(order_id, body)
        logger.info(f"Order {order_id} updated by user {admin.id}")
        return {"order": Order.from_model(order).to_dict()}
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error updating order {order_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Error al actualizar pedido: {str(e)}")


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    admin: TokenUser = Depends(require_any_admin),
    db: Session = Depends(get_db),
):
    try:
        OrderService(db).delete_order(order_id)
        logger.info(f"Order {order_id} deleted by user {admin.id}")
        return {"message": "Pedido eliminado exitosamente", "orderId": order_id}
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error deleting order {order_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Error al eliminar pedido: {str(e)}")
