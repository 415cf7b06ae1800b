"""
Notifications API Endpoints
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from markettech.core.auth import TokenUser, get_current_user, require_any_admin
from markettech.core.database import get_db
from markettech.domain.notification import Notification, NotificationCreate
from markettech.repositories.notification_repository import NotificationRepository
from markettech.repositories.user_repository import UserRepository
from markettech.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def get_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's notifications, newest first"""
    notifications, total, unread = NotificationRepository(db).find_for_user(user.id, limit, offset)
    return {
        "notifications": [Notification.model_validate(n).to_dict() for n in notifications],
        "unreadCount": unread,
        "total": total,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_notification(
    body: NotificationCreate,
    admin: TokenUser = Depends(require_any_admin),
    db: Session = Depends(get_db),
):
    if not body.type or not body.title or not body.message or body.user_id is None:
        raise HTTPException(status_code=400, detail="Faltan datos requeridos (type, title, message, userId)")
    if UserRepository(db).find_by_id(body.user_id) is None:
        raise HTTPException(status_code=404, detail="Usuario no encontrado")

    notification = NotificationService(db).create_notification(
        user_id=body.user_id,
        notification_type=body.type,
        title=body.title,
        message=body.message,
        data=body.data,
        order_id=body.order_id,
    )
    logger.info(f"Admin {admin.id} sent notification {notification.id} to user {body.user_id}")
    return {"notification": Notification.model_validate(notification).to_dict()}


@router.put("/mark-all-read")
def mark_all_read(
    user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    count = NotificationRepository(db).mark_all_read(user.id)
    return {"message": "Todas las notificaciones marcadas como leídas", "count": count}


@router.put("/{notification_id}")
def mark_read(
    notification_id: int,
    user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = NotificationRepository(db)
    notification = repo.find_owned(notification_id, user.id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notificación no encontrada")

    notification = repo.mark_read(notification)
    return {"notification": Notification.model_validate(notification).to_dict()}


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = NotificationRepository(db)
    notification = repo.find_owned(notification_id, user.id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notificación no encontrada")

    repo.delete(notification)
    return {"message": "Notificación eliminada"}
