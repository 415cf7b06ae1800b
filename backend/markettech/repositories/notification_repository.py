"""
Notification Repository - Data Access Layer for Notifications
"""
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from markettech.models import Notification


class NotificationRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_for_user(self, user_id: int, limit: int = 20, offset: int = 0) -> Tuple[List[Notification], int, int]:
        """
        Returns:
            Tuple of (page of notifications newest first, total, unread count)
        """
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        total = query.count()
        unread = query.filter(Notification.read.is_(False)).count()
        notifications = (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return notifications, total, unread

    def find_owned(self, notification_id: int, user_id: int) -> Optional[Notification]:
        return (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )

    def add(self, notification: Notification, commit: bool = True) -> Notification:
        self.db.add(notification)
        if commit:
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_read(self, notification: Notification) -> Notification:
        notification.read = True
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: int) -> int:
        count = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session=False)
        )
        self.db.commit()
        return count

    def delete(self, notification: Notification) -> None:
        self.db.delete(notification)
        self.db.commit()

    def count(self) -> int:
        return self.db.query(func.count(Notification.id)).scalar() or 0
