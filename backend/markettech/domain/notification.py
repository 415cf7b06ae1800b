"""
Notification Domain Models
"""
from datetime import datetime
from typing import Any, Optional

from markettech.domain.base import CamelModel


class Notification(CamelModel):
    id: int
    type: str
    title: str
    message: str
    data: Optional[Any] = None
    user_id: int
    order_id: Optional[int] = None
    read: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NotificationCreate(CamelModel):
    type: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    user_id: Optional[int] = None
    order_id: Optional[int] = None
    data: Optional[Any] = None
