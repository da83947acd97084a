from typing import Optional
from datetime import datetime

from app.models.notification import NotificationType
from app.schemas.common import RequestModel, ORMModel


class NotificationUpdate(RequestModel):
    read: bool = True


class NotificationResponse(ORMModel):
    id: str
    recipient_id: str
    title: str
    message: str
    type: NotificationType
    link: Optional[str] = None
    read: bool
    created_at: datetime
