"""
Notification Service Layer
Read-side of notifications: every operation is scoped to the recipient.
"""

from typing import List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotificationNotFoundError
from app.core.types import is_valid_id
from app.models import Notification, User
from app.modules.authorization.policy import Action, ensure_authorized


class NotificationService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for(self, actor: User, unread_only: bool = False) -> List[Notification]:
        query = select(Notification).where(Notification.recipient_id == actor.id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        result = await self.db.execute(query.order_by(Notification.created_at.desc()))
        return list(result.scalars().all())

    async def get_for(self, actor: User, notification_id: str) -> Notification:
        if not is_valid_id(notification_id):
            raise NotificationNotFoundError(notification_id)
        result = await self.db.execute(select(Notification).where(Notification.id == str(notification_id)))
        notification = result.scalar_one_or_none()
        if not notification:
            raise NotificationNotFoundError(notification_id)
        ensure_authorized(actor, Action.NOTIFICATION_MANAGE, notification)
        return notification

    async def mark_read(self, actor: User, notification_id: str, read: bool = True) -> Notification:
        notification = await self.get_for(actor, notification_id)
        notification.read = read
        await self.db.commit()
        return notification

    async def mark_all_read(self, actor: User) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.recipient_id == actor.id, Notification.read.is_(False))
            .values(read=True)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.commit()
        return result.rowcount or 0

    async def delete(self, actor: User, notification_id: str) -> None:
        notification = await self.get_for(actor, notification_id)
        await self.db.delete(notification)
        await self.db.commit()
