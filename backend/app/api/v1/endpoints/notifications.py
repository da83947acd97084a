"""
Notifications API
Every route only ever touches the caller's own notifications.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.common import MessageResponse
from app.schemas.notification import NotificationResponse, NotificationUpdate
from app.services.notification_service import NotificationService

router = APIRouter(tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread: bool = Query(False, description="Only unread notifications"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await NotificationService(db).list_for(current_user, unread_only=unread)


@router.patch("/read-all", response_model=MessageResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    count = await NotificationService(db).mark_all_read(current_user)
    return MessageResponse(message=f"{count} notifications marked as read")


@router.patch("/{notification_id}", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    data: Optional[NotificationUpdate] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark as read (or unread with {"read": false})"""
    return await NotificationService(db).mark_read(current_user, notification_id, data.read if data else True)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await NotificationService(db).delete(current_user, notification_id)
    return MessageResponse(message="Notification removed")
