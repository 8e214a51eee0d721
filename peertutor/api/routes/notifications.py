"""Notification endpoints - the in-app inbox."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.api.deps import get_current_user, get_notification_service
from peertutor.db.database import get_db
from peertutor.models.user import User
from peertutor.schemas.notification import NotificationOut, NotificationPage, UnreadCount
from peertutor.services.notification_service import NotificationService

router = APIRouter()


@router.get("/", response_model=NotificationPage)
async def list_notifications(
    limit: int = Query(default=20, ge=1, le=100),
    page_token: str | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    items, next_token = await notifier.list_notifications(db, user.id, limit, page_token)
    return NotificationPage(
        items=[NotificationOut.model_validate(n) for n in items], next_page_token=next_token
    )


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    return UnreadCount(unread=await notifier.unread_count(db, user.id))


@router.post("/read-all", response_model=UnreadCount)
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    await notifier.mark_all_read(db, user.id)
    return UnreadCount(unread=0)


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    return await notifier.mark_read(db, notification_id, user.id)


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    await notifier.delete_notification(db, notification_id, user.id)


@router.delete("/", status_code=204)
async def delete_all_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    await notifier.delete_all(db, user.id)
