"""Notification service - delivers fan-out drafts and manages the in-app inbox."""

import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, event, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from peertutor.config import settings
from peertutor.core.notification_policy import notifications_for
from peertutor.db.database import utcnow
from peertutor.errors import NotFoundError, TransientBackendError, read_retry
from peertutor.models.notification import Notification
from peertutor.models.user import NOTIFICATION_SETTING_DEFAULTS, User
from peertutor.schemas.notification import DomainEvent, NotificationDraft, NotificationType
from peertutor.services.notification_feed import FeedCallback, NotificationFeed, Subscription
from peertutor.services.pagination import newest_first_page, split_page
from peertutor.services.push_service import PushChannel

logger = logging.getLogger(__name__)

# Session.info key holding records that reach the feed once the session commits
PENDING_FEED_KEY = "peertutor.pending_feed"

SETTING_FOR_TYPE = {
    NotificationType.CONNECTION_REQUEST: "connection_requests",
    NotificationType.CONNECTION_ACCEPTED: "connection_accepted",
    NotificationType.NEW_MESSAGE: "new_messages",
    NotificationType.NEW_EVENT: "event_updates",
    NotificationType.EVENT_REMINDER: "event_reminders",
    NotificationType.COMMUNITY_INVITE: "community_invites",
    NotificationType.NEW_MATCH: "new_matches",
}


@event.listens_for(Session, "after_soft_rollback")
def _drop_pending_feed(session, previous_transaction):
    session.info.pop(PENDING_FEED_KEY, None)


def push_allowed(preferences: dict | None, notification_type: str) -> bool:
    """Whether a user's notification settings let this type through as a push."""
    prefs = {**NOTIFICATION_SETTING_DEFAULTS, **(preferences or {})}
    if not prefs["push_notifications"]:
        return False
    return bool(prefs[SETTING_FOR_TYPE[NotificationType(notification_type)]])


def _feed_message(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "body": notification.body,
        "data": notification.data,
        "read": notification.read,
        "created_at": notification.created_at.isoformat(),
    }


class NotificationService:
    def __init__(self, push: PushChannel, feed: NotificationFeed | None = None):
        self.push = push
        self.feed = feed

    # -- delivery -----------------------------------------------------------

    async def dispatch(self, db: AsyncSession, event: DomainEvent) -> list[Notification]:
        """Run the fan-out policy for a domain event and deliver the result."""
        drafts = notifications_for(event)
        records = await self.deliver(db, drafts)
        logger.info("Dispatched %s to %d recipient(s)", event.type, len(records))
        return records

    async def deliver(self, db: AsyncSession, drafts: list[NotificationDraft]) -> list[Notification]:
        """Persist every draft, push each one best-effort and queue it for the feed.

        The in-app record is written before any push attempt, so a failing
        push channel never loses a notification. Feed messages wait for
        ``publish_pending`` so subscribers only see committed records.
        """
        if not drafts:
            return []

        records = [
            Notification(
                user_id=draft.recipient_id,
                type=draft.type,
                title=draft.title,
                body=draft.body,
                data=draft.payload.model_dump(),
            )
            for draft in drafts
        ]
        db.add_all(records)
        await db.flush()

        recipients = await self._recipients(db, {n.user_id for n in records})
        await asyncio.gather(*(self._push(recipients.get(n.user_id), n) for n in records))

        db.info.setdefault(PENDING_FEED_KEY, []).extend(records)
        return records

    async def publish_pending(self, db: AsyncSession) -> int:
        """Publish the records queued on ``db``; call only after it committed."""
        records = db.info.pop(PENDING_FEED_KEY, [])
        if self.feed is None:
            return 0
        for n in records:
            await self.feed.publish(n.user_id, _feed_message(n))
        return len(records)

    async def commit_and_publish(self, db: AsyncSession) -> None:
        await db.commit()
        await self.publish_pending(db)

    async def _recipients(self, db: AsyncSession, user_ids: set[str]) -> dict[str, User]:
        result = await db.execute(select(User).where(User.id.in_(user_ids)))
        return {user.id: user for user in result.scalars().all()}

    async def _push(self, recipient: User | None, notification: Notification) -> None:
        if recipient is None or not recipient.push_token:
            logger.info("No push token for user %s", notification.user_id)
            return
        if not push_allowed(recipient.notification_settings, notification.type):
            logger.info(
                "Push of %s disabled by settings for user %s", notification.type, notification.user_id
            )
            return
        try:
            await self.push.send(
                recipient.push_token, notification.title, notification.body, notification.data
            )
        except Exception:
            # push is best effort; the persisted record already exists
            logger.warning("Push channel raised for user %s", notification.user_id, exc_info=True)

    async def subscribe(self, user_id: str, callback: FeedCallback) -> Subscription:
        if self.feed is None:
            raise TransientBackendError("Real-time feed is not available")
        return await self.feed.subscribe(user_id, callback)

    # -- inbox --------------------------------------------------------------

    @staticmethod
    def _active(user_id: str):
        return (Notification.user_id == user_id, Notification.deleted.is_(False))

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: str,
        limit: int = settings.PAGE_SIZE,
        page_token: str | None = None,
    ) -> tuple[list[Notification], str | None]:
        """Active notifications, newest first, with a continuation token."""
        stmt = newest_first_page(
            select(Notification).where(*self._active(user_id)), Notification, limit, page_token
        )

        async def _read():
            return list((await db.execute(stmt)).scalars().all())

        rows = await read_retry(_read)
        return split_page(rows, limit)

    async def unread_count(self, db: AsyncSession, user_id: str) -> int:
        async def _read():
            result = await db.execute(
                select(func.count()).select_from(Notification).where(
                    *self._active(user_id), Notification.read.is_(False)
                )
            )
            return result.scalar_one()

        return await read_retry(_read)

    async def _get_owned(self, db: AsyncSession, notification_id: str, user_id: str) -> Notification:
        notification = await db.get(Notification, notification_id)
        if notification is None or notification.user_id != user_id or notification.deleted:
            raise NotFoundError("Notification not found")
        return notification

    async def mark_read(self, db: AsyncSession, notification_id: str, user_id: str) -> Notification:
        notification = await self._get_owned(db, notification_id, user_id)
        if not notification.read:
            notification.read = True
            notification.read_at = utcnow()
            await db.flush()
        return notification

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(
            update(Notification)
            .where(*self._active(user_id), Notification.read.is_(False))
            .values(read=True, read_at=utcnow())
        )
        logger.info("Marked %d notifications as read for %s", result.rowcount, user_id)
        return result.rowcount

    async def delete_notification(self, db: AsyncSession, notification_id: str, user_id: str) -> None:
        """Soft delete: the record stays until the retention sweep."""
        notification = await self._get_owned(db, notification_id, user_id)
        notification.deleted = True
        await db.flush()

    async def delete_all(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(
            update(Notification).where(*self._active(user_id)).values(deleted=True)
        )
        return result.rowcount

    async def purge_expired(
        self,
        db: AsyncSession,
        now: datetime | None = None,
        retention_days: int = settings.NOTIFICATION_RETENTION_DAYS,
    ) -> int:
        """Retention sweep: hard-delete notifications older than the window."""
        cutoff = (now or utcnow()) - timedelta(days=retention_days)
        result = await db.execute(delete(Notification).where(Notification.created_at < cutoff))
        logger.info("Deleted %d old notifications", result.rowcount)
        return result.rowcount
