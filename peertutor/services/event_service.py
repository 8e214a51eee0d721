"""Event service - tutoring sessions, RSVPs and reminder selection."""

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.config import settings
from peertutor.db.database import to_naive_utc, utcnow
from peertutor.errors import (
    EventFullError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    read_retry,
)
from peertutor.models.event import Event
from peertutor.services.community_service import CommunityService

logger = logging.getLogger(__name__)

UPCOMING_LIMIT = 50


class EventService:
    @staticmethod
    async def create_event(
        db: AsyncSession,
        creator_id: str,
        title: str,
        start_time: datetime,
        end_time: datetime,
        description: str | None = None,
        topic: str | None = None,
        community_id: str | None = None,
        max_participants: int | None = None,
    ) -> Event:
        """Create an event; the creator is its first participant."""
        start_time, end_time = to_naive_utc(start_time), to_naive_utc(end_time)
        if start_time <= utcnow():
            raise ValidationError("Date must be in the future")
        if end_time <= start_time:
            raise ValidationError("End time must be after start time")
        if community_id is not None:
            community = await CommunityService.get_community(db, community_id)
            if creator_id not in (community.members or []):
                raise PermissionDeniedError("Only community members can create its events")

        event = Event(
            title=title.strip(),
            description=description,
            topic=topic,
            community_id=community_id,
            created_by=creator_id,
            start_time=start_time,
            end_time=end_time,
            participants=[creator_id],
            max_participants=max_participants,
        )
        db.add(event)
        await db.flush()
        logger.info("Event %s created by %s", event.id, creator_id)
        return event

    @staticmethod
    async def get_event(db: AsyncSession, event_id: str) -> Event:
        event = await read_retry(lambda: db.get(Event, event_id))
        if event is None:
            raise NotFoundError("Event not found")
        return event

    @staticmethod
    async def upcoming_events(db: AsyncSession, now: datetime | None = None) -> list[Event]:
        now = now or utcnow()

        async def _read():
            result = await db.execute(
                select(Event)
                .where(Event.start_time >= now)
                .order_by(Event.start_time)
                .limit(UPCOMING_LIMIT)
            )
            return list(result.scalars().all())

        return await read_retry(_read)

    @staticmethod
    async def user_events(db: AsyncSession, user_id: str) -> list[Event]:
        async def _read():
            result = await db.execute(select(Event).order_by(Event.start_time))
            return list(result.scalars().all())

        events = await read_retry(_read)
        return [e for e in events if user_id in (e.participants or [])]

    @staticmethod
    async def join_event(db: AsyncSession, event_id: str, user_id: str) -> Event:
        event = await EventService.get_event(db, event_id)
        if user_id in (event.participants or []):
            return event
        if event.is_full:
            raise EventFullError("Event is full")
        event.participants = [*(event.participants or []), user_id]
        await db.flush()
        return event

    @staticmethod
    async def leave_event(db: AsyncSession, event_id: str, user_id: str) -> Event:
        event = await EventService.get_event(db, event_id)
        event.participants = [p for p in (event.participants or []) if p != user_id]
        await db.flush()
        return event

    @staticmethod
    async def delete_event(db: AsyncSession, event_id: str, actor_id: str) -> None:
        event = await EventService.get_event(db, event_id)
        if event.created_by != actor_id:
            raise PermissionDeniedError("Only the creator can delete this event")
        await db.delete(event)
        await db.flush()

    @staticmethod
    async def due_for_reminder(
        db: AsyncSession,
        now: datetime | None = None,
        window_minutes: int = settings.EVENT_REMINDER_WINDOW_MINUTES,
    ) -> list[Event]:
        """Events starting within the window that have not been reminded yet."""
        now = now or utcnow()
        result = await db.execute(
            select(Event).where(
                Event.start_time >= now,
                Event.start_time <= now + timedelta(minutes=window_minutes),
                Event.reminder_sent_at.is_(None),
            )
        )
        return list(result.scalars().all())


event_service = EventService()
