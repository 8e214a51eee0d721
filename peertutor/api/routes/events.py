"""Event endpoints - create, browse, RSVP and delete tutoring events."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.api.deps import get_current_user, get_notification_service
from peertutor.db.database import get_db
from peertutor.models.user import User
from peertutor.schemas.event import EventCreate, EventOut
from peertutor.services import triggers
from peertutor.services.event_service import EventService
from peertutor.services.notification_service import NotificationService

router = APIRouter()


@router.post("/", response_model=EventOut, status_code=201)
async def create_event(
    data: EventCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    event = await EventService.create_event(
        db,
        user.id,
        title=data.title,
        start_time=data.start_time,
        end_time=data.end_time,
        description=data.description,
        topic=data.topic,
        community_id=data.community_id,
        max_participants=data.max_participants,
    )
    await triggers.on_event_created(db, notifier, event)
    await notifier.commit_and_publish(db)
    return event


@router.get("/", response_model=list[EventOut])
async def upcoming_events(_: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await EventService.upcoming_events(db)


@router.get("/mine", response_model=list[EventOut])
async def my_events(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await EventService.user_events(db, user.id)


@router.get("/{event_id}", response_model=EventOut)
async def get_event(
    event_id: str, _: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await EventService.get_event(db, event_id)


@router.post("/{event_id}/join", response_model=EventOut)
async def join_event(
    event_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await EventService.join_event(db, event_id, user.id)


@router.post("/{event_id}/leave", response_model=EventOut)
async def leave_event(
    event_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await EventService.leave_event(db, event_id, user.id)


@router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    await EventService.delete_event(db, event_id, user.id)
