"""Chat endpoints - direct conversations between peers."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.api.deps import get_current_user, get_notification_service
from peertutor.db.database import get_db
from peertutor.models.user import User
from peertutor.schemas.chat import ChatCreate, ChatMessageIn, ChatMessageOut, ChatOut, ChatUnread
from peertutor.services import triggers
from peertutor.services.chat_service import MESSAGE_BATCH_SIZE, ChatService
from peertutor.services.notification_service import NotificationService
from peertutor.services.user_service import UserService

router = APIRouter()


@router.post("/", response_model=ChatOut)
async def open_chat(
    data: ChatCreate, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    """Return the existing chat with another user, creating it on first contact."""
    await UserService.get_user(db, data.user_id)
    return await ChatService.create_or_get_chat(db, user.id, data.user_id)


@router.get("/", response_model=list[ChatOut])
async def list_chats(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await ChatService.user_chats(db, user.id)


@router.get("/unread", response_model=ChatUnread)
async def total_unread(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return ChatUnread(unread=await ChatService.total_unread(db, user.id))


@router.get("/{chat_id}/messages", response_model=list[ChatMessageOut])
async def list_messages(
    chat_id: str,
    limit: int = Query(default=MESSAGE_BATCH_SIZE, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ChatService.list_messages(db, chat_id, user.id, limit)


@router.post("/{chat_id}/messages", response_model=ChatMessageOut, status_code=201)
async def send_message(
    chat_id: str,
    data: ChatMessageIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    message = await ChatService.send_message(db, chat_id, user.id, data.text)
    chat = await ChatService.get_chat(db, chat_id, user.id)
    await triggers.on_message_sent(db, notifier, chat, message)
    await notifier.commit_and_publish(db)
    return message


@router.post("/{chat_id}/read", status_code=204)
async def mark_read(
    chat_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    await ChatService.mark_chat_read(db, chat_id, user.id)
