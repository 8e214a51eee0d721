"""Chat service - direct conversations, messages and unread counters."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.config import settings
from peertutor.db.database import utcnow
from peertutor.errors import NotFoundError, PermissionDeniedError, ValidationError, read_retry
from peertutor.models.chat import Chat, ChatMessage

logger = logging.getLogger(__name__)

MESSAGE_BATCH_SIZE = 50


class ChatService:
    @staticmethod
    async def _all_chats(db: AsyncSession) -> list[Chat]:
        async def _read():
            return list((await db.execute(select(Chat))).scalars().all())

        return await read_retry(_read)

    @staticmethod
    async def create_or_get_chat(db: AsyncSession, user_a: str, user_b: str) -> Chat:
        if user_a == user_b:
            raise ValidationError("You cannot chat with yourself")
        for chat in await ChatService._all_chats(db):
            if set(chat.participants or []) == {user_a, user_b}:
                return chat

        chat = Chat(participants=[user_a, user_b], unread_counts={user_a: 0, user_b: 0})
        db.add(chat)
        await db.flush()
        return chat

    @staticmethod
    async def get_chat(db: AsyncSession, chat_id: str, user_id: str) -> Chat:
        chat = await read_retry(lambda: db.get(Chat, chat_id))
        if chat is None:
            raise NotFoundError("Chat not found")
        if user_id not in (chat.participants or []):
            raise PermissionDeniedError("Not a participant of this chat")
        return chat

    @staticmethod
    async def send_message(db: AsyncSession, chat_id: str, sender_id: str, text: str) -> ChatMessage:
        """Store a message and bump every other participant's unread count."""
        chat = await ChatService.get_chat(db, chat_id, sender_id)

        text = (text or "").strip()
        if not text:
            raise ValidationError("Message is required")
        if len(text) > settings.MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message must be less than {settings.MAX_MESSAGE_LENGTH} characters"
            )

        message = ChatMessage(chat_id=chat_id, sender_id=sender_id, text=text)
        db.add(message)

        unread = dict(chat.unread_counts or {})
        for participant in chat.participants:
            if participant != sender_id:
                unread[participant] = unread.get(participant, 0) + 1
        chat.unread_counts = unread
        chat.last_message = text
        chat.last_message_time = utcnow()
        await db.flush()
        return message

    @staticmethod
    async def list_messages(
        db: AsyncSession, chat_id: str, user_id: str, limit: int = MESSAGE_BATCH_SIZE
    ) -> list[ChatMessage]:
        """The latest ``limit`` messages, oldest first."""
        await ChatService.get_chat(db, chat_id, user_id)
        result = await db.execute(
            select(ChatMessage)
            .where(ChatMessage.chat_id == chat_id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))

    @staticmethod
    async def user_chats(db: AsyncSession, user_id: str) -> list[Chat]:
        """Chats the user is part of, most recent activity first."""
        chats = [c for c in await ChatService._all_chats(db) if user_id in (c.participants or [])]
        return sorted(chats, key=lambda c: c.last_message_time or c.created_at, reverse=True)

    @staticmethod
    async def mark_chat_read(db: AsyncSession, chat_id: str, user_id: str) -> None:
        chat = await ChatService.get_chat(db, chat_id, user_id)
        chat.unread_counts = {**(chat.unread_counts or {}), user_id: 0}
        await db.flush()

    @staticmethod
    async def total_unread(db: AsyncSession, user_id: str) -> int:
        chats = await ChatService.user_chats(db, user_id)
        return sum((c.unread_counts or {}).get(user_id, 0) for c in chats)


chat_service = ChatService()
