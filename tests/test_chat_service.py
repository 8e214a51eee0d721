"""Tests for direct chats and unread counters."""

import pytest

from peertutor.errors import NotFoundError, PermissionDeniedError, ValidationError
from peertutor.services import triggers
from peertutor.services.chat_service import ChatService


@pytest.fixture
async def chat_setup(db, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    chat = await ChatService.create_or_get_chat(db, alice.id, bob.id)
    return alice, bob, chat


async def test_create_or_get_returns_existing_chat(db, chat_setup):
    alice, bob, chat = chat_setup
    again = await ChatService.create_or_get_chat(db, bob.id, alice.id)
    assert again.id == chat.id


async def test_cannot_chat_with_self(db, make_user):
    alice = await make_user("Alice")
    with pytest.raises(ValidationError):
        await ChatService.create_or_get_chat(db, alice.id, alice.id)


async def test_send_message_bumps_unread_for_others(db, chat_setup):
    alice, bob, chat = chat_setup

    await ChatService.send_message(db, chat.id, alice.id, "  hello  ")
    await ChatService.send_message(db, chat.id, alice.id, "you there?")

    assert chat.last_message == "you there?"
    assert chat.unread_counts[bob.id] == 2
    assert chat.unread_counts[alice.id] == 0
    assert await ChatService.total_unread(db, bob.id) == 2

    await ChatService.mark_chat_read(db, chat.id, bob.id)
    assert await ChatService.total_unread(db, bob.id) == 0


async def test_message_length_limits(db, chat_setup):
    alice, _, chat = chat_setup
    with pytest.raises(ValidationError):
        await ChatService.send_message(db, chat.id, alice.id, "   ")
    with pytest.raises(ValidationError):
        await ChatService.send_message(db, chat.id, alice.id, "x" * 2001)


async def test_outsiders_cannot_read_or_write(db, chat_setup, make_user):
    _, _, chat = chat_setup
    eve = await make_user("Eve")

    with pytest.raises(PermissionDeniedError):
        await ChatService.send_message(db, chat.id, eve.id, "hi")
    with pytest.raises(PermissionDeniedError):
        await ChatService.list_messages(db, chat.id, eve.id)
    with pytest.raises(NotFoundError):
        await ChatService.get_chat(db, "missing", eve.id)


async def test_user_chats_only_lists_own(db, chat_setup, make_user):
    alice, bob, chat = chat_setup
    carol = await make_user("Carol")
    other = await ChatService.create_or_get_chat(db, bob.id, carol.id)

    assert [c.id for c in await ChatService.user_chats(db, alice.id)] == [chat.id]
    assert {c.id for c in await ChatService.user_chats(db, bob.id)} == {chat.id, other.id}


async def test_message_trigger_notifies_recipient(db, notifier, push, chat_setup):
    alice, bob, chat = chat_setup
    bob.push_token = "tok-bob"

    message = await ChatService.send_message(db, chat.id, alice.id, "see you at 5")
    await triggers.on_message_sent(db, notifier, chat, message)

    assert [p["token"] for p in push.sent] == ["tok-bob"]
    assert push.sent[0]["title"] == "Alice"
    assert push.sent[0]["body"] == "see you at 5"
    assert await notifier.unread_count(db, alice.id) == 0
