"""Tests for the notification fan-out policy (pure function)."""

import pytest

from peertutor.core.notification_policy import notifications_for
from peertutor.schemas.notification import (
    CommunityMembersAdded,
    ConnectionAccepted,
    ConnectionRequested,
    EventCreated,
    EventReminderDue,
    MatchFound,
    MessageSent,
)


def test_connection_request_notifies_recipient():
    drafts = notifications_for(ConnectionRequested(
        connection_id="c1", from_user_id="alice", from_name="Alice", to_user_id="bob"
    ))

    assert len(drafts) == 1
    draft = drafts[0]
    assert draft.recipient_id == "bob"
    assert draft.type == "connection_request"
    assert draft.title == "New Connection Request"
    assert draft.body == "Alice wants to connect with you"
    assert draft.payload.from_user_id == "alice"
    assert draft.payload.connection_id == "c1"


def test_connection_request_without_name_uses_fallback():
    drafts = notifications_for(ConnectionRequested(
        connection_id="c1", from_user_id="alice", to_user_id="bob"
    ))
    assert drafts[0].body == "Someone wants to connect with you"


def test_connection_accepted_notifies_initiator():
    drafts = notifications_for(ConnectionAccepted(
        connection_id="c1", initiator_id="alice", accepter_id="bob", accepter_name="Bob"
    ))

    assert [d.recipient_id for d in drafts] == ["alice"]
    assert drafts[0].title == "Connection Accepted"
    assert drafts[0].body == "Bob accepted your connection request"
    assert drafts[0].payload.user_id == "bob"


def test_message_notifies_everyone_but_sender():
    drafts = notifications_for(MessageSent(
        chat_id="chat1",
        sender_id="alice",
        sender_name="Alice",
        participants=["alice", "bob", "carol"],
        text="hi",
    ))

    assert [d.recipient_id for d in drafts] == ["bob", "carol"]
    assert all(d.title == "Alice" and d.body == "hi" for d in drafts)
    assert drafts[0].payload.chat_id == "chat1"


def test_message_preview_is_truncated():
    long_text = "x" * 80
    drafts = notifications_for(MessageSent(
        chat_id="chat1", sender_id="alice", participants=["alice", "bob"], text=long_text
    ))

    assert drafts[0].title == "Someone"
    assert drafts[0].body == "x" * 50 + "..."


def test_message_preview_at_limit_is_kept_whole():
    text = "y" * 50
    drafts = notifications_for(MessageSent(
        chat_id="chat1", sender_id="alice", participants=["alice", "bob"], text=text
    ))
    assert drafts[0].body == text


def test_community_event_notifies_members_except_creator():
    drafts = notifications_for(EventCreated(
        event_id="e1",
        title="Calculus review",
        creator_id="alice",
        creator_name="Alice",
        community_id="com1",
        community_members=["alice", "bob", "carol", "bob"],
    ))

    assert [d.recipient_id for d in drafts] == ["bob", "carol"]
    assert drafts[0].title == "New Event"
    assert drafts[0].body == 'Alice created "Calculus review"'
    assert drafts[0].payload.created_by == "alice"


def test_personal_event_notifies_nobody():
    drafts = notifications_for(EventCreated(
        event_id="e1", title="Solo study", creator_id="alice", community_members=["bob"]
    ))
    assert drafts == []


def test_event_reminder_notifies_all_participants():
    drafts = notifications_for(EventReminderDue(
        event_id="e1", title="Calculus review", participants=["alice", "bob"]
    ))

    assert [d.recipient_id for d in drafts] == ["alice", "bob"]
    assert drafts[0].title == "Event Starting Soon"
    assert drafts[0].body == '"Calculus review" starts in less than 1 hour'


def test_community_invite_targets_only_new_members():
    drafts = notifications_for(CommunityMembersAdded(
        community_id="com1",
        community_name="Math Club",
        added_by_name="Alice",
        members_before=["alice"],
        members_after=["alice", "bob", "carol"],
    ))

    assert {d.recipient_id for d in drafts} == {"bob", "carol"}
    assert drafts[0].title == "Community Invitation"
    assert drafts[0].body == 'Alice added you to "Math Club"'
    assert drafts[0].payload.community_id == "com1"


def test_community_invite_with_no_new_members():
    drafts = notifications_for(CommunityMembersAdded(
        community_id="com1",
        community_name="Math Club",
        members_before=["alice", "bob"],
        members_after=["alice", "bob"],
    ))
    assert drafts == []


def test_match_found_notifies_requester():
    drafts = notifications_for(MatchFound(
        user_id="alice", matched_user_id="bob", matched_name="Bob", score=85
    ))

    assert [d.recipient_id for d in drafts] == ["alice"]
    assert drafts[0].title == "New Match Found!"
    assert drafts[0].body == "You have a 85% match with Bob"
    assert drafts[0].payload.score == 85


def test_match_found_without_name():
    drafts = notifications_for(MatchFound(user_id="alice", matched_user_id="bob", score=40))
    assert drafts[0].body == "You have a 40% match with someone"


def test_unknown_event_is_rejected():
    with pytest.raises(TypeError):
        notifications_for(object())
