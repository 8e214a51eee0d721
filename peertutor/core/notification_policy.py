"""Notification fan-out policy - who hears about a domain event, and what they see.

Pure: takes an already-resolved domain event, returns one draft per recipient.
Persistence and push delivery live in ``services.notification_service``.
"""

from peertutor.schemas.notification import (
    CommunityInvitePayload,
    CommunityMembersAdded,
    ConnectionAccepted,
    ConnectionAcceptedPayload,
    ConnectionRequested,
    ConnectionRequestPayload,
    DomainEvent,
    EventCreated,
    EventReminderDue,
    EventReminderPayload,
    MatchFound,
    MessageSent,
    NewEventPayload,
    NewMatchPayload,
    NewMessagePayload,
    NotificationDraft,
)

MESSAGE_PREVIEW_LENGTH = 50


def _name(name: str | None, fallback: str = "Someone") -> str:
    return name or fallback


def _preview(text: str) -> str:
    if len(text) > MESSAGE_PREVIEW_LENGTH:
        return text[:MESSAGE_PREVIEW_LENGTH] + "..."
    return text


def _unique(ids) -> list[str]:
    return list(dict.fromkeys(ids))


def _connection_requested(event: ConnectionRequested) -> list[NotificationDraft]:
    return [NotificationDraft(
        recipient_id=event.to_user_id,
        title="New Connection Request",
        body=f"{_name(event.from_name)} wants to connect with you",
        payload=ConnectionRequestPayload(
            from_user_id=event.from_user_id, connection_id=event.connection_id
        ),
    )]


def _connection_accepted(event: ConnectionAccepted) -> list[NotificationDraft]:
    return [NotificationDraft(
        recipient_id=event.initiator_id,
        title="Connection Accepted",
        body=f"{_name(event.accepter_name)} accepted your connection request",
        payload=ConnectionAcceptedPayload(
            user_id=event.accepter_id, connection_id=event.connection_id
        ),
    )]


def _message_sent(event: MessageSent) -> list[NotificationDraft]:
    payload = NewMessagePayload(chat_id=event.chat_id, sender_id=event.sender_id)
    return [
        NotificationDraft(
            recipient_id=recipient,
            title=_name(event.sender_name),
            body=_preview(event.text),
            payload=payload,
        )
        for recipient in _unique(event.participants)
        if recipient != event.sender_id
    ]


def _event_created(event: EventCreated) -> list[NotificationDraft]:
    # Only community events fan out; personal events notify nobody.
    if not event.community_id:
        return []
    payload = NewEventPayload(event_id=event.event_id, created_by=event.creator_id)
    return [
        NotificationDraft(
            recipient_id=member,
            title="New Event",
            body=f'{_name(event.creator_name)} created "{event.title}"',
            payload=payload,
        )
        for member in _unique(event.community_members)
        if member != event.creator_id
    ]


def _event_reminder(event: EventReminderDue) -> list[NotificationDraft]:
    payload = EventReminderPayload(event_id=event.event_id)
    return [
        NotificationDraft(
            recipient_id=participant,
            title="Event Starting Soon",
            body=f'"{event.title}" starts in less than 1 hour',
            payload=payload,
        )
        for participant in _unique(event.participants)
    ]


def _community_members_added(event: CommunityMembersAdded) -> list[NotificationDraft]:
    before = set(event.members_before)
    payload = CommunityInvitePayload(community_id=event.community_id)
    return [
        NotificationDraft(
            recipient_id=member,
            title="Community Invitation",
            body=f'{_name(event.added_by_name)} added you to "{event.community_name}"',
            payload=payload,
        )
        for member in _unique(event.members_after)
        if member not in before
    ]


def _match_found(event: MatchFound) -> list[NotificationDraft]:
    return [NotificationDraft(
        recipient_id=event.user_id,
        title="New Match Found!",
        body=f"You have a {event.score}% match with {_name(event.matched_name, 'someone')}",
        payload=NewMatchPayload(matched_user_id=event.matched_user_id, score=event.score),
    )]


_POLICIES = {
    ConnectionRequested: _connection_requested,
    ConnectionAccepted: _connection_accepted,
    MessageSent: _message_sent,
    EventCreated: _event_created,
    EventReminderDue: _event_reminder,
    CommunityMembersAdded: _community_members_added,
    MatchFound: _match_found,
}


def notifications_for(event: DomainEvent) -> list[NotificationDraft]:
    """Fan a domain event out into per-recipient notification drafts."""
    policy = _POLICIES.get(type(event))
    if policy is None:
        raise TypeError(f"No notification policy for {type(event).__name__}")
    return policy(event)
