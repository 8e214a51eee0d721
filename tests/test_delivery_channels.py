"""Tests for the push channel, object store, pub/sub feed, read retries and the scheduler."""

import json
from datetime import timedelta

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

from peertutor import errors, scheduler
from peertutor.db.database import utcnow
from peertutor.errors import TransientBackendError, read_retry
from peertutor.services.event_service import EventService
from peertutor.services.notification_feed import NotificationFeed
from peertutor.services.object_store import HttpObjectStore
from peertutor.services.push_service import ExpoPushChannel
from conftest import test_session_factory


def expo(handler) -> ExpoPushChannel:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ExpoPushChannel(url="https://push.test/send", client=client)


# ---------------------------------------------------------------------------
# Expo push
# ---------------------------------------------------------------------------


async def test_push_posts_expo_message():
    seen = []

    def handler(request: httpx.Request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"data": {"status": "ok", "id": "ticket-1"}})

    channel = expo(handler)
    ok = await channel.send("ExponentPushToken[x]", "Hi", "there", {"type": "new_match"})
    await channel.close()

    assert ok is True
    assert seen[0]["to"] == "ExponentPushToken[x]"
    assert seen[0]["title"] == "Hi"
    assert seen[0]["data"] == {"type": "new_match"}


async def test_push_error_ticket_reported_not_raised():
    channel = expo(lambda request: httpx.Response(
        200, json={"data": {"status": "error", "message": "DeviceNotRegistered"}}
    ))
    assert await channel.send("ExponentPushToken[x]", "Hi", "there", {}) is False


async def test_push_http_failure_reported_not_raised():
    channel = expo(lambda request: httpx.Response(500))
    assert await channel.send("ExponentPushToken[x]", "Hi", "there", {}) is False


# ---------------------------------------------------------------------------
# Object store
# ---------------------------------------------------------------------------


def bucket(handler) -> HttpObjectStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpObjectStore(
        base_url="https://bucket.test/files", public_url="https://cdn.test", client=client
    )


async def test_store_upload_puts_bytes_and_returns_public_url():
    seen = []

    def handler(request: httpx.Request):
        seen.append(
            (request.method, str(request.url), request.headers["content-type"], request.content)
        )
        return httpx.Response(200)

    store = bucket(handler)
    url = await store.upload("community-files/c1/my notes.pdf", b"data", "application/pdf")
    await store.close()

    assert url == "https://cdn.test/community-files/c1/my%20notes.pdf"
    assert seen == [(
        "PUT",
        "https://bucket.test/files/community-files/c1/my%20notes.pdf",
        "application/pdf",
        b"data",
    )]


async def test_store_upload_failure_raises_transient():
    store = bucket(lambda request: httpx.Response(500))
    with pytest.raises(TransientBackendError):
        await store.upload("a.pdf", b"data", "application/pdf")


async def test_store_delete_treats_missing_as_done():
    methods = []

    def handler(request: httpx.Request):
        methods.append(request.method)
        return httpx.Response(404)

    await bucket(handler).delete("a.pdf")
    assert methods == ["DELETE"]

    with pytest.raises(TransientBackendError):
        await bucket(lambda request: httpx.Response(503)).delete("a.pdf")


# ---------------------------------------------------------------------------
# Redis feed
# ---------------------------------------------------------------------------


class FakeRedis:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.published = []

    async def publish(self, channel, payload):
        if self.fail:
            raise RedisConnectionError("redis down")
        self.published.append((channel, json.loads(payload)))


async def test_feed_publishes_to_recipient_channel():
    redis = FakeRedis()
    await NotificationFeed(redis).publish("bob", {"id": "n1", "title": "Hi"})
    assert redis.published == [("notifications:bob", {"id": "n1", "title": "Hi"})]


async def test_feed_publish_failure_is_swallowed():
    await NotificationFeed(FakeRedis(fail=True)).publish("bob", {"id": "n1"})


# ---------------------------------------------------------------------------
# read_retry
# ---------------------------------------------------------------------------


@pytest.fixture
def no_sleep(monkeypatch):
    delays = []

    async def _sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(errors.asyncio, "sleep", _sleep)
    return delays


async def test_read_retry_recovers(no_sleep):
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise OperationalError("SELECT 1", {}, Exception("gone away"))
        return "ok"

    assert await read_retry(flaky) == "ok"
    assert no_sleep == [0.2, 0.4]


async def test_read_retry_gives_up(no_sleep):
    async def down():
        raise RedisConnectionError("refused")

    with pytest.raises(TransientBackendError):
        await read_retry(down, attempts=2)
    assert len(no_sleep) == 1


async def test_read_retry_does_not_retry_other_errors(no_sleep):
    async def broken():
        raise KeyError("nope")

    with pytest.raises(KeyError):
        await read_retry(broken)
    assert no_sleep == []


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


def test_scheduler_registers_both_jobs(notifier):
    jobs = scheduler.create_scheduler(notifier).get_jobs()
    assert {job.id for job in jobs} == {"event_reminders", "notification_retention"}


async def test_reminder_job_publishes_after_commit(db, notifier, feed, make_user, monkeypatch):
    alice = await make_user("Alice")
    start = utcnow() + timedelta(minutes=20)
    event = await EventService.create_event(
        db, alice.id, "Stats drop-in", start, start + timedelta(hours=1)
    )
    await db.commit()
    monkeypatch.setattr(scheduler, "async_session", test_session_factory)

    await scheduler.run_event_reminders(notifier)

    assert [user_id for user_id, _ in feed.published] == [alice.id]
    assert feed.published[0][1]["data"] == {"type": "event_reminder", "event_id": event.id}
