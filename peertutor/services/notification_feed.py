"""Real-time notification feed - Redis pub/sub, one channel per recipient."""

import asyncio
import contextlib
import json
import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

FeedCallback = Callable[[dict], Awaitable[None]]


class Subscription:
    """Handle returned by ``NotificationFeed.subscribe``; ``cancel()`` stops delivery."""

    def __init__(self, pubsub, task: asyncio.Task):
        self._pubsub = pubsub
        self._task = task

    @property
    def active(self) -> bool:
        return not self._task.done()

    async def cancel(self) -> None:
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        await self._pubsub.unsubscribe()
        await self._pubsub.aclose()


class NotificationFeed:
    def __init__(self, redis: aioredis.Redis):
        self.redis = redis

    def _channel(self, user_id: str) -> str:
        return f"notifications:{user_id}"

    async def publish(self, user_id: str, message: dict) -> None:
        """Push one change to the recipient's subscribers. Best effort."""
        try:
            await self.redis.publish(self._channel(user_id), json.dumps(message, default=str))
        except RedisError as e:
            logger.warning("Feed publish failed for user %s: %s", user_id, e)

    async def subscribe(self, user_id: str, callback: FeedCallback) -> Subscription:
        """Invoke ``callback`` for every notification published to ``user_id``."""
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(self._channel(user_id))
        task = asyncio.create_task(self._pump(pubsub, callback))
        return Subscription(pubsub, task)

    async def _pump(self, pubsub, callback: FeedCallback) -> None:
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            await callback(json.loads(message["data"]))
