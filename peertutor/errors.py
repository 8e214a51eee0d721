"""Domain errors raised by the services and mapped to HTTP responses in main.py."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PeerTutorError(Exception):
    """Base class for every error the services raise on purpose."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PeerTutorError):
    """Malformed or out-of-range input."""


class EventFullError(ValidationError):
    pass


class DuplicateRequestError(PeerTutorError):
    status_code = 409


class InvalidTransitionError(PeerTutorError):
    """A connection request is not in the state the operation requires."""

    status_code = 409


class NotFoundError(PeerTutorError):
    status_code = 404


class PermissionDeniedError(PeerTutorError):
    status_code = 403


class TransientBackendError(PeerTutorError):
    """Database or Redis unavailable."""

    status_code = 503


async def read_retry(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 3,
    base_delay: float = 0.2,
) -> T:
    """Run an idempotent read, retrying transient backend failures with backoff.

    Writes must not go through here: they surface immediately.
    """
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except (OperationalError, RedisConnectionError) as e:
            if attempt == attempts:
                raise TransientBackendError("Service unavailable. Please try again later.") from e
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning("Transient read failure (attempt %d/%d), retrying in %.1fs: %s",
                           attempt, attempts, delay, e)
            await asyncio.sleep(delay)
    raise AssertionError("unreachable")
