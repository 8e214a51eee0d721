"""Connection service - lifecycle of peer-connection requests.

States: absent (no row), pending, accepted. Declining deletes the row, so the
pair can request again later.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.db.database import utcnow
from peertutor.errors import (
    DuplicateRequestError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    read_retry,
)
from peertutor.models.connection import (
    STATUS_ACCEPTED,
    STATUS_PENDING,
    Connection,
    ordered_pair,
)
from peertutor.models.user import User

logger = logging.getLogger(__name__)


class ConnectionService:
    @staticmethod
    async def get_request(db: AsyncSession, request_id: str) -> Connection:
        connection = await db.get(Connection, request_id)
        if connection is None:
            raise NotFoundError("Connection request not found")
        return connection

    @staticmethod
    async def get_request_between(db: AsyncSession, user_a: str, user_b: str) -> Connection | None:
        """The active request for an unordered pair, or None."""
        low, high = ordered_pair(user_a, user_b)

        async def _read():
            result = await db.execute(
                select(Connection).where(Connection.user_low == low, Connection.user_high == high)
            )
            return result.scalar_one_or_none()

        return await read_retry(_read)

    @staticmethod
    async def send_request(db: AsyncSession, from_user_id: str, to_user_id: str) -> Connection:
        """Create a pending request from ``from_user_id`` to ``to_user_id``."""
        if from_user_id == to_user_id:
            raise ValidationError("You cannot connect with yourself")

        sender = await db.get(User, from_user_id)
        recipient = await db.get(User, to_user_id)
        if sender is None or recipient is None:
            raise NotFoundError("User not found")
        if to_user_id in (sender.blocked or []) or from_user_id in (recipient.blocked or []):
            raise ValidationError("You cannot connect with this user")

        if await ConnectionService.get_request_between(db, from_user_id, to_user_id):
            raise DuplicateRequestError("Connection request already sent")

        low, high = ordered_pair(from_user_id, to_user_id)
        connection = Connection(
            user_low=low, user_high=high, initiator_id=from_user_id, status=STATUS_PENDING
        )
        db.add(connection)
        try:
            await db.flush()
        except IntegrityError as e:
            # Lost a race against a concurrent request for the same pair.
            await db.rollback()
            raise DuplicateRequestError("Connection request already sent") from e

        logger.info("Connection request %s: %s -> %s", connection.id, from_user_id, to_user_id)
        return connection

    @staticmethod
    async def accept_request(
        db: AsyncSession, request_id: str, actor_id: str | None = None
    ) -> Connection:
        """pending -> accepted. Only the recipient may accept when an actor is given."""
        connection = await ConnectionService.get_request(db, request_id)
        if connection.status != STATUS_PENDING:
            raise InvalidTransitionError("Connection request is not pending")
        if actor_id is not None and actor_id != connection.recipient_id:
            raise PermissionDeniedError("Only the recipient can accept this request")

        connection.status = STATUS_ACCEPTED
        connection.accepted_at = utcnow()
        await db.flush()
        logger.info("Connection %s accepted", connection.id)
        return connection

    @staticmethod
    async def decline_request(
        db: AsyncSession, request_id: str, actor_id: str | None = None
    ) -> None:
        """pending -> absent. The initiator declining cancels the request."""
        connection = await ConnectionService.get_request(db, request_id)
        if connection.status != STATUS_PENDING:
            raise InvalidTransitionError("Connection request is not pending")
        if actor_id is not None and actor_id not in connection.participants:
            raise PermissionDeniedError("Not your connection request")

        await db.delete(connection)
        await db.flush()
        logger.info("Connection request %s declined", request_id)

    @staticmethod
    async def remove_connection(db: AsyncSession, request_id: str, actor_id: str) -> None:
        """accepted -> absent (disconnect)."""
        connection = await ConnectionService.get_request(db, request_id)
        if connection.status != STATUS_ACCEPTED:
            raise InvalidTransitionError("Users are not connected")
        if actor_id not in connection.participants:
            raise PermissionDeniedError("Not your connection")

        await db.delete(connection)
        await db.flush()
        logger.info("Connection %s removed by %s", request_id, actor_id)

    @staticmethod
    async def _involving(db: AsyncSession, user_id: str, status: str) -> list[Connection]:
        async def _read():
            result = await db.execute(
                select(Connection)
                .where(
                    or_(Connection.user_low == user_id, Connection.user_high == user_id),
                    Connection.status == status,
                )
                .order_by(Connection.created_at.desc())
            )
            return list(result.scalars().all())

        return await read_retry(_read)

    @staticmethod
    async def pending_requests_for(
        db: AsyncSession, user_id: str
    ) -> tuple[list[Connection], list[Connection]]:
        """Pending requests split into (incoming, outgoing)."""
        pending = await ConnectionService._involving(db, user_id, STATUS_PENDING)
        incoming = [c for c in pending if c.initiator_id != user_id]
        outgoing = [c for c in pending if c.initiator_id == user_id]
        return incoming, outgoing

    @staticmethod
    async def accepted_connections_for(db: AsyncSession, user_id: str) -> list[Connection]:
        return await ConnectionService._involving(db, user_id, STATUS_ACCEPTED)

    @staticmethod
    async def are_connected(db: AsyncSession, user_a: str, user_b: str) -> bool:
        connection = await ConnectionService.get_request_between(db, user_a, user_b)
        return connection is not None and connection.status == STATUS_ACCEPTED


connection_service = ConnectionService()
