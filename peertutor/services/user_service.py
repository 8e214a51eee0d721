"""User service - profiles, blocking, topic search, discovery listing and streaks."""

import logging
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.db.database import utcnow
from peertutor.errors import NotFoundError, ValidationError, read_retry
from peertutor.models.user import NOTIFICATION_SETTING_DEFAULTS, STATUS_ACTIVE, User
from peertutor.schemas.user import NotificationSettingsUpdate, ProfileUpdate
from peertutor.services.pagination import newest_first_page, split_page
from peertutor.services.topic_service import topic_service

logger = logging.getLogger(__name__)


class UserService:
    @staticmethod
    async def create_user(db: AsyncSession, display_name: str, email: str) -> User:
        """Signup record: empty skills, needs and block list."""
        user = User(display_name=display_name, email=email.lower())
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            raise ValidationError("This email is already registered") from e
        logger.info("Created user %s", user.id)
        return user

    @staticmethod
    async def get_user(db: AsyncSession, user_id: str) -> User:
        user = await read_retry(lambda: db.get(User, user_id))
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def update_profile(db: AsyncSession, user_id: str, data: ProfileUpdate) -> User:
        """Apply only the fields that were provided."""
        user = await UserService.get_user(db, user_id)
        update_data = data.model_dump(exclude_unset=True)

        for field in ("display_name", "skills", "show_in_discover"):
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"{field} cannot be empty")
        if "skills" in update_data:
            update_data["skills"] = topic_service.validate_topics(update_data["skills"], "Skills")
        if "needs" in update_data:
            update_data["needs"] = topic_service.validate_topics(update_data["needs"] or [], "Needs")

        for field, value in update_data.items():
            setattr(user, field, value)

        await db.flush()
        return user

    @staticmethod
    async def register_push_token(db: AsyncSession, user_id: str, token: str) -> None:
        user = await UserService.get_user(db, user_id)
        user.push_token = token
        await db.flush()

    @staticmethod
    async def get_notification_settings(db: AsyncSession, user_id: str) -> dict:
        user = await UserService.get_user(db, user_id)
        return {**NOTIFICATION_SETTING_DEFAULTS, **(user.notification_settings or {})}

    @staticmethod
    async def update_notification_settings(
        db: AsyncSession, user_id: str, data: NotificationSettingsUpdate
    ) -> dict:
        user = await UserService.get_user(db, user_id)
        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        user.notification_settings = {
            **NOTIFICATION_SETTING_DEFAULTS, **(user.notification_settings or {}), **changes
        }
        await db.flush()
        logger.info("Updated notification settings for %s: %s", user_id, sorted(changes))
        return user.notification_settings

    @staticmethod
    async def record_login(db: AsyncSession, user_id: str) -> int:
        """Stamp the login time and advance the daily streak."""
        user = await UserService.get_user(db, user_id)
        user.last_login_at = utcnow()
        return await UserService.update_streak(db, user_id)

    @staticmethod
    async def update_streak(db: AsyncSession, user_id: str, today: date | None = None) -> int:
        """Same day: unchanged. Day after the last activity: +1. Otherwise: back to 1."""
        user = await UserService.get_user(db, user_id)
        today = today or utcnow().date()
        last = user.streak_last_active

        if last == today:
            return user.streak_count
        if last is not None and last == today - timedelta(days=1):
            user.streak_count += 1
        else:
            user.streak_count = 1
        user.streak_last_active = today
        await db.flush()
        return user.streak_count

    @staticmethod
    async def block_user(db: AsyncSession, user_id: str, blocked_id: str) -> list[str]:
        if user_id == blocked_id:
            raise ValidationError("You cannot block yourself")
        user = await UserService.get_user(db, user_id)
        await UserService.get_user(db, blocked_id)

        if blocked_id not in (user.blocked or []):
            user.blocked = [*(user.blocked or []), blocked_id]
            await db.flush()
            logger.info("User %s blocked %s", user_id, blocked_id)
        return user.blocked

    @staticmethod
    async def unblock_user(db: AsyncSession, user_id: str, blocked_id: str) -> list[str]:
        user = await UserService.get_user(db, user_id)
        user.blocked = [b for b in (user.blocked or []) if b != blocked_id]
        await db.flush()
        return user.blocked

    @staticmethod
    async def discoverable_users(db: AsyncSession) -> list[User]:
        """Candidate pool for matching: active users who opted into discovery."""
        async def _read():
            result = await db.execute(
                select(User)
                .where(User.status == STATUS_ACTIVE, User.show_in_discover.is_(True))
                .order_by(User.created_at)
            )
            return list(result.scalars().all())

        return await read_retry(_read)

    @staticmethod
    async def search_by_topic(db: AsyncSession, topic_id: str, limit: int = 20) -> list[User]:
        """Users who teach or want to learn a topic; teachers first, no duplicates."""
        users = await UserService.discoverable_users(db)
        teachers = [u for u in users if topic_id in (u.skills or [])]
        learners = [u for u in users if topic_id in (u.needs or []) and u not in teachers]
        return teachers[:limit] + learners[:limit]

    @staticmethod
    async def list_users(
        db: AsyncSession, limit: int = 20, page_token: str | None = None
    ) -> tuple[list[User], str | None]:
        """Discovery listing, newest first, resumed with the returned token."""
        stmt = newest_first_page(
            select(User).where(User.status == STATUS_ACTIVE, User.show_in_discover.is_(True)),
            User,
            limit,
            page_token,
        )

        async def _read():
            return list((await db.execute(stmt)).scalars().all())

        rows = await read_retry(_read)
        return split_page(rows, limit)


user_service = UserService()
