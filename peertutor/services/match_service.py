"""Match service - runs the matcher over the discoverable user pool."""

from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.config import settings
from peertutor.core.matching import (
    ScoredProfile,
    compatibility_score,
    find_matches,
    topic_recommendations,
)
from peertutor.errors import ValidationError
from peertutor.schemas.notification import MatchFound
from peertutor.services.notification_service import NotificationService
from peertutor.services.user_service import UserService


class MatchService:
    @staticmethod
    async def matches_for(
        db: AsyncSession, user_id: str, max_results: int = settings.DEFAULT_MAX_MATCHES
    ) -> list[ScoredProfile]:
        me = await UserService.get_user(db, user_id)
        pool = await UserService.discoverable_users(db)
        return find_matches(me, pool, max_results)

    @staticmethod
    async def recommendations_for(
        db: AsyncSession, user_id: str, topic_id: str
    ) -> list[ScoredProfile]:
        me = await UserService.get_user(db, user_id)
        pool = await UserService.discoverable_users(db)
        return topic_recommendations(me, pool, topic_id)

    @staticmethod
    async def notify_match(
        db: AsyncSession, notifier: NotificationService, user_id: str, matched_user_id: str
    ) -> int:
        """Self-directed "new match" notification; returns the score."""
        if user_id == matched_user_id:
            raise ValidationError("You cannot match with yourself")
        me = await UserService.get_user(db, user_id)
        matched = await UserService.get_user(db, matched_user_id)
        score = compatibility_score(me, matched)
        await notifier.dispatch(db, MatchFound(
            user_id=user_id,
            matched_user_id=matched_user_id,
            matched_name=matched.display_name,
            score=score,
        ))
        return score


match_service = MatchService()
