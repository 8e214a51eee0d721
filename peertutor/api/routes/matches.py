"""Match endpoints - ranked peers, topic recommendations and match notifications."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.api.deps import get_current_user, get_notification_service
from peertutor.config import settings
from peertutor.core.matching import ScoredProfile
from peertutor.db.database import get_db
from peertutor.models.user import User
from peertutor.schemas.match import MatchNotifyResponse, MatchOut
from peertutor.schemas.user import UserPublic
from peertutor.services.match_service import MatchService
from peertutor.services.notification_service import NotificationService

router = APIRouter()


def _to_out(matches: list[ScoredProfile]) -> list[MatchOut]:
    return [MatchOut(user=UserPublic.model_validate(m.profile), score=m.score) for m in matches]


@router.get("/", response_model=list[MatchOut])
async def get_matches(
    limit: int = Query(default=settings.DEFAULT_MAX_MATCHES, ge=0, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Best matches for the caller, highest compatibility first."""
    return _to_out(await MatchService.matches_for(db, user.id, limit))


@router.get("/topics/{topic_id}", response_model=list[MatchOut])
async def get_topic_recommendations(
    topic_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    """Peers who can teach a topic, ranked by overall compatibility."""
    return _to_out(await MatchService.recommendations_for(db, user.id, topic_id))


@router.post("/{matched_user_id}/notify", response_model=MatchNotifyResponse)
async def notify_match(
    matched_user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    score = await MatchService.notify_match(db, notifier, user.id, matched_user_id)
    await notifier.commit_and_publish(db)
    return MatchNotifyResponse(matched_user_id=matched_user_id, score=score)
