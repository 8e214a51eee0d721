"""User endpoints - signup record, profile editing, blocking and discovery."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.api.deps import get_current_user
from peertutor.db.database import get_db
from peertutor.models.user import User
from peertutor.schemas.file import FileOut
from peertutor.schemas.notification import PushTokenIn
from peertutor.schemas.user import (
    NotificationSettings,
    NotificationSettingsUpdate,
    ProfileUpdate,
    StreakStatus,
    UserCreate,
    UserPage,
    UserPublic,
    UserState,
)
from peertutor.services.file_service import FileService
from peertutor.services.user_service import UserService

router = APIRouter()


@router.post("/", response_model=UserState, status_code=201)
async def create_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Create the profile record for a freshly signed-up identity."""
    return await UserService.create_user(db, data.display_name, data.email)


@router.get("/", response_model=UserPage)
async def list_users(
    limit: int = Query(default=20, ge=1, le=100),
    page_token: str | None = None,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    users, next_token = await UserService.list_users(db, limit, page_token)
    return UserPage(
        items=[UserPublic.model_validate(u) for u in users], next_page_token=next_token
    )


@router.get("/search", response_model=list[UserPublic])
async def search_users(
    topic: str,
    limit: int = Query(default=20, ge=1, le=100),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.search_by_topic(db, topic, limit)


@router.get("/me", response_model=UserState)
async def get_me(user: User = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=UserState)
async def update_me(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update only the provided profile fields."""
    return await UserService.update_profile(db, user.id, data)


@router.post("/me/streak", response_model=StreakStatus)
async def touch_streak(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    count = await UserService.record_login(db, user.id)
    return StreakStatus(count=count, last_active=user.streak_last_active)


@router.put("/me/push-token", status_code=204)
async def register_push_token(
    data: PushTokenIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await UserService.register_push_token(db, user.id, data.token)


@router.get("/me/notification-settings", response_model=NotificationSettings)
async def get_notification_settings(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await UserService.get_notification_settings(db, user.id)


@router.put("/me/notification-settings", response_model=NotificationSettings)
async def update_notification_settings(
    data: NotificationSettingsUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change the given push toggles; in-app notifications are always kept."""
    return await UserService.update_notification_settings(db, user.id, data)


@router.get("/me/files", response_model=list[FileOut])
async def my_files(
    limit: int = Query(default=50, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Files the caller shared, across every community."""
    return await FileService.user_files(db, user.id, limit)


@router.post("/me/blocked/{blocked_id}", response_model=list[str])
async def block_user(
    blocked_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await UserService.block_user(db, user.id, blocked_id)


@router.delete("/me/blocked/{blocked_id}", response_model=list[str])
async def unblock_user(
    blocked_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await UserService.unblock_user(db, user.id, blocked_id)


@router.get("/{user_id}", response_model=UserPublic)
async def get_user(
    user_id: str, _: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await UserService.get_user(db, user_id)
