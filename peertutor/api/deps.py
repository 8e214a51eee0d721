"""Shared route dependencies: caller identity and service handles."""

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.db.database import get_db
from peertutor.errors import PermissionDeniedError
from peertutor.models.user import User
from peertutor.services.admin_service import AdminService
from peertutor.services.notification_service import NotificationService
from peertutor.services.object_store import ObjectStore
from peertutor.services.user_service import UserService


async def get_current_user(
    x_user_id: str = Header(..., description="Identity resolved by the auth provider"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """The caller. Authentication happens upstream; banned users are refused."""
    user = await UserService.get_user(db, x_user_id)
    if user.is_banned:
        raise PermissionDeniedError("This account has been disabled. Please contact support.")
    return user


async def get_admin_user(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> User:
    return await AdminService.require_admin(db, user.id)


def get_notification_service(request: Request) -> NotificationService:
    """Built once in the application lifespan."""
    return request.app.state.notification_service


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store
