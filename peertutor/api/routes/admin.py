"""Admin endpoints - moderation reports, bans, roles and statistics."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.api.deps import get_admin_user, get_current_user
from peertutor.db.database import get_db
from peertutor.models.user import User
from peertutor.schemas.admin import (
    BanRequest,
    PlatformStats,
    ReportCreate,
    ReportList,
    ReportOut,
    ReportStatusUpdate,
    UserList,
)
from peertutor.schemas.user import UserState
from peertutor.services.admin_service import AdminService

router = APIRouter()


@router.post("/reports", response_model=ReportOut, status_code=201)
async def create_report(
    data: ReportCreate, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    """Any user can file a report."""
    return await AdminService.create_report(
        db, user.id, data.target_type, data.target_id, data.reason, data.description
    )


@router.get("/reports", response_model=ReportList)
async def list_reports(
    status: str = "all",
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    _: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.list_reports(db, status, page, page_size)


@router.patch("/reports/{report_id}", response_model=ReportOut)
async def update_report(
    report_id: str,
    data: ReportStatusUpdate,
    _: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.update_report_status(db, report_id, data.status, data.admin_notes)


@router.get("/users", response_model=UserList)
async def list_users(
    search: str = "",
    role: str = "all",
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    _: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.list_users(db, search, role, page, page_size)


@router.post("/users/{user_id}/ban", response_model=UserState)
async def ban_user(
    user_id: str,
    data: BanRequest,
    _: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.ban_user(db, user_id, data.reason)


@router.post("/users/{user_id}/unban", response_model=UserState)
async def unban_user(
    user_id: str, _: User = Depends(get_admin_user), db: AsyncSession = Depends(get_db)
):
    return await AdminService.unban_user(db, user_id)


@router.post("/users/{user_id}/admin", response_model=UserState)
async def grant_admin(
    user_id: str, _: User = Depends(get_admin_user), db: AsyncSession = Depends(get_db)
):
    return await AdminService.set_role(db, user_id, admin=True)


@router.delete("/users/{user_id}/admin", response_model=UserState)
async def revoke_admin(
    user_id: str, _: User = Depends(get_admin_user), db: AsyncSession = Depends(get_db)
):
    return await AdminService.set_role(db, user_id, admin=False)


@router.get("/stats", response_model=PlatformStats)
async def platform_stats(_: User = Depends(get_admin_user), db: AsyncSession = Depends(get_db)):
    return PlatformStats(
        users=await AdminService.user_statistics(db),
        content=await AdminService.content_statistics(db),
    )
