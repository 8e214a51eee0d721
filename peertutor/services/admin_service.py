"""Admin service - reports, bans, roles and platform statistics."""

import logging
import math
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.db.database import utcnow
from peertutor.errors import NotFoundError, PermissionDeniedError, ValidationError
from peertutor.models.community import Community
from peertutor.models.event import Event
from peertutor.models.report import REPORT_REASONS, REPORT_STATUSES, REPORT_TARGETS, Report
from peertutor.models.user import (
    ROLE_ADMIN,
    ROLE_USER,
    STATUS_ACTIVE,
    STATUS_BANNED,
    User,
)
from peertutor.services.user_service import UserService

logger = logging.getLogger(__name__)

ACTIVE_WINDOW_DAYS = 7


def _paginate(items: list, page: int, page_size: int) -> dict:
    if page < 1 or page_size < 1:
        raise ValidationError("Page and page size must be at least 1")
    start = (page - 1) * page_size
    return {
        "items": items[start:start + page_size],
        "total": len(items),
        "total_pages": math.ceil(len(items) / page_size),
        "page": page,
    }


class AdminService:
    @staticmethod
    async def require_admin(db: AsyncSession, user_id: str) -> User:
        user = await UserService.get_user(db, user_id)
        if not user.is_admin:
            raise PermissionDeniedError("You do not have permission to perform this action.")
        return user

    # -- reports ------------------------------------------------------------

    @staticmethod
    async def create_report(
        db: AsyncSession,
        reporter_id: str,
        target_type: str,
        target_id: str,
        reason: str,
        description: str | None = None,
    ) -> Report:
        if reason not in REPORT_REASONS:
            raise ValidationError(f"Unknown report reason: {reason}")
        if target_type not in REPORT_TARGETS:
            raise ValidationError(f"Unknown report target: {target_type}")

        report = Report(
            reporter_id=reporter_id,
            target_type=target_type,
            target_id=target_id,
            reason=reason,
            description=description,
        )
        db.add(report)
        await db.flush()
        logger.info("Report %s filed against %s %s", report.id, target_type, target_id)
        return report

    @staticmethod
    async def list_reports(
        db: AsyncSession, status: str = "all", page: int = 1, page_size: int = 20
    ) -> dict:
        stmt = select(Report).order_by(Report.created_at.desc())
        if status != "all":
            stmt = stmt.where(Report.status == status)
        reports = list((await db.execute(stmt)).scalars().all())
        return _paginate(reports, page, page_size)

    @staticmethod
    async def update_report_status(
        db: AsyncSession, report_id: str, status: str, admin_notes: str = ""
    ) -> Report:
        if status not in REPORT_STATUSES:
            raise ValidationError(f"Unknown report status: {status}")
        report = await db.get(Report, report_id)
        if report is None:
            raise NotFoundError("Report not found")
        report.status = status
        report.admin_notes = admin_notes
        report.reviewed_at = utcnow()
        await db.flush()
        return report

    # -- users --------------------------------------------------------------

    @staticmethod
    async def ban_user(db: AsyncSession, user_id: str, reason: str) -> User:
        user = await UserService.get_user(db, user_id)
        user.status = STATUS_BANNED
        user.banned_at = utcnow()
        user.ban_reason = reason
        await db.flush()
        logger.info("User %s banned: %s", user_id, reason)
        return user

    @staticmethod
    async def unban_user(db: AsyncSession, user_id: str) -> User:
        user = await UserService.get_user(db, user_id)
        user.status = STATUS_ACTIVE
        user.banned_at = None
        user.ban_reason = None
        await db.flush()
        return user

    @staticmethod
    async def set_role(db: AsyncSession, user_id: str, admin: bool) -> User:
        user = await UserService.get_user(db, user_id)
        user.role = ROLE_ADMIN if admin else ROLE_USER
        await db.flush()
        return user

    @staticmethod
    async def list_users(
        db: AsyncSession,
        search: str = "",
        role: str = "all",
        page: int = 1,
        page_size: int = 20,
    ) -> dict:
        stmt = select(User).order_by(User.created_at.desc())
        if role != "all":
            stmt = stmt.where(User.role == role)
        users = list((await db.execute(stmt)).scalars().all())

        if search:
            needle = search.lower()
            users = [
                u for u in users
                if needle in u.display_name.lower() or needle in u.email.lower()
            ]
        return _paginate(users, page, page_size)

    @staticmethod
    async def user_statistics(db: AsyncSession) -> dict:
        users = list((await db.execute(select(User))).scalars().all())
        active_since = utcnow() - timedelta(days=ACTIVE_WINDOW_DAYS)
        return {
            "total_users": len(users),
            "active_users": sum(
                1 for u in users if u.last_login_at and u.last_login_at > active_since
            ),
            "admin_users": sum(1 for u in users if u.is_admin),
            "banned_users": sum(1 for u in users if u.is_banned),
        }

    @staticmethod
    async def content_statistics(db: AsyncSession) -> dict:
        async def _count(model, *where):
            stmt = select(func.count()).select_from(model)
            if where:
                stmt = stmt.where(*where)
            return await db.scalar(stmt)

        return {
            "total_communities": await _count(Community),
            "total_events": await _count(Event),
            "pending_reports": await _count(Report, Report.status == "pending"),
        }


admin_service = AdminService()
