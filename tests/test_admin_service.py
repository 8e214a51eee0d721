"""Tests for moderation: reports, bans, roles and statistics."""

import pytest

from peertutor.errors import NotFoundError, PermissionDeniedError, ValidationError
from peertutor.services.admin_service import AdminService
from peertutor.services.community_service import CommunityService


async def test_require_admin(db, make_user):
    alice = await make_user("Alice")
    with pytest.raises(PermissionDeniedError):
        await AdminService.require_admin(db, alice.id)

    await AdminService.set_role(db, alice.id, admin=True)
    assert (await AdminService.require_admin(db, alice.id)).id == alice.id


async def test_report_lifecycle(db, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")

    report = await AdminService.create_report(db, alice.id, "user", bob.id, "spam")
    assert report.status == "pending"

    pending = await AdminService.list_reports(db, status="pending")
    assert pending["total"] == 1
    assert pending["items"][0].id == report.id

    await AdminService.update_report_status(db, report.id, "resolved", "warned")
    assert report.reviewed_at is not None
    assert (await AdminService.list_reports(db, status="pending"))["total"] == 0
    assert (await AdminService.list_reports(db))["total"] == 1


async def test_report_validation(db, make_user):
    alice = await make_user("Alice")
    with pytest.raises(ValidationError):
        await AdminService.create_report(db, alice.id, "user", "x", "because")
    with pytest.raises(ValidationError):
        await AdminService.create_report(db, alice.id, "planet", "x", "spam")
    with pytest.raises(NotFoundError):
        await AdminService.update_report_status(db, "missing", "resolved")


async def test_ban_and_unban(db, make_user):
    bob = await make_user("Bob")

    await AdminService.ban_user(db, bob.id, "spam")
    assert bob.is_banned
    assert bob.ban_reason == "spam"

    await AdminService.unban_user(db, bob.id)
    assert not bob.is_banned
    assert bob.banned_at is None


async def test_list_users_search_and_pages(db, make_user):
    for name in ("Alice", "Alina", "Bob"):
        await make_user(name)

    found = await AdminService.list_users(db, search="ali")
    assert found["total"] == 2

    paged = await AdminService.list_users(db, page=2, page_size=2)
    assert paged["total"] == 3
    assert paged["total_pages"] == 2
    assert len(paged["items"]) == 1


async def test_statistics(db, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await AdminService.set_role(db, alice.id, admin=True)
    await AdminService.ban_user(db, bob.id, "spam")
    await CommunityService.create_community(db, alice.id, "Math Club")
    await AdminService.create_report(db, alice.id, "user", bob.id, "spam")

    users = await AdminService.user_statistics(db)
    assert users["total_users"] == 2
    assert users["admin_users"] == 1
    assert users["banned_users"] == 1

    content = await AdminService.content_statistics(db)
    assert content == {"total_communities": 1, "total_events": 0, "pending_reports": 1}
