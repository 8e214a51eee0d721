"""Tests for user profiles, blocking, topic search and streaks."""

from datetime import date

import pytest

from peertutor.errors import NotFoundError, ValidationError
from peertutor.models.user import STATUS_BANNED
from peertutor.schemas.user import ProfileUpdate
from peertutor.services.user_service import UserService


async def test_create_user_starts_empty(db):
    user = await UserService.create_user(db, "Alice", "Alice@Example.com")

    assert user.id is not None
    assert user.email == "alice@example.com"
    assert user.skills == []
    assert user.needs == []
    assert user.blocked == []
    assert user.streak_count == 0
    assert user.show_in_discover is True


async def test_duplicate_email_rejected(db):
    await UserService.create_user(db, "Alice", "alice@example.com")
    with pytest.raises(ValidationError):
        await UserService.create_user(db, "Alice Again", "alice@example.com")


async def test_get_unknown_user(db):
    with pytest.raises(NotFoundError):
        await UserService.get_user(db, "ghost")


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


async def test_update_profile_applies_only_given_fields(db, make_user):
    user = await make_user("Alice", bio="hello")

    updated = await UserService.update_profile(
        db, user.id, ProfileUpdate(skills=["math", "physics", "math"], needs=["art"])
    )

    assert updated.skills == ["math", "physics"]
    assert updated.needs == ["art"]
    assert updated.bio == "hello"


async def test_update_profile_rejects_unknown_topic(db, make_user):
    user = await make_user("Alice")
    with pytest.raises(ValidationError, match="underwater-basket-weaving"):
        await UserService.update_profile(
            db, user.id, ProfileUpdate(skills=["underwater-basket-weaving"])
        )


async def test_update_profile_rejects_null_skills(db, make_user):
    user = await make_user("Alice", skills=["math"])
    with pytest.raises(ValidationError):
        await UserService.update_profile(db, user.id, ProfileUpdate(skills=None))


async def test_profile_update_schema_limits():
    from pydantic import ValidationError as SchemaError

    with pytest.raises(SchemaError):
        ProfileUpdate(skills=[])
    with pytest.raises(SchemaError):
        ProfileUpdate(needs=[f"t{i}" for i in range(11)])
    with pytest.raises(SchemaError):
        ProfileUpdate(bio="x" * 301)


async def test_register_push_token(db, make_user):
    user = await make_user("Alice")
    await UserService.register_push_token(db, user.id, "ExponentPushToken[abc]")
    assert user.push_token == "ExponentPushToken[abc]"


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------


async def test_streak_counts_consecutive_days(db, make_user):
    user = await make_user("Alice")

    assert await UserService.update_streak(db, user.id, today=date(2026, 3, 1)) == 1
    assert await UserService.update_streak(db, user.id, today=date(2026, 3, 1)) == 1
    assert await UserService.update_streak(db, user.id, today=date(2026, 3, 2)) == 2
    assert await UserService.update_streak(db, user.id, today=date(2026, 3, 3)) == 3
    assert user.streak_last_active == date(2026, 3, 3)


async def test_streak_resets_after_gap(db, make_user):
    user = await make_user("Alice")
    await UserService.update_streak(db, user.id, today=date(2026, 3, 1))
    await UserService.update_streak(db, user.id, today=date(2026, 3, 2))

    assert await UserService.update_streak(db, user.id, today=date(2026, 3, 5)) == 1


async def test_record_login_stamps_and_starts_streak(db, make_user):
    user = await make_user("Alice")
    count = await UserService.record_login(db, user.id)
    assert count == 1
    assert user.last_login_at is not None


# ---------------------------------------------------------------------------
# Blocking
# ---------------------------------------------------------------------------


async def test_block_and_unblock(db, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")

    assert await UserService.block_user(db, alice.id, bob.id) == [bob.id]
    # blocking twice is a no-op
    assert await UserService.block_user(db, alice.id, bob.id) == [bob.id]
    assert await UserService.unblock_user(db, alice.id, bob.id) == []


async def test_cannot_block_self(db, make_user):
    alice = await make_user("Alice")
    with pytest.raises(ValidationError):
        await UserService.block_user(db, alice.id, alice.id)


async def test_cannot_block_unknown_user(db, make_user):
    alice = await make_user("Alice")
    with pytest.raises(NotFoundError):
        await UserService.block_user(db, alice.id, "ghost")


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


async def test_discoverable_users_skip_hidden_and_banned(db, make_user):
    visible = await make_user("Alice")
    await make_user("Hidden", show_in_discover=False)
    await make_user("Banned", status=STATUS_BANNED)

    users = await UserService.discoverable_users(db)
    assert [u.id for u in users] == [visible.id]


async def test_search_by_topic_lists_teachers_first(db, make_user):
    learner = await make_user("Learner", needs=["math"])
    teacher = await make_user("Teacher", skills=["math"])
    both = await make_user("Both", skills=["math"], needs=["math"])
    await make_user("Other", skills=["art"])

    users = await UserService.search_by_topic(db, "math")

    ids = [u.id for u in users]
    assert set(ids[:2]) == {teacher.id, both.id}
    assert ids[2:] == [learner.id]


async def test_list_users_pages(db, make_user):
    for name in ("Ann", "Ben", "Cat"):
        await make_user(name)

    first, token = await UserService.list_users(db, limit=2)
    assert len(first) == 2
    assert token is not None

    rest, token = await UserService.list_users(db, limit=2, page_token=token)
    assert len(rest) == 1
    assert token is None
    assert not {u.id for u in first} & {u.id for u in rest}
