"""Tests for the community file library."""

import pytest

from peertutor.errors import (
    NotFoundError,
    PermissionDeniedError,
    TransientBackendError,
    ValidationError,
)
from peertutor.models.file import File
from peertutor.services.community_service import CommunityService
from peertutor.services.file_service import FileService, unique_file_name, validate_upload
from conftest import RecordingStore


@pytest.fixture
async def club(db, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    community = await CommunityService.create_community(db, alice.id, "Math Club")
    await CommunityService.join_community(db, community.id, bob.id)
    return community, alice, bob


async def share(db, store, community, user, name="notes.pdf", **fields):
    return await FileService.upload_file(
        db, store, community.id, user.id, name, b"%PDF-1.4 ...",
        content_type="application/pdf", **fields,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_unique_file_name_keeps_stem_and_extension():
    first = unique_file_name("Week 3 Notes.PDF")
    second = unique_file_name("Week 3 Notes.PDF")
    assert first.startswith("Week 3 Notes_")
    assert first.endswith(".pdf")
    assert first != second


def test_validate_upload_limits():
    validate_upload("notes.pdf", 1024)
    with pytest.raises(ValidationError):
        validate_upload("notes.pdf", 11 * 1024 * 1024)
    with pytest.raises(ValidationError):
        validate_upload("run.exe", 10)
    with pytest.raises(ValidationError):
        validate_upload("notes.pdf", 0)
    with pytest.raises(ValidationError):
        validate_upload("  ", 10)


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


async def test_upload_stores_object_then_record(db, store, club):
    community, alice, _ = club

    record = await share(
        db, store, community, alice, description=" Week 3 ", tags=["calc", " ", "exam "]
    )

    (path,) = store.objects
    assert path.startswith(f"community-files/{community.id}/notes_")
    assert store.objects[path] == (b"%PDF-1.4 ...", "application/pdf")
    assert record.storage_path == path
    assert record.download_url == f"https://files.test/{path}"
    assert record.file_name == "notes.pdf"
    assert record.file_size == len(b"%PDF-1.4 ...")
    assert record.uploaded_by == alice.id
    assert record.channel_id is None
    assert record.description == "Week 3"
    assert record.tags == ["calc", "exam"]


async def test_only_members_can_upload(db, store, club, make_user):
    community, _, _ = club
    carol = await make_user("Carol")
    with pytest.raises(PermissionDeniedError):
        await share(db, store, community, carol)
    assert store.objects == {}


async def test_upload_to_foreign_channel_rejected(db, store, club):
    community, alice, _ = club
    other = await CommunityService.create_community(db, alice.id, "Art Club")
    (foreign,) = await CommunityService.list_channels(db, other.id)
    with pytest.raises(NotFoundError):
        await share(db, store, community, alice, channel_id=foreign.id)


async def test_rejected_file_is_never_stored(db, store, club):
    community, alice, _ = club
    with pytest.raises(ValidationError):
        await share(db, store, community, alice, name="virus.exe")
    assert store.objects == {}


async def test_storage_failure_leaves_no_record(db, club):
    community, alice, _ = club
    with pytest.raises(TransientBackendError):
        await share(db, RecordingStore(fail=True), community, alice)
    assert await FileService.get_files(db, community.id) == []


# ---------------------------------------------------------------------------
# Browse and search
# ---------------------------------------------------------------------------


async def test_get_files_newest_first_and_by_channel(db, store, club):
    community, alice, bob = club
    (general,) = await CommunityService.list_channels(db, community.id)
    first = await share(db, store, community, alice, name="a.pdf")
    second = await share(db, store, community, bob, name="b.pdf", channel_id=general.id)
    third = await share(db, store, community, alice, name="c.pdf")

    newest = await FileService.get_files(db, community.id)
    assert [f.id for f in newest] == [third.id, second.id, first.id]
    latest = await FileService.get_files(db, community.id, limit=2)
    assert [f.id for f in latest] == [third.id, second.id]
    in_general = await FileService.get_files(db, community.id, general.id)
    assert [f.id for f in in_general] == [second.id]


async def test_get_file_missing(db):
    with pytest.raises(NotFoundError):
        await FileService.get_file(db, "missing")


async def test_user_files_across_communities(db, store, club):
    community, alice, bob = club
    other = await CommunityService.create_community(db, alice.id, "Art Club")
    mine = await share(db, store, community, alice)
    elsewhere = await share(db, store, other, alice, name="sketch.png")
    await share(db, store, community, bob)

    assert {f.id for f in await FileService.user_files(db, alice.id)} == {mine.id, elsewhere.id}


async def test_search_matches_name_tags_and_description(db, store, club):
    community, alice, _ = club
    by_name = await share(db, store, community, alice, name="Calculus-cheatsheet.pdf")
    by_tag = await share(db, store, community, alice, name="w1.pdf", tags=["CALCULUS"])
    by_desc = await share(db, store, community, alice, name="w2.pdf", description="calculus drills")
    await share(db, store, community, alice, name="poems.txt", tags=["poetry"])

    found = await FileService.search_files(db, community.id, "calc")
    assert {f.id for f in found} == {by_name.id, by_tag.id, by_desc.id}
    assert len(await FileService.search_files(db, community.id, "  ")) == 4


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


async def test_uploader_deletes_object_and_record(db, store, club):
    community, alice, _ = club
    record = await share(db, store, community, alice)
    path = record.storage_path

    await FileService.delete_file(db, store, record.id, alice.id)

    assert store.deleted == [path]
    assert store.objects == {}
    assert await db.get(File, record.id) is None


async def test_only_uploader_can_delete(db, store, club):
    community, alice, bob = club
    record = await share(db, store, community, alice)

    with pytest.raises(PermissionDeniedError):
        await FileService.delete_file(db, store, record.id, bob.id)
    assert store.deleted == []


async def test_failed_object_delete_keeps_record(db, club):
    community, alice, _ = club
    record = await share(db, RecordingStore(), community, alice)

    with pytest.raises(TransientBackendError):
        await FileService.delete_file(db, RecordingStore(fail=True), record.id, alice.id)
    assert (await FileService.get_file(db, record.id)).id == record.id
