"""Community endpoints - communities, invites, channels, messages and the file library."""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.api.deps import get_current_user, get_notification_service, get_object_store
from peertutor.db.database import get_db
from peertutor.errors import NotFoundError
from peertutor.models.user import User
from peertutor.schemas.community import (
    ChannelCreate,
    ChannelMessageIn,
    ChannelMessageOut,
    ChannelOut,
    CommunityCreate,
    CommunityOut,
    MembersIn,
)
from peertutor.schemas.file import FileOut
from peertutor.services import triggers
from peertutor.services.community_service import CommunityService
from peertutor.services.file_service import FileService
from peertutor.services.notification_service import NotificationService
from peertutor.services.object_store import ObjectStore

router = APIRouter()


@router.post("/", response_model=CommunityOut, status_code=201)
async def create_community(
    data: CommunityCreate, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await CommunityService.create_community(
        db, user.id, data.name, data.description, data.topic, data.icon
    )


@router.get("/", response_model=list[CommunityOut])
async def list_communities(_: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await CommunityService.list_communities(db)


@router.get("/mine", response_model=list[CommunityOut])
async def my_communities(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await CommunityService.user_communities(db, user.id)


@router.get("/{community_id}", response_model=CommunityOut)
async def get_community(
    community_id: str, _: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await CommunityService.get_community(db, community_id)


@router.post("/{community_id}/join", response_model=CommunityOut)
async def join_community(
    community_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await CommunityService.join_community(db, community_id, user.id)


@router.post("/{community_id}/leave", response_model=CommunityOut)
async def leave_community(
    community_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await CommunityService.leave_community(db, community_id, user.id)


@router.post("/{community_id}/members", response_model=CommunityOut)
async def add_members(
    community_id: str,
    data: MembersIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    """Invite users; only the newly added ones are notified."""
    community, before, after = await CommunityService.add_members(
        db, community_id, data.user_ids, user.id
    )
    await triggers.on_community_members_added(db, notifier, community, before, after, user.id)
    await notifier.commit_and_publish(db)
    return community


@router.get("/{community_id}/channels", response_model=list[ChannelOut])
async def list_channels(
    community_id: str, _: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await CommunityService.list_channels(db, community_id)


@router.post("/{community_id}/channels", response_model=ChannelOut, status_code=201)
async def create_channel(
    community_id: str,
    data: ChannelCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CommunityService.create_channel(
        db, community_id, user.id, data.name, data.description
    )


@router.get("/{community_id}/channels/{channel_id}/messages", response_model=list[ChannelMessageOut])
async def channel_messages(
    community_id: str,
    channel_id: str,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CommunityService.channel_messages(db, community_id, channel_id)


@router.post(
    "/{community_id}/channels/{channel_id}/messages",
    response_model=ChannelMessageOut,
    status_code=201,
)
async def send_channel_message(
    community_id: str,
    channel_id: str,
    data: ChannelMessageIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CommunityService.send_channel_message(
        db, community_id, channel_id, user.id, data.text
    )


# -- file library -----------------------------------------------------------


@router.post("/{community_id}/files", response_model=FileOut, status_code=201)
async def upload_file(
    community_id: str,
    file: UploadFile = File(...),
    channel_id: str | None = Form(default=None),
    description: str = Form(default=""),
    tags: str = Form(default="", description="Comma-separated"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
):
    data = await file.read()
    return await FileService.upload_file(
        db,
        store,
        community_id,
        user.id,
        file.filename or "",
        data,
        content_type=file.content_type,
        channel_id=channel_id or None,
        description=description,
        tags=tags.split(","),
    )


@router.get("/{community_id}/files", response_model=list[FileOut])
async def list_files(
    community_id: str,
    channel_id: str | None = None,
    limit: int = Query(default=30, ge=1, le=100),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FileService.get_files(db, community_id, channel_id, limit)


@router.get("/{community_id}/files/search", response_model=list[FileOut])
async def search_files(
    community_id: str,
    q: str = "",
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FileService.search_files(db, community_id, q)


async def _community_file(db: AsyncSession, community_id: str, file_id: str):
    record = await FileService.get_file(db, file_id)
    if record.community_id != community_id:
        raise NotFoundError("File not found")
    return record


@router.get("/{community_id}/files/{file_id}", response_model=FileOut)
async def get_file(
    community_id: str,
    file_id: str,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _community_file(db, community_id, file_id)


@router.delete("/{community_id}/files/{file_id}", status_code=204)
async def delete_file(
    community_id: str,
    file_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
):
    await _community_file(db, community_id, file_id)
    await FileService.delete_file(db, store, file_id, user.id)
