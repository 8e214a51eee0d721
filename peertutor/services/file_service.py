"""File service - the community file library: upload, browse, search and delete."""

import logging
import time
import uuid
from pathlib import PurePosixPath

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.config import settings
from peertutor.errors import NotFoundError, PermissionDeniedError, ValidationError, read_retry
from peertutor.models.community import Channel
from peertutor.models.file import File
from peertutor.services.community_service import CommunityService
from peertutor.services.object_store import ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
SEARCH_WINDOW = 50


def file_extension(file_name: str) -> str:
    return PurePosixPath(file_name).suffix.lstrip(".").lower()


def unique_file_name(file_name: str) -> str:
    """``notes.pdf`` -> ``notes_<millis>_<random>.pdf`` so uploads never collide."""
    path = PurePosixPath(file_name)
    stem = f"{path.stem}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"
    return f"{stem}{path.suffix.lower()}"


def validate_upload(file_name: str, size: int) -> None:
    if not file_name or not file_name.strip():
        raise ValidationError("File name is required")
    if size <= 0:
        raise ValidationError("File is empty")
    if size > settings.MAX_FILE_SIZE:
        raise ValidationError(
            f"File size must be less than {settings.MAX_FILE_SIZE // (1024 * 1024)}MB"
        )
    extension = file_extension(file_name)
    if extension not in settings.ALLOWED_FILE_TYPES:
        raise ValidationError(f"File type .{extension} is not allowed")


def _clean_tags(tags: list[str] | None) -> list[str]:
    return [t.strip() for t in (tags or []) if t and t.strip()]


class FileService:
    @staticmethod
    async def upload_file(
        db: AsyncSession,
        store: ObjectStore,
        community_id: str,
        uploader_id: str,
        file_name: str,
        data: bytes,
        content_type: str | None = None,
        channel_id: str | None = None,
        description: str = "",
        tags: list[str] | None = None,
    ) -> File:
        """Store the bytes, then record the file in the community library."""
        community = await CommunityService.get_community(db, community_id)
        if uploader_id not in (community.members or []):
            raise PermissionDeniedError("Join the community to share files")
        if channel_id is not None:
            channel = await db.get(Channel, channel_id)
            if channel is None or channel.community_id != community_id:
                raise NotFoundError("Channel not found")

        file_name = PurePosixPath(file_name or "").name
        validate_upload(file_name, len(data))

        storage_path = f"community-files/{community_id}/{unique_file_name(file_name)}"
        download_url = await store.upload(storage_path, data, content_type or DEFAULT_CONTENT_TYPE)

        record = File(
            community_id=community_id,
            channel_id=channel_id,
            uploaded_by=uploader_id,
            file_name=file_name,
            file_type=content_type or DEFAULT_CONTENT_TYPE,
            file_size=len(data),
            storage_path=storage_path,
            download_url=download_url,
            description=(description or "").strip(),
            tags=_clean_tags(tags),
        )
        db.add(record)
        await db.flush()
        logger.info("User %s shared %s in community %s", uploader_id, record.id, community_id)
        return record

    @staticmethod
    async def get_files(
        db: AsyncSession, community_id: str, channel_id: str | None = None, limit: int = 30
    ) -> list[File]:
        """Newest first; narrowed to one channel when ``channel_id`` is given."""
        stmt = select(File).where(File.community_id == community_id)
        if channel_id is not None:
            stmt = stmt.where(File.channel_id == channel_id)
        stmt = stmt.order_by(File.uploaded_at.desc(), File.id.desc()).limit(limit)

        async def _read():
            return list((await db.execute(stmt)).scalars().all())

        return await read_retry(_read)

    @staticmethod
    async def get_file(db: AsyncSession, file_id: str) -> File:
        record = await read_retry(lambda: db.get(File, file_id))
        if record is None:
            raise NotFoundError("File not found")
        return record

    @staticmethod
    async def delete_file(db: AsyncSession, store: ObjectStore, file_id: str, user_id: str) -> None:
        """Uploader only. The stored object goes first, then the record."""
        record = await FileService.get_file(db, file_id)
        if record.uploaded_by != user_id:
            raise PermissionDeniedError("Only the uploader can delete this file")

        await store.delete(record.storage_path)
        await db.delete(record)
        await db.flush()
        logger.info("Deleted file %s", file_id)

    @staticmethod
    async def user_files(db: AsyncSession, user_id: str, limit: int = 50) -> list[File]:
        async def _read():
            result = await db.execute(
                select(File)
                .where(File.uploaded_by == user_id)
                .order_by(File.uploaded_at.desc(), File.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

        return await read_retry(_read)

    @staticmethod
    async def search_files(db: AsyncSession, community_id: str, term: str) -> list[File]:
        """Case-insensitive match on name, tags or description among the latest uploads."""
        term = (term or "").strip().lower()
        recent = await FileService.get_files(db, community_id, limit=SEARCH_WINDOW)
        if not term:
            return recent
        return [
            f for f in recent
            if term in f.file_name.lower()
            or any(term in tag.lower() for tag in (f.tags or []))
            or term in (f.description or "").lower()
        ]


file_service = FileService()
