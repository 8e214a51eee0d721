"""Community service - communities, membership, channels and channel messages."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.config import settings
from peertutor.errors import NotFoundError, PermissionDeniedError, ValidationError, read_retry
from peertutor.models.community import (
    DEFAULT_CHANNEL_NAME,
    DEFAULT_ICON,
    Channel,
    ChannelMessage,
    Community,
)
from peertutor.models.user import User

logger = logging.getLogger(__name__)

MAX_CHANNELS_PER_COMMUNITY = 20
COMMUNITY_LIST_LIMIT = 50


class CommunityService:
    @staticmethod
    async def create_community(
        db: AsyncSession,
        creator_id: str,
        name: str,
        description: str | None = None,
        topic: str | None = None,
        icon: str | None = None,
    ) -> Community:
        """Create a community with its creator as first member and a general channel."""
        community = Community(
            name=name.strip(),
            description=description,
            topic=topic,
            icon=icon or DEFAULT_ICON,
            created_by=creator_id,
            members=[creator_id],
            member_count=1,
        )
        db.add(community)
        await db.flush()

        db.add(Channel(
            community_id=community.id,
            name=DEFAULT_CHANNEL_NAME,
            description="General discussion",
        ))
        await db.flush()
        logger.info("Community %s created by %s", community.id, creator_id)
        return community

    @staticmethod
    async def get_community(db: AsyncSession, community_id: str) -> Community:
        community = await read_retry(lambda: db.get(Community, community_id))
        if community is None:
            raise NotFoundError("Community not found")
        return community

    @staticmethod
    async def list_communities(db: AsyncSession) -> list[Community]:
        """Most popular first."""
        async def _read():
            result = await db.execute(
                select(Community)
                .order_by(Community.member_count.desc(), Community.created_at)
                .limit(COMMUNITY_LIST_LIMIT)
            )
            return list(result.scalars().all())

        return await read_retry(_read)

    @staticmethod
    async def user_communities(db: AsyncSession, user_id: str) -> list[Community]:
        communities = await CommunityService.list_all(db)
        return [c for c in communities if user_id in (c.members or [])]

    @staticmethod
    async def list_all(db: AsyncSession) -> list[Community]:
        async def _read():
            result = await db.execute(select(Community).order_by(Community.created_at))
            return list(result.scalars().all())

        return await read_retry(_read)

    @staticmethod
    def _set_members(community: Community, members: list[str]) -> None:
        community.members = members
        community.member_count = len(members)

    @staticmethod
    async def join_community(db: AsyncSession, community_id: str, user_id: str) -> Community:
        community = await CommunityService.get_community(db, community_id)
        if user_id not in (community.members or []):
            CommunityService._set_members(community, [*(community.members or []), user_id])
            await db.flush()
        return community

    @staticmethod
    async def leave_community(db: AsyncSession, community_id: str, user_id: str) -> Community:
        community = await CommunityService.get_community(db, community_id)
        CommunityService._set_members(
            community, [m for m in (community.members or []) if m != user_id]
        )
        await db.flush()
        return community

    @staticmethod
    async def add_members(
        db: AsyncSession, community_id: str, user_ids: list[str], actor_id: str
    ) -> tuple[Community, list[str], list[str]]:
        """Invite users; returns the community and its (before, after) member lists."""
        community = await CommunityService.get_community(db, community_id)
        before = list(community.members or [])
        if actor_id not in before:
            raise PermissionDeniedError("Only members can invite to a community")

        result = await db.execute(select(User.id).where(User.id.in_(user_ids)))
        existing = set(result.scalars().all())
        missing = [u for u in user_ids if u not in existing]
        if missing:
            raise NotFoundError(f"User not found: {', '.join(missing)}")

        after = list(dict.fromkeys([*before, *user_ids]))
        CommunityService._set_members(community, after)
        await db.flush()
        return community, before, after

    # -- channels -----------------------------------------------------------

    @staticmethod
    async def list_channels(db: AsyncSession, community_id: str) -> list[Channel]:
        await CommunityService.get_community(db, community_id)
        result = await db.execute(
            select(Channel).where(Channel.community_id == community_id).order_by(Channel.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def create_channel(
        db: AsyncSession, community_id: str, actor_id: str, name: str, description: str | None = None
    ) -> Channel:
        community = await CommunityService.get_community(db, community_id)
        if actor_id not in (community.members or []):
            raise PermissionDeniedError("Only members can create channels")

        count = await db.scalar(
            select(func.count()).select_from(Channel).where(Channel.community_id == community_id)
        )
        if count >= MAX_CHANNELS_PER_COMMUNITY:
            raise ValidationError(
                f"A community can have at most {MAX_CHANNELS_PER_COMMUNITY} channels"
            )

        channel = Channel(community_id=community_id, name=name.strip(), description=description)
        db.add(channel)
        await db.flush()
        return channel

    @staticmethod
    async def _get_channel(db: AsyncSession, community_id: str, channel_id: str) -> Channel:
        channel = await db.get(Channel, channel_id)
        if channel is None or channel.community_id != community_id:
            raise NotFoundError("Channel not found")
        return channel

    @staticmethod
    async def send_channel_message(
        db: AsyncSession, community_id: str, channel_id: str, user_id: str, text: str
    ) -> ChannelMessage:
        community = await CommunityService.get_community(db, community_id)
        if user_id not in (community.members or []):
            raise PermissionDeniedError("Join the community to post")
        await CommunityService._get_channel(db, community_id, channel_id)

        text = text.strip()
        if not text:
            raise ValidationError("Message is required")
        if len(text) > settings.MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message must be less than {settings.MAX_MESSAGE_LENGTH} characters"
            )

        message = ChannelMessage(channel_id=channel_id, user_id=user_id, text=text)
        db.add(message)
        await db.flush()
        return message

    @staticmethod
    async def channel_messages(
        db: AsyncSession, community_id: str, channel_id: str, limit: int = 50
    ) -> list[ChannelMessage]:
        """The latest ``limit`` messages, oldest first."""
        await CommunityService._get_channel(db, community_id, channel_id)
        result = await db.execute(
            select(ChannelMessage)
            .where(ChannelMessage.channel_id == channel_id)
            .order_by(ChannelMessage.created_at.desc(), ChannelMessage.id.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))


community_service = CommunityService()
