"""Database models package."""

from peertutor.models.user import User
from peertutor.models.connection import Connection
from peertutor.models.notification import Notification
from peertutor.models.community import Community, Channel, ChannelMessage
from peertutor.models.event import Event
from peertutor.models.chat import Chat, ChatMessage
from peertutor.models.report import Report
from peertutor.models.file import File

__all__ = [
    "User",
    "Connection",
    "Notification",
    "Community",
    "Channel",
    "ChannelMessage",
    "Event",
    "Chat",
    "ChatMessage",
    "Report",
    "File",
]
