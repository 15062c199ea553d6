"""Social graph, messaging and feed models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .base import SyncStatus, format_datetime, new_id, parse_datetime, require_datetime, utc_now


class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    BLOCKED = "blocked"


@dataclass
class Friendship:
    """A directed relationship between two users.

    For a block, ``requester_id`` is the user who blocked.
    """

    requester_id: str
    addressee_id: str
    status: FriendshipStatus = FriendshipStatus.PENDING
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    sync_status: SyncStatus = SyncStatus.PENDING_SYNC

    def involves(self, user_id: str) -> bool:
        return user_id in (self.requester_id, self.addressee_id)

    def connects(self, user_a: str, user_b: str) -> bool:
        return {self.requester_id, self.addressee_id} == {user_a, user_b}

    def other_user(self, user_id: str) -> str:
        return self.addressee_id if self.requester_id == user_id else self.requester_id

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "requester_id": self.requester_id,
            "addressee_id": self.addressee_id,
            "status": self.status.value,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "sync_status": self.sync_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Friendship":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            requester_id=data["requester_id"],
            addressee_id=data["addressee_id"],
            status=FriendshipStatus(data.get("status", "pending")),
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
            sync_status=SyncStatus(data.get("sync_status", "synced")),
        )


@dataclass
class Conversation:
    participant_ids: list[str]
    last_message_at: datetime | None = None
    last_message_preview: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    sync_status: SyncStatus = SyncStatus.PENDING_SYNC

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "participant_ids": self.participant_ids,
            "last_message_at": format_datetime(self.last_message_at),
            "last_message_preview": self.last_message_preview,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "sync_status": self.sync_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Conversation":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            participant_ids=data.get("participant_ids", []),
            last_message_at=parse_datetime(data.get("last_message_at")),
            last_message_preview=data.get("last_message_preview"),
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
            sync_status=SyncStatus(data.get("sync_status", "synced")),
        )


@dataclass
class Message:
    conversation_id: str
    sender_id: str
    text: str
    read_at: datetime | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    sync_status: SyncStatus = SyncStatus.PENDING_SYNC

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "sender_id": self.sender_id,
            "text": self.text,
            "read_at": format_datetime(self.read_at),
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "sync_status": self.sync_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            conversation_id=data["conversation_id"],
            sender_id=data["sender_id"],
            text=data.get("text", ""),
            read_at=parse_datetime(data.get("read_at")),
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
            sync_status=SyncStatus(data.get("sync_status", "synced")),
        )


class PostContentType(str, Enum):
    SESSION = "session"
    WORKOUT = "workout"
    PROGRAM = "program"
    TEXT = "text"


@dataclass
class Post:
    """A feed entry, optionally attaching a session, workout or program."""

    author_id: str
    content_type: PostContentType = PostContentType.TEXT
    content_id: str | None = None
    caption: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    sync_status: SyncStatus = SyncStatus.PENDING_SYNC

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "author_id": self.author_id,
            "content_type": self.content_type.value,
            "content_id": self.content_id,
            "caption": self.caption,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "sync_status": self.sync_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Post":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            author_id=data["author_id"],
            content_type=PostContentType(data.get("content_type", "text")),
            content_id=data.get("content_id"),
            caption=data.get("caption"),
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
            sync_status=SyncStatus(data.get("sync_status", "synced")),
        )
