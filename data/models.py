"""
Data Models for xpost

This module contains data classes and models used throughout the application:
credentials, drafts, remote posts, and the messages exchanged with the
posting pipeline.
"""

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from config import settings


@dataclass(frozen=True)
class Credentials:
    """OAuth 1.0a consumer and access-token secrets. Read-only after loading."""
    consumer_key: str
    consumer_secret: str
    access_token: str
    access_token_secret: str

    def __repr__(self) -> str:
        return f"Credentials(consumer_key={self.consumer_key[:4]}..., access_token=***)"


# =============================================================================
# Drafts
# =============================================================================

_draft_id_lock = threading.Lock()
_last_draft_id = 0


def next_draft_id(now_ms: Optional[int] = None) -> str:
    """Millisecond timestamp, bumped so ids stay strictly increasing in-process."""
    global _last_draft_id
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    with _draft_id_lock:
        draft_id = max(now_ms, _last_draft_id + 1)
        _last_draft_id = draft_id
    return str(draft_id)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Draft:
    """A saved, not yet posted, piece of text."""
    id: str
    content: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def new(cls, content: str, now: Optional[datetime] = None) -> "Draft":
        now = now or _utcnow()
        return cls(
            id=next_draft_id(int(now.timestamp() * 1000)),
            content=content,
            created_at=now,
            updated_at=now,
        )

    def update_content(self, content: str, now: Optional[datetime] = None) -> None:
        self.content = content
        self.updated_at = now or _utcnow()

    def preview(self, max_length: int = settings.DRAFT_PREVIEW_LENGTH) -> str:
        """First line of the draft, truncated, prefixed with the last-edit time."""
        lines = self.content.splitlines()
        first_line = lines[0] if lines else ""
        if len(first_line) > max_length:
            first_line = first_line[:max_length] + "..."
        date = self.updated_at.strftime("%Y-%m-%d %H:%M")
        return f"{date} | {first_line}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Draft":
        return cls(
            id=str(data["id"]),
            content=data["content"],
            created_at=_parse_timestamp(data["created_at"]),
            updated_at=_parse_timestamp(data["updated_at"]),
        )


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# =============================================================================
# Remote posts
# =============================================================================

@dataclass
class PublicMetrics:
    """Engagement counters the API returns in ``public_metrics``."""
    like_count: int = 0
    retweet_count: int = 0
    reply_count: int = 0
    quote_count: int = 0
    impression_count: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PublicMetrics":
        return cls(
            like_count=int(data.get("like_count", 0)),
            retweet_count=int(data.get("retweet_count", 0)),
            reply_count=int(data.get("reply_count", 0)),
            quote_count=int(data.get("quote_count", 0)),
            impression_count=int(data.get("impression_count", 0)),
        )


@dataclass
class Post:
    """A post as returned by the v2 timeline and search endpoints."""
    id: str
    text: str
    created_at: Optional[str] = None
    public_metrics: Optional[PublicMetrics] = None
    conversation_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Post":
        metrics = data.get("public_metrics")
        return cls(
            id=str(data["id"]),
            text=data.get("text", ""),
            created_at=data.get("created_at"),
            public_metrics=PublicMetrics.from_api(metrics) if metrics else None,
            conversation_id=data.get("conversation_id"),
        )

    @property
    def created_date(self) -> str:
        return self.created_at[:10] if self.created_at else "Unknown date"


@dataclass(frozen=True)
class UserProfile:
    """The authenticated account."""
    id: str
    username: str


# =============================================================================
# Posting pipeline messages
# =============================================================================

@dataclass(frozen=True)
class PostJob:
    """One post to publish. ``image`` is already-encoded PNG bytes."""
    text: str
    image: Optional[bytes] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.text.strip():
            raise ValueError("PostJob text must not be empty")


@dataclass(frozen=True)
class PostSuccess:
    remote_id: str


@dataclass(frozen=True)
class PostFailure:
    message: str


PostOutcome = Union[PostSuccess, PostFailure]
