"""Typed data models for the best stories service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Optional, TypedDict


class ItemRecord(TypedDict, total=False):
    """Raw item payload from the upstream `/item/{id}.json` endpoint."""

    id: int
    type: str
    title: str
    url: str
    by: str
    time: int
    score: int
    descendants: int


class StoryDict(TypedDict):
    """Serialized Story payload for adapters."""

    id: int
    title: str
    uri: Optional[str]
    posted_by: Optional[str]
    posted_at: str
    score: int
    comment_count: Optional[int]


def epoch_to_datetime(seconds: int) -> Optional[datetime]:
    """UTC datetime for upstream epoch seconds, or None if out of range."""
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (ValueError, OverflowError, OSError):
        return None


class ErrorKind(str, Enum):
    NETWORK = "network"
    MALFORMED = "malformed"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class FetchError:
    """Diagnostic event for a fetch that was degraded to absence."""

    kind: ErrorKind
    message: str
    item_id: Optional[int] = None  # None for the candidate list


@dataclass(frozen=True)
class Story:
    """A normalized best story."""

    id: int
    title: str
    uri: Optional[str]
    posted_by: Optional[str]
    posted_at: datetime
    score: int
    comment_count: Optional[int] = None

    @classmethod
    def from_record(cls, item_id: int, record: Optional[ItemRecord]) -> Optional[Story]:
        """
        Promote a raw record to a Story.

        Returns None when the record is missing, has no title, or carries a
        creation time that is not a representable date.
        """
        if not record or not record.get("title"):
            return None
        posted_at = epoch_to_datetime(record.get("time") or 0)
        if posted_at is None:
            return None
        return cls(
            id=item_id,
            title=record["title"],
            uri=record.get("url") or None,
            posted_by=record.get("by") or None,
            posted_at=posted_at,
            score=record.get("score") or 0,
            comment_count=record.get("descendants"),
        )

    def to_dict(self) -> StoryDict:
        return {
            "id": self.id,
            "title": self.title,
            "uri": self.uri,
            "posted_by": self.posted_by,
            "posted_at": self.posted_at.isoformat(),
            "score": self.score,
            "comment_count": self.comment_count,
        }
