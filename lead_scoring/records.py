"""
Lead snapshot records consumed by the scoring engine.

These are plain, read-only views of what the persistence layer stores:
the lead itself, its direct messages and its comments. The engine never
touches ORM objects directly.
"""

import json
import logging
import math
from enum import Enum
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)


class LeadStatus(Enum):
    """Lead status in the acquisition funnel."""
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    INTERESTED = "INTERESTED"
    TRIAL_SCHEDULED = "TRIAL_SCHEDULED"
    TRIAL_ATTENDED = "TRIAL_ATTENDED"
    CONVERTED = "CONVERTED"
    LOST = "LOST"

    @classmethod
    def parse(cls, value: Any) -> "LeadStatus":
        """Map a stored status string onto the enum, defaulting to NEW."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            logger.warning(f"Unknown lead status {value!r}, treating as NEW")
            return cls.NEW


ACTIVE_STATUSES = [
    LeadStatus.NEW,
    LeadStatus.CONTACTED,
    LeadStatus.INTERESTED,
    LeadStatus.TRIAL_SCHEDULED,
    LeadStatus.TRIAL_ATTENDED,
]


class MessageDirection(Enum):
    """Direction of a direct message relative to the school."""
    INBOUND = "in"
    OUTBOUND = "out"


def _as_count(value: Any) -> int:
    # bool is an int subclass; a flag is not a counter
    if isinstance(value, bool):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    if isinstance(value, (int, float)) and value > 0:
        return int(value)
    return 0


@dataclass(frozen=True)
class EngagementCounters:
    """Content engagement counters (reels viewed, liked, commented, saved)."""
    views: int = 0
    likes: int = 0
    comments: int = 0
    saves: int = 0

    @classmethod
    def from_blob(cls, blob: Any) -> "EngagementCounters":
        """
        Build counters from a stored engagement blob.

        The blob is a dict (or its JSON text) where each counter is either a
        mapping of content id to count or a plain number. Views count distinct
        content ids; likes, comments and saves sum their counts. Anything
        unreadable counts as zero for that field only.
        """
        if blob is None or blob == "":
            return cls()

        if isinstance(blob, (str, bytes)):
            try:
                blob = json.loads(blob)
            except (TypeError, ValueError) as e:
                logger.warning(f"Unparsable engagement blob, using zero counters: {e}")
                return cls()

        if not isinstance(blob, dict):
            logger.warning(f"Engagement blob is {type(blob).__name__}, expected object")
            return cls()

        views_raw = blob.get("views", blob.get("content_interactions"))
        if isinstance(views_raw, dict):
            views = sum(1 for count in views_raw.values() if _as_count(count) > 0)
        else:
            views = _as_count(views_raw)

        return cls(
            views=views,
            likes=cls._sum_counter(blob, "likes"),
            comments=cls._sum_counter(blob, "comments"),
            saves=cls._sum_counter(blob, "saves"),
        )

    @staticmethod
    def _sum_counter(blob: Dict[str, Any], name: str) -> int:
        raw = blob.get(name, blob.get(f"{name}_count"))
        if isinstance(raw, dict):
            return sum(_as_count(count) for count in raw.values())
        return _as_count(raw)


@dataclass(frozen=True)
class DirectMessage:
    """One stored direct message."""
    direction: MessageDirection
    content: str
    sent_at: datetime

    @property
    def is_inbound(self) -> bool:
        return self.direction == MessageDirection.INBOUND


@dataclass(frozen=True)
class Comment:
    """One stored comment on school content."""
    text: str
    commented_at: datetime


@dataclass(frozen=True)
class LeadRecord:
    """Read-only view of a lead as the scoring engine needs it."""
    id: str
    status: LeadStatus = LeadStatus.NEW
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    whatsapp: Optional[str] = None
    instagram_handle: Optional[str] = None
    notes: Optional[str] = None
    last_contact_date: Optional[datetime] = None
    engagement: EngagementCounters = field(default_factory=EngagementCounters)


@dataclass(frozen=True)
class LeadSnapshot:
    """A lead together with its ordered message and comment history."""
    lead: LeadRecord
    messages: List[DirectMessage] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)

    @property
    def inbound_messages(self) -> List[DirectMessage]:
        return [m for m in self.messages if m.is_inbound]
