"""
Engagement signal extraction for the Lead Scoring Engine.

Aggregates a lead's direct messages, comments and operator notes into a
flat EngagementSignals record. Signals are recomputed on every scoring
call and never cached.
"""

import re
import logging
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone

from .records import LeadSnapshot, LeadStatus, DirectMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngagementSignals:
    """Derived features summarizing a lead's interaction history."""

    # DM engagement
    dm_count: int = 0
    dm_recency: Optional[datetime] = None
    dm_response_rate: float = 0.0
    avg_response_time: float = 24.0  # hours
    message_count: int = 0

    # Content engagement
    reels_viewed: int = 0
    reels_liked: int = 0
    reels_commented: int = 0
    reels_saved: int = 0

    # Intent
    asked_about_pricing: bool = False
    asked_about_schedule: bool = False
    asked_about_level: bool = False
    mentioned_enrollment: bool = False
    requested_trial_class: bool = False

    # Contact
    has_phone: bool = False
    has_email: bool = False
    has_whatsapp: bool = False

    # Behavior
    viewed_multiple_reels: bool = False
    engaged_across_time: bool = False
    urgency_keywords: bool = False

    # Negative
    has_complaint: bool = False
    has_negative_sentiment: bool = False
    unresponsive_after_contact: bool = False

    @property
    def has_contact_info(self) -> bool:
        return self.has_phone or self.has_email

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["dm_recency"] = self.dm_recency.isoformat() if self.dm_recency else None
        return data


class SignalExtractor:
    """
    Turns a LeadSnapshot into EngagementSignals.

    Intent and negative signals come from regexes over the lower-cased
    notes plus every inbound message. Outbound messages only feed the
    response-rate and response-time metrics.
    """

    INTENT_PATTERNS = {
        "asked_about_pricing": r"price|cost|fee|fees|how much|payment",
        "asked_about_schedule": r"schedule|timing|when|start date|batch|next batch",
        "asked_about_level": r"level|a1|a2|b1|b2|beginner|intermediate",
        "mentioned_enrollment": r"enroll|join|register|admission|sign up",
        "requested_trial_class": r"trial|demo|free class",
    }

    URGENCY_PATTERN = r"urgent|asap|immediately|soon|quickly|today|this week"
    COMPLAINT_PATTERN = r"complaint|disappointed|poor|bad experience|refund|cancel"
    NEGATIVE_SENTIMENT_PATTERN = r"not interested|no thanks|too expensive|costly"

    DEFAULT_RESPONSE_HOURS = 24.0
    MULTIPLE_REELS = 3
    UNRESPONSIVE_MAX_DMS = 2

    def __init__(self, unresponsive_after_days: int = 7):
        self.unresponsive_after = timedelta(days=unresponsive_after_days)
        self._intent_regexes = {
            name: re.compile(pattern) for name, pattern in self.INTENT_PATTERNS.items()
        }
        self._urgency_regex = re.compile(self.URGENCY_PATTERN)
        self._complaint_regex = re.compile(self.COMPLAINT_PATTERN)
        self._negative_regex = re.compile(self.NEGATIVE_SENTIMENT_PATTERN)

    def extract(self, snapshot: LeadSnapshot, now: Optional[datetime] = None) -> EngagementSignals:
        """
        Extract engagement signals for one lead.

        Args:
            snapshot: Lead with ordered message and comment history
            now: Reference time for recency checks (defaults to utcnow)

        Returns:
            EngagementSignals
        """
        now = now or datetime.utcnow()
        lead = snapshot.lead
        messages = snapshot.messages
        inbound = [m for m in messages if m.is_inbound]
        outbound = [m for m in messages if not m.is_inbound]

        dm_count = len(inbound)
        dm_recency = inbound[-1].sent_at if inbound else None
        # No outbound yet counts as fully responsive, but only once they have written
        if outbound:
            dm_response_rate = (len(inbound) / len(outbound)) * 100
        else:
            dm_response_rate = 100.0 if inbound else 0.0

        all_text = " ".join(
            [lead.notes or ""] + [m.content or "" for m in inbound]
        ).lower()

        intents = {
            name: bool(regex.search(all_text))
            for name, regex in self._intent_regexes.items()
        }

        engagement = lead.engagement
        distinct_days = {m.sent_at.date() for m in inbound}

        return EngagementSignals(
            dm_count=dm_count,
            dm_recency=dm_recency,
            dm_response_rate=dm_response_rate,
            avg_response_time=self._average_response_time(messages),
            message_count=len(messages),
            reels_viewed=engagement.views,
            reels_liked=engagement.likes,
            reels_commented=engagement.comments,
            reels_saved=engagement.saves,
            has_phone=bool(lead.phone or lead.whatsapp),
            has_email=bool(lead.email),
            has_whatsapp=bool(lead.whatsapp),
            viewed_multiple_reels=engagement.views >= self.MULTIPLE_REELS,
            engaged_across_time=len(distinct_days) >= 2,
            urgency_keywords=bool(self._urgency_regex.search(all_text)),
            has_complaint=bool(self._complaint_regex.search(all_text)),
            has_negative_sentiment=bool(self._negative_regex.search(all_text)),
            unresponsive_after_contact=self._is_unresponsive(lead.status, lead.last_contact_date, dm_count, now),
            **intents,
        )

    def _average_response_time(self, messages: List[DirectMessage]) -> float:
        """Mean hours from an outbound message to the inbound reply right after it."""
        gaps: List[float] = []
        for previous, current in zip(messages, messages[1:]):
            if current.is_inbound and not previous.is_inbound:
                delta = current.sent_at - previous.sent_at
                gaps.append(delta.total_seconds() / 3600)

        if not gaps:
            return self.DEFAULT_RESPONSE_HOURS
        return sum(gaps) / len(gaps)

    def _is_unresponsive(
        self,
        status: LeadStatus,
        last_contact_date: Optional[datetime],
        dm_count: int,
        now: datetime,
    ) -> bool:
        if status != LeadStatus.CONTACTED or last_contact_date is None:
            return False
        if last_contact_date.tzinfo is not None and now.tzinfo is None:
            last_contact_date = last_contact_date.astimezone(timezone.utc).replace(tzinfo=None)
        return (now - last_contact_date) > self.unresponsive_after and dm_count < self.UNRESPONSIVE_MAX_DMS
