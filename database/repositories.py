"""
Repository classes for the Lead Scoring Engine data access layer.

LeadRepository wraps CRUD for one session. SqlLeadStore adapts it to the
scoring engine, opening a short-lived session per operation and mapping
ORM rows onto read-only lead snapshots.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lead_scoring.records import (
    LeadRecord, LeadSnapshot, LeadStatus, DirectMessage, Comment,
    MessageDirection, EngagementCounters,
)
from lead_scoring.scoring_model import LeadQuality
from .models import Lead, InstagramMessage, InstagramComment, LeadEvent

logger = logging.getLogger(__name__)

_INBOUND_DIRECTIONS = {"incoming", "inbound", "in"}


class LeadRepository:
    """Data access for leads, their messages, comments and events."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Lead:
        lead = Lead(**kwargs)
        self.session.add(lead)
        await self.session.flush()
        self.session.add(LeadEvent(
            lead_id=lead.id,
            event_type="created",
            details_json={"status": lead.status},
        ))
        await self.session.flush()
        return lead

    async def get_by_id(self, lead_id: str) -> Optional[Lead]:
        result = await self.session.execute(
            select(Lead).where(Lead.id == lead_id)
        )
        return result.scalar_one_or_none()

    async def add_message(
        self,
        direction: str,
        content: str,
        sent_at: datetime,
        lead_id: Optional[str] = None,
        instagram_handle: Optional[str] = None,
    ) -> InstagramMessage:
        msg = InstagramMessage(
            lead_id=lead_id,
            instagram_handle=instagram_handle,
            direction=direction,
            content=content,
            sent_at=sent_at,
        )
        self.session.add(msg)
        await self.session.flush()
        return msg

    async def add_comment(
        self,
        text: str,
        commented_at: datetime,
        lead_id: Optional[str] = None,
        username: Optional[str] = None,
        content_id: Optional[str] = None,
    ) -> InstagramComment:
        comment = InstagramComment(
            lead_id=lead_id,
            username=username,
            content_id=content_id,
            text=text,
            commented_at=commented_at,
        )
        self.session.add(comment)
        await self.session.flush()
        return comment

    async def get_messages(self, lead: Lead) -> List[InstagramMessage]:
        """Messages linked by lead id or by Instagram handle, oldest first."""
        conditions = [InstagramMessage.lead_id == lead.id]
        if lead.instagram_handle:
            conditions.append(InstagramMessage.instagram_handle == lead.instagram_handle)
        result = await self.session.execute(
            select(InstagramMessage)
            .where(or_(*conditions))
            .order_by(InstagramMessage.sent_at.asc(), InstagramMessage.id.asc())
        )
        return list(result.scalars().all())

    async def get_comments(self, lead: Lead) -> List[InstagramComment]:
        """Comments linked by lead id or by commenter username, oldest first."""
        conditions = [InstagramComment.lead_id == lead.id]
        if lead.instagram_handle:
            conditions.append(InstagramComment.username == lead.instagram_handle)
        result = await self.session.execute(
            select(InstagramComment)
            .where(or_(*conditions))
            .order_by(InstagramComment.commented_at.asc(), InstagramComment.id.asc())
        )
        return list(result.scalars().all())

    async def list_ids_by_status(self, statuses: List[str]) -> List[str]:
        result = await self.session.execute(
            select(Lead.id)
            .where(Lead.status.in_(statuses))
            .order_by(Lead.created_at.asc())
        )
        return list(result.scalars().all())

    async def update_score(self, lead_id: str, score: int, quality: str) -> Optional[Lead]:
        lead = await self.get_by_id(lead_id)
        if not lead:
            return None
        previous: Dict[str, Any] = {"score": lead.score, "quality": lead.quality}
        lead.score = score
        lead.quality = quality
        self.session.add(LeadEvent(
            lead_id=lead_id,
            event_type="score_updated",
            details_json={"from": previous, "to": {"score": score, "quality": quality}},
        ))
        await self.session.flush()
        return lead


def to_snapshot(
    lead: Lead,
    messages: List[InstagramMessage],
    comments: List[InstagramComment],
) -> LeadSnapshot:
    """Map ORM rows to the scoring engine's read-only snapshot."""
    record = LeadRecord(
        id=lead.id,
        status=LeadStatus.parse(lead.status),
        name=lead.name,
        phone=lead.phone,
        email=lead.email,
        whatsapp=lead.whatsapp,
        instagram_handle=lead.instagram_handle,
        notes=lead.notes,
        last_contact_date=lead.last_contact_date,
        engagement=EngagementCounters.from_blob(lead.engagement_json),
    )
    return LeadSnapshot(
        lead=record,
        messages=[
            DirectMessage(
                direction=(
                    MessageDirection.INBOUND
                    if (m.direction or "").lower() in _INBOUND_DIRECTIONS
                    else MessageDirection.OUTBOUND
                ),
                content=m.content or "",
                sent_at=m.sent_at,
            )
            for m in messages
        ],
        comments=[Comment(text=c.text or "", commented_at=c.commented_at) for c in comments],
    )


class SqlLeadStore:
    """Lead store for the scoring engine backed by async SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_snapshot(self, lead_id: str) -> Optional[LeadSnapshot]:
        async with self._session_factory() as session:
            repo = LeadRepository(session)
            lead = await repo.get_by_id(lead_id)
            if not lead:
                return None
            messages = await repo.get_messages(lead)
            comments = await repo.get_comments(lead)
            return to_snapshot(lead, messages, comments)

    async def list_ids_by_status(self, statuses: List[LeadStatus]) -> List[str]:
        async with self._session_factory() as session:
            return await LeadRepository(session).list_ids_by_status([s.value for s in statuses])

    async def update_score(self, lead_id: str, score: int, quality: LeadQuality) -> None:
        async with self._session_factory() as session:
            try:
                lead = await LeadRepository(session).update_score(lead_id, score, quality.value)
                if lead is None:
                    raise LookupError(f"Lead {lead_id} not found")
                await session.commit()
            except Exception:
                await session.rollback()
                raise
