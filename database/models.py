"""
SQLAlchemy ORM models for the Lead Scoring Engine.

Persistent entities: leads, Instagram direct messages and comments, and
the lead event audit trail.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, DateTime, Text, ForeignKey, JSON, Index,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class Lead(Base):
    __tablename__ = "leads"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    whatsapp = Column(String(20), nullable=True)
    instagram_handle = Column(String(100), nullable=True, index=True)
    status = Column(String(20), default="NEW")  # NEW, CONTACTED, INTERESTED, TRIAL_*, CONVERTED, LOST
    notes = Column(Text, nullable=True)
    last_contact_date = Column(DateTime, nullable=True)
    # Views/likes/comments/saves keyed by content id; shape is not enforced
    engagement_json = Column(JSON, nullable=True)
    score = Column(Integer, default=0)
    quality = Column(String(10), default="COLD")  # HOT, WARM, COLD
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    events = relationship("LeadEvent", back_populates="lead", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_lead_status", "status"),
        Index("ix_lead_quality", "quality"),
    )


class InstagramMessage(Base):
    __tablename__ = "instagram_messages"

    id = Column(String(36), primary_key=True, default=_uuid)
    lead_id = Column(String(36), ForeignKey("leads.id", ondelete="CASCADE"), nullable=True, index=True)
    instagram_handle = Column(String(100), nullable=True, index=True)
    direction = Column(String(10), nullable=False)  # INCOMING, OUTGOING
    content = Column(Text, nullable=False, default="")
    sent_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_igmsg_handle_sent", "instagram_handle", "sent_at"),
    )


class InstagramComment(Base):
    __tablename__ = "instagram_comments"

    id = Column(String(36), primary_key=True, default=_uuid)
    lead_id = Column(String(36), ForeignKey("leads.id", ondelete="CASCADE"), nullable=True, index=True)
    username = Column(String(100), nullable=True, index=True)
    content_id = Column(String(100), nullable=True)
    text = Column(Text, nullable=False, default="")
    commented_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class LeadEvent(Base):
    __tablename__ = "lead_events"

    id = Column(String(36), primary_key=True, default=_uuid)
    lead_id = Column(String(36), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    event_type = Column(String(30), nullable=False)  # created, score_updated
    details_json = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)

    lead = relationship("Lead", back_populates="events")
