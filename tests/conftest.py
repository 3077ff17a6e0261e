"""Shared fixtures for Lead Scoring Engine tests."""

import os
import time
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

# No LLM and no database during tests
os.environ["LLM_PROVIDER"] = "none"
os.environ.pop("DATABASE_URL", None)

from lead_scoring.records import (
    LeadRecord, LeadSnapshot, DirectMessage, Comment,
    MessageDirection, EngagementCounters,
)
from lead_scoring.message_parser import Sentiment, Urgency
from lead_scoring.score_blender import SemanticAnalysis


NOW = datetime(2024, 3, 15, 12, 0, 0)


class FakeLeadStore:
    """In-memory lead store recording every score write."""

    def __init__(self, snapshots=None):
        self.snapshots = {s.lead.id: s for s in (snapshots or [])}
        self.updates = []
        self.listed_with = None
        self.broken_ids = set()
        self.fail_listing = False
        self.fail_updates = False

    async def get_snapshot(self, lead_id):
        if lead_id in self.broken_ids:
            raise RuntimeError(f"corrupt row {lead_id}")
        return self.snapshots.get(lead_id)

    async def list_ids_by_status(self, statuses):
        if self.fail_listing:
            raise RuntimeError("database unavailable")
        self.listed_with = list(statuses)
        return [
            lead_id for lead_id, s in self.snapshots.items()
            if s.lead.status in statuses
        ] + sorted(self.broken_ids)

    async def update_score(self, lead_id, score, quality):
        if self.fail_updates:
            raise RuntimeError("write failed")
        self.updates.append((lead_id, score, quality))


class FakeAnalyzer:
    """Analyzer double returning a fixed analysis and counting calls."""

    def __init__(self, analysis=None, error=None, delay=0.0):
        self.analysis = analysis
        self.error = error
        self.delay = delay
        self.calls = []

    def analyze(self, text):
        self.calls.append(text)
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.analysis


class FakeProvider:
    """LLM provider double returning canned text."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def generate(self, prompt, system=None, max_tokens=None, temperature=None):
        self.calls.append({"prompt": prompt, "system": system})
        if self.error:
            raise self.error
        return self.reply


def _msg(direction, content, sent_at):
    return DirectMessage(direction=direction, content=content, sent_at=sent_at)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_snapshot():
    """Factory for lead snapshots with sensible defaults."""

    def _make(lead_id="lead-1", messages=None, comments=None, engagement=None, **lead_fields):
        lead = LeadRecord(
            id=lead_id,
            engagement=EngagementCounters.from_blob(engagement),
            **lead_fields,
        )
        return LeadSnapshot(lead=lead, messages=messages or [], comments=comments or [])

    return _make


@pytest.fixture
def hot_snapshot(make_snapshot):
    """Enrollment-ready lead with phone, email, reels and a two-day DM thread."""
    day1 = NOW - timedelta(days=2)
    day2 = NOW - timedelta(days=1)
    return make_snapshot(
        lead_id="hot-1",
        name="Anjali",
        phone="9876543210",
        email="anjali@example.com",
        instagram_handle="anjali.k",
        engagement={
            "views": {"reel1": 1, "reel2": 2, "reel3": 1},
            "likes": {"reel1": 1},
            "comments": 1,
        },
        messages=[
            _msg(MessageDirection.INBOUND, "Hi, I want to join the A1 batch. What is the fee?",
                 day1.replace(hour=10, minute=0)),
            _msg(MessageDirection.OUTBOUND, "Sure! Sharing the details now.",
                 day1.replace(hour=10, minute=30)),
            _msg(MessageDirection.INBOUND, "Great, please register me",
                 day1.replace(hour=11, minute=0)),
            _msg(MessageDirection.INBOUND, "Can I start this week?",
                 day2.replace(hour=9, minute=0)),
        ],
        comments=[Comment(text="fee ethra?", commented_at=day1.replace(hour=8))],
    )


@pytest.fixture
def strong_analysis():
    return SemanticAnalysis(
        intent_strength=90,
        sentiment=Sentiment.POSITIVE,
        conversion_probability=85,
        urgency=Urgency.HIGH,
        reasoning="Ready to join the next batch",
        detected_languages=["en", "ml"],
        key_signals=["join", "fee ethra", "this week", "register"],
    )


@pytest.fixture
def fake_store():
    return FakeLeadStore


@pytest.fixture
def fake_analyzer():
    return FakeAnalyzer


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def client(hot_snapshot):
    """FastAPI test client wired to an in-memory lead store."""
    from api.main import app
    from api.services import get_services, initialize_services

    services = get_services()
    services.reset()
    store = FakeLeadStore([hot_snapshot])
    initialize_services(store)

    with TestClient(app) as test_client:
        test_client.store = store
        yield test_client

    services.reset()
