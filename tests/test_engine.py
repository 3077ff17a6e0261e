"""Tests for the lead scoring engine."""

import asyncio
from datetime import timedelta

import pytest
from lead_scoring.engine import LeadScoringEngine
from lead_scoring.records import ACTIVE_STATUSES, DirectMessage, LeadStatus, MessageDirection
from lead_scoring.scoring_model import LeadQuality, RecommendedAction
from lead_scoring.score_blender import ScoreBlender


ENROLL_PRICING = "Ready to enroll, asked about pricing - send payment details"


@pytest.fixture
def build_engine(fake_store, now):
    def _build(snapshots=(), analyzer=None, **kwargs):
        store = fake_store(list(snapshots))
        engine = LeadScoringEngine(store, analyzer=analyzer, clock=lambda: now, **kwargs)
        return engine, store

    return _build


# ── Pure evaluation ───────────────────────────────────

class TestEvaluate:
    def test_hot_lead_rule_based(self, build_engine, hot_snapshot):
        engine, _ = build_engine()
        result = engine.evaluate(hot_snapshot, None)

        assert result.breakdown.to_dict() == {
            "engagement": 22, "intent": 40, "contact": 15, "behavior": 10,
        }
        assert result.total_score == 87
        assert result.rule_based_score == 87
        assert result.ai_boost == 0
        assert result.quality == LeadQuality.HOT
        assert result.confidence == 0.85
        assert result.recommended_action == RecommendedAction.IMMEDIATE_FOLLOWUP
        assert result.reasoning == [ENROLL_PRICING, ScoreBlender.FALLBACK_REASON]

    def test_with_analysis(self, build_engine, hot_snapshot, strong_analysis):
        engine, _ = build_engine()
        result = engine.evaluate(hot_snapshot, strong_analysis)
        assert result.total_score == 100
        assert result.rule_based_score == 87
        assert result.ai_boost == 18
        assert result.reasoning[0] == ENROLL_PRICING
        assert "Score: 87 (rule-based) + 18.0 (AI) = 100" in result.reasoning

    def test_empty_lead(self, build_engine, make_snapshot):
        engine, _ = build_engine()
        result = engine.evaluate(make_snapshot(), None)
        assert result.total_score == 0
        assert result.quality == LeadQuality.COLD
        assert result.confidence == 0.5
        assert result.recommended_action == RecommendedAction.LOW_PRIORITY

    def test_complaint_disqualifies(self, build_engine, make_snapshot, now):
        snapshot = make_snapshot(
            phone="9876543210",
            messages=[DirectMessage(MessageDirection.INBOUND, "I want to join but I need a refund", now)],
        )
        engine, _ = build_engine()
        result = engine.evaluate(snapshot, None)
        assert result.quality == LeadQuality.COLD
        assert result.recommended_action == RecommendedAction.DISQUALIFY

    def test_unresponsive_lead(self, build_engine, make_snapshot, now):
        snapshot = make_snapshot(
            status=LeadStatus.CONTACTED,
            last_contact_date=now - timedelta(days=9),
            messages=[DirectMessage(MessageDirection.INBOUND, "what is the level?", now - timedelta(days=10))],
        )
        engine, _ = build_engine()
        result = engine.evaluate(snapshot, None)
        assert result.breakdown.intent == 0
        assert result.recommended_action == RecommendedAction.LOW_PRIORITY
        assert result.reasoning[0] == "Unresponsive after contact - low priority"

    def test_deterministic(self, build_engine, hot_snapshot, strong_analysis):
        engine, _ = build_engine()
        first = engine.evaluate(hot_snapshot, strong_analysis).to_dict()
        assert engine.evaluate(hot_snapshot, strong_analysis).to_dict() == first

    def test_analysis_text(self, hot_snapshot):
        text = LeadScoringEngine.build_analysis_text(hot_snapshot)
        assert text.split("\n") == [
            "fee ethra?",
            "Hi, I want to join the A1 batch. What is the fee?",
            "Great, please register me",
            "Can I start this week?",
        ]


# ── Single lead ───────────────────────────────────────

class TestScoreLead:
    def test_analyzer_called_once(self, build_engine, hot_snapshot, fake_analyzer, strong_analysis):
        analyzer = fake_analyzer(analysis=strong_analysis)
        engine, store = build_engine([hot_snapshot], analyzer=analyzer)

        result = asyncio.run(engine.score_lead("hot-1"))

        assert result.total_score == 100
        assert len(analyzer.calls) == 1
        assert analyzer.calls[0].startswith("fee ethra?")
        assert store.updates == []

    def test_analyzer_failure_falls_back(self, build_engine, hot_snapshot, fake_analyzer):
        analyzer = fake_analyzer(error=RuntimeError("model down"))
        engine, _ = build_engine([hot_snapshot], analyzer=analyzer)

        result = asyncio.run(engine.score_lead("hot-1"))

        assert result.total_score == 87
        assert ScoreBlender.FALLBACK_REASON in result.reasoning

    def test_analyzer_timeout_falls_back(self, build_engine, hot_snapshot, fake_analyzer, strong_analysis):
        analyzer = fake_analyzer(analysis=strong_analysis, delay=0.5)
        engine, _ = build_engine([hot_snapshot], analyzer=analyzer, analyzer_timeout=0.05)

        result = asyncio.run(engine.score_lead("hot-1"))

        assert result.total_score == 87
        assert result.ai_boost == 0

    def test_not_found(self, build_engine):
        engine, _ = build_engine()
        result = asyncio.run(engine.score_lead("missing"))
        assert result.lead_id == "missing"
        assert result.total_score == 0
        assert result.confidence == 0
        assert result.reasoning == [LeadScoringEngine.NOT_FOUND_REASON]

    def test_store_error_never_raises(self, build_engine):
        engine, store = build_engine()
        store.broken_ids.add("bad")
        result = asyncio.run(engine.score_lead("bad"))
        assert result.reasoning == [LeadScoringEngine.ERROR_REASON]
        assert result.recommended_action == RecommendedAction.LOW_PRIORITY

    def test_same_lead_twice_gives_identical_result(self, build_engine, hot_snapshot,
                                                    fake_analyzer, strong_analysis):
        engine, _ = build_engine([hot_snapshot], analyzer=fake_analyzer(analysis=strong_analysis))

        async def twice():
            first = await engine.score_lead("hot-1")
            second = await engine.score_lead("hot-1")
            return first.to_dict(), second.to_dict()

        first, second = asyncio.run(twice())
        assert first == second
        assert first["ai_boost"] == 18


class TestUpdateLeadScore:
    def test_persists_score_and_quality(self, build_engine, hot_snapshot):
        engine, store = build_engine([hot_snapshot])
        result = asyncio.run(engine.update_lead_score("hot-1"))
        assert store.updates == [("hot-1", 87, LeadQuality.HOT)]
        assert result.total_score == 87

    def test_idempotent(self, build_engine, hot_snapshot):
        engine, store = build_engine([hot_snapshot])

        async def twice():
            await engine.update_lead_score("hot-1")
            await engine.update_lead_score("hot-1")

        asyncio.run(twice())
        assert store.updates[0] == store.updates[1]

    def test_placeholder_not_persisted(self, build_engine):
        engine, store = build_engine()
        store.broken_ids.add("bad")

        async def run():
            await engine.update_lead_score("missing")
            await engine.update_lead_score("bad")

        asyncio.run(run())
        assert store.updates == []

    def test_write_failure_still_returns_result(self, build_engine, hot_snapshot):
        engine, store = build_engine([hot_snapshot])
        store.fail_updates = True
        result = asyncio.run(engine.update_lead_score("hot-1"))
        assert result.total_score == 87


# ── Batch ─────────────────────────────────────────────

class TestRescoreAll:
    def test_defaults_to_active_statuses(self, build_engine, hot_snapshot, make_snapshot):
        lost = make_snapshot(lead_id="lost-1", status=LeadStatus.LOST)
        engine, store = build_engine([hot_snapshot, lost])

        summary = asyncio.run(engine.rescore_all())

        assert store.listed_with == ACTIVE_STATUSES
        assert summary.to_dict() == {"total": 1, "updated": 1, "failed": 0}
        assert [u[0] for u in store.updates] == ["hot-1"]

    def test_explicit_statuses(self, build_engine, hot_snapshot, make_snapshot):
        lost = make_snapshot(lead_id="lost-1", status=LeadStatus.LOST)
        engine, store = build_engine([hot_snapshot, lost])

        asyncio.run(engine.rescore_all([LeadStatus.LOST]))

        assert [u[0] for u in store.updates] == ["lost-1"]

    def test_continues_after_failure(self, build_engine, hot_snapshot, make_snapshot):
        other = make_snapshot(lead_id="new-2", email="x@example.com")
        engine, store = build_engine([hot_snapshot, other])
        store.broken_ids.add("broken")

        summary = asyncio.run(engine.rescore_all())

        assert summary.total == 3
        assert summary.updated == 2
        assert summary.failed == 1
        assert {u[0] for u in store.updates} == {"hot-1", "new-2"}

    def test_write_failures_are_counted(self, build_engine, hot_snapshot):
        engine, store = build_engine([hot_snapshot])
        store.fail_updates = True
        summary = asyncio.run(engine.rescore_all())
        assert summary.failed == 1
        assert summary.updated == 0

    def test_listing_failure_returns_empty_summary(self, build_engine):
        engine, store = build_engine()
        store.fail_listing = True
        assert asyncio.run(engine.rescore_all()).to_dict() == {"total": 0, "updated": 0, "failed": 0}

    def test_analyzer_called_once_per_lead(self, build_engine, hot_snapshot, make_snapshot,
                                           fake_analyzer, strong_analysis):
        other = make_snapshot(lead_id="new-2", notes="wants a demo")
        analyzer = fake_analyzer(analysis=strong_analysis)
        engine, _ = build_engine([hot_snapshot, other], analyzer=analyzer)

        asyncio.run(engine.rescore_all())

        assert len(analyzer.calls) == 2


class TestFromSettings:
    def test_settings_flow_into_components(self, fake_store):
        from config.settings import Settings

        settings = Settings(
            lead_score_threshold_hot=80,
            lead_score_threshold_warm=50,
            unresponsive_after_days=3,
            rescore_calls_per_minute=120,
            regional_language_code="ta",
            analyzer_timeout_seconds=4,
            active_lead_statuses="NEW, interested",
        )
        engine = LeadScoringEngine.from_settings(fake_store(), None, settings)

        assert engine.scorer.hot_threshold == 80
        assert engine.scorer.warm_threshold == 50
        assert engine.extractor.unresponsive_after == timedelta(days=3)
        assert engine.rate_limiter.interval == pytest.approx(0.5)
        assert engine.blender.regional_language_code == "ta"
        assert engine.analyzer_timeout == 4
        assert engine.active_statuses == [LeadStatus.NEW, LeadStatus.INTERESTED]

    def test_unknown_configured_status_is_skipped(self, fake_store):
        from config.settings import Settings

        settings = Settings(active_lead_statuses="CONTACTED,INTERSTED")
        engine = LeadScoringEngine.from_settings(fake_store(), None, settings)
        assert engine.active_statuses == [LeadStatus.CONTACTED]

    def test_no_known_status_uses_defaults(self, fake_store):
        from config.settings import Settings

        settings = Settings(active_lead_statuses="bogus")
        engine = LeadScoringEngine.from_settings(fake_store(), None, settings)
        assert engine.active_statuses == ACTIVE_STATUSES
