"""
Lead Scoring Engine.

Loads a lead snapshot, extracts engagement signals, scores them, blends in
one best-effort semantic analysis call and classifies the result. Scoring a
single lead never raises to its caller; batch rescoring walks leads one at a
time behind a rate limiter so the language model is not flooded.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple
from dataclasses import dataclass
from datetime import datetime

from .records import LeadSnapshot, LeadStatus, ACTIVE_STATUSES
from .signal_extractor import SignalExtractor
from .scoring_model import LeadScorer, LeadScoreResult, LeadQuality
from .score_blender import ScoreBlender, SemanticAnalysis
from .rate_limit import RateLimiter

logger = logging.getLogger(__name__)


def _known_statuses(values: Iterable[str]) -> List[LeadStatus]:
    """Configured status names as enums; unknown names are skipped."""
    statuses = []
    for value in values:
        try:
            statuses.append(LeadStatus(value))
        except ValueError:
            logger.warning(f"Ignoring unknown lead status {value!r} in ACTIVE_LEAD_STATUSES")
    return statuses


class LeadStore(Protocol):
    """Persistence operations the engine relies on."""

    async def get_snapshot(self, lead_id: str) -> Optional[LeadSnapshot]: ...

    async def list_ids_by_status(self, statuses: List[LeadStatus]) -> List[str]: ...

    async def update_score(self, lead_id: str, score: int, quality: LeadQuality) -> None: ...


class Analyzer(Protocol):
    """Anything that can turn conversation text into a SemanticAnalysis."""

    def analyze(self, text: str) -> Optional[SemanticAnalysis]: ...


@dataclass
class RescoreSummary:
    """Outcome counters of a batch rescore."""
    total: int = 0
    updated: int = 0
    failed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "updated": self.updated, "failed": self.failed}


class LeadScoringEngine:
    """
    Orchestrates lead scoring.

    Collaborators are injected so tests can swap in deterministic doubles
    for the repository, the analyzer and the clock.
    """

    NOT_FOUND_REASON = "Lead not found - needs manual review"
    ERROR_REASON = "Error calculating score - needs manual review"
    TIMEOUT_REASON = "AI analysis timed out"

    def __init__(
        self,
        repository: LeadStore,
        analyzer: Optional[Analyzer] = None,
        scorer: Optional[LeadScorer] = None,
        extractor: Optional[SignalExtractor] = None,
        blender: Optional[ScoreBlender] = None,
        rate_limiter: Optional[RateLimiter] = None,
        analyzer_timeout: float = 10.0,
        active_statuses: Optional[List[LeadStatus]] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """
        Initialize the engine.

        Args:
            repository: Lead persistence adapter
            analyzer: Optional semantic analyzer (None = rule-based only)
            scorer: Rule-based scorer and decision tables
            extractor: Engagement signal extractor
            blender: Rule/AI score blender
            rate_limiter: Limiter applied between batch iterations
            analyzer_timeout: Seconds before an analyzer call is abandoned
            active_statuses: Statuses rescored when no filter is given
            clock: Source of "now" for recency checks
        """
        self.repository = repository
        self.analyzer = analyzer
        self.scorer = scorer or LeadScorer()
        self.extractor = extractor or SignalExtractor()
        self.blender = blender or ScoreBlender()
        self.rate_limiter = rate_limiter or RateLimiter(None)
        self.analyzer_timeout = analyzer_timeout
        self.active_statuses = active_statuses or list(ACTIVE_STATUSES)
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        repository: LeadStore,
        analyzer: Optional[Analyzer],
        settings: Any,
    ) -> "LeadScoringEngine":
        """Build an engine configured from application settings."""
        return cls(
            repository=repository,
            analyzer=analyzer,
            scorer=LeadScorer(
                hot_threshold=settings.lead_score_threshold_hot,
                warm_threshold=settings.lead_score_threshold_warm,
            ),
            extractor=SignalExtractor(unresponsive_after_days=settings.unresponsive_after_days),
            blender=ScoreBlender(regional_language_code=settings.regional_language_code),
            rate_limiter=RateLimiter(settings.rescore_calls_per_minute),
            analyzer_timeout=settings.analyzer_timeout_seconds,
            active_statuses=_known_statuses(settings.active_statuses_list),
        )

    async def score_lead(self, lead_id: str) -> LeadScoreResult:
        """
        Score one lead without persisting anything.

        Never raises: a missing lead or an internal failure yields a COLD,
        zero-confidence result that asks for manual review.
        """
        result, _ = await self._score_lead(lead_id)
        return result

    async def update_lead_score(self, lead_id: str) -> LeadScoreResult:
        """
        Score one lead and store its score and quality.

        A placeholder result (missing lead, scoring error) is returned but
        never written over the stored score.
        """
        result, scored = await self._score_lead(lead_id)
        if not scored:
            return result

        try:
            await self._persist(result)
        except Exception as e:
            logger.error(f"Error updating lead score for {lead_id}: {e}")
        return result

    async def rescore_all(self, statuses: Optional[Iterable[LeadStatus]] = None) -> RescoreSummary:
        """
        Recalculate scores for every lead in the given statuses, one at a time.

        Args:
            statuses: Status filter (defaults to the active statuses)

        Returns:
            RescoreSummary with counts of updated and failed leads
        """
        status_filter = list(statuses) if statuses else self.active_statuses
        summary = RescoreSummary()

        try:
            lead_ids = await self.repository.list_ids_by_status(status_filter)
        except Exception as e:
            logger.error(f"Error listing leads for rescoring: {e}")
            return summary

        summary.total = len(lead_ids)
        logger.info(f"Recalculating scores for {summary.total} leads...")

        for lead_id in lead_ids:
            await self.rate_limiter.acquire()
            try:
                result, scored = await self._score_lead(lead_id)
                if not scored:
                    summary.failed += 1
                    continue
                await self._persist(result)
                summary.updated += 1
            except Exception as e:
                summary.failed += 1
                logger.error(f"Error rescoring lead {lead_id}: {e}")

        logger.info(
            f"Lead scores recalculated: {summary.updated} updated, {summary.failed} failed"
        )
        return summary

    async def _persist(self, result: LeadScoreResult) -> None:
        await self.repository.update_score(result.lead_id, result.total_score, result.quality)
        logger.info(
            f"Lead {result.lead_id} score updated: {result.total_score} ({result.quality.value})"
        )

    async def _score_lead(self, lead_id: str) -> Tuple[LeadScoreResult, bool]:
        try:
            snapshot = await self.repository.get_snapshot(lead_id)
            if snapshot is None:
                logger.warning(f"Lead {lead_id} not found, returning default score")
                return LeadScoreResult.safe_default(lead_id, self.NOT_FOUND_REASON), False

            analysis = await self._analyze(snapshot)
            return self.evaluate(snapshot, analysis), True

        except Exception as e:
            logger.error(f"Error calculating lead score for {lead_id}: {e}")
            return LeadScoreResult.safe_default(lead_id, self.ERROR_REASON), False

    async def _analyze(self, snapshot: LeadSnapshot) -> Optional[SemanticAnalysis]:
        """Exactly one analyzer call, bounded by a timeout; failures mean unavailable."""
        if self.analyzer is None:
            return None

        text = self.build_analysis_text(snapshot)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.analyzer.analyze, text),
                timeout=self.analyzer_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"{self.TIMEOUT_REASON} after {self.analyzer_timeout}s for lead {snapshot.lead.id}"
            )
        except Exception as e:
            logger.warning(f"AI analysis failed for lead {snapshot.lead.id}: {e}")
        return None

    @staticmethod
    def build_analysis_text(snapshot: LeadSnapshot) -> str:
        """Comments, then inbound messages, then notes; blanks dropped."""
        texts = [c.text for c in snapshot.comments]
        texts.extend(m.content for m in snapshot.inbound_messages)
        texts.append(snapshot.lead.notes or "")
        return "\n".join(t for t in texts if t and t.strip())

    def evaluate(
        self,
        snapshot: LeadSnapshot,
        analysis: Optional[SemanticAnalysis],
        now: Optional[datetime] = None,
    ) -> LeadScoreResult:
        """
        Pure scoring of a snapshot given an (optional) analysis.

        Args:
            snapshot: Lead with history
            analysis: Semantic analysis or None
            now: Reference time (defaults to the engine clock)

        Returns:
            LeadScoreResult
        """
        signals = self.extractor.extract(snapshot, now=now or self._clock())
        breakdown = self.scorer.score(signals)
        blend = self.blender.blend(breakdown.total, analysis)

        quality = self.scorer.classify_quality(blend.final_score, signals)
        confidence = self.scorer.estimate_confidence(signals)
        action, action_reason = self.scorer.recommend_action(quality, signals)

        return LeadScoreResult(
            lead_id=snapshot.lead.id,
            total_score=blend.final_score,
            quality=quality,
            confidence=confidence,
            breakdown=breakdown,
            signals=signals,
            recommended_action=action,
            reasoning=[action_reason] + blend.reasoning,
            rule_based_score=blend.rule_based_score,
            ai_boost=blend.ai_boost,
        )
