"""
Lead Scoring Model for the Lead Scoring Engine.

Rule-based multi-factor scoring over EngagementSignals, plus the decision
tables that turn a blended score into a quality tier, a confidence value
and a recommended next action.
"""

import logging
from enum import Enum
from typing import Dict, Any, Optional, List, Tuple
from dataclasses import dataclass, field

from .signal_extractor import EngagementSignals

logger = logging.getLogger(__name__)


class LeadQuality(Enum):
    """Lead quality tiers."""
    HOT = "HOT"      # Contact within 24 hours
    WARM = "WARM"    # Nurture sequence
    COLD = "COLD"    # Monitor


class RecommendedAction(Enum):
    """Next operational step for the sales operator."""
    IMMEDIATE_FOLLOWUP = "immediate_followup"
    NURTURE = "nurture"
    LOW_PRIORITY = "low_priority"
    DISQUALIFY = "disqualify"


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-category rule-based scores."""
    engagement: int = 0  # 0-30
    intent: int = 0      # 0-40
    contact: int = 0     # 0-20
    behavior: int = 0    # 0-10

    @property
    def total(self) -> int:
        return max(0, min(100, self.engagement + self.intent + self.contact + self.behavior))

    def to_dict(self) -> Dict[str, int]:
        return {
            "engagement": self.engagement,
            "intent": self.intent,
            "contact": self.contact,
            "behavior": self.behavior,
        }


@dataclass(frozen=True)
class LeadScoreResult:
    """Full scoring result for one lead."""
    lead_id: str
    total_score: int
    quality: LeadQuality
    confidence: float
    breakdown: ScoreBreakdown
    signals: EngagementSignals
    recommended_action: RecommendedAction
    reasoning: List[str] = field(default_factory=list)
    rule_based_score: int = 0
    ai_boost: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "lead_id": self.lead_id,
            "total_score": self.total_score,
            "quality": self.quality.value,
            "confidence": self.confidence,
            "breakdown": self.breakdown.to_dict(),
            "signals": self.signals.to_dict(),
            "recommended_action": self.recommended_action.value,
            "reasoning": list(self.reasoning),
            "rule_based_score": self.rule_based_score,
            "ai_boost": self.ai_boost,
        }

    @classmethod
    def safe_default(cls, lead_id: str, reason: str) -> "LeadScoreResult":
        """Result used when a lead cannot be scored; flags it for manual review."""
        return cls(
            lead_id=lead_id,
            total_score=0,
            quality=LeadQuality.COLD,
            confidence=0.0,
            breakdown=ScoreBreakdown(),
            signals=EngagementSignals(avg_response_time=24.0),
            recommended_action=RecommendedAction.LOW_PRIORITY,
            reasoning=[reason],
        )


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class LeadScorer:
    """
    Scores leads from engagement signals.

    Scoring Rules:
    - Engagement (cap 30): 3/DM up to 12, +3 responsive, 2/reel view up to 6,
      3/comment, 2/save, 1/like
    - Intent (0-40): enrollment +15, trial +12, pricing +8, schedule +8,
      level +5, urgency +7; negative sentiment -15, complaint -10,
      unresponsive after contact -20
    - Contact (cap 20): phone +8, email +7, WhatsApp +5
    - Behavior (cap 10): multiple reels +3, cross-day +4, replies < 2h +3

    Thresholds:
    - Score >= 75: HOT
    - Score 45-74: WARM
    - Score < 45: COLD
    """

    SCORING_RULES = {
        # Engagement
        "dm_points": 3,
        "dm_cap": 12,
        "responsive": 3,
        "view_points": 2,
        "view_cap": 6,
        "comment_points": 3,
        "save_points": 2,
        "like_points": 1,

        # Intent
        "enrollment": 15,
        "trial_class": 12,
        "pricing": 8,
        "schedule": 8,
        "level": 5,
        "urgency": 7,
        "negative_sentiment": -15,
        "complaint": -10,
        "unresponsive": -20,

        # Contact
        "phone": 8,
        "email": 7,
        "whatsapp": 5,

        # Behavior
        "multiple_reels": 3,
        "cross_day": 4,
        "fast_response": 3,
    }

    CAPS = {
        "engagement": 30,
        "intent": 40,
        "contact": 20,
        "behavior": 10,
    }

    RESPONSIVE_RATE = 80
    FAST_RESPONSE_HOURS = 2

    # Priority thresholds
    HOT_THRESHOLD = 75
    WARM_THRESHOLD = 45

    ACTION_REASONS = {
        "complaint": "Has complaint - needs manager attention",
        "unresponsive": "Unresponsive after contact - low priority",
        "trial": "Requested trial class - book immediately",
        "enroll_pricing": "Ready to enroll, asked about pricing - send payment details",
        LeadQuality.HOT: "High intent signals - contact within 24 hours",
        LeadQuality.WARM: "Showing interest - add to nurture sequence",
        LeadQuality.COLD: "Low engagement - monitor for future activity",
    }

    QUALITY_ACTIONS = {
        LeadQuality.HOT: RecommendedAction.IMMEDIATE_FOLLOWUP,
        LeadQuality.WARM: RecommendedAction.NURTURE,
        LeadQuality.COLD: RecommendedAction.LOW_PRIORITY,
    }

    def __init__(
        self,
        custom_rules: Optional[Dict[str, int]] = None,
        hot_threshold: int = HOT_THRESHOLD,
        warm_threshold: int = WARM_THRESHOLD,
    ):
        """
        Initialize the lead scorer.

        Args:
            custom_rules: Optional custom scoring rules to override defaults
            hot_threshold: Minimum score for a HOT lead
            warm_threshold: Minimum score for a WARM lead
        """
        self.rules = self.SCORING_RULES.copy()
        if custom_rules:
            self.rules.update(custom_rules)
        self.hot_threshold = hot_threshold
        self.warm_threshold = warm_threshold

    def score(self, signals: EngagementSignals) -> ScoreBreakdown:
        """Compute the four capped rule-based component scores."""
        return ScoreBreakdown(
            engagement=self.score_engagement(signals),
            intent=self.score_intent(signals),
            contact=self.score_contact(signals),
            behavior=self.score_behavior(signals),
        )

    def score_engagement(self, signals: EngagementSignals) -> int:
        r = self.rules
        score = min(signals.dm_count * r["dm_points"], r["dm_cap"])
        if signals.dm_response_rate > self.RESPONSIVE_RATE:
            score += r["responsive"]

        score += min(signals.reels_viewed * r["view_points"], r["view_cap"])
        score += signals.reels_commented * r["comment_points"]
        score += signals.reels_saved * r["save_points"]
        score += signals.reels_liked * r["like_points"]

        return int(_clamp(score, 0, self.CAPS["engagement"]))

    def score_intent(self, signals: EngagementSignals) -> int:
        r = self.rules
        score = 0

        if signals.mentioned_enrollment:
            score += r["enrollment"]
        if signals.requested_trial_class:
            score += r["trial_class"]
        if signals.asked_about_pricing:
            score += r["pricing"]
        if signals.asked_about_schedule:
            score += r["schedule"]
        if signals.asked_about_level:
            score += r["level"]
        if signals.urgency_keywords:
            score += r["urgency"]

        if signals.has_negative_sentiment:
            score += r["negative_sentiment"]
        if signals.has_complaint:
            score += r["complaint"]
        if signals.unresponsive_after_contact:
            score += r["unresponsive"]

        return int(_clamp(score, 0, self.CAPS["intent"]))

    def score_contact(self, signals: EngagementSignals) -> int:
        r = self.rules
        score = 0
        if signals.has_phone:
            score += r["phone"]
        if signals.has_email:
            score += r["email"]
        if signals.has_whatsapp:
            score += r["whatsapp"]
        return int(_clamp(score, 0, self.CAPS["contact"]))

    def score_behavior(self, signals: EngagementSignals) -> int:
        r = self.rules
        score = 0
        if signals.viewed_multiple_reels:
            score += r["multiple_reels"]
        if signals.engaged_across_time:
            score += r["cross_day"]
        if signals.avg_response_time < self.FAST_RESPONSE_HOURS:
            score += r["fast_response"]
        return int(_clamp(score, 0, self.CAPS["behavior"]))

    def classify_quality(self, score: int, signals: EngagementSignals) -> LeadQuality:
        """Quality tier; complaint and enrollment overrides beat the number."""
        if signals.has_complaint or signals.has_negative_sentiment:
            return LeadQuality.COLD

        if signals.mentioned_enrollment and signals.has_phone:
            return LeadQuality.HOT

        if score >= self.hot_threshold:
            return LeadQuality.HOT
        if score >= self.warm_threshold:
            return LeadQuality.WARM
        return LeadQuality.COLD

    def estimate_confidence(self, signals: EngagementSignals) -> float:
        """How much data backs the score (0-1)."""
        confidence = 0.5

        if signals.message_count >= 5:
            confidence += 0.2
        if signals.has_contact_info:
            confidence += 0.15
        if signals.reels_viewed >= 2:
            confidence += 0.1
        if signals.engaged_across_time:
            confidence += 0.1

        # Contradictory signals
        if signals.mentioned_enrollment and signals.has_negative_sentiment:
            confidence -= 0.2

        return round(_clamp(confidence, 0.0, 1.0), 2)

    def recommend_action(
        self,
        quality: LeadQuality,
        signals: EngagementSignals,
    ) -> Tuple[RecommendedAction, str]:
        """First matching rule decides the action."""
        reasons = self.ACTION_REASONS

        if signals.has_complaint:
            return RecommendedAction.DISQUALIFY, reasons["complaint"]

        if signals.unresponsive_after_contact:
            return RecommendedAction.LOW_PRIORITY, reasons["unresponsive"]

        if signals.requested_trial_class:
            return RecommendedAction.IMMEDIATE_FOLLOWUP, reasons["trial"]

        if signals.mentioned_enrollment and signals.asked_about_pricing:
            return RecommendedAction.IMMEDIATE_FOLLOWUP, reasons["enroll_pricing"]

        return self.QUALITY_ACTIONS[quality], reasons[quality]
