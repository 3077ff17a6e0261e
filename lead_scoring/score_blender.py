"""
Score Blender for the Lead Scoring Engine.

Merges the rule-based total with the optional semantic analysis into the
final score, and records every contributing term as a reasoning line.
"""

import math
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from .message_parser import Sentiment, Urgency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SemanticAnalysis:
    """Probabilistic intent signals returned by the language model."""
    intent_strength: float  # 0-100
    sentiment: Sentiment
    conversion_probability: float  # 0-100
    urgency: Urgency
    reasoning: str = ""
    detected_languages: List[str] = field(default_factory=list)
    key_signals: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent_strength": self.intent_strength,
            "sentiment": self.sentiment.value,
            "conversion_probability": self.conversion_probability,
            "urgency": self.urgency.value,
            "reasoning": self.reasoning,
            "detected_languages": list(self.detected_languages),
            "key_signals": list(self.key_signals),
        }


@dataclass(frozen=True)
class BlendResult:
    """Result of blending the rule-based score with AI analysis."""
    rule_based_score: int
    final_score: int
    ai_boost: int
    raw_ai_boost: float = 0.0
    analysis_used: bool = False
    reasoning: List[str] = field(default_factory=list)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ScoreBlender:
    """
    Blends rule-based and AI scores.

    Boost = intent term (-10..+10) + sentiment (+/-5) + urgency (+3/+1)
    + 2 when the lead writes in the regional language.
    """

    FALLBACK_REASON = "Using rule-based scoring only (AI unavailable)"

    INTENT_SCALE = 10
    SENTIMENT_POINTS = {
        Sentiment.POSITIVE: 5,
        Sentiment.NEUTRAL: 0,
        Sentiment.NEGATIVE: -5,
    }
    URGENCY_POINTS = {
        Urgency.HIGH: 3,
        Urgency.MEDIUM: 1,
        Urgency.LOW: 0,
    }
    REGIONAL_LANGUAGE_BONUS = 2
    MAX_KEY_SIGNALS = 3

    def __init__(self, regional_language_code: str = "ml"):
        self.regional_language_code = regional_language_code.lower()

    def blend(self, rule_based_score: int, analysis: Optional[SemanticAnalysis]) -> BlendResult:
        """
        Combine the rule-based score with AI analysis.

        Args:
            rule_based_score: Sum of the rule-based components (0-100)
            analysis: Semantic analysis, or None when unavailable

        Returns:
            BlendResult with final score and reasoning trail
        """
        if analysis is None:
            return BlendResult(
                rule_based_score=rule_based_score,
                final_score=rule_based_score,
                ai_boost=0,
                reasoning=[self.FALLBACK_REASON],
            )

        reasoning: List[str] = []

        intent_term = (analysis.intent_strength - 50) / 50 * self.INTENT_SCALE
        boost = max(-self.INTENT_SCALE, min(self.INTENT_SCALE, intent_term))

        if analysis.intent_strength >= 80:
            reasoning.append(f"AI detected very high intent ({analysis.intent_strength:g}/100)")
        elif analysis.intent_strength >= 60:
            reasoning.append("AI detected strong inquiry signals")

        boost += self.SENTIMENT_POINTS[analysis.sentiment]
        if analysis.sentiment == Sentiment.POSITIVE:
            reasoning.append("Positive sentiment detected")
        elif analysis.sentiment == Sentiment.NEGATIVE:
            reasoning.append("Negative sentiment detected")

        boost += self.URGENCY_POINTS[analysis.urgency]
        if analysis.urgency == Urgency.HIGH:
            reasoning.append("High urgency detected")

        languages = [lang.lower() for lang in analysis.detected_languages]
        if self.regional_language_code in languages:
            boost += self.REGIONAL_LANGUAGE_BONUS
            reasoning.append(
                f"Communicating in regional language '{self.regional_language_code}' (higher engagement)"
            )

        if analysis.reasoning:
            reasoning.append(f"AI insight: {analysis.reasoning}")

        if analysis.key_signals:
            signals = ", ".join(analysis.key_signals[:self.MAX_KEY_SIGNALS])
            reasoning.append(f"Key signals: {signals}")

        final_score = _round_half_up(max(0, min(100, rule_based_score + boost)))

        reasoning.append(f"Score: {rule_based_score} (rule-based) + {boost:.1f} (AI) = {final_score}")
        reasoning.append(f"Conversion probability: {analysis.conversion_probability:g}%")

        return BlendResult(
            rule_based_score=rule_based_score,
            final_score=final_score,
            ai_boost=_round_half_up(boost),
            raw_ai_boost=boost,
            analysis_used=True,
            reasoning=reasoning,
        )
