"""
Semantic lead analysis over the language model.

Sends the lead's raw, possibly code-mixed conversation to the configured
provider and turns the JSON reply into a SemanticAnalysis. Any failure
(provider error, bad JSON, wrong shape) means the analysis is unavailable;
nothing is retried and nothing is raised.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Protocol

from lead_scoring.message_parser import Sentiment, Urgency
from lead_scoring.score_blender import SemanticAnalysis
from .prompt_templates import PromptTemplates, PromptType

logger = logging.getLogger(__name__)


class TextProvider(Protocol):
    """LLM provider surface used by the analyzer."""

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str: ...


class MalformedAnalysisError(ValueError):
    """Raised when the model reply does not match the expected shape."""


_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")

_REQUIRED_KEYS = ("intentStrength", "sentiment", "conversionProbability", "urgency")


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) wrapper."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
        cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def _score_field(data: Dict[str, Any], key: str) -> float:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedAnalysisError(f"{key} must be a number, got {type(value).__name__}")
    if not 0 <= value <= 100:
        raise MalformedAnalysisError(f"{key} out of range: {value}")
    return float(value)


def _string_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise MalformedAnalysisError(f"{key} must be a list of strings")
    return list(value)


def parse_analysis(response_text: str) -> SemanticAnalysis:
    """
    Parse a model reply into a SemanticAnalysis.

    Raises:
        MalformedAnalysisError: reply is not JSON or has the wrong shape
    """
    try:
        data = json.loads(strip_code_fence(response_text))
    except ValueError as e:
        raise MalformedAnalysisError(f"Reply is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedAnalysisError("Reply is not a JSON object")

    missing = [key for key in _REQUIRED_KEYS if key not in data]
    if missing:
        raise MalformedAnalysisError(f"Missing keys: {', '.join(missing)}")

    try:
        sentiment = Sentiment(data["sentiment"])
        urgency = Urgency(data["urgency"])
    except ValueError as e:
        raise MalformedAnalysisError(str(e)) from e

    reasoning = data.get("reasoning", "")
    if reasoning is None:
        reasoning = ""
    if not isinstance(reasoning, str):
        raise MalformedAnalysisError("reasoning must be a string")

    return SemanticAnalysis(
        intent_strength=_score_field(data, "intentStrength"),
        sentiment=sentiment,
        conversion_probability=_score_field(data, "conversionProbability"),
        urgency=urgency,
        reasoning=reasoning,
        detected_languages=_string_list(data, "detectedLanguages"),
        key_signals=_string_list(data, "keySignals"),
    )


class SemanticAnalyzer:
    """
    Best-effort semantic analysis of lead conversations.

    The provider is injected; without one the analyzer reports every
    analysis as unavailable.
    """

    def __init__(
        self,
        provider: Optional[TextProvider] = None,
        brand_name: str = "German Language School",
        max_tokens: int = 512,
        temperature: float = 0.1,
    ):
        """
        Initialize the analyzer.

        Args:
            provider: LLM provider with a generate() method
            brand_name: School name used in the system prompt
            max_tokens: Token budget for the reply
            temperature: Sampling temperature
        """
        self.provider = provider
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._system_prompt = PromptTemplates.get_system_prompt(
            PromptType.LEAD_ANALYSIS, brand_name=brand_name
        )

    @property
    def is_available(self) -> bool:
        return self.provider is not None

    def analyze(self, text: str) -> Optional[SemanticAnalysis]:
        """
        Analyze conversation text.

        Args:
            text: Comments, inbound messages and notes joined by newlines

        Returns:
            SemanticAnalysis, or None when unavailable
        """
        if not self.provider:
            logger.debug("No LLM provider configured, skipping AI analysis")
            return None

        if not text or not text.strip():
            return None

        prompt = PromptTemplates.build_lead_analysis_prompt(text)

        try:
            response_text = self.provider.generate(
                prompt,
                system=self._system_prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except Exception as e:
            logger.warning(f"AI lead analysis call failed: {e}")
            return None

        if not response_text or not isinstance(response_text, str):
            logger.warning("Empty response from LLM for lead analysis")
            return None

        try:
            analysis = parse_analysis(response_text)
        except MalformedAnalysisError as e:
            logger.warning(f"Invalid AI response format: {e}")
            return None

        logger.debug(
            f"AI lead analysis: intent={analysis.intent_strength:g} "
            f"sentiment={analysis.sentiment.value} urgency={analysis.urgency.value}"
        )
        return analysis
