"""Tests for the semantic analyzer and its reply parsing."""

import json

import pytest
from lead_scoring.message_parser import Sentiment, Urgency
from llm.semantic_analyzer import (
    SemanticAnalyzer, MalformedAnalysisError, parse_analysis, strip_code_fence,
)
from llm.prompt_templates import PromptTemplates, PromptType


VALID_REPLY = {
    "intentStrength": 82,
    "sentiment": "positive",
    "conversionProbability": 70,
    "urgency": "medium",
    "reasoning": "Asked fee and start date",
    "detectedLanguages": ["ml", "en"],
    "keySignals": ["fee ethra", "eppo start"],
}


def reply(**overrides):
    data = dict(VALID_REPLY)
    data.update(overrides)
    return json.dumps(data)


# ── Reply parsing ─────────────────────────────────────

class TestParseAnalysis:
    def test_valid_reply(self):
        result = parse_analysis(reply())
        assert result.intent_strength == 82
        assert result.sentiment == Sentiment.POSITIVE
        assert result.urgency == Urgency.MEDIUM
        assert result.detected_languages == ["ml", "en"]
        assert result.key_signals == ["fee ethra", "eppo start"]

    @pytest.mark.parametrize("wrapped", [
        "```json\n{}\n```",
        "```\n{}\n```",
        "  ```JSON {} ```  ",
    ])
    def test_code_fence_stripped(self, wrapped):
        assert parse_analysis(wrapped.replace("{}", reply())).intent_strength == 82

    def test_strip_code_fence_leaves_plain_text(self):
        assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'

    def test_optional_fields_default(self):
        data = {k: VALID_REPLY[k] for k in ("intentStrength", "sentiment", "conversionProbability", "urgency")}
        result = parse_analysis(json.dumps(data))
        assert result.reasoning == ""
        assert result.detected_languages == []
        assert result.key_signals == []

    @pytest.mark.parametrize("bad", [
        "not json at all",
        "[1, 2, 3]",
        json.dumps({"sentiment": "positive"}),
        reply(intentStrength=120),
        reply(conversionProbability=-1),
        reply(intentStrength="high"),
        reply(intentStrength=True),
        reply(sentiment="ecstatic"),
        reply(urgency="now"),
        reply(reasoning=["a list"]),
        reply(keySignals="fee"),
        reply(detectedLanguages=["ml", 3]),
    ])
    def test_malformed_replies_rejected(self, bad):
        with pytest.raises(MalformedAnalysisError):
            parse_analysis(bad)


# ── Analyzer ──────────────────────────────────────────

class TestSemanticAnalyzer:
    def test_unavailable_without_provider(self):
        analyzer = SemanticAnalyzer()
        assert not analyzer.is_available
        assert analyzer.analyze("fee ethra?") is None

    def test_analyze(self, fake_provider):
        provider = fake_provider(reply=reply())
        result = SemanticAnalyzer(provider=provider).analyze("fee ethra?\neppo start?")
        assert result.conversion_probability == 70
        assert len(provider.calls) == 1
        assert "fee ethra?\neppo start?" in provider.calls[0]["prompt"]

    def test_system_prompt_names_school(self, fake_provider):
        provider = fake_provider(reply=reply())
        SemanticAnalyzer(provider=provider, brand_name="Goethe Hub Kochi").analyze("hi")
        assert "Goethe Hub Kochi" in provider.calls[0]["system"]

    def test_blank_text_skips_provider(self, fake_provider):
        provider = fake_provider(reply=reply())
        assert SemanticAnalyzer(provider=provider).analyze("   ") is None
        assert provider.calls == []

    def test_provider_error_is_unavailable(self, fake_provider):
        provider = fake_provider(error=RuntimeError("throttled"))
        assert SemanticAnalyzer(provider=provider).analyze("hi") is None

    def test_empty_reply_is_unavailable(self, fake_provider):
        assert SemanticAnalyzer(provider=fake_provider(reply="")).analyze("hi") is None

    def test_malformed_reply_is_unavailable(self, fake_provider):
        provider = fake_provider(reply=reply(sentiment="unknown"))
        assert SemanticAnalyzer(provider=provider).analyze("hi") is None


class TestPromptTemplates:
    def test_lead_analysis_prompt_keeps_json_braces(self):
        prompt = PromptTemplates.build_lead_analysis_prompt("join cheyyan interested")
        assert "join cheyyan interested" in prompt
        assert '"intentStrength": <number 0-100>' in prompt

    def test_custom_instructions(self):
        prompt = PromptTemplates.get_system_prompt(
            PromptType.LEAD_ANALYSIS, custom_instructions="Prefer Malayalam cues"
        )
        assert prompt.endswith("Prefer Malayalam cues")
