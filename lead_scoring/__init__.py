"""
Lead Scoring Module.

This module provides lead qualification and scoring capabilities:
- Message parsing (intent, level, contact info, quick screening score)
- Engagement signal extraction from DM/comment/notes history
- Multi-factor rule-based scoring (0-100 scale)
- Blending with optional AI semantic analysis
- Quality tier, confidence and recommended action
"""

from .records import (
    LeadRecord, LeadSnapshot, LeadStatus, DirectMessage, Comment,
    MessageDirection, EngagementCounters,
)
from .message_parser import (
    MessageParser, ParsedMessage, MessageIntent, Sentiment, Urgency,
    ContactInfo, parse_message, should_create_lead,
)
from .signal_extractor import SignalExtractor, EngagementSignals
from .scoring_model import (
    LeadScorer, LeadScoreResult, LeadQuality, RecommendedAction, ScoreBreakdown,
)
from .score_blender import ScoreBlender, SemanticAnalysis, BlendResult
from .rate_limit import RateLimiter
from .engine import LeadScoringEngine, RescoreSummary

__all__ = [
    "LeadRecord",
    "LeadSnapshot",
    "LeadStatus",
    "DirectMessage",
    "Comment",
    "MessageDirection",
    "EngagementCounters",
    "MessageParser",
    "ParsedMessage",
    "MessageIntent",
    "Sentiment",
    "Urgency",
    "ContactInfo",
    "parse_message",
    "should_create_lead",
    "SignalExtractor",
    "EngagementSignals",
    "LeadScorer",
    "LeadScoreResult",
    "LeadQuality",
    "RecommendedAction",
    "ScoreBreakdown",
    "ScoreBlender",
    "SemanticAnalysis",
    "BlendResult",
    "RateLimiter",
    "LeadScoringEngine",
    "RescoreSummary",
]
