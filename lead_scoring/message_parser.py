"""
Direct Message Parser for the Lead Scoring Engine.

Extracts lead information from a single inbound message:
- Intent (enrollment, pricing, schedule, level info, inquiry)
- Course level (A1-C2)
- Contact information (name, email, phone)
- Course keywords
- Sentiment and urgency
- A quick screening score used to decide whether to open a lead
"""

import re
import logging
from enum import Enum
from typing import List, Dict, Any, Optional, Tuple
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class MessageIntent(Enum):
    """Intent of a single message, in classification priority order."""
    ENROLLMENT = "enrollment"
    PRICING = "pricing"
    SCHEDULE = "schedule"
    LEVEL_INFO = "level_info"
    INQUIRY = "inquiry"
    GENERAL = "general"


class Sentiment(Enum):
    """Message sentiment."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Urgency(Enum):
    """How soon the sender wants to act."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ContactInfo:
    """Contact details found in a message."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    def has_contact(self) -> bool:
        """Name alone is not a way to reach someone."""
        return bool(self.email or self.phone)


@dataclass(frozen=True)
class ParsedMessage:
    """Result of parsing one message."""
    intent: MessageIntent
    level: Optional[str] = None
    contact_info: ContactInfo = field(default_factory=ContactInfo)
    keywords: Tuple[str, ...] = ()
    quick_score: int = 0
    sentiment: Sentiment = Sentiment.NEUTRAL
    urgency: Urgency = Urgency.LOW

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "intent": self.intent.value,
            "level": self.level,
            "contact_info": {
                "name": self.contact_info.name,
                "email": self.contact_info.email,
                "phone": self.contact_info.phone,
            },
            "keywords": list(self.keywords),
            "quick_score": self.quick_score,
            "sentiment": self.sentiment.value,
            "urgency": self.urgency.value,
        }


class MessageParser:
    """
    Rule-based parser for inbound direct messages.

    Deterministic and free of I/O: the same text always yields the same
    ParsedMessage. Intent dictionaries are checked in declaration order and
    the first category with a hit wins, so a message that mentions both
    enrolling and fees is an enrollment message.
    """

    INTENT_KEYWORDS = {
        MessageIntent.ENROLLMENT: [
            "enroll", "join", "register", "sign up", "admission",
            "want to join", "how to enroll",
        ],
        MessageIntent.PRICING: [
            "price", "cost", "fee", "fees", "charges", "payment",
            "how much", "affordable", "discount",
        ],
        MessageIntent.SCHEDULE: [
            "schedule", "timing", "time", "when", "start date", "batch",
            "class timing", "next batch", "upcoming",
        ],
        MessageIntent.LEVEL_INFO: [
            "level", "beginner", "intermediate", "advanced",
            "a1", "a2", "b1", "b2", "c1", "c2", "which level",
        ],
        MessageIntent.INQUIRY: [
            "interested", "information", "details", "know more",
            "tell me", "learn", "course", "german",
        ],
    }

    INTENT_BASE_SCORES = {
        MessageIntent.ENROLLMENT: 40,
        MessageIntent.PRICING: 30,
        MessageIntent.SCHEDULE: 25,
        MessageIntent.LEVEL_INFO: 20,
        MessageIntent.INQUIRY: 15,
        MessageIntent.GENERAL: 5,
    }

    # Intents that always justify opening a lead
    LEAD_WORTHY_INTENTS = (
        MessageIntent.ENROLLMENT,
        MessageIntent.PRICING,
        MessageIntent.SCHEDULE,
    )

    LEVEL_CODES = ["a1", "a2", "b1", "b2", "c1", "c2"]

    LEVEL_SYNONYMS = {
        "beginner": "A1",
        "intermediate": "B1",
        "advanced": "C1",
    }

    KEYWORD_CATEGORIES = {
        "course_type": ["german", "course", "class", "lesson", "training"],
        "learning_mode": ["online", "offline", "hybrid", "zoom", "physical"],
        "timing": ["morning", "evening", "weekend", "weekday", "flexible"],
        "duration": ["month", "weeks", "intensive", "regular", "crash course"],
        "certification": ["certificate", "goethe", "exam", "certification"],
    }

    POSITIVE_WORDS = [
        "interested", "excited", "great", "perfect", "amazing",
        "love", "yes", "definitely", "thanks", "thank you",
    ]

    NEGATIVE_WORDS = [
        "expensive", "costly", "not sure", "doubt", "confused",
        "problem", "issue",
    ]

    HIGH_URGENCY = [
        "urgent", "asap", "immediately", "today", "right now",
        "this week", "starting soon",
    ]

    MEDIUM_URGENCY = ["soon", "this month", "next week", "quickly"]

    # Quick score weights
    LEVEL_BONUS = 10
    CONTACT_BONUS = 30
    KEYWORD_POINTS = 3
    KEYWORD_CAP = 15
    LONG_MESSAGE_CHARS = 50
    LONG_MESSAGE_BONUS = 5
    CREATE_LEAD_THRESHOLD = 25

    def __init__(self):
        self._build_patterns()

    def _build_patterns(self):
        """Build regex patterns for entity extraction."""
        self.email_pattern = re.compile(
            r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'
        )

        # Indian mobile numbers first, then any 10-digit run
        self.phone_patterns = [
            re.compile(r'(?<![\d+])(?:\+91[\s-]?)?[6-9]\d{9}(?!\d)'),
            re.compile(r'\b\d{10}\b'),
        ]

        self.level_patterns = [
            re.compile(rf'\b{code}\b') for code in self.LEVEL_CODES
        ]

        # Prefix is case-insensitive, the name itself must be capitalized
        self.name_pattern = re.compile(
            r"^(?i:my name is|i am|i'm)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)"
        )

    def parse(self, message: str) -> ParsedMessage:
        """
        Parse a message into intent, contact details and screening score.

        Args:
            message: Raw message text

        Returns:
            ParsedMessage
        """
        message = message or ""
        message_lower = message.lower()

        intent = self._detect_intent(message_lower)
        level = self._extract_level(message_lower)
        contact_info = self._extract_contact_info(message)
        keywords = self._extract_keywords(message_lower)

        quick_score = self._calculate_quick_score(
            intent=intent,
            level=level,
            has_contact=contact_info.has_contact(),
            keyword_count=len(keywords),
            message_length=len(message),
        )

        return ParsedMessage(
            intent=intent,
            level=level,
            contact_info=contact_info,
            keywords=keywords,
            quick_score=quick_score,
            sentiment=self._detect_sentiment(message_lower),
            urgency=self._detect_urgency(message_lower),
        )

    def _detect_intent(self, message_lower: str) -> MessageIntent:
        """First category with any keyword hit wins."""
        for intent, keywords in self.INTENT_KEYWORDS.items():
            if any(keyword in message_lower for keyword in keywords):
                return intent
        return MessageIntent.GENERAL

    def _extract_level(self, message_lower: str) -> Optional[str]:
        """Extract course level, mapping descriptive words to CEFR codes."""
        for code, pattern in zip(self.LEVEL_CODES, self.level_patterns):
            if pattern.search(message_lower):
                return code.upper()

        for word, code in self.LEVEL_SYNONYMS.items():
            if word in message_lower:
                return code

        return None

    def _extract_contact_info(self, message: str) -> ContactInfo:
        """Extract email, phone and a self-introduced name."""
        email = None
        email_match = self.email_pattern.search(message)
        if email_match:
            email = email_match.group(0)

        phone = None
        for pattern in self.phone_patterns:
            phone_match = pattern.search(message)
            if phone_match:
                phone = re.sub(r'[\s-]', '', phone_match.group(0))
                break

        name = None
        name_match = self.name_pattern.match(message.strip())
        if name_match:
            name = name_match.group(1)

        return ContactInfo(name=name, email=email, phone=phone)

    def _extract_keywords(self, message_lower: str) -> Tuple[str, ...]:
        """Collect course-related terms, each recorded once."""
        found: List[str] = []
        for terms in self.KEYWORD_CATEGORIES.values():
            for term in terms:
                if term in message_lower and term not in found:
                    found.append(term)
        return tuple(found)

    def _calculate_quick_score(
        self,
        intent: MessageIntent,
        level: Optional[str],
        has_contact: bool,
        keyword_count: int,
        message_length: int,
    ) -> int:
        """Screening score (0-100) for a single message."""
        score = self.INTENT_BASE_SCORES[intent]

        if level:
            score += self.LEVEL_BONUS

        if has_contact:
            score += self.CONTACT_BONUS

        score += min(keyword_count * self.KEYWORD_POINTS, self.KEYWORD_CAP)

        if message_length > self.LONG_MESSAGE_CHARS:
            score += self.LONG_MESSAGE_BONUS

        return max(0, min(100, score))

    def _detect_sentiment(self, message_lower: str) -> Sentiment:
        positive = sum(1 for word in self.POSITIVE_WORDS if word in message_lower)
        negative = sum(1 for word in self.NEGATIVE_WORDS if word in message_lower)

        if positive > negative:
            return Sentiment.POSITIVE
        if negative > positive:
            return Sentiment.NEGATIVE
        return Sentiment.NEUTRAL

    def _detect_urgency(self, message_lower: str) -> Urgency:
        if any(word in message_lower for word in self.HIGH_URGENCY):
            return Urgency.HIGH
        if any(word in message_lower for word in self.MEDIUM_URGENCY):
            return Urgency.MEDIUM
        return Urgency.LOW

    def should_create_lead(self, parsed: ParsedMessage) -> bool:
        """
        Decide whether a message is worth opening a lead for.

        True when the quick score clears the threshold, when the sender left
        a phone or email, or when the intent is enrollment, pricing or schedule.
        """
        return (
            parsed.quick_score >= self.CREATE_LEAD_THRESHOLD
            or parsed.contact_info.has_contact()
            or parsed.intent in self.LEAD_WORTHY_INTENTS
        )

    def generate_lead_notes(
        self,
        handle: str,
        messages: List[str],
        parsed: ParsedMessage,
    ) -> str:
        """Build the operator note attached to a lead opened from a DM."""
        notes = [
            f"Source: Instagram DM (@{handle})",
            f"Intent: {parsed.intent.value.replace('_', ' ').upper()}",
        ]

        if parsed.level:
            notes.append(f"Level Interest: {parsed.level}")

        if parsed.urgency != Urgency.LOW:
            notes.append(f"Urgency: {parsed.urgency.value.upper()}")

        if parsed.keywords:
            notes.append(f"Keywords: {', '.join(parsed.keywords)}")

        if messages:
            latest = messages[-1]
            suffix = "..." if len(latest) > 200 else ""
            notes.append(f"\nLatest Message:\n\"{latest[:200]}{suffix}\"")

        return "\n".join(notes)


_default_parser = MessageParser()


def parse_message(message: str) -> ParsedMessage:
    """Parse a message with the default parser."""
    return _default_parser.parse(message)


def should_create_lead(parsed: ParsedMessage) -> bool:
    """Lead-creation gate using the default parser's thresholds."""
    return _default_parser.should_create_lead(parsed)
