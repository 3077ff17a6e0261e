"""
Service initialization and dependency injection for the Lead Scoring API.

Creates and manages all service instances used by the API.
"""

import logging
from typing import Optional

from config.settings import get_settings, Settings
from lead_scoring.engine import LeadScoringEngine
from lead_scoring.message_parser import MessageParser
from llm.providers import build_provider
from llm.semantic_analyzer import SemanticAnalyzer

logger = logging.getLogger(__name__)


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.message_parser: Optional[MessageParser] = None
        self.analyzer: Optional[SemanticAnalyzer] = None
        self.engine: Optional[LeadScoringEngine] = None
        self._initialized = False

    def initialize(self, store=None):
        """
        Initialize all services.

        Args:
            store: Lead store for the engine. When omitted the SQL store is
                used if the database has been initialized.
        """
        if self._initialized:
            return

        self.settings = get_settings()
        logger.info(f"Initializing services with provider: {self.settings.llm_provider}")

        self.message_parser = MessageParser()
        self._init_analyzer()
        self._init_engine(store)
        self._initialized = True

        if self.engine is None:
            logger.warning("API starting in degraded mode (no lead store)")
        else:
            logger.info("All services initialized successfully")

    def _init_analyzer(self):
        """Initialize the semantic analyzer (rule-based only without a provider)."""
        s = self.settings
        provider = build_provider(s)
        self.analyzer = SemanticAnalyzer(
            provider=provider,
            brand_name=s.brand_name,
            max_tokens=s.max_tokens,
            temperature=s.temperature,
        )
        logger.info(f"Semantic analyzer available: {self.analyzer.is_available}")

    def _init_engine(self, store):
        """Initialize the scoring engine on top of the lead store."""
        if store is None:
            try:
                from database.session import get_session_factory
                from database.repositories import SqlLeadStore
                store = SqlLeadStore(get_session_factory())
            except RuntimeError as e:
                logger.warning(f"Lead store unavailable: {e}")
                return

        self.engine = LeadScoringEngine.from_settings(
            repository=store,
            analyzer=self.analyzer if self.analyzer.is_available else None,
            settings=self.settings,
        )
        logger.info("Lead scoring engine ready")

    def reset(self):
        """Drop all services so the next initialize() starts fresh."""
        self.__init__()

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.engine is not None

    def health(self) -> dict:
        """Return health status of all services."""
        return {
            "initialized": self._initialized,
            "message_parser": self.message_parser is not None,
            "semantic_analyzer": bool(self.analyzer and self.analyzer.is_available),
            "scoring_engine": self.engine is not None,
        }


# Singleton
_services = Services()


def get_services() -> Services:
    """Get the global services instance."""
    return _services


def initialize_services(store=None):
    """Initialize all services (called at startup)."""
    _services.initialize(store)
