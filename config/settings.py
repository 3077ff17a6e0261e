"""
Centralized configuration for the Lead Scoring Engine.

All settings are loaded from environment variables via .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Brand
    brand_name: str = Field(default="German Language School")

    # AWS / Bedrock
    aws_region: str = Field(default="us-east-1")
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    bedrock_llm_model_id: str = Field(default="us.anthropic.claude-sonnet-4-20250514-v1:0")

    # OpenAI
    openai_api_key: Optional[str] = Field(default=None)
    openai_llm_model: str = Field(default="gpt-4o-mini")

    # LLM provider selection
    llm_provider: str = Field(default="bedrock")  # bedrock | openai | none
    max_tokens: int = Field(default=512)
    temperature: float = Field(default=0.1)

    # Semantic analysis
    analyzer_timeout_seconds: float = Field(default=10.0)
    regional_language_code: str = Field(default="ml")

    # Lead scoring
    lead_score_threshold_hot: int = Field(default=75)
    lead_score_threshold_warm: int = Field(default=45)
    unresponsive_after_days: int = Field(default=7)
    rescore_calls_per_minute: float = Field(default=600.0)
    active_lead_statuses: str = Field(
        default="NEW,CONTACTED,INTERESTED,TRIAL_SCHEDULED,TRIAL_ATTENDED"
    )

    # Database
    database_url: Optional[str] = Field(default=None)

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_title: str = Field(default="Lead Scoring Engine API")
    api_version: str = Field(default="1.0.0")
    cors_origins: str = Field(default="*")

    # Logging
    log_level: str = Field(default="INFO")

    @property
    def is_bedrock(self) -> bool:
        return self.llm_provider.lower() == "bedrock"

    @property
    def is_openai(self) -> bool:
        return self.llm_provider.lower() == "openai"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def active_statuses_list(self) -> List[str]:
        return [s.strip().upper() for s in self.active_lead_statuses.split(",") if s.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
