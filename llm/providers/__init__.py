"""
LLM Provider implementations.
"""

import logging
from typing import Any, Optional

from .bedrock import BedrockProvider
from .openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


def build_provider(settings: Any) -> Optional[Any]:
    """
    Create the provider selected by LLM_PROVIDER.

    Returns None when the provider is disabled or lacks credentials, which
    leaves semantic analysis unavailable and scoring rule-based only.
    """
    timeout = settings.analyzer_timeout_seconds

    try:
        if settings.is_openai:
            if not settings.openai_api_key:
                logger.warning("OpenAI API key not configured, skipping AI analysis")
                return None
            return OpenAIProvider(
                api_key=settings.openai_api_key,
                model_id=settings.openai_llm_model,
                max_tokens=settings.max_tokens,
                temperature=settings.temperature,
                timeout=timeout,
            )

        if settings.is_bedrock:
            return BedrockProvider(
                model_id=settings.bedrock_llm_model_id,
                region=settings.aws_region,
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                max_tokens=settings.max_tokens,
                temperature=settings.temperature,
                timeout=timeout,
            )
    except Exception as e:
        logger.warning(f"LLM provider init failed, running rule-based only: {e}")
        return None

    logger.info(f"LLM provider '{settings.llm_provider}' disabled, running rule-based only")
    return None


__all__ = ["BedrockProvider", "OpenAIProvider", "build_provider"]
