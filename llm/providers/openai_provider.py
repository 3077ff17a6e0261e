"""
OpenAI LLM Provider.
"""

import logging
from typing import Optional

from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """OpenAI chat-completions provider for lead analysis."""

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_id: str = DEFAULT_MODEL,
        max_tokens: int = 512,
        temperature: float = 0.1,
        timeout: float = 10.0,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model_id: Model ID
            max_tokens: Maximum tokens for the analysis reply
            temperature: Generation temperature
            timeout: Per-request timeout in seconds
        """
        # Retries are disabled: a failed analysis falls back to rule-based scoring
        self._client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature

        logger.info(f"OpenAI provider initialized: {model_id}")

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Generate a reply; the system prompt, when given, goes first."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self._client.chat.completions.create(
                model=self.model_id,
                messages=messages,
                max_tokens=max_tokens or self.max_tokens,
                temperature=temperature if temperature is not None else self.temperature,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI generation failed: {e}")
            raise

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()
