"""
AWS Bedrock LLM Provider.
"""

import json
import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class BedrockProvider:
    """
    AWS Bedrock LLM provider for lead analysis.

    Sends one Anthropic Messages request per call through bedrock-runtime.
    """

    DEFAULT_MODEL = "us.anthropic.claude-sonnet-4-20250514-v1:0"
    ANTHROPIC_VERSION = "bedrock-2023-05-31"

    def __init__(
        self,
        model_id: str = DEFAULT_MODEL,
        region: str = "us-east-1",
        max_tokens: int = 512,
        temperature: float = 0.1,
        timeout: float = 10.0,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
    ):
        """
        Initialize Bedrock provider.

        Args:
            model_id: Bedrock model ID
            region: AWS region
            max_tokens: Maximum tokens for the analysis reply
            temperature: Generation temperature
            timeout: Read timeout in seconds
            aws_access_key_id: Explicit access key; boto3's credential chain when None
            aws_secret_access_key: Secret for the explicit access key
        """
        self.model_id = model_id
        self.region = region
        self.max_tokens = max_tokens
        self.temperature = temperature

        # No client-side retries: an unavailable analysis degrades to rule-based scoring
        client_config = Config(read_timeout=timeout, retries={"max_attempts": 0})
        credentials = {}
        if aws_access_key_id and aws_secret_access_key:
            credentials = {
                "aws_access_key_id": aws_access_key_id,
                "aws_secret_access_key": aws_secret_access_key,
            }
        self._client = boto3.client(
            "bedrock-runtime", region_name=region, config=client_config, **credentials
        )
        logger.info(f"Bedrock provider initialized: {model_id} in {region}")

    def _build_body(
        self,
        prompt: str,
        system: Optional[str],
        max_tokens: Optional[int],
        temperature: Optional[float],
    ) -> dict:
        body = {
            "anthropic_version": self.ANTHROPIC_VERSION,
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": temperature if temperature is not None else self.temperature,
            "messages": [
                {"role": "user", "content": [{"type": "text", "text": prompt}]},
            ],
        }
        if system:
            body["system"] = system
        return body

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Generate a reply to the prompt.

        Returns:
            The text of the first content block, or "" when the model sent none

        Raises:
            ClientError: Bedrock rejected or failed the request
        """
        body = self._build_body(prompt, system, max_tokens, temperature)

        try:
            response = self._client.invoke_model(
                modelId=self.model_id,
                body=json.dumps(body),
                contentType="application/json",
                accept="application/json",
            )
        except ClientError as e:
            logger.error(f"Bedrock API error: {e}")
            raise

        response_body = json.loads(response["body"].read())
        blocks = [b for b in response_body.get("content") or [] if b.get("type") == "text"]
        if not blocks:
            logger.warning("Empty response from Bedrock")
            return ""
        return blocks[0]["text"].strip()
