"""Anthropic Messages API client."""
import logging
from typing import Optional

from config import settings
from core.exceptions import ConfigurationError, LLMError
from integrations.base import HttpProviderClient

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicClient(HttpProviderClient):
    """POST /messages with the system prompt as a top-level field."""

    name = "anthropic"
    health_path = "models"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        api_key = api_key if api_key is not None else settings.ANTHROPIC_API_KEY
        if not api_key:
            raise ConfigurationError(self.name, "API key is required")
        super().__init__(
            base_url or settings.ANTHROPIC_BASE_URL,
            timeout or settings.ANTHROPIC_TIMEOUT_SECONDS,
            headers={"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION},
            max_retries=max_retries,
        )
        self.model = model or settings.ANTHROPIC_MODEL

    def complete(self, system: str, prompt: str) -> str:
        body = self._post("messages", {
            "model": self.model,
            "max_tokens": 1000,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
        })
        try:
            return body["content"][0]["text"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise LLMError.invalid_response(self.name, "Missing text in response", body) from e
