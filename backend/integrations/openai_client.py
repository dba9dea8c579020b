"""
OpenAI REST API clients.
Chat completions for SQL generation and /embeddings for the schema index.
"""
import logging
from typing import Optional

from config import settings
from core.exceptions import ConfigurationError, LLMError
from integrations.base import HttpProviderClient, dimension_for_model

logger = logging.getLogger(__name__)


def _auth_headers(api_key: str, component: str) -> dict:
    if not api_key:
        raise ConfigurationError(component, "OpenAI API key is required")
    return {"Authorization": f"Bearer {api_key}"}


class OpenAIClient(HttpProviderClient):
    """POST /chat/completions with a system + user message pair."""

    name = "openai"
    health_path = "models"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        headers = _auth_headers(api_key if api_key is not None else settings.OPENAI_API_KEY, self.name)
        super().__init__(
            base_url or settings.OPENAI_BASE_URL,
            timeout or settings.OPENAI_TIMEOUT_SECONDS,
            headers=headers,
            max_retries=max_retries,
        )
        self.model = model or settings.OPENAI_MODEL

    def complete(self, system: str, prompt: str) -> str:
        body = self._post("chat/completions", {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0,
            "max_tokens": 1000,
        })
        try:
            return body["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise LLMError.invalid_response(self.name, "Missing content in response", body) from e


class OpenAIEmbeddingClient(HttpProviderClient):
    """POST /embeddings. Batches keep input order."""

    name = "openai-embedding"
    health_path = "models"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        headers = _auth_headers(api_key if api_key is not None else settings.OPENAI_API_KEY, "embedding")
        super().__init__(
            base_url or settings.OPENAI_BASE_URL,
            timeout or settings.OPENAI_TIMEOUT_SECONDS,
            headers=headers,
            max_retries=max_retries,
        )
        self.model = model or settings.EMBEDDING_MODEL
        self.dimension = dimension_for_model(self.model)

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        body = self._post("embeddings", {"model": self.model, "input": texts})
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            raise LLMError.invalid_response(self.name, "Missing data in response", body)
        # The API may return items out of order; "index" is authoritative
        data = sorted(data, key=lambda item: item.get("index", 0))
        return [item["embedding"] for item in data]

    def embed_single(self, text: str) -> list[float]:
        result = self.embed([text])
        return result[0] if result else []
