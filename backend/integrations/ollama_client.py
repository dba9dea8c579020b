"""
Ollama REST API clients.
Wraps POST /api/chat for SQL generation and POST /api/embed for the schema index.
"""
import logging
from typing import Optional

from config import settings
from core.exceptions import LLMError
from integrations.base import HttpProviderClient, dimension_for_model

logger = logging.getLogger(__name__)


class OllamaClient(HttpProviderClient):
    """Thin client for the Ollama local LLM server."""

    name = "ollama"
    health_path = "api/version"

    def __init__(
        self,
        host: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        super().__init__(
            host or settings.OLLAMA_HOST,
            timeout or settings.OLLAMA_TIMEOUT_SECONDS,
            max_retries=max_retries,
        )
        self.model = model or settings.OLLAMA_MODEL

    def complete(self, system: str, prompt: str) -> str:
        body = self._post("api/chat", {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "stream": False,
            "options": {"temperature": 0},
        })
        try:
            text = body["message"]["content"].strip()
        except (KeyError, TypeError, AttributeError) as e:
            raise LLMError.invalid_response(self.name, "Missing content in response", body) from e
        logger.debug("Ollama response length: %d chars", len(text))
        return text


class OllamaEmbeddingClient(HttpProviderClient):
    """POST /api/embed, which accepts a list of inputs in one request."""

    name = "ollama-embedding"
    health_path = "api/version"

    def __init__(
        self,
        host: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        super().__init__(
            host or settings.OLLAMA_HOST,
            timeout or settings.OLLAMA_TIMEOUT_SECONDS,
            max_retries=max_retries,
        )
        self.model = model or settings.EMBEDDING_MODEL
        self.dimension = dimension_for_model(self.model)

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        body = self._post("api/embed", {"model": self.model, "input": texts})
        embeddings = body.get("embeddings") if isinstance(body, dict) else None
        if not isinstance(embeddings, list):
            raise LLMError.invalid_response(self.name, "Missing embeddings in response", body)
        return embeddings

    def embed_single(self, text: str) -> list[float]:
        result = self.embed([text])
        return result[0] if result else []
