"""
Shared plumbing for the HTTP LLM / embedding providers: one httpx.Client per
provider instance, JSON POST with retry and exponential back-off, and error
translation into LLMError.
"""
import logging
import time
from typing import Optional

import httpx

from config import settings
from core.exceptions import LLMError

logger = logging.getLogger(__name__)

# Embedding vector length per model; unknown models fall back to 1536.
MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
}
DEFAULT_DIMENSION = 1536


def dimension_for_model(model: str) -> int:
    return MODEL_DIMENSIONS.get(model, DEFAULT_DIMENSION)


class HttpProviderClient:
    """Base class; subclasses set ``name`` and ``health_path``."""

    name = "provider"
    health_path = ""

    def __init__(
        self,
        base_url: str,
        timeout: float,
        headers: Optional[dict] = None,
        max_retries: Optional[int] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries if max_retries is not None else settings.LLM_MAX_RETRIES)
        self.client = httpx.Client(
            base_url=self.base_url + "/",
            timeout=timeout,
            headers={"Content-Type": "application/json", **(headers or {})},
        )

    def _post(self, path: str, payload: dict) -> dict:
        """POST JSON and return the decoded body. Retries transport errors and 5xx/429."""
        last_err: Optional[LLMError] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                logger.debug("%s POST %s attempt %d", self.name, path, attempt)
                resp = self.client.post(path, json=payload)
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                last_err = LLMError.api_error(self.name, f"HTTP {status}: {e.response.text[:200]}")
                if status < 500 and status != 429:
                    raise last_err from e
            except httpx.HTTPError as e:
                last_err = LLMError.connection_failed(self.name, str(e))
            else:
                try:
                    return resp.json()
                except ValueError as e:
                    raise LLMError.invalid_response(self.name, f"Body is not JSON: {e}") from e

            logger.warning("%s attempt %d/%d failed: %s", self.name, attempt, self.max_retries, last_err)
            if attempt < self.max_retries:
                time.sleep(2 ** attempt)
        raise last_err

    def is_healthy(self) -> tuple[bool, Optional[str]]:
        """Returns (True, None) if the provider is reachable, (False, error) otherwise."""
        try:
            resp = self.client.get(self.health_path, timeout=5)
            resp.raise_for_status()
            return True, None
        except httpx.HTTPError as e:
            return False, str(e)

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *_):
        self.close()
