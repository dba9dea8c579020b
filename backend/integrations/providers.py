"""
Provider selection. The set of drivers is closed: each key maps to one client
class, resolved once from configuration.
"""
from typing import Optional, Protocol

from config import settings
from core.exceptions import ConfigurationError
from integrations.anthropic_client import AnthropicClient
from integrations.ollama_client import OllamaClient, OllamaEmbeddingClient
from integrations.openai_client import OpenAIClient, OpenAIEmbeddingClient


class LLMClient(Protocol):
    name: str

    def complete(self, system: str, prompt: str) -> str: ...


class EmbeddingClient(Protocol):
    name: str
    model: str
    dimension: int

    def embed(self, texts: list[str]) -> list[list[float]]: ...

    def embed_single(self, text: str) -> list[float]: ...


LLM_DRIVERS = {
    "openai": OpenAIClient,
    "anthropic": AnthropicClient,
    "ollama": OllamaClient,
}

EMBEDDING_DRIVERS = {
    "openai": OpenAIEmbeddingClient,
    "ollama": OllamaEmbeddingClient,
}


def create_llm_client(driver: Optional[str] = None) -> LLMClient:
    driver = driver or settings.LLM_DRIVER
    if driver not in LLM_DRIVERS:
        raise ConfigurationError(driver, f"Unsupported LLM driver; expected one of {sorted(LLM_DRIVERS)}")
    return LLM_DRIVERS[driver]()


def create_embedding_client(driver: Optional[str] = None) -> EmbeddingClient:
    driver = driver or settings.EMBEDDING_DRIVER
    if driver not in EMBEDDING_DRIVERS:
        raise ConfigurationError(driver, f"Unsupported embedding driver; expected one of {sorted(EMBEDDING_DRIVERS)}")
    return EMBEDDING_DRIVERS[driver]()
