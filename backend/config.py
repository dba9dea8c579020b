"""Application settings loaded from .env file."""
from pydantic_settings import BaseSettings, SettingsConfigDict

from models.guard import GuardConfig
from models.schema import SchemaFilterConfig


def _split(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # LLM
    LLM_DRIVER: str = "openai"
    LLM_MAX_RETRIES: int = 3

    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_TIMEOUT_SECONDS: int = 30

    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_MODEL: str = "claude-sonnet-4-20250514"
    ANTHROPIC_BASE_URL: str = "https://api.anthropic.com/v1"
    ANTHROPIC_TIMEOUT_SECONDS: int = 30

    OLLAMA_HOST: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.2"
    OLLAMA_TIMEOUT_SECONDS: int = 120

    # Embeddings
    EMBEDDING_DRIVER: str = "openai"
    EMBEDDING_MODEL: str = "text-embedding-3-small"

    # Target database
    DATABASE_URL: str = "sqlite:///./demo.db"
    CONNECTIONS: dict[str, str] = {}

    # Schema
    SCHEMA_TABLES: str = ""
    SCHEMA_EXCLUDE: str = ""
    SCHEMA_DESCRIPTIONS: dict[str, str] = {}
    SCHEMA_CACHE_TTL: int = 3600
    INDEX_PATH: str = "./storage/schema.sqlite"
    VECTOR_EXTENSION: bool = True

    # Security
    SELECT_ONLY: bool = True
    FORBIDDEN_TABLES: str = (
        "migrations,failed_jobs,password_resets,password_reset_tokens,"
        "personal_access_tokens,jobs,job_batches,cache,cache_locks,sessions"
    )
    QUERY_LOGGING: bool = True
    MAX_RESULTS: int = 1000

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def schema_filter(self) -> SchemaFilterConfig:
        return SchemaFilterConfig(
            include_tables=_split(self.SCHEMA_TABLES),
            exclude_tables=_split(self.SCHEMA_EXCLUDE),
            descriptions=dict(self.SCHEMA_DESCRIPTIONS),
            cache_ttl=self.SCHEMA_CACHE_TTL,
        )

    @property
    def guard_config(self) -> GuardConfig:
        return GuardConfig(
            select_only=self.SELECT_ONLY,
            forbidden_tables=_split(self.FORBIDDEN_TABLES),
        )


settings = Settings()
