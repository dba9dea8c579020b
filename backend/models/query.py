"""Pydantic schemas for the ask / sql / index APIs."""
from typing import Any, Literal, Optional
from pydantic import BaseModel, Field


class AskRequest(BaseModel):
    question: str = Field(..., min_length=1)
    tables: Optional[list[str]] = None        # bypasses smart retrieval
    connection: Optional[str] = None          # named connection, None = default
    driver: Optional[Literal["openai", "anthropic", "ollama"]] = None
    sql_only: bool = False                    # generate and validate, skip execution


class QueryResult(BaseModel):
    question: str
    sql: str
    data: list[dict[str, Any]]
    count: int
    duration: float                            # seconds
    driver: str
    mode: Literal["smart", "compact"]


class SqlResponse(BaseModel):
    question: str
    sql: str
    driver: str


class IndexRequest(BaseModel):
    tables: Optional[list[str]] = None        # None = all visible tables
    force: bool = False


class SearchRequest(BaseModel):
    question: str = Field(..., min_length=1)
    top_k: int = Field(5, ge=1, le=50)


class SchemaResponse(BaseModel):
    mode: Literal["smart", "compact"]
    schema_text: str
    tables: list[str]
