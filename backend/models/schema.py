"""Pydantic schemas for schema filtering, the vector index and relevance search."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SchemaFilterConfig(BaseModel):
    """Which tables are visible and how long the table list is cached."""
    model_config = ConfigDict(frozen=True)

    include_tables: list[str] = Field(default_factory=list)   # empty = all tables
    exclude_tables: list[str] = Field(default_factory=list)
    descriptions: dict[str, str] = Field(default_factory=dict)
    cache_ttl: int = 3600                                      # seconds, 0 = no cache


class IndexedTable(BaseModel):
    table_name: str
    compact_schema: str
    description: Optional[str] = None


class TableMatch(IndexedTable):
    score: float


class IndexEntry(BaseModel):
    """One table_metadata + table_embeddings pair, written together."""
    table_name: str
    compact_schema: str
    description: Optional[str] = None
    content_hash: str
    embedding: list[float]


class IndexStatus(BaseModel):
    indexed: bool = False
    tables_count: int = 0
    dimension: Optional[int] = None
    model: Optional[str] = None
    last_updated: Optional[datetime] = None
    using_accelerated_search: bool = False


class IndexResult(BaseModel):
    status: Literal["success"] = "success"
    tables_count: int = 0
    indexed: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
    message: Optional[str] = None
    using_accelerated_search: bool = False


class RelevanceResult(BaseModel):
    """
    Outcome of a relevance search. ``unavailable`` means no index or no
    embedding provider; ``failed`` means the search itself raised.
    Both carry an empty ``matches`` list.
    """
    status: Literal["ok", "unavailable", "failed"]
    matches: list[TableMatch] = Field(default_factory=list)
    error: Optional[str] = None
