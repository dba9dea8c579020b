"""
Visible-table view over a metadata source: include/exclude filtering plus a
process-wide TTL cache keyed by connection identity.
"""
import logging
import time
from typing import Any, Callable, Protocol

from models.schema import SchemaFilterConfig
from models.table import ColumnMetadata

logger = logging.getLogger(__name__)


class MetadataSource(Protocol):
    identity: str

    def list_tables(self) -> list[str]: ...

    def columns_of(self, table: str) -> list[ColumnMetadata]: ...


# cache key → (expires_at, value)
_schema_cache: dict[str, tuple[float, Any]] = {}


def _remember(key: str, ttl: int, fetch: Callable[[], Any]) -> Any:
    if ttl <= 0:
        return fetch()
    hit = _schema_cache.get(key)
    now = time.monotonic()
    if hit and hit[0] > now:
        return hit[1]
    value = fetch()
    _schema_cache[key] = (now + ttl, value)
    return value


def forget(prefix: str) -> None:
    for key in [k for k in _schema_cache if k.startswith(prefix)]:
        del _schema_cache[key]


class FilteredMetadataSource:
    """Applies SchemaFilterConfig to a raw source and caches the results."""

    def __init__(self, source: MetadataSource, filters: SchemaFilterConfig):
        self.source = source
        self.filters = filters

    @property
    def identity(self) -> str:
        return self.source.identity

    def _key(self, kind: str, table: str = "") -> str:
        return f"smart-query:{kind}:{self.identity}:{table}"

    def list_tables(self) -> list[str]:
        # The cache holds the unfiltered list; sources sharing a connection may filter differently
        tables = _remember(self._key("tables"), self.filters.cache_ttl, self.source.list_tables)
        if self.filters.include_tables:
            include = set(self.filters.include_tables)
            tables = [t for t in tables if t in include]
        exclude = set(self.filters.exclude_tables)
        return [t for t in tables if t not in exclude]

    def columns_of(self, table: str) -> list[ColumnMetadata]:
        return _remember(
            self._key("columns", table),
            self.filters.cache_ttl,
            lambda: self.source.columns_of(table),
        )

    def clear_cache(self) -> None:
        forget(f"smart-query:tables:{self.identity}:")
        forget(f"smart-query:columns:{self.identity}:")
        logger.info("Schema cache cleared for %s", self.identity)
