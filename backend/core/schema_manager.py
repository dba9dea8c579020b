"""
Schema manager — decides which tables the LLM sees and renders them as
compact schema text.

Smart mode uses the schema index to pick the tables most relevant to the
question; compact mode (and every failure path of smart mode) sends all
visible tables.
"""
import logging
from typing import Any, Optional

from core.metadata_source import FilteredMetadataSource
from core.schema_formatter import format_schema_line
from core.schema_indexer import SchemaIndexer
from models.table import ColumnMetadata

logger = logging.getLogger(__name__)


class SchemaManager:
    def __init__(self, source: FilteredMetadataSource, indexer: Optional[SchemaIndexer] = None):
        self.source = source
        self.indexer = indexer

    @property
    def descriptions(self) -> dict[str, str]:
        return self.source.filters.descriptions

    def get_tables(self) -> list[str]:
        """Visible tables: include filter, then exclude filter."""
        return self.source.list_tables()

    def get_table_columns(self, table: str) -> list[ColumnMetadata]:
        return self.source.columns_of(table)

    def get_compact_schema(self, tables: list[str]) -> str:
        lines = []
        for table in tables:
            columns = self.get_table_columns(table)
            if not columns:
                continue
            lines.append(format_schema_line(table, columns, self.descriptions.get(table)))
        return "\n".join(lines)

    def select_tables(self, question: str, tables: Optional[list[str]] = None) -> list[str]:
        """Table names that go into the prompt for ``question``."""
        if tables:
            return list(tables)

        if self.is_smart_mode_available():
            result = self.indexer.search_tables(question)
            if result.status == "failed":
                logger.warning("Smart schema lookup failed, using all tables: %s", result.error)
            elif result.matches:
                return [m.table_name for m in result.matches]

        return self.get_tables()

    def get_schema_for_question(self, question: str, tables: Optional[list[str]] = None) -> str:
        return self.get_compact_schema(self.select_tables(question, tables))

    def get_full_schema(self, tables: Optional[list[str]] = None) -> dict[str, dict[str, Any]]:
        tables = tables if tables is not None else self.get_tables()
        return {
            table: {
                "columns": [c.model_dump() for c in self.get_table_columns(table)],
                "description": self.descriptions.get(table),
            }
            for table in tables
        }

    def clear_cache(self) -> None:
        self.source.clear_cache()

    def is_smart_mode_available(self) -> bool:
        return self.indexer is not None and self.indexer.has_index()

    def get_mode(self) -> str:
        return "smart" if self.is_smart_mode_available() else "compact"
