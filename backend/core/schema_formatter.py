"""Compact schema text, embedding text and content hashing for tables."""
import hashlib
from typing import Optional

from models.table import ColumnMetadata


def format_columns(columns: list[ColumnMetadata]) -> str:
    return ", ".join(f"{c.name}({c.data_type})" for c in columns)


def format_compact_schema(table: str, columns: list[ColumnMetadata]) -> str:
    """``users: id(integer), name(text)`` — the form that gets hashed and indexed."""
    return f"{table}: {format_columns(columns)}"


def format_schema_line(table: str, columns: list[ColumnMetadata], description: Optional[str] = None) -> str:
    line = format_compact_schema(table, columns)
    if description:
        line += f" -- {description}"
    return line


def build_embedding_text(table: str, compact_schema: str, description: Optional[str]) -> str:
    text = f"Table: {table}\nSchema: {compact_schema}\n"
    if description:
        text += f"Description: {description}"
    return text


def content_hash(compact_schema: str) -> str:
    return hashlib.md5(compact_schema.encode("utf-8")).hexdigest()
