from core.schema_formatter import (
    build_embedding_text,
    content_hash,
    format_compact_schema,
    format_schema_line,
)
from models.table import ColumnMetadata

COLUMNS = [
    ColumnMetadata(name="id", data_type="integer"),
    ColumnMetadata(name="name", data_type="varchar"),
]


def test_format_compact_schema():
    assert format_compact_schema("users", COLUMNS) == "users: id(integer), name(varchar)"


def test_format_schema_line_with_and_without_description():
    assert format_schema_line("users", COLUMNS) == "users: id(integer), name(varchar)"
    assert format_schema_line("users", COLUMNS, "App accounts") == (
        "users: id(integer), name(varchar) -- App accounts"
    )


def test_build_embedding_text():
    compact = format_compact_schema("users", COLUMNS)
    assert build_embedding_text("users", compact, None) == (
        "Table: users\nSchema: users: id(integer), name(varchar)\n"
    )
    assert build_embedding_text("users", compact, "App accounts").endswith("Description: App accounts")


def test_content_hash_is_md5_of_compact_schema():
    compact = format_compact_schema("users", COLUMNS)
    assert content_hash(compact) == content_hash("users: id(integer), name(varchar)")
    assert len(content_hash(compact)) == 32
    assert content_hash(compact) != content_hash("users: id(integer)")
