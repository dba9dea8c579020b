import sqlite3

import pytest
from sqlalchemy import create_engine

from conftest import FakeEmbedder
from core.db_connector import SqlAlchemyMetadataSource
from core.exceptions import ConfigurationError
from core.metadata_source import FilteredMetadataSource
from core.schema_indexer import SchemaIndexer, resolve_dimension
from core.vector_store import VectorStore
from models.schema import SchemaFilterConfig


class WrongDimensionEmbedder(FakeEmbedder):
    """Returns a short vector for the orders table."""

    def embed(self, texts):
        vectors = super().embed(texts)
        return [v[:2] if t.startswith("Table: orders") else v for t, v in zip(texts, vectors)]


class ShortBatchEmbedder(FakeEmbedder):
    def embed(self, texts):
        return super().embed(texts)[:-1]


class BrokenEmbedder(FakeEmbedder):
    def embed(self, texts):
        raise RuntimeError("provider down")


@pytest.fixture
def source(temp_sqlite_db):
    engine = create_engine(f"sqlite:///{temp_sqlite_db}")
    yield FilteredMetadataSource(SqlAlchemyMetadataSource(engine), SchemaFilterConfig(cache_ttl=0))
    engine.dispose()


def _indexer(index_path, source, embedder, **kwargs):
    store = VectorStore(index_path, dimension=4, use_extension=False)
    return SchemaIndexer(
        store,
        source=source,
        embedder=embedder,
        descriptions={"orders": "Customer purchases"},
        **kwargs,
    )


@pytest.fixture
def indexer(index_path, source, fake_embedder):
    idx = _indexer(index_path, source, fake_embedder)
    yield idx
    idx.store.close()


def test_index_all_visible_tables(indexer):
    result = indexer.index()
    assert result.status == "success"
    assert result.indexed == 4
    assert result.skipped == 0
    assert result.tables_count == 4
    assert result.errors == []
    assert indexer.has_index() is True

    status = indexer.get_status()
    assert status.indexed is True
    assert status.tables_count == 4
    assert status.dimension == 4
    assert status.model == "fake-embed"


def test_reindex_skips_unchanged_tables(indexer, fake_embedder):
    indexer.index()
    result = indexer.index()
    assert result.indexed == 0
    assert result.skipped == 4
    assert len(fake_embedder.calls) == 1


def test_reindex_picks_up_schema_change(indexer, temp_sqlite_db):
    indexer.index()
    conn = sqlite3.connect(temp_sqlite_db)
    conn.execute("ALTER TABLE users ADD COLUMN country TEXT")
    conn.commit()
    conn.close()

    result = indexer.index()
    assert result.indexed == 1
    assert result.skipped == 3
    users = next(t for t in indexer.get_indexed_tables() if t.table_name == "users")
    assert "country(text)" in users.compact_schema


def test_force_reembeds_everything(indexer):
    indexer.index()
    result = indexer.index(force=True)
    assert result.indexed == 4
    assert result.skipped == 0


def test_unknown_table_is_reported(indexer):
    result = indexer.index(["users", "ghost"])
    assert result.indexed == 1
    assert result.errors == ["Table 'ghost' not found or has no columns"]


def test_empty_table_list(indexer):
    result = indexer.index([])
    assert result.message == "No tables to index"
    assert result.tables_count == 0
    assert indexer.has_index() is False


def test_one_embedding_call_per_batch(index_path, source, fake_embedder):
    indexer = _indexer(index_path, source, fake_embedder, batch_size=3)
    result = indexer.index()
    assert result.indexed == 4
    assert [len(call) for call in fake_embedder.calls] == [3, 1]
    indexer.store.close()


def test_failed_batch_is_rolled_back_and_others_continue(index_path, source):
    # Visible tables sort as migrations, orders | products, users
    indexer = _indexer(index_path, source, WrongDimensionEmbedder(), batch_size=2)
    result = indexer.index()
    assert result.indexed == 2
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Batch error:")
    assert [t.table_name for t in indexer.get_indexed_tables()] == ["products", "users"]
    indexer.store.close()


def test_embedding_count_mismatch_is_a_batch_error(index_path, source):
    indexer = _indexer(index_path, source, ShortBatchEmbedder())
    result = indexer.index()
    assert result.indexed == 0
    assert "expected 4 embeddings, got 3" in result.errors[0]
    indexer.store.close()


def test_index_without_embedder_raises(index_path, source):
    indexer = _indexer(index_path, source, None)
    with pytest.raises(ConfigurationError):
        indexer.index()
    assert indexer.search_tables("anything").status == "unavailable"


def test_index_without_source_raises(index_path, fake_embedder):
    indexer = _indexer(index_path, None, fake_embedder)
    with pytest.raises(ConfigurationError):
        indexer.index()


def test_search_ranks_most_similar_table_first(indexer):
    indexer.index()
    result = indexer.search_tables("how many orders were placed", top_k=2)
    assert result.status == "ok"
    assert len(result.matches) == 2
    assert result.matches[0].table_name == "orders"
    assert result.matches[0].score == pytest.approx(1.0)
    assert result.matches[0].description == "Customer purchases"
    assert result.matches[1].score == pytest.approx(0.0)


def test_search_before_indexing_is_unavailable(indexer):
    result = indexer.search_tables("orders")
    assert result.status == "unavailable"
    assert result.matches == []
    assert indexer.find_relevant_tables("orders") == []


def test_search_failure_is_reported_not_raised(indexer):
    indexer.index()
    indexer.embedder = BrokenEmbedder()
    result = indexer.search_tables("orders")
    assert result.status == "failed"
    assert "provider down" in result.error
    assert result.matches == []


def test_clear_removes_index(indexer):
    indexer.index()
    indexer.clear()
    assert indexer.has_index() is False
    assert indexer.get_indexed_tables() == []
    assert indexer.get_status().indexed is False


def test_resolve_dimension():
    assert resolve_dimension("text-embedding-3-large") == 3072
    assert resolve_dimension("unknown-model") == 1536
    assert resolve_dimension("text-embedding-3-large", FakeEmbedder(dimension=8)) == 8
