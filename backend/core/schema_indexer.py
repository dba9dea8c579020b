"""
Schema indexer — keeps the vector store in sync with the live schema and
answers "which tables matter for this question".

Indexing is incremental: a table is re-embedded only when the md5 of its
compact schema changed (or ``force`` is set). Changed tables are embedded in
batches of BATCH_SIZE with one provider call per batch, and each batch is
written in a single transaction.
"""
import logging
from typing import Iterator, Optional

from core.exceptions import ConfigurationError, LLMError
from core.metadata_source import MetadataSource
from core.schema_formatter import build_embedding_text, content_hash, format_compact_schema
from core.vector_store import VectorStore
from integrations.base import dimension_for_model
from models.schema import IndexEntry, IndexResult, IndexStatus, IndexedTable, RelevanceResult, TableMatch

logger = logging.getLogger(__name__)

BATCH_SIZE = 20
DEFAULT_TOP_K = 5


def resolve_dimension(embedding_model: str, embedder=None) -> int:
    """Provider-reported dimension wins over the static model table."""
    if embedder is not None and getattr(embedder, "dimension", None):
        return int(embedder.dimension)
    return dimension_for_model(embedding_model)


def _chunks(items: list[str], size: int) -> Iterator[list[str]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


class SchemaIndexer:
    def __init__(
        self,
        store: VectorStore,
        source: Optional[MetadataSource] = None,
        embedder=None,
        embedding_model: str = "text-embedding-3-small",
        descriptions: Optional[dict[str, str]] = None,
        batch_size: int = BATCH_SIZE,
    ):
        self.store = store
        self.source = source
        self.embedder = embedder
        self.embedding_model = getattr(embedder, "model", None) or embedding_model
        self.descriptions = descriptions or {}
        self.batch_size = batch_size

    @property
    def dimension(self) -> int:
        return self.store.dimension

    @property
    def index_path(self) -> str:
        return str(self.store.path)

    def index(self, tables: Optional[list[str]] = None, force: bool = False) -> IndexResult:
        """Build or refresh the index for ``tables`` (None = every visible table)."""
        if self.embedder is None:
            raise ConfigurationError("schema indexer", "Embedding service not configured")
        if self.source is None:
            raise ConfigurationError("schema indexer", "Metadata source not configured")

        tables_to_index = list(tables) if tables is not None else self.source.list_tables()
        if not tables_to_index:
            return IndexResult(message="No tables to index")

        self.store.open()
        indexed = 0
        skipped = 0
        errors: list[str] = []

        for batch in _chunks(tables_to_index, self.batch_size):
            try:
                entries, texts, batch_skipped = self._prepare_batch(batch, force, errors)
                skipped += batch_skipped
                if not texts:
                    continue

                embeddings = self.embedder.embed(texts)
                if len(embeddings) != len(texts):
                    raise LLMError.invalid_response(
                        getattr(self.embedder, "name", "embedding"),
                        f"expected {len(texts)} embeddings, got {len(embeddings)}",
                    )
                for entry, vector in zip(entries, embeddings):
                    entry.embedding = list(vector)

                self.store.upsert_batch(entries)
                indexed += len(entries)
                logger.info("Indexed %d tables (%d skipped so far)", indexed, skipped)
            except Exception as e:
                logger.warning("Index batch %s failed: %s", batch, e)
                errors.append(f"Batch error: {e}")

        self.store.record_status(indexed + skipped, self.dimension, self.embedding_model)

        return IndexResult(
            tables_count=indexed + skipped,
            indexed=indexed,
            skipped=skipped,
            errors=errors,
            using_accelerated_search=self.store.using_accelerated_search,
        )

    def _prepare_batch(
        self, batch: list[str], force: bool, errors: list[str]
    ) -> tuple[list[IndexEntry], list[str], int]:
        entries: list[IndexEntry] = []
        texts: list[str] = []
        skipped = 0
        for table in batch:
            columns = self.source.columns_of(table)
            if not columns:
                errors.append(f"Table '{table}' not found or has no columns")
                continue

            compact = format_compact_schema(table, columns)
            schema_hash = content_hash(compact)
            if not force and self.store.get_hash(table) == schema_hash:
                skipped += 1
                continue

            description = self.descriptions.get(table)
            texts.append(build_embedding_text(table, compact, description))
            entries.append(IndexEntry(
                table_name=table,
                compact_schema=compact,
                description=description,
                content_hash=schema_hash,
                embedding=[],
            ))
        return entries, texts, skipped

    def search_tables(self, question: str, top_k: int = DEFAULT_TOP_K) -> RelevanceResult:
        """Relevance search that never raises; failures are reported in the result."""
        if self.embedder is None or not self.has_index():
            return RelevanceResult(status="unavailable")
        try:
            vector = self.embedder.embed_single(question)
            if not len(vector):
                return RelevanceResult(status="failed", error="Empty query embedding")
            matches = self.store.search(vector, top_k)
        except Exception as e:
            logger.warning("Relevance search failed: %s", e)
            return RelevanceResult(status="failed", error=str(e))
        return RelevanceResult(status="ok", matches=matches)

    def find_relevant_tables(self, question: str, top_k: int = DEFAULT_TOP_K) -> list[TableMatch]:
        return self.search_tables(question, top_k).matches

    def get_status(self) -> IndexStatus:
        return self.store.get_status()

    def get_indexed_tables(self) -> list[IndexedTable]:
        if not self.has_index():
            return []
        try:
            return self.store.list_all()
        except Exception as e:
            logger.warning("Could not list indexed tables: %s", e)
            return []

    def has_index(self) -> bool:
        return self.store.has_data()

    def clear(self) -> None:
        self.store.clear()
