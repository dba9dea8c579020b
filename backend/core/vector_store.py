"""
Vector store — one SQLite file holding table metadata, embeddings and the
index status record.

Similarity search goes through the sqlite-vec ``vec0`` virtual table when the
extension loads into the connection, and falls back to brute-force cosine
similarity over ``table_embeddings`` otherwise. Both paths rank identically
(cosine), so callers never need to know which one ran.
"""
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import sqlite_vec
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DatabaseError, OperationalError, SQLAlchemyError

from core.exceptions import SchemaError
from models.schema import IndexEntry, IndexStatus, IndexedTable, TableMatch

logger = logging.getLogger(__name__)

_DDL = [
    """
    CREATE TABLE IF NOT EXISTS table_metadata (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        table_name      TEXT UNIQUE NOT NULL,
        compact_schema  TEXT NOT NULL,
        description     TEXT,
        schema_hash     TEXT NOT NULL,
        created_at      TEXT NOT NULL,
        updated_at      TEXT NOT NULL
    )""",
    """
    CREATE TABLE IF NOT EXISTS table_embeddings (
        id          INTEGER PRIMARY KEY REFERENCES table_metadata(id),
        table_name  TEXT UNIQUE NOT NULL,
        embedding   BLOB NOT NULL
    )""",
    """
    CREATE TABLE IF NOT EXISTS index_status (
        id            INTEGER PRIMARY KEY CHECK (id = 1),
        tables_count  INTEGER DEFAULT 0,
        dimension     INTEGER,
        model         TEXT,
        last_updated  TEXT
    )""",
]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]; 0.0 for zero-norm or mismatched vectors."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        return 0.0
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / (norm_a * norm_b), -1.0, 1.0))


def _to_blob(vector: Sequence[float]) -> bytes:
    return np.asarray(vector, dtype=np.float32).tobytes()


def _from_blob(blob: bytes) -> np.ndarray:
    return np.frombuffer(blob, dtype=np.float32)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _load_vector_extension(dbapi_conn) -> bool:
    try:
        dbapi_conn.enable_load_extension(True)
        sqlite_vec.load(dbapi_conn)
        dbapi_conn.enable_load_extension(False)
        return True
    except (AttributeError, sqlite3.Error) as e:
        # AttributeError: interpreter built without loadable extension support
        logger.info("sqlite-vec not available, using brute-force cosine search: %s", e)
        return False


class VectorStore:
    """Lazily opened store bound to a single index file and dimension."""

    def __init__(self, path: str, dimension: int, use_extension: bool = True):
        self.path = Path(path)
        self.dimension = dimension
        self.use_extension = use_extension
        self._engine: Optional[Engine] = None
        self._accelerated = False
        self._probed = False

    @property
    def using_accelerated_search(self) -> bool:
        return self._accelerated

    # ── Connection ────────────────────────────────────────────────────────────

    def _on_connect(self, dbapi_conn, _record) -> None:
        if not self.use_extension:
            return
        if not self._probed:
            self._accelerated = _load_vector_extension(dbapi_conn)
            self._probed = True
        elif self._accelerated:
            _load_vector_extension(dbapi_conn)

    def open(self) -> Engine:
        """Return the engine, creating the file and tables on first use."""
        if self._engine is not None:
            return self._engine

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SchemaError.connection_failed(f"Failed to open index database: {e}") from e

        engine = create_engine(f"sqlite:///{self.path}")
        event.listen(engine, "connect", self._on_connect)
        try:
            with engine.begin() as conn:
                for ddl in _DDL:
                    conn.execute(text(ddl))
                recorded = conn.execute(text("SELECT dimension FROM index_status WHERE id = 1")).scalar()
        except SQLAlchemyError as e:
            engine.dispose()
            # OperationalError (locked, unwritable) subclasses DatabaseError; only the rest means a bad file
            if isinstance(e, DatabaseError) and not isinstance(e, OperationalError):
                raise SchemaError.index_corrupted(str(e.orig)) from e
            raise SchemaError.connection_failed(f"Failed to open index database: {e}") from e

        if recorded is not None and recorded != self.dimension:
            logger.warning(
                "Index %s was built with dimension %d but %d is configured; rebuild with force",
                self.path, recorded, self.dimension,
            )

        if self._accelerated:
            try:
                with engine.begin() as conn:
                    conn.execute(text(
                        "CREATE VIRTUAL TABLE IF NOT EXISTS vec_embeddings USING vec0("
                        f"embedding float[{int(self.dimension)}] distance_metric=cosine)"
                    ))
                    self._sync_mirror(conn)
            except SQLAlchemyError as e:
                logger.warning("Could not prepare vec0 table, falling back to brute-force: %s", e)
                self._accelerated = False

        self._engine = engine
        return engine

    def _sync_mirror(self, conn: Connection) -> None:
        """Rebuild vec_embeddings from table_embeddings; rows may have been written without the extension."""
        conn.execute(text("DELETE FROM vec_embeddings"))
        conn.execute(text(
            "INSERT INTO vec_embeddings (rowid, embedding) SELECT id, embedding FROM table_embeddings"
        ))

    # ── Writes ────────────────────────────────────────────────────────────────

    def upsert(self, entry: IndexEntry) -> None:
        self.upsert_batch([entry])

    def upsert_batch(self, entries: list[IndexEntry]) -> None:
        """Write every entry in one transaction; any failure rolls all of them back."""
        engine = self.open()
        with engine.begin() as conn:
            for entry in entries:
                self._write_entry(conn, entry)

    def _write_entry(self, conn: Connection, entry: IndexEntry) -> None:
        if len(entry.embedding) != self.dimension:
            raise SchemaError(
                f"Embedding for '{entry.table_name}' has dimension {len(entry.embedding)}, "
                f"index expects {self.dimension}",
                table=entry.table_name,
            )
        now = _now()
        conn.execute(text("""
            INSERT INTO table_metadata
                (table_name, compact_schema, description, schema_hash, created_at, updated_at)
            VALUES (:table_name, :compact_schema, :description, :schema_hash, :now, :now)
            ON CONFLICT(table_name) DO UPDATE SET
                compact_schema = excluded.compact_schema,
                description    = excluded.description,
                schema_hash    = excluded.schema_hash,
                updated_at     = excluded.updated_at
        """), {
            "table_name": entry.table_name,
            "compact_schema": entry.compact_schema,
            "description": entry.description,
            "schema_hash": entry.content_hash,
            "now": now,
        })
        row_id = conn.execute(
            text("SELECT id FROM table_metadata WHERE table_name = :t"), {"t": entry.table_name}
        ).scalar_one()

        blob = _to_blob(entry.embedding)
        conn.execute(
            text("INSERT OR REPLACE INTO table_embeddings (id, table_name, embedding) VALUES (:id, :t, :e)"),
            {"id": row_id, "t": entry.table_name, "e": blob},
        )
        if self._accelerated:
            conn.execute(text("DELETE FROM vec_embeddings WHERE rowid = :id"), {"id": row_id})
            conn.execute(
                text("INSERT INTO vec_embeddings (rowid, embedding) VALUES (:id, :e)"),
                {"id": row_id, "e": blob},
            )

    def record_status(self, tables_count: int, dimension: int, model: str) -> None:
        engine = self.open()
        with engine.begin() as conn:
            conn.execute(text("""
                INSERT OR REPLACE INTO index_status (id, tables_count, dimension, model, last_updated)
                VALUES (1, :count, :dimension, :model, :now)
            """), {"count": tables_count, "dimension": dimension, "model": model, "now": _now()})

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get_hash(self, table_name: str) -> Optional[str]:
        with self.open().connect() as conn:
            return conn.execute(
                text("SELECT schema_hash FROM table_metadata WHERE table_name = :t"), {"t": table_name}
            ).scalar()

    def list_all(self) -> list[IndexedTable]:
        with self.open().connect() as conn:
            rows = conn.execute(text(
                "SELECT table_name, compact_schema, description FROM table_metadata ORDER BY table_name"
            )).mappings().all()
        return [IndexedTable(**row) for row in rows]

    def search(self, query_vector: Sequence[float], top_k: int) -> list[TableMatch]:
        """Top-K tables by cosine similarity to ``query_vector``."""
        self.open()
        # vec0 reports a NULL distance for a zero-norm query; brute force scores it 0.0
        if self._accelerated and np.any(np.asarray(query_vector, dtype=np.float32)):
            try:
                return self._vec0_search(query_vector, top_k)
            except SQLAlchemyError as e:
                logger.warning("vec0 search failed, using brute-force: %s", e)
        return self._brute_force_search(query_vector, top_k)

    def _vec0_search(self, query_vector: Sequence[float], top_k: int) -> list[TableMatch]:
        with self.open().connect() as conn:
            rows = conn.execute(text("""
                WITH knn AS (
                    SELECT rowid, distance FROM vec_embeddings
                    WHERE embedding MATCH :q AND k = :k
                )
                SELECT m.table_name, m.compact_schema, m.description, knn.distance
                FROM knn JOIN table_metadata m ON m.id = knn.rowid
                ORDER BY knn.distance
            """), {"q": _to_blob(query_vector), "k": top_k}).mappings().all()
        return [
            TableMatch(
                table_name=r["table_name"],
                compact_schema=r["compact_schema"],
                description=r["description"],
                score=0.0 if r["distance"] is None else 1.0 - float(r["distance"]),
            )
            for r in rows
        ]

    def _brute_force_search(self, query_vector: Sequence[float], top_k: int) -> list[TableMatch]:
        with self.open().connect() as conn:
            rows = conn.execute(text("""
                SELECT e.table_name, e.embedding, m.compact_schema, m.description
                FROM table_embeddings e
                JOIN table_metadata m ON e.table_name = m.table_name
            """)).mappings().all()

        matches = [
            TableMatch(
                table_name=r["table_name"],
                compact_schema=r["compact_schema"],
                description=r["description"],
                score=cosine_similarity(query_vector, _from_blob(r["embedding"])),
            )
            for r in rows
        ]
        # sorted() is stable, so ties keep store order
        matches = sorted(matches, key=lambda m: m.score, reverse=True)
        return matches[:top_k]

    # ── Presence checks (never raise) ─────────────────────────────────────────

    def has_data(self) -> bool:
        if not self.path.exists():
            return False
        try:
            with self.open().connect() as conn:
                count = conn.execute(text("SELECT COUNT(*) FROM table_metadata")).scalar()
            return (count or 0) > 0
        except (SchemaError, SQLAlchemyError) as e:
            logger.debug("Index %s unreadable: %s", self.path, e)
            return False

    def get_status(self) -> IndexStatus:
        if not self.has_data():
            return IndexStatus()
        try:
            with self.open().connect() as conn:
                row = conn.execute(text(
                    "SELECT tables_count, dimension, model, last_updated FROM index_status WHERE id = 1"
                )).mappings().first()
        except (SchemaError, SQLAlchemyError):
            return IndexStatus()

        if row is None:
            return IndexStatus(using_accelerated_search=self._accelerated)
        return IndexStatus(
            indexed=True,
            tables_count=row["tables_count"] or 0,
            dimension=row["dimension"],
            model=row["model"],
            last_updated=row["last_updated"],
            using_accelerated_search=self._accelerated,
        )

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def clear(self) -> None:
        """Delete the index file; the next operation recreates it."""
        self.close()
        self._accelerated = False
        self._probed = False
        for suffix in ("", "-journal", "-wal", "-shm"):
            Path(f"{self.path}{suffix}").unlink(missing_ok=True)
        logger.info("Schema index cleared: %s", self.path)
