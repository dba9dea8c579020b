"""
Database connector — SQLAlchemy engine registry and schema reflection.
Works with any SQLAlchemy dialect; table and column listings come from the
dialect inspector.
"""
import logging
from typing import Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from core.exceptions import SchemaError
from models.table import ColumnMetadata

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION = "default"


class ConnectionRegistry:
    """Named target databases. Engines are created on first use and reused."""

    def __init__(self, default_url: str, named: Optional[dict[str, str]] = None):
        self._urls = {DEFAULT_CONNECTION: default_url, **(named or {})}
        self._engines: dict[str, Engine] = {}

    def names(self) -> list[str]:
        return list(self._urls.keys())

    def get_engine(self, name: Optional[str] = None) -> Engine:
        name = name or DEFAULT_CONNECTION
        if name not in self._urls:
            raise SchemaError.connection_failed(f"Unknown connection '{name}'")
        if name not in self._engines:
            self._engines[name] = create_engine(self._urls[name], pool_pre_ping=True)
            logger.info("Opened connection '%s'", name)
        return self._engines[name]

    def check(self, name: Optional[str] = None) -> tuple[bool, Optional[str]]:
        """Run SELECT 1 on a connection; returns (ok, error)."""
        try:
            with self.get_engine(name).connect() as conn:
                conn.execute(text("SELECT 1"))
        except (SchemaError, SQLAlchemyError) as e:
            return False, str(e)
        return True, None

    def dispose(self) -> None:
        for engine in self._engines.values():
            engine.dispose()
        self._engines.clear()


class SqlAlchemyMetadataSource:
    """Lists tables and (column, type) pairs of one database."""

    def __init__(self, engine: Engine, schema: Optional[str] = None):
        self.engine = engine
        self.schema = schema

    @property
    def identity(self) -> str:
        return self.engine.url.render_as_string(hide_password=True)

    def list_tables(self) -> list[str]:
        try:
            names = inspect(self.engine).get_table_names(schema=self.schema)
        except SQLAlchemyError as e:
            raise SchemaError.connection_failed(str(e)) from e
        logger.debug("Discovered %d tables in %s", len(names), self.identity)
        return names

    def columns_of(self, table: str) -> list[ColumnMetadata]:
        try:
            raw_cols = inspect(self.engine).get_columns(table, schema=self.schema)
        except NoSuchTableError:
            return []
        except SQLAlchemyError as e:
            raise SchemaError.connection_failed(str(e)) from e
        return [
            ColumnMetadata(name=col["name"], data_type=str(col["type"]).lower())
            for col in raw_cols
        ]
