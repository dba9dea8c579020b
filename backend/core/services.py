"""
Explicit wiring of the Smart Query components from Settings.

Build order is store → indexer → manager; the indexer and the default-connection
manager share one FilteredMetadataSource so both see the same visible tables.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from config import Settings
from core.db_connector import DEFAULT_CONNECTION, ConnectionRegistry, SqlAlchemyMetadataSource
from core.exceptions import ConfigurationError
from core.metadata_source import FilteredMetadataSource
from core.query_guard import QueryGuard
from core.query_logger import QueryLogger
from core.schema_indexer import SchemaIndexer, resolve_dimension
from core.schema_manager import SchemaManager
from core.smart_query import SmartQuery
from core.vector_store import VectorStore
from integrations.providers import create_embedding_client, create_llm_client

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    connections: ConnectionRegistry
    store: VectorStore
    indexer: SchemaIndexer
    guard: QueryGuard
    query_logger: QueryLogger
    _llm_clients: dict = field(default_factory=dict)

    def source_for(self, connection: Optional[str] = None) -> FilteredMetadataSource:
        engine = self.connections.get_engine(connection)
        return FilteredMetadataSource(SqlAlchemyMetadataSource(engine), self.settings.schema_filter)

    def manager_for(self, connection: Optional[str] = None) -> SchemaManager:
        """The index describes the default connection only; other connections run in compact mode."""
        if not connection or connection == DEFAULT_CONNECTION:
            return SchemaManager(self.indexer.source, self.indexer)
        return SchemaManager(self.source_for(connection))

    def llm_client(self, driver: Optional[str] = None):
        driver = driver or self.settings.LLM_DRIVER
        if driver not in self._llm_clients:
            self._llm_clients[driver] = create_llm_client(driver)
        return self._llm_clients[driver]

    def smart_query(self) -> SmartQuery:
        return SmartQuery(
            llm_client_for=self.llm_client,
            manager_for=self.manager_for,
            engine_for=self.connections.get_engine,
            guard=self.guard,
            query_logger=self.query_logger,
            default_driver=self.settings.LLM_DRIVER,
            max_results=self.settings.MAX_RESULTS,
        )

    def close(self) -> None:
        for client in self._llm_clients.values():
            client.close()
        self._llm_clients.clear()
        if self.indexer.embedder is not None:
            self.indexer.embedder.close()
        self.store.close()
        self.connections.dispose()


def build_services(settings: Settings, embedder=None) -> Services:
    connections = ConnectionRegistry(settings.DATABASE_URL, settings.CONNECTIONS)

    if embedder is None:
        try:
            embedder = create_embedding_client(settings.EMBEDDING_DRIVER)
        except ConfigurationError as e:
            logger.warning("Embeddings disabled, smart mode unavailable: %s", e)

    store = VectorStore(
        settings.INDEX_PATH,
        resolve_dimension(settings.EMBEDDING_MODEL, embedder),
        use_extension=settings.VECTOR_EXTENSION,
    )
    source = FilteredMetadataSource(
        SqlAlchemyMetadataSource(connections.get_engine(DEFAULT_CONNECTION)),
        settings.schema_filter,
    )
    indexer = SchemaIndexer(
        store,
        source=source,
        embedder=embedder,
        embedding_model=settings.EMBEDDING_MODEL,
        descriptions=settings.SCHEMA_DESCRIPTIONS,
    )

    return Services(
        settings=settings,
        connections=connections,
        store=store,
        indexer=indexer,
        guard=QueryGuard(settings.guard_config),
        query_logger=QueryLogger(enabled=settings.QUERY_LOGGING),
    )
