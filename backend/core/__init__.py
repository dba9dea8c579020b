from core.query_guard import QueryGuard  # noqa: F401
from core.schema_indexer import SchemaIndexer  # noqa: F401
from core.schema_manager import SchemaManager  # noqa: F401
from core.services import Services, build_services  # noqa: F401
from core.smart_query import SmartQuery  # noqa: F401
from core.vector_store import VectorStore  # noqa: F401
