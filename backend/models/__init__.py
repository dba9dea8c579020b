from models.table import ColumnMetadata  # noqa: F401
from models.guard import GuardConfig  # noqa: F401
from models.schema import (  # noqa: F401
    SchemaFilterConfig, IndexedTable, TableMatch, IndexEntry,
    IndexStatus, IndexResult, RelevanceResult,
)
from models.query import AskRequest, QueryResult, SqlResponse, IndexRequest, SearchRequest, SchemaResponse  # noqa: F401
