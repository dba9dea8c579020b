"""POST /api/ask and POST /api/sql — natural-language questions to SQL."""
import logging
from typing import Union

from fastapi import APIRouter, Depends

from api.deps import get_services
from core.services import Services
from core.smart_query import SmartQuery
from models.query import AskRequest, QueryResult, SqlResponse

router = APIRouter()
logger = logging.getLogger(__name__)


def _query_for(req: AskRequest, services: Services) -> SmartQuery:
    return (
        services.smart_query()
        .tables(req.tables)
        .connection(req.connection)
        .using(req.driver)
    )


@router.post("/ask", response_model=Union[QueryResult, SqlResponse])
def ask(req: AskRequest, services: Services = Depends(get_services)):
    """Generate, validate and execute SQL for the question."""
    if req.sql_only:
        return to_sql(req, services)
    return _query_for(req, services).raw(req.question)


@router.post("/sql", response_model=SqlResponse)
def to_sql(req: AskRequest, services: Services = Depends(get_services)):
    """Generate and validate SQL only."""
    query = _query_for(req, services)
    sql = query.to_sql(req.question)
    return SqlResponse(question=req.question, sql=sql, driver=query.driver_name)
