"""Schema inspection — visible tables, full column listing, prompt preview."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_services
from core.services import Services
from models.query import SchemaResponse

router = APIRouter()


@router.get("/schema/tables")
def list_tables(
    connection: Optional[str] = None,
    services: Services = Depends(get_services),
):
    manager = services.manager_for(connection)
    return {"tables": manager.get_full_schema()}


@router.get("/schema", response_model=SchemaResponse)
def schema_for_question(
    question: str = Query(..., min_length=1),
    connection: Optional[str] = None,
    services: Services = Depends(get_services),
):
    """The schema text the LLM would receive for ``question``."""
    manager = services.manager_for(connection)
    tables = manager.select_tables(question)
    return SchemaResponse(
        mode=manager.get_mode(),
        schema_text=manager.get_compact_schema(tables),
        tables=tables,
    )


@router.post("/schema/clear-cache")
def clear_cache(
    connection: Optional[str] = None,
    services: Services = Depends(get_services),
):
    services.manager_for(connection).clear_cache()
    return {"message": "Schema cache cleared."}
