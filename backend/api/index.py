"""Schema index management — build, inspect, search and clear."""
import logging

from fastapi import APIRouter, Depends

from api.deps import get_services
from core.services import Services
from models.query import IndexRequest, SearchRequest
from models.schema import IndexResult, IndexStatus

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/index", response_model=IndexResult)
def build_index(req: IndexRequest, services: Services = Depends(get_services)):
    result = services.indexer.index(req.tables, force=req.force)
    logger.info("Index run: %d indexed, %d skipped, %d errors", result.indexed, result.skipped, len(result.errors))
    return result


@router.get("/index/status", response_model=IndexStatus)
def index_status(services: Services = Depends(get_services)):
    return services.indexer.get_status()


@router.get("/index/tables")
def indexed_tables(services: Services = Depends(get_services)):
    tables = services.indexer.get_indexed_tables()
    return {"tables": tables, "count": len(tables)}


@router.post("/index/search")
def search_index(req: SearchRequest, services: Services = Depends(get_services)):
    result = services.indexer.search_tables(req.question, req.top_k)
    return {
        "question": req.question,
        "status": result.status,
        "matches": result.matches,
        "error": result.error,
    }


@router.delete("/index")
def clear_index(services: Services = Depends(get_services)):
    services.indexer.clear()
    return {"message": "Schema index cleared."}
