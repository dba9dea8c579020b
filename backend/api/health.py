"""GET /api/health — target database, schema index and LLM provider check."""
import logging

from fastapi import APIRouter, Depends

from api.deps import get_services
from core.exceptions import SmartQueryError
from core.services import Services

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check(services: Services = Depends(get_services)):
    database = _check_database(services)
    llm = _check_llm(services)
    index = services.indexer.get_status()

    overall = "ok" if database["status"] == "up" and llm["status"] == "up" else "degraded"
    return {
        "status": overall,
        "mode": services.manager_for().get_mode(),
        "services": {
            "database": database,
            "llm": llm,
            "index": {
                "indexed": index.indexed,
                "tables_count": index.tables_count,
                "embeddings": "enabled" if services.indexer.embedder is not None else "disabled",
            },
        },
    }


def _check_database(services: Services) -> dict:
    ok, error = services.connections.check()
    if ok:
        return {"status": "up"}
    return {"status": "down", "error": error}


def _check_llm(services: Services) -> dict:
    driver = services.settings.LLM_DRIVER
    try:
        ok, error = services.llm_client(driver).is_healthy()
    except SmartQueryError as e:
        ok, error = False, str(e)
    if ok:
        return {"status": "up", "driver": driver}
    return {"status": "down", "driver": driver, "error": error}
