"""GET /api/connections — configured target databases."""
from fastapi import APIRouter, Depends

from api.deps import get_services
from core.db_connector import DEFAULT_CONNECTION
from core.services import Services

router = APIRouter()


@router.get("/connections")
def get_connections(services: Services = Depends(get_services)):
    result = []
    for name in services.connections.names():
        result.append({
            "name": name,
            "default": name == DEFAULT_CONNECTION,
            "mode": services.manager_for(name).get_mode(),
        })
    return {"connections": result}
