"""
Smart Query — natural language to safe SQL.
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import ask, connections, health, index, schema
from api.deps import get_services
from config import settings
from core.exceptions import ConfigurationError, LLMError, SmartQueryError, UnsafeQueryError

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("smartquery")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Smart Query starting up (driver=%s)…", settings.LLM_DRIVER)
    yield
    if get_services.cache_info().currsize:
        get_services().close()
    logger.info("Smart Query shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Smart Query",
    description="Ask questions in plain language; get validated, read-only SQL and its results.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Errors ────────────────────────────────────────────────────────────────────
@app.exception_handler(SmartQueryError)
async def smart_query_error_handler(request: Request, exc: SmartQueryError):
    if isinstance(exc, UnsafeQueryError):
        status, body = 422, {"detail": str(exc), "sql": exc.sql, "violation": exc.violation}
    elif isinstance(exc, ConfigurationError):
        status, body = 500, {"detail": str(exc)}
    elif isinstance(exc, LLMError):
        status, body = 502, {"detail": str(exc), "driver": exc.driver}
    else:
        status, body = 400, {"detail": str(exc)}

    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content=body)


# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(health.router,      prefix="/api")
app.include_router(ask.router,         prefix="/api")
app.include_router(schema.router,      prefix="/api")
app.include_router(index.router,       prefix="/api")
app.include_router(connections.router, prefix="/api")
