import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from presell_analytics import __version__
from presell_analytics.adapters.sqlite_db import SQLiteEventStore
from presell_analytics.api.deps import get_rules, get_settings
from presell_analytics.api.routes import analytics

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and create tables on startup (fail-fast)
    try:
        get_rules()
        Path(settings.db_path).parent.mkdir(parents=True, exist_ok=True)
        SQLiteEventStore(settings.db_path).ensure_schema()
        logger.info("Rules loaded from %s", settings.rules_path)
    except Exception as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    yield


app = FastAPI(
    title="Presell Analytics API",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])


# CORS (published pages post events cross-origin)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "presell-analytics"}
