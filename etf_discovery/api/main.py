"""
FILE: etf_discovery/api/main.py
"""

from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI

from etf_discovery.api.app_profile import validate_app_profile_guardrails
from etf_discovery.api.errors import register_exception_handlers
from etf_discovery.api.observability import setup_observability
from etf_discovery.api.routers.catalog import router as catalog_router
from etf_discovery.api.routers.discovery import router as discovery_router
from etf_discovery.api.routers.discovery_config import (
    get_discovery_orchestrator,
    shutdown_discovery_runtime,
    start_catalog_refresher,
)
from etf_discovery.api.routers.eligibility import router as eligibility_router


@asynccontextmanager
async def _app_lifespan(_app: FastAPI):
    validate_app_profile_guardrails()
    start_catalog_refresher()
    try:
        yield
    finally:
        shutdown_discovery_runtime()


app = FastAPI(
    title="ETF Discovery API",
    version="0.1.0",
    description=(
        "Discovers, screens and ranks exchange-traded funds for an investor profile.\n\n"
        "Every result carries a versioned eligibility assessment with justification; "
        "degraded catalog sources and partial timeouts are reported as response warnings."
    ),
    openapi_tags=[
        {"name": "ETF Discovery", "description": "Discovery and ranking endpoints."},
        {"name": "Eligibility", "description": "Rule-set catalog and audit replay."},
        {"name": "Catalog", "description": "Instrument catalog status and administration."},
        {"name": "Health", "description": "Liveness and readiness checks."},
    ],
    lifespan=_app_lifespan,
)

setup_observability(app)
register_exception_handlers(app)

app.include_router(discovery_router)
app.include_router(eligibility_router)
app.include_router(catalog_router)


@app.get("/health", tags=["Health"])
@app.get("/api/v1/health", tags=["Health"], include_in_schema=False)
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/health/live", tags=["Health"])
@app.get("/api/v1/health/live", tags=["Health"], include_in_schema=False)
def health_live() -> Dict[str, str]:
    return {"status": "live"}


@app.get("/health/ready", tags=["Health"])
@app.get("/api/v1/health/ready", tags=["Health"], include_in_schema=False)
def health_ready() -> Dict[str, str]:
    get_discovery_orchestrator().catalog.snapshot()
    return {"status": "ready"}
