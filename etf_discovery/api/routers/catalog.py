from typing import Annotated

from fastapi import APIRouter, Depends

from etf_discovery.api.routers.discovery_config import get_discovery_orchestrator
from etf_discovery.api.routers.runtime_utils import assert_feature_enabled
from etf_discovery.core.catalog import CatalogSnapshot
from etf_discovery.core.discovery import DiscoveryOrchestrator
from etf_discovery.core.models import CatalogStatusResponse, ErrorResponse, SourceStatusView

router = APIRouter(prefix="/catalog", tags=["Catalog"])


def _status_response(
    snapshot: CatalogSnapshot, orchestrator: DiscoveryOrchestrator
) -> CatalogStatusResponse:
    now = orchestrator.catalog.now()
    return CatalogStatusResponse(
        catalog_version=snapshot.version,
        loaded_at=snapshot.loaded_at,
        age_seconds=round(max(0.0, (now - snapshot.loaded_at).total_seconds()), 3),
        instrument_count=len(snapshot.instruments),
        sources=[
            SourceStatusView(
                name=source.name,
                loaded_at=source.loaded_at,
                age_seconds=source.age_seconds(now),
                instrument_count=source.instrument_count,
                stale=source.stale,
                last_error=source.last_error,
            )
            for source in snapshot.sources
        ],
    )


@router.get(
    "/status",
    response_model=CatalogStatusResponse,
    response_model_exclude_none=True,
    responses={503: {"model": ErrorResponse, "description": "Catalog never loaded."}},
    summary="Catalog snapshot version, age and per-source staleness",
)
def catalog_status(
    orchestrator: Annotated[DiscoveryOrchestrator, Depends(get_discovery_orchestrator)],
) -> CatalogStatusResponse:
    return _status_response(orchestrator.catalog.snapshot(), orchestrator)


@router.post(
    "/refresh",
    response_model=CatalogStatusResponse,
    response_model_exclude_none=True,
    responses={
        404: {"model": ErrorResponse, "description": "Catalog admin APIs disabled."},
        503: {"model": ErrorResponse, "description": "No catalog source could be loaded."},
    },
    summary="Reload the catalog from its sources",
)
def refresh_catalog(
    orchestrator: Annotated[DiscoveryOrchestrator, Depends(get_discovery_orchestrator)],
) -> CatalogStatusResponse:
    assert_feature_enabled(
        name="CATALOG_ADMIN_APIS_ENABLED",
        default=False,
        detail="CATALOG_ADMIN_APIS_DISABLED",
    )
    return _status_response(orchestrator.catalog.refresh(), orchestrator)
