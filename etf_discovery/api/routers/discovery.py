from typing import Annotated

from fastapi import APIRouter, Body, Depends, Path

from etf_discovery.api.observability import get_request_id
from etf_discovery.api.routers.discovery_config import get_discovery_orchestrator
from etf_discovery.core.discovery import DiscoveryOrchestrator
from etf_discovery.core.errors import MalformedQueryError
from etf_discovery.core.models import (
    AssetExposureSpec,
    Constraints,
    DiscoveryRequest,
    DiscoveryResponse,
    ErrorResponse,
    ExposureSpec,
    InvestorProfile,
    OutputOptions,
)

router = APIRouter(tags=["ETF Discovery"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed or invalid discovery query."},
    503: {"model": ErrorResponse, "description": "Instrument catalog unavailable."},
    504: {"model": ErrorResponse, "description": "Discovery exceeded the request budget."},
}

_TOP_FUND_TYPES: dict[str, tuple[str, list[str]]] = {
    "equity": ("equity", ["etf", "stock"]),
    "equities": ("equity", ["etf", "stock"]),
    "stock": ("equity", ["etf", "stock"]),
    "stocks": ("equity", ["etf", "stock"]),
    "bond": ("bond", ["etf", "bond"]),
    "bonds": ("bond", ["etf", "bond"]),
    "fixed income": ("bond", ["etf", "bond"]),
    "etf": ("equity", ["etf"]),
    "etfs": ("equity", ["etf"]),
}


def top_funds_request(fund_type: str) -> DiscoveryRequest:
    resolved = _TOP_FUND_TYPES.get(fund_type.strip().lower())
    if resolved is None:
        raise MalformedQueryError(
            f"INVALID_TYPE: unknown type {fund_type}; valid types: equity, bond, etf, stock"
        )
    asset_class, vehicles = resolved
    return DiscoveryRequest(
        investor_profile=InvestorProfile(country="US", account_type="standard", currency="USD"),
        exposure=ExposureSpec(assets=AssetExposureSpec(asset_classes=[asset_class])),
        investment_vehicles=vehicles,
        constraints=Constraints(
            max_ter=None,
            min_aum=None,
            liquidity_threshold=None,
            exclude_synthetic=False,
            exclude_leveraged=False,
            exclude_inverse=False,
        ),
        output_options=OutputOptions(max_results=20, include_source_links=True),
    )


@router.post(
    "/discover",
    response_model=DiscoveryResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Discover and rank ETFs for an investor profile",
    description=(
        "Searches the instrument catalog for the requested exposure, evaluates account "
        "eligibility with a versioned rule set, applies hard constraints and returns a ranked, "
        "source-attributed result set. Degraded sources and partial timeouts are reported as "
        "warnings rather than errors."
    ),
)
@router.post(
    "/api/v1/discover",
    response_model=DiscoveryResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    include_in_schema=False,
)
def discover(
    request: Annotated[DiscoveryRequest, Body()],
    orchestrator: Annotated[DiscoveryOrchestrator, Depends(get_discovery_orchestrator)],
    request_id: Annotated[str, Depends(get_request_id)],
) -> DiscoveryResponse:
    return orchestrator.discover(request, request_id=request_id)


@router.get(
    "/discover/{fund_type}",
    response_model=DiscoveryResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Top funds for an asset class or vehicle type",
)
@router.get(
    "/api/v1/discover/{fund_type}",
    response_model=DiscoveryResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    include_in_schema=False,
)
def discover_top_funds(
    fund_type: Annotated[
        str,
        Path(description="Asset class or vehicle type.", examples=["equity", "bond", "etf"]),
    ],
    orchestrator: Annotated[DiscoveryOrchestrator, Depends(get_discovery_orchestrator)],
    request_id: Annotated[str, Depends(get_request_id)],
) -> DiscoveryResponse:
    return orchestrator.discover(top_funds_request(fund_type), request_id=request_id)
