from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from pydantic import ValidationError

from etf_discovery.api.routers.discovery_config import get_discovery_orchestrator
from etf_discovery.core.discovery import DiscoveryOrchestrator
from etf_discovery.core.errors import MalformedQueryError
from etf_discovery.core.models import (
    EligibilityReplayResponse,
    ErrorResponse,
    InvestorProfile,
    RuleSetCatalogResponse,
    RuleSetView,
    RuleView,
)

router = APIRouter(prefix="/eligibility", tags=["Eligibility"])


@router.get(
    "/rule-sets",
    response_model=RuleSetCatalogResponse,
    summary="List published eligibility rule sets",
    description="Every published (jurisdiction, account type) rule set, oldest version first.",
)
def list_rule_sets(
    orchestrator: Annotated[DiscoveryOrchestrator, Depends(get_discovery_orchestrator)],
) -> RuleSetCatalogResponse:
    snapshot = orchestrator.eligibility_engine.registry.snapshot()
    return RuleSetCatalogResponse(
        registry_version=snapshot.version,
        rule_sets=[
            RuleSetView(
                jurisdiction=rule_set.jurisdiction,
                account_type=rule_set.account_type,
                version=rule_set.version,
                description=rule_set.description,
                rules=[
                    RuleView(name=rule.name, severity=rule.severity, description=rule.description)
                    for rule in rule_set.rules
                ],
            )
            for rule_set in snapshot.list_rule_sets()
        ],
    )


@router.get(
    "/{ticker}",
    response_model=EligibilityReplayResponse,
    responses={404: {"model": ErrorResponse, "description": "Ticker not in catalog."}},
    summary="Evaluate one instrument's account eligibility",
    description=(
        "Replays an eligibility assessment for audit. Pin `ruleVersion` to reproduce the "
        "justification cited by an earlier discovery response."
    ),
)
def evaluate_ticker(
    ticker: Annotated[str, Path(description="Catalog ticker.", examples=["STX40"])],
    orchestrator: Annotated[DiscoveryOrchestrator, Depends(get_discovery_orchestrator)],
    country: Annotated[str, Query(description="ISO 3166-1 alpha-2 country.", examples=["ZA"])],
    account_type: Annotated[
        str, Query(alias="accountType", description="Account wrapper.", examples=["tfsa"])
    ],
    currency: Annotated[str, Query(description="Investor base currency.")] = "USD",
    rule_version: Annotated[
        Optional[str], Query(alias="ruleVersion", description="Pinned rule-set version.")
    ] = None,
) -> EligibilityReplayResponse:
    instrument = orchestrator.catalog.snapshot().get(ticker)
    if instrument is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"INSTRUMENT_NOT_FOUND: {ticker}",
        )
    try:
        profile = InvestorProfile(country=country, account_type=account_type, currency=currency)
    except ValidationError as exc:
        raise MalformedQueryError(f"MALFORMED_QUERY: {exc.errors()[0]['msg']}") from exc
    assessment = orchestrator.eligibility_engine.evaluate(instrument, profile, rule_version)
    return EligibilityReplayResponse(
        ticker=instrument.ticker,
        country=profile.country,
        account_type=profile.account_type,
        assessment=assessment,
    )
