"""
FILE: etf_discovery/core/models.py
Instrument, query and response contracts for the discovery engine.
"""

import re
from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

EligibilityStatus = Literal["eligible", "ineligible", "unknown", "conditional"]
ConfidenceLevel = Literal["high", "medium", "low", "unknown"]
WarningSeverity = Literal["info", "warning", "error"]
ReplicationMethod = Literal["physical", "synthetic"]
VehicleType = Literal["etf", "stock", "bond", "fund"]

_COUNTRY_REGEX = re.compile(r"^[A-Z]{2}$")
_CURRENCY_REGEX = re.compile(r"^[A-Z]{3}$")
_BREAKDOWN_TOLERANCE = 0.01


class WireModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class FrozenWireModel(WireModel):
    model_config = {"frozen": True}


class AssetBreakdown(FrozenWireModel):
    equities: float = Field(default=0.0, ge=0, description="Equity share in percent.")
    bonds: float = Field(default=0.0, ge=0, description="Bond share in percent.")
    cash: float = Field(default=0.0, ge=0, description="Cash share in percent.")
    commodities: float = Field(default=0.0, ge=0, description="Commodity share in percent.")
    other: float = Field(default=0.0, ge=0, description="Unclassified share in percent.")

    @model_validator(mode="after")
    def validate_total(self) -> "AssetBreakdown":
        total = self.equities + self.bonds + self.cash + self.commodities + self.other
        if total > 100 + _BREAKDOWN_TOLERANCE:
            raise ValueError("asset breakdown percentages must not sum above 100")
        return self


class GeographicBreakdown(FrozenWireModel):
    regions: Dict[str, float] = Field(
        default_factory=dict,
        description="Region name to percentage mapping.",
        examples=[{"North America": 97.5, "Europe": 2.5}],
    )
    countries: Optional[Dict[str, float]] = Field(
        default=None,
        description="Optional ISO country code to percentage mapping.",
    )


class Holding(FrozenWireModel):
    name: str = Field(description="Holding name.", examples=["Apple Inc"])
    ticker: Optional[str] = Field(default=None, description="Holding ticker when known.")
    weight: float = Field(ge=0, le=100, description="Weight of the holding in percent.")


class DataSourceRef(FrozenWireModel):
    type: str = Field(
        description="Provenance type (FactSheet, ExchangeListing, API, Manual).",
        examples=["ExchangeListing"],
    )
    provider: str = Field(description="Data provider name.", examples=["JSE"])
    url: Optional[str] = Field(default=None, description="Source link when available.")
    as_of_date: date = Field(description="Date the data point was observed.")


class Instrument(FrozenWireModel):
    """One fund instrument as held by a catalog snapshot.

    Optional attributes are ``None`` when the upstream catalog does not carry them;
    screening and eligibility treat ``None`` as missing rather than as a default.
    """

    ticker: str = Field(min_length=1, description="Unique listing ticker.", examples=["STX40"])
    isin: Optional[str] = Field(default=None, description="ISIN (secondary key).")
    name: str = Field(description="Instrument name.", examples=["Satrix 40 ETF"])
    provider: Optional[str] = Field(default=None, description="Fund provider.")
    exchange: Optional[str] = Field(default=None, description="Listing exchange code.")
    exchange_country: Optional[str] = Field(
        default=None, description="ISO country of the listing exchange."
    )
    currency: Optional[str] = Field(default=None, description="Trading currency.")
    asset_class: Optional[str] = Field(default=None, description="Primary asset class.")
    tracking_index: Optional[str] = Field(default=None, description="Tracked benchmark.")
    tracking_difference: Optional[float] = Field(
        default=None, description="Annualised tracking difference in percent."
    )
    geographic_focus: Optional[str] = Field(default=None, description="Geographic focus tag.")
    domicile: Optional[str] = Field(default=None, description="Fund domicile country.")
    legal_structure: Optional[str] = Field(
        default=None, description="Legal wrapper such as UCITS or Unit Trust."
    )
    vehicle_type: VehicleType = Field(default="etf", description="Investment vehicle type.")
    ter: Optional[float] = Field(
        default=None, ge=0, le=1, description="Total expense ratio.", examples=[0.1]
    )
    aum: Optional[float] = Field(default=None, ge=0, description="Assets under management.")
    average_daily_volume: Optional[float] = Field(
        default=None, ge=0, description="Average value traded per day."
    )
    replication_method: Optional[ReplicationMethod] = Field(
        default=None, description="Physical or synthetic replication."
    )
    is_leveraged: Optional[bool] = Field(default=None, description="Leveraged product flag.")
    is_inverse: Optional[bool] = Field(default=None, description="Inverse product flag.")
    asset_breakdown: Optional[AssetBreakdown] = Field(default=None)
    geographic_breakdown: Optional[GeographicBreakdown] = Field(default=None)
    sector_exposure: Dict[str, float] = Field(
        default_factory=dict, description="Sector name to percentage mapping."
    )
    top_holdings: List[Holding] = Field(default_factory=list)
    data_sources: List[DataSourceRef] = Field(default_factory=list)


class EligibilityAssessment(FrozenWireModel):
    status: EligibilityStatus = Field(description="Eligibility outcome.", examples=["eligible"])
    confidence: ConfidenceLevel = Field(description="Confidence in the outcome.")
    justification: str = Field(description="Ordered human-readable justification trail.")
    rule_version: Optional[str] = Field(
        default=None,
        description="Rule-set version used for the evaluation.",
        examples=["tfsa_za_v1.0"],
    )
    rules_passed: List[str] = Field(default_factory=list)
    rules_failed: List[str] = Field(default_factory=list)
    rules_skipped: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(
        default_factory=list, description="Caveats and data gaps raised by rules."
    )

    @property
    def is_eligible(self) -> bool:
        return self.status in ("eligible", "conditional")


class InvestorProfile(WireModel):
    country: str = Field(description="ISO 3166-1 alpha-2 country.", examples=["ZA"])
    account_type: str = Field(description="Account wrapper.", examples=["tfsa"])
    currency: str = Field(description="ISO 4217 base currency.", examples=["ZAR"])
    risk_tolerance: Optional[Literal["conservative", "moderate", "aggressive"]] = None
    time_horizon_years: Optional[int] = Field(default=None, ge=1, le=50)

    @field_validator("country")
    @classmethod
    def validate_country(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not _COUNTRY_REGEX.match(normalized):
            raise ValueError("country must be an ISO 3166-1 alpha-2 code")
        return normalized

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not _CURRENCY_REGEX.match(normalized):
            raise ValueError("currency must be an ISO 4217 code")
        return normalized

    @field_validator("account_type")
    @classmethod
    def normalize_account_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("accountType must be non-empty")
        return normalized


class AssetExposureSpec(WireModel):
    asset_classes: List[str] = Field(default_factory=list, examples=[["equity"]])
    sectors: List[str] = Field(default_factory=list, examples=[["technology"]])
    companies: List[str] = Field(default_factory=list)
    indices: List[str] = Field(default_factory=list)


class GeographyExposureSpec(WireModel):
    markets: List[str] = Field(default_factory=list, examples=[["US"]])
    emerging_markets: bool = False
    developed_markets: bool = False
    exclude_countries: List[str] = Field(default_factory=list)


class ExposureSpec(WireModel):
    assets: AssetExposureSpec = Field(default_factory=AssetExposureSpec)
    geography: GeographyExposureSpec = Field(default_factory=GeographyExposureSpec)


class Constraints(WireModel):
    eligible_only: bool = Field(
        default=False,
        alias="eligibleOnly",
        description="Only return eligible or conditional instruments in results.",
    )
    max_ter: Optional[float] = Field(default=0.50, ge=0, le=1, alias="maxTER")
    min_aum: Optional[float] = Field(default=1e8, ge=0, alias="minAUM")
    liquidity_threshold: Optional[float] = Field(default=80.0, ge=0, le=100)
    exclude_synthetic: bool = True
    exclude_leveraged: bool = True
    exclude_inverse: bool = True
    physical_replication_only: bool = False
    allowed_exchanges: List[str] = Field(
        default_factory=list,
        description="Listing exchanges to keep; empty allows every exchange.",
    )

    @model_validator(mode="before")
    @classmethod
    def accept_tfsa_alias(cls, data):
        if isinstance(data, dict) and "tfsaEligibleOnly" in data and "eligibleOnly" not in data:
            data = dict(data)
            data["eligibleOnly"] = data.pop("tfsaEligibleOnly")
        return data


class RankingPreference(WireModel):
    id: str = Field(description="Ranking factor identifier.", examples=["ter"])
    weight: float = Field(ge=0, description="Relative factor weight.", examples=[0.25])
    priority: Optional[int] = Field(default=None, ge=1)
    name: Optional[str] = None


class OutputOptions(WireModel):
    max_results: int = Field(default=10, ge=1, le=100)
    include_alternatives: bool = False
    include_source_links: bool = True
    explain_eligibility: bool = True
    include_warnings: bool = True


class DiscoveryRequest(WireModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "investorProfile": {"country": "ZA", "accountType": "tfsa", "currency": "ZAR"},
                "exposure": {
                    "assets": {"assetClasses": ["equity"]},
                    "geography": {"markets": ["South Africa"]},
                },
                "investmentVehicles": ["etf"],
                "constraints": {"maxTER": 0.5, "minAUM": 100000000},
                "outputOptions": {"maxResults": 10, "includeSourceLinks": True},
            }
        }
    }

    investor_profile: InvestorProfile
    exposure: ExposureSpec = Field(default_factory=ExposureSpec)
    investment_vehicles: List[VehicleType] = Field(default_factory=lambda: ["etf"])
    constraints: Constraints = Field(default_factory=Constraints)
    ranking_preferences: List[RankingPreference] = Field(default_factory=list)
    output_options: OutputOptions = Field(default_factory=OutputOptions)
    rule_set_version: Optional[str] = Field(
        default=None,
        description="Pin an eligibility rule-set version for reproducible audits.",
    )


class EligibilityDetail(WireModel):
    status: EligibilityStatus
    is_eligible: bool
    confidence: ConfidenceLevel
    justification: str
    rule_version: Optional[str] = None
    rules_passed: Optional[List[str]] = None
    rules_failed: Optional[List[str]] = None
    warnings: Optional[List[str]] = None


class ETFResult(WireModel):
    rank: int = Field(ge=1)
    ticker: str
    name: str
    isin: Optional[str] = None
    exchange: Optional[str] = None
    provider: Optional[str] = None
    asset_class: Optional[str] = None
    tracking_index: Optional[str] = None
    geographic_focus: Optional[str] = None
    ter: Optional[float] = None
    aum: Optional[float] = None
    currency: Optional[str] = None
    average_daily_volume: Optional[float] = None
    replication_method: Optional[ReplicationMethod] = None
    liquidity_score: Optional[float] = None
    eligibility: EligibilityDetail
    match_score: float = Field(ge=0, le=100)
    ranking_score: float = Field(ge=0, le=100)
    component_scores: Dict[str, float] = Field(default_factory=dict)
    is_alternative: bool = False
    asset_breakdown: Optional[AssetBreakdown] = None
    geographic_breakdown: Optional[GeographicBreakdown] = None
    top_holdings: List[Holding] = Field(default_factory=list)
    data_sources: List[DataSourceRef] = Field(default_factory=list)


class DiscoveryWarning(WireModel):
    code: str = Field(examples=["STALE_DATA"])
    message: str
    severity: WarningSeverity = "warning"


class SearchSummary(WireModel):
    total_searched: int = 0
    total_eligible: int = 0
    total_ineligible: int = 0
    total_unknown: int = 0
    total_conditional: int = 0
    total_excluded_by_constraints: int = 0
    search_duration_ms: int = 0
    data_sources_queried: List[str] = Field(default_factory=list)


class DiscoveryResponse(WireModel):
    request_id: str
    results: List[ETFResult] = Field(default_factory=list)
    alternatives: List[ETFResult] = Field(default_factory=list)
    summary: SearchSummary
    warnings: List[DiscoveryWarning] = Field(default_factory=list)
    generated_at: str = Field(description="ISO-8601 assembly timestamp (UTC).")
    cache_hit: bool = False
    catalog_version: Optional[int] = None


class ErrorResponse(WireModel):
    code: str = Field(examples=["VALIDATION_ERROR"])
    message: str
    request_id: str
    details: Optional[Dict[str, object]] = None


class RuleView(WireModel):
    name: str = Field(examples=["jse_listing"])
    severity: Literal["HARD", "SOFT"]
    description: str = ""


class RuleSetView(WireModel):
    jurisdiction: str = Field(examples=["ZA"])
    account_type: str = Field(examples=["tfsa"])
    version: str = Field(examples=["tfsa_za_v1.0"])
    description: str = ""
    rules: List[RuleView] = Field(default_factory=list)


class RuleSetCatalogResponse(WireModel):
    registry_version: int = Field(description="Registry publication counter.")
    rule_sets: List[RuleSetView] = Field(default_factory=list)


class EligibilityReplayResponse(WireModel):
    ticker: str
    country: str
    account_type: str
    assessment: EligibilityAssessment


class SourceStatusView(WireModel):
    name: str
    loaded_at: Optional[datetime] = None
    age_seconds: Optional[float] = None
    instrument_count: int = 0
    stale: bool = False
    last_error: Optional[str] = None


class CatalogStatusResponse(WireModel):
    catalog_version: int
    loaded_at: datetime
    age_seconds: float
    instrument_count: int
    sources: List[SourceStatusView] = Field(default_factory=list)
