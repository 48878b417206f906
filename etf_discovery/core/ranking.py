"""
FILE: etf_discovery/core/ranking.py
Weighted multi-factor scoring, deterministic ordering and result truncation.
"""

import math
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Sequence

from etf_discovery.core.common.taxonomy import (
    instrument_asset_tags,
    instrument_geography_tags,
    instrument_sector_tags,
    normalize_tags,
    requested_market_tags,
)
from etf_discovery.core.models import (
    DiscoveryWarning,
    EligibilityAssessment,
    ExposureSpec,
    Instrument,
    RankingPreference,
)
from etf_discovery.core.screening import liquidity_score

DEFAULT_WEIGHTS: dict[str, float] = {
    "ter": 0.25,
    "liquidity": 0.20,
    "aum": 0.20,
    "tracking": 0.20,
    "eligibility": 0.15,
}
FACTOR_ALIASES = {
    "fees": "ter",
    "lowest_fees": "ter",
    "cost": "ter",
    "stability": "aum",
    "size": "aum",
    "tracking_accuracy": "tracking",
    "tracking_error": "tracking",
    "eligibility_confidence": "eligibility",
}
CONFIDENCE_FACTOR = {"high": 1.0, "medium": 0.66, "low": 0.33, "unknown": 0.0}
# Tracking difference (percent per year) at which the tracking factor bottoms out at 0.5.
TRACKING_DIFFERENCE_CEILING = 1.0
MAX_ALTERNATIVES = 5
_WEIGHT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class AssessedCandidate:
    instrument: Instrument
    assessment: EligibilityAssessment


@dataclass(frozen=True)
class ScoredCandidate:
    instrument: Instrument
    assessment: EligibilityAssessment
    match_score: float
    ranking_score: float
    component_scores: dict[str, float] = field(default_factory=dict)
    liquidity_score: Optional[float] = None
    rank: int = 0
    is_alternative: bool = False


@dataclass
class RankingOutcome:
    results: list[ScoredCandidate] = field(default_factory=list)
    alternatives: list[ScoredCandidate] = field(default_factory=list)
    warnings: list[DiscoveryWarning] = field(default_factory=list)


def _factor_id(raw: str) -> str:
    key = raw.strip().lower().replace("-", "_").replace(" ", "_")
    return FACTOR_ALIASES.get(key, key)


def normalize_weights(
    preferences: Sequence[RankingPreference],
) -> tuple[dict[str, float], list[DiscoveryWarning]]:
    warnings: list[DiscoveryWarning] = []
    weights: dict[str, float] = {}
    unknown: list[str] = []
    for preference in preferences:
        factor = _factor_id(preference.id)
        if factor not in DEFAULT_WEIGHTS:
            unknown.append(preference.id)
            continue
        weights[factor] = weights.get(factor, 0.0) + preference.weight

    if unknown:
        warnings.append(
            DiscoveryWarning(
                code="UNKNOWN_RANKING_FACTOR",
                message=f"Ignored unknown ranking factors: {', '.join(unknown)}",
                severity="info",
            )
        )

    total = sum(weights.values())
    if total <= 0:
        return dict(DEFAULT_WEIGHTS), warnings
    if abs(total - 1.0) > _WEIGHT_TOLERANCE:
        warnings.append(
            DiscoveryWarning(
                code="RANKING_WEIGHTS_NORMALIZED",
                message=f"Ranking weights summed to {round(total, 4)} and were re-normalized to 1",
                severity="info",
            )
        )
    return {factor: weight / total for factor, weight in weights.items()}, warnings


def requested_tags(exposure: ExposureSpec) -> frozenset[str]:
    return (
        normalize_tags(exposure.assets.asset_classes)
        | normalize_tags(exposure.assets.sectors)
        | requested_market_tags(exposure.geography)
    )


def match_score(instrument: Instrument, requested: frozenset[str]) -> float:
    if not requested:
        return 100.0
    available = (
        instrument_asset_tags(instrument)
        | instrument_sector_tags(instrument)
        | instrument_geography_tags(instrument)
    )
    return round(100.0 * len(requested & available) / len(requested), 2)


def _tracking_factor(instrument: Instrument) -> float:
    if not instrument.tracking_index:
        return 0.0
    if instrument.tracking_difference is None:
        return 0.5
    shortfall = min(abs(instrument.tracking_difference), TRACKING_DIFFERENCE_CEILING)
    return 0.5 + 0.5 * (1.0 - shortfall / TRACKING_DIFFERENCE_CEILING)


def _sort_key(candidate: ScoredCandidate) -> tuple:
    ter = candidate.instrument.ter
    return (
        -candidate.ranking_score,
        ter is None,
        ter if ter is not None else 0.0,
        candidate.instrument.ticker,
    )


class RankingEngine:
    def score(
        self,
        candidates: Sequence[AssessedCandidate],
        weights: dict[str, float],
        exposure: ExposureSpec,
    ) -> list[ScoredCandidate]:
        """Score candidates relative to each other and return them in final order."""
        requested = requested_tags(exposure)
        observed_ters = [c.instrument.ter for c in candidates if c.instrument.ter is not None]
        observed_aums = [c.instrument.aum for c in candidates if c.instrument.aum is not None]
        max_ter = max(observed_ters, default=0.0)
        max_aum_log = math.log10(1.0 + max(observed_aums, default=0.0))

        scored: list[ScoredCandidate] = []
        for candidate in candidates:
            instrument = candidate.instrument
            liquidity = liquidity_score(instrument)
            if instrument.ter is None:
                ter_factor = 0.0
            elif max_ter <= 0:
                ter_factor = 1.0
            else:
                ter_factor = 1.0 - instrument.ter / max_ter
            if instrument.aum is None or max_aum_log <= 0:
                aum_factor = 0.0
            else:
                aum_factor = math.log10(1.0 + instrument.aum) / max_aum_log
            factors = {
                "ter": ter_factor,
                "liquidity": (liquidity or 0.0) / 100.0,
                "aum": aum_factor,
                "tracking": _tracking_factor(instrument),
                "eligibility": CONFIDENCE_FACTOR[candidate.assessment.confidence],
            }
            total = sum(weights.get(name, 0.0) * value for name, value in factors.items())
            scored.append(
                ScoredCandidate(
                    instrument=instrument,
                    assessment=candidate.assessment,
                    match_score=match_score(instrument, requested),
                    ranking_score=min(100.0, max(0.0, round(100.0 * total, 2))),
                    component_scores={name: round(value, 4) for name, value in factors.items()},
                    liquidity_score=liquidity,
                )
            )
        scored.sort(key=_sort_key)
        return scored

    def rank(
        self,
        candidates: Sequence[AssessedCandidate],
        preferences: Sequence[RankingPreference],
        exposure: ExposureSpec,
        *,
        max_results: int,
        eligible_only: bool = False,
        include_alternatives: bool = False,
    ) -> RankingOutcome:
        weights, warnings = normalize_weights(preferences)
        ordered = self.score(candidates, weights, exposure)

        primary: list[ScoredCandidate] = []
        near_misses: list[ScoredCandidate] = []
        for candidate in ordered:
            status = candidate.assessment.status
            if status == "ineligible" or (eligible_only and status == "unknown"):
                near_misses.append(candidate)
            else:
                primary.append(candidate)

        outcome = RankingOutcome(warnings=warnings)
        outcome.results = _with_ranks(primary[:max_results], is_alternative=False)
        if include_alternatives:
            outcome.alternatives = _with_ranks(
                near_misses[:MAX_ALTERNATIVES], is_alternative=True
            )
        return outcome


def _with_ranks(
    candidates: Iterable[ScoredCandidate], *, is_alternative: bool
) -> list[ScoredCandidate]:
    return [
        replace(candidate, rank=position, is_alternative=is_alternative)
        for position, candidate in enumerate(candidates, start=1)
    ]
