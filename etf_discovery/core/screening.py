"""
FILE: etf_discovery/core/screening.py
Hard constraint screens applied after the catalog pre-filter.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from etf_discovery.core.errors import ConstraintEvaluationError
from etf_discovery.core.models import Constraints, Instrument

logger = logging.getLogger(__name__)

# Daily turnover (volume / AUM) at which the liquidity score reaches 50.
LIQUIDITY_HALF_TURNOVER = 0.0005


def liquidity_score(instrument: Instrument) -> Optional[float]:
    """0-100 score from daily turnover; ``None`` when volume or AUM is missing."""
    volume = instrument.average_daily_volume
    aum = instrument.aum
    if volume is None or aum is None or aum <= 0:
        return None
    turnover = volume / aum
    return round(100.0 * turnover / (turnover + LIQUIDITY_HALF_TURNOVER), 4)


@dataclass
class FilterOutcome:
    kept: list[Instrument] = field(default_factory=list)
    exclusions: Counter = field(default_factory=Counter)

    @property
    def excluded_count(self) -> int:
        return sum(self.exclusions.values())


Screen = Callable[[Instrument, Constraints], None]


def _value(instrument: Instrument, attribute: str, constraint: str):
    value = getattr(instrument, attribute)
    if value is None:
        raise ConstraintEvaluationError(constraint, "missing_data")
    return value


def _screen_ter(instrument: Instrument, constraints: Constraints) -> None:
    if constraints.max_ter is None:
        return
    if _value(instrument, "ter", "max_ter") > constraints.max_ter:
        raise ConstraintEvaluationError("max_ter", "above_limit")


def _screen_aum(instrument: Instrument, constraints: Constraints) -> None:
    if constraints.min_aum is None:
        return
    if _value(instrument, "aum", "min_aum") < constraints.min_aum:
        raise ConstraintEvaluationError("min_aum", "below_limit")


def _screen_liquidity(instrument: Instrument, constraints: Constraints) -> None:
    if constraints.liquidity_threshold is None:
        return
    score = liquidity_score(instrument)
    if score is None:
        raise ConstraintEvaluationError("liquidity_threshold", "missing_data")
    if score < constraints.liquidity_threshold:
        raise ConstraintEvaluationError("liquidity_threshold", "below_limit")


def _screen_replication(instrument: Instrument, constraints: Constraints) -> None:
    if not (constraints.exclude_synthetic or constraints.physical_replication_only):
        return
    if constraints.physical_replication_only:
        constraint = "physical_replication_only"
    else:
        constraint = "exclude_synthetic"
    if _value(instrument, "replication_method", constraint) != "physical":
        raise ConstraintEvaluationError(constraint, "synthetic")


def _screen_leveraged(instrument: Instrument, constraints: Constraints) -> None:
    if constraints.exclude_leveraged and _value(instrument, "is_leveraged", "exclude_leveraged"):
        raise ConstraintEvaluationError("exclude_leveraged", "leveraged")


def _screen_inverse(instrument: Instrument, constraints: Constraints) -> None:
    if constraints.exclude_inverse and _value(instrument, "is_inverse", "exclude_inverse"):
        raise ConstraintEvaluationError("exclude_inverse", "inverse")


def _screen_exchange(instrument: Instrument, constraints: Constraints) -> None:
    if not constraints.allowed_exchanges:
        return
    allowed = {exchange.strip().upper() for exchange in constraints.allowed_exchanges}
    exchange = str(_value(instrument, "exchange", "allowed_exchanges")).strip().upper()
    if exchange not in allowed:
        raise ConstraintEvaluationError("allowed_exchanges", "not_allowed")


SCREENS: tuple[Screen, ...] = (
    _screen_ter,
    _screen_aum,
    _screen_liquidity,
    _screen_replication,
    _screen_leveraged,
    _screen_inverse,
    _screen_exchange,
)


class ConstraintFilter:
    """Conjunction of hard screens; an active constraint with missing data excludes."""

    def __init__(self, screens: Iterable[Screen] = SCREENS) -> None:
        self._screens = tuple(screens)

    def check(self, instrument: Instrument, constraints: Constraints) -> None:
        for screen in self._screens:
            screen(instrument, constraints)

    def apply(self, candidates: Iterable[Instrument], constraints: Constraints) -> FilterOutcome:
        outcome = FilterOutcome()
        for instrument in candidates:
            try:
                self.check(instrument, constraints)
            except ConstraintEvaluationError as exc:
                logger.info(
                    "discovery.constraint.excluded",
                    extra={
                        "extra_fields": {
                            "ticker": instrument.ticker,
                            "constraint": exc.constraint,
                            "reason": exc.reason,
                        }
                    },
                )
                outcome.exclusions[f"{exc.constraint}:{exc.reason}"] += 1
                continue
            outcome.kept.append(instrument)
        return outcome
