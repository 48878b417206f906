"""
FILE: etf_discovery/core/eligibility/rules.py
Eligibility rules are plain data: a name, a severity and a pure check function.
Checks return PASS (optionally caveated), FAIL or SKIP; a check may also raise
MissingAttributeError through ``require`` which the engine records as SKIP.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Literal, Optional

from etf_discovery.core.errors import MissingAttributeError
from etf_discovery.core.models import Instrument, InvestorProfile

RuleSeverity = Literal["HARD", "SOFT"]
RuleStatus = Literal["PASS", "FAIL", "SKIP"]


@dataclass(frozen=True)
class RuleContext:
    jurisdiction: str
    account_type: str
    rule_version: str


@dataclass(frozen=True)
class RuleOutcome:
    status: RuleStatus
    reason: str
    caveat: Optional[str] = None

    @classmethod
    def passed(cls, reason: str, *, caveat: Optional[str] = None) -> "RuleOutcome":
        return cls(status="PASS", reason=reason, caveat=caveat)

    @classmethod
    def failed(cls, reason: str) -> "RuleOutcome":
        return cls(status="FAIL", reason=reason)

    @classmethod
    def skipped(cls, reason: str) -> "RuleOutcome":
        return cls(status="SKIP", reason=reason)


RuleCheck = Callable[[Instrument, InvestorProfile, RuleContext], RuleOutcome]


@dataclass(frozen=True)
class EligibilityRule:
    name: str
    severity: RuleSeverity
    check: RuleCheck
    description: str = ""


def require(instrument: Instrument, attribute: str) -> Any:
    value = getattr(instrument, attribute)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingAttributeError(attribute)
    return value


def _upper_set(values: Iterable[str]) -> frozenset[str]:
    return frozenset(value.strip().upper() for value in values)


def listed_on(*, exchanges: Iterable[str], countries: Iterable[str], label: str) -> RuleCheck:
    allowed_exchanges = _upper_set(exchanges)
    allowed_countries = _upper_set(countries)

    def check(instrument: Instrument, _profile: InvestorProfile, _ctx: RuleContext) -> RuleOutcome:
        if not instrument.exchange and not instrument.exchange_country:
            raise MissingAttributeError("exchange")
        exchange = (instrument.exchange or "").strip().upper()
        country = (instrument.exchange_country or "").strip().upper()
        if exchange in allowed_exchanges or country in allowed_countries:
            return RuleOutcome.passed(f"Listed on {label} ({exchange or country})")
        return RuleOutcome.failed(
            f"Listed on {exchange or country}; account requires a {label} listing"
        )

    return check


def currency_in(currencies: Iterable[str]) -> RuleCheck:
    allowed = _upper_set(currencies)

    def check(instrument: Instrument, _profile: InvestorProfile, _ctx: RuleContext) -> RuleOutcome:
        currency = str(require(instrument, "currency")).upper()
        if currency in allowed:
            return RuleOutcome.passed(f"Currency {currency} accepted")
        return RuleOutcome.failed(
            f"Currency {currency} not accepted (allowed: {', '.join(sorted(allowed))})"
        )

    return check


def not_leveraged() -> RuleCheck:
    def check(instrument: Instrument, _profile: InvestorProfile, _ctx: RuleContext) -> RuleOutcome:
        if require(instrument, "is_leveraged"):
            return RuleOutcome.failed("Leveraged products are not permitted in this account")
        return RuleOutcome.passed("Not leveraged")

    return check


def not_inverse() -> RuleCheck:
    def check(instrument: Instrument, _profile: InvestorProfile, _ctx: RuleContext) -> RuleOutcome:
        if require(instrument, "is_inverse"):
            return RuleOutcome.failed("Inverse products are not permitted in this account")
        return RuleOutcome.passed("Not inverse")

    return check


def approved_provider(providers: Iterable[str]) -> RuleCheck:
    known = tuple(sorted(provider.strip().lower() for provider in providers))

    def check(instrument: Instrument, _profile: InvestorProfile, _ctx: RuleContext) -> RuleOutcome:
        provider = str(require(instrument, "provider"))
        lowered = provider.lower()
        if any(candidate in lowered for candidate in known):
            return RuleOutcome.passed(f"Approved provider {provider}")
        return RuleOutcome.failed(
            f"Provider {provider} is not on the known approved list; verify with platform"
        )

    return check


def replication_preference() -> RuleCheck:
    def check(instrument: Instrument, _profile: InvestorProfile, _ctx: RuleContext) -> RuleOutcome:
        method = require(instrument, "replication_method")
        if method == "synthetic":
            return RuleOutcome.passed(
                "Synthetic replication",
                caveat="Synthetic replication; verify account approval with the provider",
            )
        return RuleOutcome.passed("Physical replication")

    return check


def legal_structure_in(structures: Iterable[str], *, label: str) -> RuleCheck:
    allowed = _upper_set(structures)

    def check(instrument: Instrument, _profile: InvestorProfile, _ctx: RuleContext) -> RuleOutcome:
        structure = str(require(instrument, "legal_structure")).upper()
        if structure in allowed:
            return RuleOutcome.passed(f"{label} structure ({structure})")
        return RuleOutcome.failed(f"Structure {structure} is not a recognised {label} wrapper")

    return check


def leverage_caveat() -> RuleCheck:
    def check(instrument: Instrument, _profile: InvestorProfile, _ctx: RuleContext) -> RuleOutcome:
        leveraged = require(instrument, "is_leveraged")
        inverse = require(instrument, "is_inverse")
        if leveraged or inverse:
            return RuleOutcome.passed(
                "Leveraged or inverse product",
                caveat="Custodians commonly restrict leveraged or inverse products in this account",
            )
        return RuleOutcome.passed("Plain long-only product")

    return check


def tradable_listing() -> RuleCheck:
    def check(instrument: Instrument, _profile: InvestorProfile, _ctx: RuleContext) -> RuleOutcome:
        exchange = require(instrument, "exchange")
        return RuleOutcome.passed(f"Tradable on {exchange}")

    return check
