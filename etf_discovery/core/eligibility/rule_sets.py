import re
from dataclasses import dataclass, field
from threading import Lock
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from etf_discovery.core.eligibility.rules import (
    EligibilityRule,
    approved_provider,
    currency_in,
    legal_structure_in,
    leverage_caveat,
    listed_on,
    not_inverse,
    not_leveraged,
    replication_preference,
    tradable_listing,
)
from etf_discovery.core.errors import RuleSetNotFoundError, RuleSetPublishError

RuleSetKey = tuple[str, str]

_VERSION_TOKEN = re.compile(r"\d+|\D+")


def version_sort_key(version: str) -> tuple[tuple[int, int, str], ...]:
    return tuple(
        (0, int(token), "") if token.isdigit() else (1, 0, token)
        for token in _VERSION_TOKEN.findall(version)
    )


def rule_set_key(jurisdiction: str, account_type: str) -> RuleSetKey:
    return jurisdiction.strip().upper(), account_type.strip().lower()


@dataclass(frozen=True)
class EligibilityRuleSet:
    jurisdiction: str
    account_type: str
    version: str
    rules: tuple[EligibilityRule, ...]
    description: str = ""

    @property
    def key(self) -> RuleSetKey:
        return rule_set_key(self.jurisdiction, self.account_type)


@dataclass(frozen=True)
class RuleSetSnapshot:
    version: int
    rule_sets: Mapping[RuleSetKey, tuple[EligibilityRuleSet, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def resolve(
        self, jurisdiction: str, account_type: str, version: Optional[str] = None
    ) -> EligibilityRuleSet:
        key = rule_set_key(jurisdiction, account_type)
        published = self.rule_sets.get(key, ())
        if not published:
            raise RuleSetNotFoundError(
                f"No eligibility rules published for {key[0]}/{key[1]}"
            )
        if version is None:
            return published[-1]
        for rule_set in published:
            if rule_set.version == version:
                return rule_set
        raise RuleSetNotFoundError(
            f"Eligibility rule version {version} is not published for {key[0]}/{key[1]}"
        )

    def list_rule_sets(self) -> list[EligibilityRuleSet]:
        return [rule_set for key in sorted(self.rule_sets) for rule_set in self.rule_sets[key]]


class RuleSetRegistry:
    """Versioned rule sets keyed by (jurisdiction, account type).

    Publishing copies the mapping and swaps the snapshot reference; earlier versions
    stay resolvable so historical justifications can be replayed.
    """

    def __init__(self, rule_sets: Iterable[EligibilityRuleSet] = ()) -> None:
        self._lock = Lock()
        self._snapshot = RuleSetSnapshot(version=0)
        for rule_set in rule_sets:
            self.publish(rule_set)

    @property
    def version(self) -> int:
        return self._snapshot.version

    def snapshot(self) -> RuleSetSnapshot:
        return self._snapshot

    def publish(self, rule_set: EligibilityRuleSet) -> None:
        with self._lock:
            current = self._snapshot
            published = current.rule_sets.get(rule_set.key, ())
            if published and version_sort_key(rule_set.version) <= version_sort_key(
                published[-1].version
            ):
                raise RuleSetPublishError(
                    f"RULE_SET_VERSION_NOT_MONOTONIC: {rule_set.version} <= {published[-1].version}"
                )
            updated = dict(current.rule_sets)
            updated[rule_set.key] = published + (rule_set,)
            self._snapshot = RuleSetSnapshot(
                version=current.version + 1,
                rule_sets=MappingProxyType(updated),
            )

    def resolve(
        self, jurisdiction: str, account_type: str, version: Optional[str] = None
    ) -> EligibilityRuleSet:
        return self._snapshot.resolve(jurisdiction, account_type, version)


_ZA_TFSA_PROVIDERS = (
    "satrix",
    "coreshares",
    "1nvest",
    "cloud atlas",
    "absa",
    "standardbank",
    "sygnia",
    "ashburton",
)
_ISA_RECOGNISED_EXCHANGES = ("LSE", "XETRA", "ETR", "EURONEXT", "SIX", "NYSE", "NASDAQ", "JSE")
_US_EXCHANGES = ("NYSE", "NYSE ARCA", "NASDAQ", "BATS", "CBOE")


def default_rule_sets() -> list[EligibilityRuleSet]:
    za_tfsa = EligibilityRuleSet(
        jurisdiction="ZA",
        account_type="tfsa",
        version="tfsa_za_v1.0",
        description="South African tax-free savings account (Income Tax Act s12T).",
        rules=(
            EligibilityRule(
                name="jse_listing",
                severity="HARD",
                check=listed_on(exchanges=("JSE",), countries=("ZA",), label="JSE"),
            ),
            EligibilityRule(
                name="currency_denomination",
                severity="HARD",
                check=currency_in(("ZAR", "USD")),
            ),
            EligibilityRule(name="no_leverage", severity="HARD", check=not_leveraged()),
            EligibilityRule(name="no_inverse", severity="HARD", check=not_inverse()),
            EligibilityRule(
                name="approved_provider",
                severity="SOFT",
                check=approved_provider(_ZA_TFSA_PROVIDERS),
            ),
            EligibilityRule(
                name="replication_method", severity="SOFT", check=replication_preference()
            ),
        ),
    )
    gb_isa = EligibilityRuleSet(
        jurisdiction="GB",
        account_type="isa",
        version="isa_gb_v1.0",
        description="UK stocks and shares ISA qualifying investments.",
        rules=(
            EligibilityRule(
                name="recognised_exchange",
                severity="HARD",
                check=listed_on(
                    exchanges=_ISA_RECOGNISED_EXCHANGES,
                    countries=("GB",),
                    label="recognised stock exchange",
                ),
            ),
            EligibilityRule(
                name="ucits_structure",
                severity="SOFT",
                check=legal_structure_in(("UCITS",), label="UCITS"),
            ),
            EligibilityRule(name="leverage_caveat", severity="SOFT", check=leverage_caveat()),
        ),
    )
    us_retirement_rules = (
        EligibilityRule(
            name="us_listing",
            severity="HARD",
            check=listed_on(exchanges=_US_EXCHANGES, countries=("US",), label="US exchange"),
        ),
        EligibilityRule(name="usd_denomination", severity="HARD", check=currency_in(("USD",))),
        EligibilityRule(name="leverage_caveat", severity="SOFT", check=leverage_caveat()),
    )
    standard_rules = (
        EligibilityRule(name="tradable_listing", severity="HARD", check=tradable_listing()),
    )

    rule_sets = [za_tfsa, gb_isa]
    for account_type in ("ira", "roth_ira", "401k"):
        rule_sets.append(
            EligibilityRuleSet(
                jurisdiction="US",
                account_type=account_type,
                version=f"{account_type}_us_v1.0",
                description="US tax-advantaged retirement account.",
                rules=us_retirement_rules,
            )
        )
    for jurisdiction in ("ZA", "GB", "US"):
        rule_sets.append(
            EligibilityRuleSet(
                jurisdiction=jurisdiction,
                account_type="standard",
                version=f"standard_{jurisdiction.lower()}_v1.0",
                description="Taxable brokerage account without wrapper restrictions.",
                rules=standard_rules,
            )
        )
    return rule_sets
