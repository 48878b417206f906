"""
FILE: etf_discovery/core/eligibility/engine.py
Deterministic fold of an ordered rule set into an EligibilityAssessment.
"""

from typing import Optional

from etf_discovery.core.eligibility.rule_sets import (
    EligibilityRuleSet,
    RuleSetRegistry,
    RuleSetSnapshot,
)
from etf_discovery.core.eligibility.rules import RuleContext, RuleOutcome
from etf_discovery.core.errors import MissingAttributeError, RuleSetNotFoundError
from etf_discovery.core.models import (
    ConfidenceLevel,
    EligibilityAssessment,
    Instrument,
    InvestorProfile,
)

_CONFIDENCE_ORDER: dict[ConfidenceLevel, int] = {"unknown": 0, "low": 1, "medium": 2, "high": 3}


def _cap(current: ConfidenceLevel, ceiling: ConfidenceLevel) -> ConfidenceLevel:
    return current if _CONFIDENCE_ORDER[current] <= _CONFIDENCE_ORDER[ceiling] else ceiling


def unknown_assessment(
    justification: str, *, rule_version: Optional[str] = None
) -> EligibilityAssessment:
    return EligibilityAssessment(
        status="unknown",
        confidence="unknown",
        justification=justification,
        rule_version=rule_version,
    )


def fold_rule_set(
    rule_set: EligibilityRuleSet, instrument: Instrument, profile: InvestorProfile
) -> EligibilityAssessment:
    ctx = RuleContext(
        jurisdiction=rule_set.jurisdiction,
        account_type=rule_set.account_type,
        rule_version=rule_set.version,
    )
    passed: list[str] = []
    failed: list[str] = []
    skipped: list[str] = []
    caveats: list[str] = []
    reasons: list[str] = []
    confidence: ConfidenceLevel = "high"
    hard_failed = False
    soft_flagged = False

    for rule in rule_set.rules:
        try:
            outcome = rule.check(instrument, profile, ctx)
        except MissingAttributeError as exc:
            outcome = RuleOutcome.skipped(f"Missing {exc.attribute}; rule not evaluated")

        if outcome.status == "SKIP":
            skipped.append(rule.name)
            caveats.append(f"{rule.name}: {outcome.reason}")
            confidence = _cap(confidence, "low")
        elif outcome.status == "FAIL":
            failed.append(rule.name)
            if rule.severity == "HARD":
                hard_failed = True
            else:
                soft_flagged = True
                caveats.append(f"{rule.name}: {outcome.reason}")
                confidence = _cap(confidence, "medium")
        else:
            passed.append(rule.name)
            if outcome.caveat:
                soft_flagged = True
                caveats.append(f"{rule.name}: {outcome.caveat}")
                confidence = _cap(confidence, "medium")
        reasons.append(f"[{outcome.status}] {rule.name}: {outcome.reason}")

    if hard_failed:
        status = "ineligible"
        headline = f"Ineligible under {rule_set.version}"
    elif not passed and not failed:
        status = "unknown"
        confidence = "unknown"
        headline = f"Insufficient data to evaluate {rule_set.version}"
    elif skipped:
        status = "unknown"
        headline = f"Cannot confirm eligibility under {rule_set.version}; required data missing"
    elif soft_flagged:
        status = "conditional"
        headline = f"Conditionally eligible under {rule_set.version}; verify caveats"
    else:
        status = "eligible"
        headline = f"Eligible under {rule_set.version}"

    return EligibilityAssessment(
        status=status,
        confidence=confidence,
        justification="; ".join([headline, *reasons]),
        rule_version=rule_set.version,
        rules_passed=passed,
        rules_failed=failed,
        rules_skipped=skipped,
        warnings=caveats,
    )


class EligibilityEngine:
    def __init__(self, registry: RuleSetRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> RuleSetRegistry:
        return self._registry

    def evaluate(
        self,
        instrument: Instrument,
        profile: InvestorProfile,
        rule_set_version: Optional[str] = None,
        *,
        rule_sets: Optional[RuleSetSnapshot] = None,
    ) -> EligibilityAssessment:
        rule_sets = rule_sets or self._registry.snapshot()
        try:
            rule_set = rule_sets.resolve(profile.country, profile.account_type, rule_set_version)
        except RuleSetNotFoundError as exc:
            return unknown_assessment(
                f"{exc}; eligibility cannot be determined", rule_version=rule_set_version
            )
        return fold_rule_set(rule_set, instrument, profile)
