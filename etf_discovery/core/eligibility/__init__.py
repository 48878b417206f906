from etf_discovery.core.eligibility.engine import (
    EligibilityEngine,
    fold_rule_set,
    unknown_assessment,
)
from etf_discovery.core.eligibility.rule_sets import (
    EligibilityRuleSet,
    RuleSetRegistry,
    RuleSetSnapshot,
    default_rule_sets,
    version_sort_key,
)
from etf_discovery.core.eligibility.rules import EligibilityRule, RuleContext, RuleOutcome

__all__ = [
    "EligibilityEngine",
    "EligibilityRule",
    "EligibilityRuleSet",
    "RuleContext",
    "RuleOutcome",
    "RuleSetRegistry",
    "RuleSetSnapshot",
    "default_rule_sets",
    "fold_rule_set",
    "unknown_assessment",
    "version_sort_key",
]
