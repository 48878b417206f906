from etf_discovery.core.eligibility import unknown_assessment
from etf_discovery.core.models import EligibilityAssessment, ExposureSpec, RankingPreference
from etf_discovery.core.ranking import (
    DEFAULT_WEIGHTS,
    AssessedCandidate,
    RankingEngine,
    match_score,
    normalize_weights,
    requested_tags,
)
from tests.factories import instrument


def _assessment(status: str = "eligible", confidence: str = "high") -> EligibilityAssessment:
    return EligibilityAssessment(
        status=status,
        confidence=confidence,
        justification=f"{status} for test",
        rule_version="tfsa_za_v1.0",
    )


def _candidate(ticker: str, status: str = "eligible", confidence: str = "high", **fields):
    return AssessedCandidate(
        instrument=instrument(ticker, **fields), assessment=_assessment(status, confidence)
    )


def _prefs(**weights: float) -> list[RankingPreference]:
    return [RankingPreference(id=factor, weight=weight) for factor, weight in weights.items()]


def test_ranks_are_positions_and_scores_never_increase():
    candidates = [
        _candidate("A", ter=0.004, aum=1e9, average_daily_volume=5e6),
        _candidate("B", ter=0.001, aum=2e10, average_daily_volume=8e7),
        _candidate("C", ter=0.002, aum=5e9, average_daily_volume=1e7, confidence="medium"),
        _candidate("D", ter=0.0075, aum=3e8, average_daily_volume=1e6, confidence="low"),
    ]

    outcome = RankingEngine().rank(candidates, [], ExposureSpec(), max_results=10)

    assert [item.rank for item in outcome.results] == [1, 2, 3, 4]
    scores = [item.ranking_score for item in outcome.results]
    assert scores == sorted(scores, reverse=True)
    assert outcome.results[0].instrument.ticker == "B"


def test_exact_score_ties_break_on_ter_then_ticker():
    candidates = [
        _candidate("MID", ter=0.002, tracking_index=None),
        _candidate("ZED", ter=0.001, tracking_index=None),
        _candidate("NOTER", ter=None, tracking_index=None),
        _candidate("ABC", ter=0.001, tracking_index=None),
    ]

    outcome = RankingEngine().rank(
        candidates, _prefs(eligibility=0.72, tracking=0.28), ExposureSpec(), max_results=10
    )

    assert [item.ranking_score for item in outcome.results] == [72.0, 72.0, 72.0, 72.0]
    assert [item.instrument.ticker for item in outcome.results] == ["ABC", "ZED", "MID", "NOTER"]


def test_lower_ter_scores_higher_on_fee_factor():
    candidates = [_candidate("CHEAP", ter=0.001), _candidate("DEAR", ter=0.004)]

    outcome = RankingEngine().rank(
        candidates, _prefs(lowest_fees=1.0), ExposureSpec(), max_results=10
    )

    assert [item.instrument.ticker for item in outcome.results] == ["CHEAP", "DEAR"]
    assert outcome.results[0].ranking_score == 75.0
    assert outcome.results[1].ranking_score == 0.0
    assert outcome.results[0].component_scores["ter"] == 0.75


def test_tracking_factor_rewards_index_data_and_low_tracking_difference():
    candidates = [
        _candidate("NOIDX", tracking_index=None),
        _candidate("IDX", tracking_difference=None),
        _candidate("TIGHT", tracking_difference=0.0),
        _candidate("LOOSE", tracking_difference=0.5),
    ]

    outcome = RankingEngine().rank(candidates, _prefs(tracking=1), ExposureSpec(), max_results=10)

    by_ticker = {item.instrument.ticker: item.ranking_score for item in outcome.results}
    assert by_ticker == {"TIGHT": 100.0, "LOOSE": 75.0, "IDX": 50.0, "NOIDX": 0.0}


def test_weights_are_renormalized_with_warning():
    weights, warnings = normalize_weights(_prefs(ter=2, aum=2))

    assert weights == {"ter": 0.5, "aum": 0.5}
    assert [warning.code for warning in warnings] == ["RANKING_WEIGHTS_NORMALIZED"]


def test_weight_aliases_merge_and_unknown_factors_are_reported():
    weights, warnings = normalize_weights(
        _prefs(fees=0.25, stability=0.25, tracking_accuracy=0.5, momentum=3)
    )

    assert weights == {"ter": 0.25, "aum": 0.25, "tracking": 0.5}
    assert [warning.code for warning in warnings] == ["UNKNOWN_RANKING_FACTOR"]
    assert "momentum" in warnings[0].message


def test_zero_or_missing_weights_fall_back_to_defaults():
    assert normalize_weights([]) == (DEFAULT_WEIGHTS, [])
    weights, warnings = normalize_weights(_prefs(ter=0, aum=0))
    assert weights == DEFAULT_WEIGHTS
    assert warnings == []


def test_match_score_uses_normalized_tag_overlap():
    fund = instrument(
        "SPY",
        geographic_focus="United States",
        sector_exposure={"Information Technology": 31.0},
    )

    full = requested_tags(
        ExposureSpec.model_validate(
            {"assets": {"assetClasses": ["Equities"], "sectors": ["tech"]},
             "geography": {"markets": ["USA"]}}
        )
    )
    half = requested_tags(
        ExposureSpec.model_validate({"assets": {"assetClasses": ["equity", "bonds"]}})
    )

    assert match_score(fund, full) == 100.0
    assert match_score(fund, half) == 50.0
    assert match_score(fund, frozenset()) == 100.0


def test_ineligible_candidates_only_surface_as_alternatives():
    candidates = [
        _candidate("GOOD"),
        _candidate("BAD", status="ineligible"),
        _candidate("MAYBE", status="unknown", confidence="unknown"),
    ]

    plain = RankingEngine().rank(candidates, [], ExposureSpec(), max_results=10)
    strict = RankingEngine().rank(
        candidates,
        [],
        ExposureSpec(),
        max_results=10,
        eligible_only=True,
        include_alternatives=True,
    )

    assert [item.instrument.ticker for item in plain.results] == ["GOOD", "MAYBE"]
    assert plain.alternatives == []
    assert [item.instrument.ticker for item in strict.results] == ["GOOD"]
    assert sorted(item.instrument.ticker for item in strict.alternatives) == ["BAD", "MAYBE"]
    assert all(item.is_alternative for item in strict.alternatives)
    assert [item.rank for item in strict.alternatives] == [1, 2]


def test_results_truncate_and_alternatives_are_bounded():
    candidates = [_candidate(f"OK{i}") for i in range(4)] + [
        _candidate(f"NO{i}", status="ineligible") for i in range(8)
    ]

    outcome = RankingEngine().rank(
        candidates, [], ExposureSpec(), max_results=2, include_alternatives=True
    )

    assert len(outcome.results) == 2
    assert len(outcome.alternatives) == 5


def test_unknown_assessment_scores_zero_on_eligibility_factor():
    candidate = AssessedCandidate(
        instrument=instrument("UNK"), assessment=unknown_assessment("no rules")
    )

    outcome = RankingEngine().rank([candidate], _prefs(eligibility=1), ExposureSpec(), max_results=1)

    assert outcome.results[0].ranking_score == 0.0
