"""
FILE: etf_discovery/core/discovery/orchestrator.py
Per-request discovery pipeline:
RECEIVED -> CATALOG_QUERY -> ELIGIBILITY_EVAL -> FILTER -> RANK -> ASSEMBLE -> DONE.
"""

import logging
import os
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Sequence

from etf_discovery.core.catalog import CatalogSnapshot, InstrumentCatalog
from etf_discovery.core.common.canonical import discovery_cache_key
from etf_discovery.core.discovery.cache import DiscoveryResultCache
from etf_discovery.core.eligibility import EligibilityEngine, RuleSetSnapshot, unknown_assessment
from etf_discovery.core.errors import DiscoveryTimeoutError, RuleSetNotFoundError
from etf_discovery.core.models import (
    DiscoveryRequest,
    DiscoveryResponse,
    DiscoveryWarning,
    EligibilityAssessment,
    EligibilityDetail,
    ETFResult,
    Instrument,
    OutputOptions,
    SearchSummary,
)
from etf_discovery.core.ranking import AssessedCandidate, RankingEngine, ScoredCandidate
from etf_discovery.core.screening import ConstraintFilter

logger = logging.getLogger(__name__)

DEGRADED_WARNING_CODES = frozenset({"PARTIAL_TIMEOUT", "EVALUATION_FAILED", "STALE_DATA"})


class DiscoveryStage(str, Enum):
    RECEIVED = "RECEIVED"
    CATALOG_QUERY = "CATALOG_QUERY"
    ELIGIBILITY_EVAL = "ELIGIBILITY_EVAL"
    FILTER = "FILTER"
    RANK = "RANK"
    ASSEMBLE = "ASSEMBLE"
    DONE = "DONE"
    FAILED = "FAILED"


class _RequestRun:
    def __init__(self, request_id: str, budget_seconds: float) -> None:
        self.request_id = request_id
        self.started = time.perf_counter()
        self.deadline = self.started + budget_seconds
        self.stage = DiscoveryStage.RECEIVED

    def remaining(self) -> float:
        return max(0.0, self.deadline - time.perf_counter())

    def elapsed_ms(self) -> int:
        return int(round((time.perf_counter() - self.started) * 1000))

    def advance(self, stage: DiscoveryStage, **fields: object) -> None:
        self.stage = stage
        logger.debug(
            "discovery.stage",
            extra={
                "extra_fields": {
                    "discovery_request_id": self.request_id,
                    "stage": stage.value,
                    "elapsed_ms": self.elapsed_ms(),
                    **fields,
                }
            },
        )


class DiscoveryOrchestrator:
    def __init__(
        self,
        *,
        catalog: InstrumentCatalog,
        eligibility_engine: EligibilityEngine,
        constraint_filter: Optional[ConstraintFilter] = None,
        ranking_engine: Optional[RankingEngine] = None,
        timeout_ms: int = 5000,
        max_workers: Optional[int] = None,
        result_cache: Optional[DiscoveryResultCache] = None,
    ) -> None:
        self._catalog = catalog
        self._eligibility = eligibility_engine
        self._filter = constraint_filter or ConstraintFilter()
        self._ranking = ranking_engine or RankingEngine()
        self._budget_seconds = max(1, timeout_ms) / 1000.0
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or os.cpu_count() or 4,
            thread_name_prefix="discovery",
        )
        # Catalog reads never queue behind evaluations abandoned by an earlier timeout.
        self._catalog_executor = ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="discovery-catalog"
        )
        self._result_cache = result_cache

    @property
    def catalog(self) -> InstrumentCatalog:
        return self._catalog

    @property
    def eligibility_engine(self) -> EligibilityEngine:
        return self._eligibility

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._catalog_executor.shutdown(wait=False, cancel_futures=True)

    def discover(
        self, request: DiscoveryRequest, *, request_id: Optional[str] = None
    ) -> DiscoveryResponse:
        run = _RequestRun(request_id or f"disc_{uuid.uuid4().hex[:12]}", self._budget_seconds)
        run.advance(DiscoveryStage.RECEIVED)
        try:
            response = self._execute(run, request)
        except Exception:
            logger.warning(
                "discovery.failed",
                extra={
                    "extra_fields": {
                        "discovery_request_id": run.request_id,
                        "failed_stage": run.stage.value,
                        "elapsed_ms": run.elapsed_ms(),
                    }
                },
            )
            run.advance(DiscoveryStage.FAILED)
            raise
        run.advance(DiscoveryStage.DONE)
        logger.info(
            "discovery.completed",
            extra={
                "extra_fields": {
                    "discovery_request_id": run.request_id,
                    "total_searched": response.summary.total_searched,
                    "result_count": len(response.results),
                    "warning_codes": [warning.code for warning in response.warnings],
                    "cache_hit": response.cache_hit,
                    "search_duration_ms": response.summary.search_duration_ms,
                }
            },
        )
        return response

    def _execute(self, run: _RequestRun, request: DiscoveryRequest) -> DiscoveryResponse:
        rule_sets = self._eligibility.registry.snapshot()

        run.advance(DiscoveryStage.CATALOG_QUERY)
        snapshot, candidates = self._query_catalog(run, request)

        cache_key = None
        if self._result_cache is not None:
            cache_key = discovery_cache_key(
                request.model_dump(mode="json"),
                catalog_version=snapshot.version,
                registry_version=rule_sets.version,
            )
            cached = self._result_cache.get(cache_key)
            if cached is not None:
                return cached.model_copy(
                    update={
                        "request_id": run.request_id,
                        "cache_hit": True,
                        "generated_at": _utc_iso(),
                    }
                )

        warnings: list[DiscoveryWarning] = []
        warnings.extend(self._stale_source_warnings(snapshot))
        warnings.extend(self._rule_set_warnings(request, rule_sets))

        run.advance(DiscoveryStage.ELIGIBILITY_EVAL, candidate_count=len(candidates))
        assessments, evaluation_warnings = self._evaluate(run, request, candidates, rule_sets)
        warnings.extend(evaluation_warnings)

        run.advance(DiscoveryStage.FILTER)
        filtered = self._filter.apply(candidates, request.constraints)
        if filtered.exclusions:
            breakdown = ", ".join(
                f"{reason}={count}" for reason, count in sorted(filtered.exclusions.items())
            )
            warnings.append(
                DiscoveryWarning(
                    code="CONSTRAINT_EXCLUSIONS",
                    message=(
                        f"{filtered.excluded_count} instruments excluded by constraints "
                        f"({breakdown})"
                    ),
                    severity="info",
                )
            )

        run.advance(DiscoveryStage.RANK, survivor_count=len(filtered.kept))
        ranked = self._ranking.rank(
            [
                AssessedCandidate(instrument=instrument, assessment=assessments[instrument.ticker])
                for instrument in filtered.kept
            ],
            request.ranking_preferences,
            request.exposure,
            max_results=request.output_options.max_results,
            eligible_only=request.constraints.eligible_only,
            include_alternatives=request.output_options.include_alternatives,
        )
        warnings.extend(ranked.warnings)
        warnings.extend(_result_quality_warnings(ranked.results))

        run.advance(DiscoveryStage.ASSEMBLE)
        summary = _summarize(candidates, assessments, snapshot)
        summary.total_excluded_by_constraints = filtered.excluded_count
        summary.search_duration_ms = run.elapsed_ms()
        options = request.output_options
        response = DiscoveryResponse(
            request_id=run.request_id,
            results=[_to_result(item, options) for item in ranked.results],
            alternatives=[_to_result(item, options) for item in ranked.alternatives],
            summary=summary,
            warnings=warnings if options.include_warnings else [],
            generated_at=_utc_iso(),
            cache_hit=any(status.loaded_at is not None for status in snapshot.stale_sources),
            catalog_version=snapshot.version,
        )

        degraded = any(warning.code in DEGRADED_WARNING_CODES for warning in warnings)
        if cache_key is not None and not degraded:
            self._result_cache.put(cache_key, response)
        return response

    def _query_catalog(
        self, run: _RequestRun, request: DiscoveryRequest
    ) -> tuple[CatalogSnapshot, list[Instrument]]:
        def query() -> tuple[CatalogSnapshot, list[Instrument]]:
            snapshot = self._catalog.snapshot()
            return snapshot, list(
                self._catalog.find_candidates(
                    request.exposure,
                    vehicles=request.investment_vehicles,
                    snapshot=snapshot,
                )
            )

        future = self._catalog_executor.submit(query)
        try:
            return future.result(timeout=run.remaining())
        except FutureTimeoutError as exc:
            future.cancel()
            raise DiscoveryTimeoutError(
                "DISCOVERY_TIMEOUT: catalog query did not complete within the request budget"
            ) from exc

    def _evaluate(
        self,
        run: _RequestRun,
        request: DiscoveryRequest,
        candidates: Sequence[Instrument],
        rule_sets: RuleSetSnapshot,
    ) -> tuple[dict[str, EligibilityAssessment], list[DiscoveryWarning]]:
        profile = request.investor_profile
        futures: dict[str, Future] = {
            instrument.ticker: self._executor.submit(
                self._eligibility.evaluate,
                instrument,
                profile,
                request.rule_set_version,
                rule_sets=rule_sets,
            )
            for instrument in candidates
        }
        done, _ = wait(futures.values(), timeout=run.remaining())

        assessments: dict[str, EligibilityAssessment] = {}
        timed_out: list[str] = []
        failed: list[str] = []
        for ticker, future in futures.items():
            if future not in done:
                future.cancel()
                timed_out.append(ticker)
                assessments[ticker] = unknown_assessment(
                    "Eligibility evaluation did not complete within the request budget",
                    rule_version=request.rule_set_version,
                )
                continue
            try:
                assessments[ticker] = future.result()
            except Exception as exc:
                logger.warning(
                    "discovery.eligibility.failed",
                    exc_info=True,
                    extra={
                        "extra_fields": {"discovery_request_id": run.request_id, "ticker": ticker}
                    },
                )
                failed.append(ticker)
                assessments[ticker] = unknown_assessment(
                    f"Eligibility evaluation failed: {exc}",
                    rule_version=request.rule_set_version,
                )

        warnings: list[DiscoveryWarning] = []
        if timed_out:
            warnings.append(
                DiscoveryWarning(
                    code="PARTIAL_TIMEOUT",
                    message=(
                        f"Eligibility evaluation timed out for {len(timed_out)} of "
                        f"{len(candidates)} candidates; they are reported as unknown"
                    ),
                    severity="warning",
                )
            )
        if failed:
            warnings.append(
                DiscoveryWarning(
                    code="EVALUATION_FAILED",
                    message=(
                        f"Eligibility evaluation failed for {', '.join(sorted(failed))}; "
                        "reported as unknown"
                    ),
                    severity="warning",
                )
            )
        return assessments, warnings

    def _stale_source_warnings(self, snapshot: CatalogSnapshot) -> list[DiscoveryWarning]:
        now = self._catalog.now()
        warnings = []
        for status in snapshot.stale_sources:
            age = status.age_seconds(now)
            if age is None:
                message = f"Catalog source {status.name} is unavailable and has no cached data"
            else:
                message = (
                    f"Catalog source {status.name} is unavailable; "
                    f"serving cached data {int(age)} seconds old"
                )
            warnings.append(DiscoveryWarning(code="STALE_DATA", message=message))
        return warnings

    def _rule_set_warnings(
        self, request: DiscoveryRequest, rule_sets: RuleSetSnapshot
    ) -> list[DiscoveryWarning]:
        profile = request.investor_profile
        try:
            rule_sets.resolve(profile.country, profile.account_type, request.rule_set_version)
        except RuleSetNotFoundError as exc:
            return [
                DiscoveryWarning(
                    code="RULE_SET_NOT_FOUND",
                    message=f"{exc}; eligibility is reported as unknown",
                )
            ]
        return []


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _summarize(
    candidates: Sequence[Instrument],
    assessments: dict[str, EligibilityAssessment],
    snapshot: CatalogSnapshot,
) -> SearchSummary:
    summary = SearchSummary(
        total_searched=len(candidates),
        data_sources_queried=snapshot.source_names,
    )
    for instrument in candidates:
        status = assessments[instrument.ticker].status
        if status == "eligible":
            summary.total_eligible += 1
        elif status == "ineligible":
            summary.total_ineligible += 1
        elif status == "conditional":
            summary.total_conditional += 1
        else:
            summary.total_unknown += 1
    return summary


def _result_quality_warnings(results: Sequence[ScoredCandidate]) -> list[DiscoveryWarning]:
    warnings = []
    if not any(item.assessment.is_eligible for item in results):
        warnings.append(
            DiscoveryWarning(
                code="NO_ELIGIBLE_RESULTS",
                message=(
                    "No eligible ETFs found. Consider relaxing constraints or broadening "
                    "exposure criteria."
                ),
            )
        )
    low_confidence = sum(
        1 for item in results if item.assessment.confidence in ("medium", "low", "unknown")
    )
    if low_confidence:
        warnings.append(
            DiscoveryWarning(
                code="LOW_CONFIDENCE_RESULTS",
                message=(
                    f"{low_confidence} results have medium, low or unknown confidence. "
                    "Verify eligibility with your platform before investing."
                ),
                severity="info",
            )
        )
    return warnings


def _eligibility_detail(
    assessment: EligibilityAssessment, options: OutputOptions
) -> EligibilityDetail:
    if not options.explain_eligibility:
        return EligibilityDetail(
            status=assessment.status,
            is_eligible=assessment.is_eligible,
            confidence=assessment.confidence,
            justification=assessment.justification.split("; ", 1)[0],
            rule_version=assessment.rule_version,
        )
    return EligibilityDetail(
        status=assessment.status,
        is_eligible=assessment.is_eligible,
        confidence=assessment.confidence,
        justification=assessment.justification,
        rule_version=assessment.rule_version,
        rules_passed=list(assessment.rules_passed),
        rules_failed=list(assessment.rules_failed),
        warnings=list(assessment.warnings),
    )


def _to_result(item: ScoredCandidate, options: OutputOptions) -> ETFResult:
    instrument = item.instrument
    return ETFResult(
        rank=item.rank,
        ticker=instrument.ticker,
        name=instrument.name,
        isin=instrument.isin,
        exchange=instrument.exchange,
        provider=instrument.provider,
        asset_class=instrument.asset_class,
        tracking_index=instrument.tracking_index,
        geographic_focus=instrument.geographic_focus,
        ter=instrument.ter,
        aum=instrument.aum,
        currency=instrument.currency,
        average_daily_volume=instrument.average_daily_volume,
        replication_method=instrument.replication_method,
        liquidity_score=item.liquidity_score,
        eligibility=_eligibility_detail(item.assessment, options),
        match_score=item.match_score,
        ranking_score=item.ranking_score,
        component_scores=item.component_scores,
        is_alternative=item.is_alternative,
        asset_breakdown=instrument.asset_breakdown,
        geographic_breakdown=instrument.geographic_breakdown,
        top_holdings=list(instrument.top_holdings),
        data_sources=list(instrument.data_sources) if options.include_source_links else [],
    )
