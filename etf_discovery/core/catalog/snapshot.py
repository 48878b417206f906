import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from threading import Lock
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping, Optional, Protocol, Sequence

from etf_discovery.core.common.taxonomy import (
    instrument_asset_tags,
    instrument_country_tags,
    instrument_geography_tags,
    normalize_tags,
    requested_market_tags,
)
from etf_discovery.core.errors import CatalogUnavailableError
from etf_discovery.core.models import DataSourceRef, ExposureSpec, Instrument

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    name: str

    def load(self) -> list[Instrument]:
        """Return the full instrument list; raise CatalogUnavailableError when unreachable."""


@dataclass(frozen=True)
class SourceStatus:
    name: str
    loaded_at: Optional[datetime]
    instrument_count: int
    stale: bool
    last_error: Optional[str] = None

    def age_seconds(self, now: datetime) -> Optional[float]:
        if self.loaded_at is None:
            return None
        return max(0.0, (now - self.loaded_at).total_seconds())


@dataclass(frozen=True)
class CatalogSnapshot:
    version: int
    loaded_at: datetime
    instruments: tuple[Instrument, ...]
    sources: tuple[SourceStatus, ...]
    index: Mapping[str, Instrument] = field(default_factory=dict, repr=False)

    @property
    def source_names(self) -> list[str]:
        return [status.name for status in self.sources]

    @property
    def stale_sources(self) -> tuple[SourceStatus, ...]:
        return tuple(status for status in self.sources if status.stale)

    def get(self, ticker: str) -> Optional[Instrument]:
        return self.index.get(ticker.strip().upper())


@dataclass(frozen=True)
class _SourceData:
    instruments: tuple[Instrument, ...]
    loaded_at: datetime
    stale: bool = False
    last_error: Optional[str] = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _instrument_key(instrument: Instrument) -> str:
    return instrument.ticker.strip().upper() or (instrument.isin or "").strip().upper()


def _is_missing(value: object) -> bool:
    return value is None or value == [] or value == {}


def _merge_data_sources(
    base: Sequence[DataSourceRef], extra: Sequence[DataSourceRef]
) -> list[DataSourceRef]:
    merged = list(base)
    seen = {(ref.type, ref.provider, ref.url) for ref in merged}
    for ref in extra:
        key = (ref.type, ref.provider, ref.url)
        if key not in seen:
            seen.add(key)
            merged.append(ref)
    return merged


def merge_instruments(groups: Iterable[Sequence[Instrument]]) -> list[Instrument]:
    """Deduplicate instruments across sources by ticker.

    The first occurrence wins for populated attributes; later sources only fill gaps.
    Provenance from every source is kept in source order.
    """
    merged: dict[str, Instrument] = {}
    for instruments in groups:
        for instrument in instruments:
            key = _instrument_key(instrument)
            existing = merged.get(key)
            if existing is None:
                merged[key] = instrument
                continue
            updates: dict[str, object] = {}
            for field_name in Instrument.model_fields:
                if field_name == "data_sources":
                    continue
                if _is_missing(getattr(existing, field_name)) and not _is_missing(
                    getattr(instrument, field_name)
                ):
                    updates[field_name] = getattr(instrument, field_name)
            updates["data_sources"] = _merge_data_sources(
                existing.data_sources, instrument.data_sources
            )
            merged[key] = existing.model_copy(update=updates)
    return list(merged.values())


class InstrumentCatalog:
    """Read-only instrument store swapped atomically on refresh.

    Readers capture the snapshot reference once and keep using it for the whole
    request; a refresh builds a new snapshot and replaces the reference in one step.
    """

    def __init__(
        self,
        sources: Sequence[CatalogSource],
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if not sources:
            raise ValueError("at least one catalog source is required")
        self._sources = list(sources)
        self._clock = clock
        self._refresh_lock = Lock()
        self._snapshot: Optional[CatalogSnapshot] = None
        self._source_data: dict[str, _SourceData] = {}

    def now(self) -> datetime:
        return self._clock()

    def snapshot(self) -> CatalogSnapshot:
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        with self._refresh_lock:
            if self._snapshot is None:
                return self._refresh_locked()
            return self._snapshot

    def refresh(self) -> CatalogSnapshot:
        with self._refresh_lock:
            return self._refresh_locked()

    def _refresh_locked(self) -> CatalogSnapshot:
        now = self._clock()
        statuses: list[SourceStatus] = []
        groups: list[tuple[Instrument, ...]] = []
        for source in self._sources:
            previous = self._source_data.get(source.name)
            try:
                instruments = tuple(source.load())
            except CatalogUnavailableError as exc:
                logger.warning(
                    "catalog.source.unavailable",
                    extra={"extra_fields": {"source": source.name, "error": str(exc)}},
                )
                if previous is None:
                    statuses.append(
                        SourceStatus(
                            name=source.name,
                            loaded_at=None,
                            instrument_count=0,
                            stale=True,
                            last_error=str(exc),
                        )
                    )
                    continue
                previous = replace(previous, stale=True, last_error=str(exc))
                self._source_data[source.name] = previous
            else:
                previous = _SourceData(instruments=instruments, loaded_at=now)
                self._source_data[source.name] = previous
            groups.append(previous.instruments)
            statuses.append(
                SourceStatus(
                    name=source.name,
                    loaded_at=previous.loaded_at,
                    instrument_count=len(previous.instruments),
                    stale=previous.stale,
                    last_error=previous.last_error,
                )
            )

        if not groups:
            raise CatalogUnavailableError("CATALOG_UNAVAILABLE: no catalog source could be loaded")

        instruments = tuple(merge_instruments(groups))
        version = (self._snapshot.version if self._snapshot is not None else 0) + 1
        snapshot = CatalogSnapshot(
            version=version,
            loaded_at=now,
            instruments=instruments,
            sources=tuple(statuses),
            index=MappingProxyType({_instrument_key(item): item for item in instruments}),
        )
        self._snapshot = snapshot
        logger.info(
            "catalog.refresh.completed",
            extra={
                "extra_fields": {
                    "catalog_version": version,
                    "instrument_count": len(instruments),
                    "stale_sources": [status.name for status in snapshot.stale_sources],
                }
            },
        )
        return snapshot

    def find_candidates(
        self,
        exposure: ExposureSpec,
        *,
        vehicles: Optional[Sequence[str]] = None,
        snapshot: Optional[CatalogSnapshot] = None,
    ) -> Iterator[Instrument]:
        """Lazily pre-filter by vehicle, asset class and geography tags only.

        Instruments that lack the attribute being filtered on pass through.
        """
        snapshot = snapshot or self.snapshot()
        asset_tags = normalize_tags(exposure.assets.asset_classes)
        market_tags = requested_market_tags(exposure.geography)
        excluded_countries = normalize_tags(exposure.geography.exclude_countries)
        vehicle_set = {vehicle.lower() for vehicle in vehicles} if vehicles else None

        for instrument in snapshot.instruments:
            if vehicle_set is not None and instrument.vehicle_type not in vehicle_set:
                continue
            if asset_tags:
                tags = instrument_asset_tags(instrument)
                if tags and not tags & asset_tags:
                    continue
            if market_tags:
                tags = instrument_geography_tags(instrument)
                if tags and not tags & market_tags:
                    continue
            if excluded_countries and instrument_country_tags(instrument) & excluded_countries:
                continue
            yield instrument
