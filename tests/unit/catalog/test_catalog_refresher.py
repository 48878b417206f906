import time

from etf_discovery.core.catalog import CatalogRefresher, InstrumentCatalog
from tests.factories import FlakySource, instrument


def test_refresh_once_reports_success_and_stale_outcomes():
    source = FlakySource("listing", [instrument("STX40")])
    catalog = InstrumentCatalog([source])
    refresher = CatalogRefresher(catalog, interval_seconds=60)

    assert refresher.refresh_once() is True

    source.available = False
    assert refresher.refresh_once() is False
    assert catalog.snapshot().version == 2


def test_refresh_once_swallows_total_outage_without_raising():
    source = FlakySource("listing", [instrument("STX40")])
    source.available = False
    refresher = CatalogRefresher(InstrumentCatalog([source]), interval_seconds=60)

    assert refresher.refresh_once() is False


def test_background_thread_refreshes_until_stopped():
    source = FlakySource("listing", [instrument("STX40")])
    catalog = InstrumentCatalog([source])
    refresher = CatalogRefresher(catalog, interval_seconds=1)

    refresher.start()
    try:
        assert refresher.running is True
        deadline = time.monotonic() + 5
        while source.load_calls < 1 and time.monotonic() < deadline:
            time.sleep(0.05)
    finally:
        refresher.stop()

    assert source.load_calls >= 1
    assert refresher.running is False


class _InvalidPayloadSource:
    """Serves once, then fails the way a malformed upstream row does."""

    name = "listing"

    def __init__(self) -> None:
        self.load_calls = 0

    def load(self):
        self.load_calls += 1
        if self.load_calls > 1:
            raise ValueError("instrument payload failed validation")
        return [instrument("STX40")]


def test_refresh_once_survives_unexpected_source_errors(caplog):
    source = _InvalidPayloadSource()
    catalog = InstrumentCatalog([source])
    refresher = CatalogRefresher(catalog, interval_seconds=60)
    assert refresher.refresh_once() is True

    with caplog.at_level("ERROR", logger="etf_discovery.core.catalog.refresher"):
        assert refresher.refresh_once() is False

    assert any(record.getMessage() == "catalog.refresh.failed" for record in caplog.records)
    assert [item.ticker for item in catalog.snapshot().instruments] == ["STX40"]


def test_background_thread_keeps_running_after_unexpected_errors():
    source = _InvalidPayloadSource()
    refresher = CatalogRefresher(InstrumentCatalog([source]), interval_seconds=1)

    refresher.start()
    try:
        deadline = time.monotonic() + 6
        while source.load_calls < 3 and time.monotonic() < deadline:
            time.sleep(0.05)
        assert refresher.running is True
    finally:
        refresher.stop()

    assert source.load_calls >= 3
