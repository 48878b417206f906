import logging
from threading import Event, Thread
from typing import Optional

from etf_discovery.core.catalog.snapshot import InstrumentCatalog
from etf_discovery.core.errors import CatalogUnavailableError

logger = logging.getLogger(__name__)


class CatalogRefresher:
    """Refreshes the catalog on a fixed interval outside of request scope."""

    def __init__(self, catalog: InstrumentCatalog, *, interval_seconds: int) -> None:
        self._catalog = catalog
        self._interval_seconds = max(1, interval_seconds)
        self._stop = Event()
        self._thread: Optional[Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = Thread(target=self._run, name="catalog-refresher", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def refresh_once(self) -> bool:
        try:
            snapshot = self._catalog.refresh()
        except CatalogUnavailableError:
            logger.warning("catalog.refresh.failed", exc_info=True)
            return False
        except Exception:
            # The last good snapshot keeps serving; the next tick retries.
            logger.exception("catalog.refresh.failed")
            return False
        return not snapshot.stale_sources

    def _run(self) -> None:
        while not self._stop.wait(self._interval_seconds):
            self.refresh_once()
