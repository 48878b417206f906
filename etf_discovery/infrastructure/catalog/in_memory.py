from threading import Lock
from typing import Iterable

from etf_discovery.core.models import Instrument


class InMemoryCatalogSource:
    def __init__(self, *, name: str, instruments: Iterable[Instrument] = ()) -> None:
        self.name = name
        self._lock = Lock()
        self._instruments = list(instruments)

    def load(self) -> list[Instrument]:
        with self._lock:
            return list(self._instruments)

    def replace_instruments(self, instruments: Iterable[Instrument]) -> None:
        with self._lock:
            self._instruments = list(instruments)
