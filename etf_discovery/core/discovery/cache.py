from collections import OrderedDict
from threading import Lock
from time import monotonic
from typing import Callable, Dict, Optional

from etf_discovery.core.models import DiscoveryResponse


class DiscoveryResultCache:
    """LRU response cache with a time-to-live, keyed by discovery_cache_key."""

    def __init__(
        self,
        *,
        max_size: int = 1000,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        self._entries: "OrderedDict[str, Dict[str, object]]" = OrderedDict()
        self._lock = Lock()
        self._max_size = max(1, max_size)
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[DiscoveryResponse]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - float(entry["stored_at"]) > self._ttl_seconds:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            payload = entry["response"]
        return DiscoveryResponse.model_validate(payload)

    def put(self, key: str, response: DiscoveryResponse) -> None:
        with self._lock:
            self._entries[key] = {
                "stored_at": self._clock(),
                "response": response.model_dump(mode="json", by_alias=True),
            }
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
