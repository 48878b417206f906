from etf_discovery.core.discovery import DiscoveryResultCache
from etf_discovery.core.models import DiscoveryResponse, SearchSummary


class _Ticker:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _response(request_id: str) -> DiscoveryResponse:
    return DiscoveryResponse(
        request_id=request_id,
        summary=SearchSummary(total_searched=3, data_sources_queried=["seed"]),
        generated_at="2025-10-01T08:00:00+00:00",
        catalog_version=1,
    )


def test_get_returns_an_equal_copy_until_ttl_expires():
    clock = _Ticker()
    cache = DiscoveryResultCache(ttl_seconds=60, clock=clock)
    cache.put("key", _response("disc_1"))

    clock.now = 59
    cached = cache.get("key")
    assert cached == _response("disc_1")
    assert cached.summary.data_sources_queried == ["seed"]

    clock.now = 61
    assert cache.get("key") is None
    assert len(cache) == 0


def test_least_recently_used_entry_is_evicted():
    cache = DiscoveryResultCache(max_size=2, clock=_Ticker())
    cache.put("a", _response("disc_a"))
    cache.put("b", _response("disc_b"))

    assert cache.get("a") is not None
    cache.put("c", _response("disc_c"))

    assert cache.get("b") is None
    assert cache.get("a").request_id == "disc_a"
    assert cache.get("c").request_id == "disc_c"


def test_clear_drops_all_entries():
    cache = DiscoveryResultCache()
    cache.put("a", _response("disc_a"))

    cache.clear()

    assert cache.get("a") is None
    assert len(cache) == 0
