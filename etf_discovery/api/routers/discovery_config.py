import os
from threading import Lock
from typing import Optional

from etf_discovery.api.routers.runtime_utils import env_flag, env_int
from etf_discovery.core.catalog import CatalogRefresher, CatalogSource, InstrumentCatalog
from etf_discovery.core.discovery import DiscoveryOrchestrator, DiscoveryResultCache
from etf_discovery.core.eligibility import (
    EligibilityEngine,
    RuleSetRegistry,
    default_rule_sets,
)
from etf_discovery.infrastructure.catalog import (
    JsonFileCatalogSource,
    PostgresCatalogSource,
    seed_catalog_source,
)

_LOCK = Lock()
_ORCHESTRATOR: Optional[DiscoveryOrchestrator] = None
_REFRESHER: Optional[CatalogRefresher] = None


def catalog_backend_name() -> str:
    backend = os.getenv("CATALOG_BACKEND", "SEED").strip().upper()
    if backend in {"JSON_FILE", "POSTGRES"}:
        return backend
    return "SEED"


def catalog_json_path() -> str:
    return os.getenv("CATALOG_JSON_PATH", "").strip()


def catalog_postgres_dsn() -> str:
    return os.getenv("CATALOG_POSTGRES_DSN", "").strip()


def discovery_timeout_ms() -> int:
    return env_int("DISCOVERY_TIMEOUT_MS", 5000)


def discovery_max_workers() -> int:
    return env_int("DISCOVERY_MAX_WORKERS", os.cpu_count() or 4)


def build_catalog_source() -> CatalogSource:
    backend = catalog_backend_name()
    if backend == "JSON_FILE":
        return JsonFileCatalogSource(path=catalog_json_path())
    if backend == "POSTGRES":
        dsn = catalog_postgres_dsn()
        if not dsn:
            raise RuntimeError("CATALOG_POSTGRES_DSN_REQUIRED")
        return PostgresCatalogSource(dsn=dsn)
    return seed_catalog_source()


def build_result_cache() -> Optional[DiscoveryResultCache]:
    if not env_flag("DISCOVERY_RESULT_CACHE_ENABLED", True):
        return None
    return DiscoveryResultCache(
        max_size=env_int("DISCOVERY_RESULT_CACHE_MAX_SIZE", 1000),
        ttl_seconds=env_int("DISCOVERY_RESULT_CACHE_TTL_SECONDS", 300),
    )


def build_orchestrator() -> DiscoveryOrchestrator:
    return DiscoveryOrchestrator(
        catalog=InstrumentCatalog([build_catalog_source()]),
        eligibility_engine=EligibilityEngine(RuleSetRegistry(default_rule_sets())),
        timeout_ms=discovery_timeout_ms(),
        max_workers=discovery_max_workers(),
        result_cache=build_result_cache(),
    )


def get_discovery_orchestrator() -> DiscoveryOrchestrator:
    global _ORCHESTRATOR
    with _LOCK:
        if _ORCHESTRATOR is None:
            _ORCHESTRATOR = build_orchestrator()
        return _ORCHESTRATOR


def set_discovery_orchestrator(orchestrator: Optional[DiscoveryOrchestrator]) -> None:
    global _ORCHESTRATOR
    with _LOCK:
        _ORCHESTRATOR = orchestrator


def start_catalog_refresher() -> Optional[CatalogRefresher]:
    global _REFRESHER
    if not env_flag("CATALOG_REFRESH_ENABLED", False):
        return None
    catalog = get_discovery_orchestrator().catalog
    with _LOCK:
        if _REFRESHER is None:
            _REFRESHER = CatalogRefresher(
                catalog,
                interval_seconds=env_int("CATALOG_REFRESH_INTERVAL_SECONDS", 900),
            )
        refresher = _REFRESHER
    refresher.start()
    return refresher


def shutdown_discovery_runtime() -> None:
    global _ORCHESTRATOR, _REFRESHER
    with _LOCK:
        refresher, _REFRESHER = _REFRESHER, None
        orchestrator, _ORCHESTRATOR = _ORCHESTRATOR, None
    if refresher is not None:
        refresher.stop()
    if orchestrator is not None:
        orchestrator.shutdown()
