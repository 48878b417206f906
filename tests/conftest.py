"""
FILE: tests/conftest.py
Shared fixtures for discovery engine tests.
"""

from pathlib import Path

import pytest

from etf_discovery.api.routers.discovery_config import shutdown_discovery_runtime


def _has_marker(item: pytest.Item, name: str) -> bool:
    return item.get_closest_marker(name) is not None


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if (
            _has_marker(item, "unit")
            or _has_marker(item, "integration")
            or _has_marker(item, "e2e")
        ):
            continue

        path = Path(str(item.fspath)).as_posix().lower()
        if "/tests/integration/" in path or "_integration.py" in path:
            item.add_marker(pytest.mark.integration)
            continue
        item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def seed_runtime_test_harness(monkeypatch: pytest.MonkeyPatch):
    """Run the API against the bundled seed catalog with a fresh orchestrator per test."""

    monkeypatch.setenv("CATALOG_BACKEND", "SEED")
    for name in (
        "APP_PROFILE",
        "CATALOG_JSON_PATH",
        "CATALOG_POSTGRES_DSN",
        "CATALOG_REFRESH_ENABLED",
        "CATALOG_ADMIN_APIS_ENABLED",
        "DISCOVERY_TIMEOUT_MS",
        "DISCOVERY_RESULT_CACHE_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    shutdown_discovery_runtime()
    yield
    shutdown_discovery_runtime()
