from __future__ import annotations

import os

from etf_discovery.api.routers.discovery_config import (
    catalog_backend_name,
    catalog_json_path,
    catalog_postgres_dsn,
)

_PRODUCTION_PROFILE = "PRODUCTION"
_LOCAL_PROFILE = "LOCAL"


def app_profile_name() -> str:
    profile = os.getenv("APP_PROFILE", _LOCAL_PROFILE).strip().upper()
    return _PRODUCTION_PROFILE if profile == _PRODUCTION_PROFILE else _LOCAL_PROFILE


def validate_app_profile_guardrails() -> None:
    backend = catalog_backend_name()
    if backend == "JSON_FILE" and not catalog_json_path():
        raise RuntimeError("CATALOG_JSON_PATH_REQUIRED")
    if backend == "POSTGRES" and not catalog_postgres_dsn():
        raise RuntimeError("CATALOG_POSTGRES_DSN_REQUIRED")
    if app_profile_name() != _PRODUCTION_PROFILE:
        return
    if backend == "SEED":
        raise RuntimeError("APP_PROFILE_REQUIRES_EXTERNAL_CATALOG")
