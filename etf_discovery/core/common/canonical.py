import hashlib
import json
from typing import Any


def canonical_json(payload: Any) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


def hash_canonical_payload(payload: Any) -> str:
    digest = hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"


def discovery_cache_key(
    request_payload: dict[str, Any], *, catalog_version: int, registry_version: int
) -> str:
    return hash_canonical_payload(
        {
            "request": request_payload,
            "catalog_version": catalog_version,
            "registry_version": registry_version,
        }
    )
