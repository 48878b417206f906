import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from etf_discovery.core.errors import CatalogUnavailableError
from etf_discovery.core.models import Instrument


class JsonFileCatalogSource:
    """Reads a catalog export written by the ingestion pipeline.

    The file holds either a list of instrument objects or ``{"instruments": [...]}``.
    Entries that fail validation are skipped; an unreadable file is a source outage.
    """

    def __init__(self, *, path: str, name: str = "json_file") -> None:
        if not path:
            raise RuntimeError("CATALOG_JSON_PATH_REQUIRED")
        self.name = name
        self._path = Path(path)

    def load(self) -> list[Instrument]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise CatalogUnavailableError(
                f"CATALOG_UNAVAILABLE: cannot read {self._path}: {exc}"
            ) from exc
        return parse_instrument_catalog(raw)


def parse_instrument_catalog(raw: Any) -> list[Instrument]:
    if isinstance(raw, dict):
        raw = raw.get("instruments")
    if not isinstance(raw, list):
        raise CatalogUnavailableError("CATALOG_UNAVAILABLE: catalog payload must be a list")

    instruments: list[Instrument] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            instruments.append(Instrument.model_validate(entry))
        except ValidationError:
            continue
    return instruments
