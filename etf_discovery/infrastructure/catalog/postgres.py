import json
import logging
from contextlib import closing
from importlib.util import find_spec
from typing import Any, Optional

from pydantic import ValidationError

from etf_discovery.core.errors import CatalogUnavailableError
from etf_discovery.core.models import Instrument

logger = logging.getLogger(__name__)


class PostgresCatalogSource:
    """Read-only view over the ``etf_instruments`` table owned by the ingestion pipeline."""

    def __init__(self, *, dsn: str, name: str = "postgres") -> None:
        if not dsn:
            raise RuntimeError("CATALOG_POSTGRES_DSN_REQUIRED")
        if find_spec("psycopg") is None:
            raise RuntimeError("CATALOG_POSTGRES_DRIVER_MISSING")
        self.name = name
        self._dsn = dsn

    def load(self) -> list[Instrument]:
        query = """
            SELECT
                ticker,
                instrument_json
            FROM etf_instruments
            ORDER BY ticker ASC
        """
        psycopg, dict_row = _import_psycopg()
        try:
            with closing(psycopg.connect(self._dsn, row_factory=dict_row)) as connection:
                rows = connection.execute(query).fetchall()
        except psycopg.Error as exc:
            raise CatalogUnavailableError(f"CATALOG_UNAVAILABLE: {exc}") from exc
        return rows_to_instruments(rows, source=self.name)


def _import_psycopg() -> tuple[Any, Any]:
    import psycopg
    from psycopg.rows import dict_row

    return psycopg, dict_row


def rows_to_instruments(rows: list[Any], *, source: str) -> list[Instrument]:
    instruments: list[Instrument] = []
    for row in rows:
        instrument = _row_to_instrument(row)
        if instrument is None:
            logger.warning(
                "catalog.row.skipped",
                extra={"extra_fields": {"source": source, "ticker": row.get("ticker")}},
            )
            continue
        instruments.append(instrument)
    return instruments


def _row_to_instrument(row: Any) -> Optional[Instrument]:
    payload = row["instrument_json"]
    try:
        if isinstance(payload, str):
            payload = json.loads(payload)
        if not isinstance(payload, dict):
            return None
        payload = {**payload, "ticker": row["ticker"]}
        return Instrument.model_validate(payload)
    except (ValueError, ValidationError):
        return None
