from etf_discovery.core.catalog.refresher import CatalogRefresher
from etf_discovery.core.catalog.snapshot import (
    CatalogSnapshot,
    CatalogSource,
    InstrumentCatalog,
    SourceStatus,
    merge_instruments,
)

__all__ = [
    "CatalogRefresher",
    "CatalogSnapshot",
    "CatalogSource",
    "InstrumentCatalog",
    "SourceStatus",
    "merge_instruments",
]
