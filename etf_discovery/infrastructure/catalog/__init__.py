from etf_discovery.infrastructure.catalog.in_memory import InMemoryCatalogSource
from etf_discovery.infrastructure.catalog.json_file import JsonFileCatalogSource
from etf_discovery.infrastructure.catalog.postgres import PostgresCatalogSource
from etf_discovery.infrastructure.catalog.seed import SEED_INSTRUMENTS, seed_catalog_source

__all__ = [
    "InMemoryCatalogSource",
    "JsonFileCatalogSource",
    "PostgresCatalogSource",
    "SEED_INSTRUMENTS",
    "seed_catalog_source",
]
