from typing import Iterable

from etf_discovery.core.models import GeographyExposureSpec, Instrument

_SYNONYMS = {
    "equities": "equity",
    "stocks": "equity",
    "stock": "equity",
    "shares": "equity",
    "bonds": "bond",
    "fixed income": "bond",
    "commodities": "commodity",
    "real estate": "property",
    "reit": "property",
    "reits": "property",
    "money market": "cash",
    "us": "united states",
    "usa": "united states",
    "u.s.": "united states",
    "america": "united states",
    "uk": "united kingdom",
    "gb": "united kingdom",
    "great britain": "united kingdom",
    "za": "south africa",
    "rsa": "south africa",
    "ca": "canada",
    "cn": "china",
    "in": "india",
    "jp": "japan",
    "de": "germany",
    "emerging": "emerging markets",
    "em": "emerging markets",
    "developed": "developed markets",
    "dm": "developed markets",
    "global": "world",
    "tech": "technology",
    "information technology": "technology",
    "health care": "healthcare",
}

EMERGING_MARKETS_TAG = "emerging markets"
DEVELOPED_MARKETS_TAG = "developed markets"


def normalize_tag(value: str) -> str:
    key = " ".join(value.strip().lower().replace("_", " ").replace("-", " ").split())
    return _SYNONYMS.get(key, key)


def normalize_tags(values: Iterable[str]) -> frozenset[str]:
    return frozenset(tag for tag in (normalize_tag(value) for value in values) if tag)


def requested_market_tags(geography: GeographyExposureSpec) -> frozenset[str]:
    tags = set(normalize_tags(geography.markets))
    if geography.emerging_markets:
        tags.add(EMERGING_MARKETS_TAG)
    if geography.developed_markets:
        tags.add(DEVELOPED_MARKETS_TAG)
    return frozenset(tags)


def instrument_asset_tags(instrument: Instrument) -> frozenset[str]:
    if not instrument.asset_class:
        return frozenset()
    return normalize_tags([instrument.asset_class])


def instrument_sector_tags(instrument: Instrument) -> frozenset[str]:
    return normalize_tags(instrument.sector_exposure.keys())


def instrument_geography_tags(instrument: Instrument) -> frozenset[str]:
    raw: list[str] = []
    if instrument.geographic_focus:
        raw.append(instrument.geographic_focus)
    breakdown = instrument.geographic_breakdown
    if breakdown is not None:
        raw.extend(breakdown.regions.keys())
        raw.extend((breakdown.countries or {}).keys())
    tags = set(normalize_tags(raw))
    # Region labels such as "Emerging Asia" still classify the fund.
    for tag in list(tags):
        if "emerging" in tag:
            tags.add(EMERGING_MARKETS_TAG)
        elif "developed" in tag:
            tags.add(DEVELOPED_MARKETS_TAG)
    return frozenset(tags)


def instrument_country_tags(instrument: Instrument) -> frozenset[str]:
    breakdown = instrument.geographic_breakdown
    countries = (breakdown.countries or {}) if breakdown is not None else {}
    return normalize_tags(countries.keys())
