"""
FILE: etf_discovery/infrastructure/catalog/seed.py
Bundled reference universe for local runs and tests. Figures are indicative
month-end values; production deployments load the catalog from JSON_FILE or POSTGRES.
"""

from datetime import date
from typing import Any, Optional

from etf_discovery.core.models import Instrument
from etf_discovery.infrastructure.catalog.in_memory import InMemoryCatalogSource

SEED_AS_OF = date(2025, 9, 30)

_EXCHANGES = {
    "JSE": ("ZA", "ZAR", "JSE", "https://www.jse.co.za/trade/etfs"),
    "NYSE ARCA": ("US", "USD", "NYSE", "https://www.nyse.com/listings_directory/etf"),
    "NASDAQ": ("US", "USD", "Nasdaq", "https://www.nasdaq.com/market-activity/etf"),
    "LSE": ("GB", "GBP", "London Stock Exchange", "https://www.londonstockexchange.com"),
}


def _instrument(
    ticker: str,
    name: str,
    *,
    exchange: str,
    provider: Optional[str],
    asset_class: str,
    ter: Optional[float],
    aum: Optional[float],
    average_daily_volume: Optional[float],
    replication_method: Optional[str] = "physical",
    geographic_focus: Optional[str] = None,
    regions: Optional[dict[str, float]] = None,
    countries: Optional[dict[str, float]] = None,
    factsheet_url: Optional[str] = None,
    **extra: Any,
) -> Instrument:
    country, currency, exchange_name, listing_url = _EXCHANGES[exchange]
    data_sources = [
        {
            "type": "ExchangeListing",
            "provider": exchange_name,
            "url": listing_url,
            "as_of_date": SEED_AS_OF,
        }
    ]
    if factsheet_url:
        data_sources.append(
            {"type": "FactSheet", "provider": provider, "url": factsheet_url, "as_of_date": SEED_AS_OF}
        )
    payload: dict[str, Any] = {
        "ticker": ticker,
        "name": name,
        "provider": provider,
        "exchange": exchange,
        "exchange_country": country,
        "currency": currency,
        "asset_class": asset_class,
        "geographic_focus": geographic_focus,
        "ter": ter,
        "aum": aum,
        "average_daily_volume": average_daily_volume,
        "replication_method": replication_method,
        "is_leveraged": False,
        "is_inverse": False,
        "data_sources": data_sources,
    }
    if regions is not None:
        payload["geographic_breakdown"] = {"regions": regions, "countries": countries}
    payload.update(extra)
    return Instrument.model_validate(payload)


_SA_EQUITY = {"equities": 99.6, "cash": 0.4}
_GLOBAL_EQUITY = {"equities": 99.5, "cash": 0.5}
_BONDS = {"bonds": 99.2, "cash": 0.8}

SEED_INSTRUMENTS: tuple[Instrument, ...] = (
    _instrument(
        "STX40",
        "Satrix 40 ETF",
        isin="ZAE000027108",
        exchange="JSE",
        provider="Satrix",
        asset_class="equity",
        tracking_index="FTSE/JSE Top 40 Index",
        tracking_difference=0.12,
        geographic_focus="South Africa",
        domicile="ZA",
        legal_structure="Collective Investment Scheme",
        ter=0.0010,
        aum=1.4e10,
        average_daily_volume=4.2e7,
        regions={"South Africa": 100.0},
        countries={"ZA": 100.0},
        asset_breakdown=_SA_EQUITY,
        sector_exposure={"Financials": 24.0, "Materials": 28.5, "Consumer Discretionary": 21.0},
        top_holdings=[
            {"name": "Naspers Ltd", "ticker": "NPN", "weight": 13.8},
            {"name": "FirstRand Ltd", "ticker": "FSR", "weight": 6.9},
            {"name": "Anglo American plc", "ticker": "AGL", "weight": 6.1},
        ],
        factsheet_url="https://satrix.co.za/products/product-detail?id=STX40",
    ),
    _instrument(
        "STX500",
        "Satrix S&P 500 Feeder ETF",
        exchange="JSE",
        provider="Satrix",
        asset_class="equity",
        tracking_index="S&P 500 Index",
        tracking_difference=0.25,
        geographic_focus="United States",
        domicile="ZA",
        ter=0.0035,
        aum=1.8e10,
        average_daily_volume=6.0e7,
        regions={"North America": 100.0},
        countries={"US": 100.0},
        asset_breakdown=_GLOBAL_EQUITY,
        sector_exposure={"Technology": 31.0, "Healthcare": 11.5, "Financials": 13.0},
        top_holdings=[
            {"name": "Microsoft Corp", "ticker": "MSFT", "weight": 6.9},
            {"name": "Apple Inc", "ticker": "AAPL", "weight": 6.7},
            {"name": "NVIDIA Corp", "ticker": "NVDA", "weight": 6.4},
        ],
    ),
    _instrument(
        "STXWDM",
        "Satrix MSCI World Feeder ETF",
        exchange="JSE",
        provider="Satrix",
        asset_class="equity",
        tracking_index="MSCI World Index",
        tracking_difference=0.31,
        geographic_focus="Global",
        domicile="ZA",
        ter=0.0035,
        aum=1.3e10,
        average_daily_volume=3.5e7,
        regions={"North America": 73.0, "Developed Europe": 16.0, "Developed Asia Pacific": 11.0},
        asset_breakdown=_GLOBAL_EQUITY,
    ),
    _instrument(
        "STXNDQ",
        "Satrix Nasdaq 100 Feeder ETF",
        exchange="JSE",
        provider="Satrix",
        asset_class="equity",
        tracking_index="Nasdaq 100 Index",
        tracking_difference=0.28,
        geographic_focus="United States",
        ter=0.0048,
        aum=9.0e9,
        average_daily_volume=4.5e7,
        regions={"North America": 100.0},
        countries={"US": 100.0},
        sector_exposure={"Technology": 58.0, "Communication Services": 15.0},
    ),
    _instrument(
        "STXEMG",
        "Satrix MSCI Emerging Markets Feeder ETF",
        exchange="JSE",
        provider="Satrix",
        asset_class="equity",
        tracking_index="MSCI Emerging Markets Index",
        tracking_difference=0.55,
        geographic_focus="Emerging Markets",
        ter=0.0040,
        aum=3.2e9,
        average_daily_volume=9.0e6,
        regions={"Emerging Asia": 78.0, "Emerging Latin America": 8.0, "Emerging EMEA": 14.0},
        countries={"CN": 27.0, "IN": 19.0, "TW": 18.0},
    ),
    _instrument(
        "STXRES",
        "Satrix RESI ETF",
        exchange="JSE",
        provider="Satrix",
        asset_class="equity",
        tracking_index="FTSE/JSE Resource 10 Index",
        geographic_focus="South Africa",
        ter=0.0025,
        aum=9.0e8,
        average_daily_volume=1.2e6,
        regions={"South Africa": 100.0},
        sector_exposure={"Materials": 92.0, "Energy": 8.0},
    ),
    _instrument(
        "STXPRO",
        "Satrix Property ETF",
        exchange="JSE",
        provider="Satrix",
        asset_class="property",
        tracking_index="S&P South Africa Composite Property Capped Index",
        tracking_difference=0.40,
        geographic_focus="South Africa",
        ter=0.0025,
        aum=1.5e9,
        average_daily_volume=4.0e6,
        regions={"South Africa": 100.0},
    ),
    _instrument(
        "STXGOV",
        "Satrix GOVI ETF",
        exchange="JSE",
        provider="Satrix",
        asset_class="bond",
        tracking_index="FTSE/JSE GOVI Index",
        tracking_difference=0.20,
        geographic_focus="South Africa",
        ter=0.0025,
        aum=2.0e9,
        average_daily_volume=5.0e6,
        regions={"South Africa": 100.0},
        asset_breakdown=_BONDS,
    ),
    _instrument(
        "CTOP50",
        "CoreShares S&P South Africa Top 50 ETF",
        exchange="JSE",
        provider="CoreShares",
        asset_class="equity",
        tracking_index="S&P South Africa Top 50 Index",
        tracking_difference=0.18,
        geographic_focus="South Africa",
        ter=0.0025,
        aum=2.5e9,
        average_daily_volume=6.0e6,
        regions={"South Africa": 100.0},
    ),
    _instrument(
        "SYG4IR",
        "Sygnia Itrix 4th Industrial Revolution Global Equity ETF",
        exchange="JSE",
        provider="Sygnia",
        asset_class="equity",
        tracking_index="Solactive 4th Industrial Revolution Index",
        geographic_focus="Global",
        ter=0.0070,
        aum=2.5e9,
        average_daily_volume=8.0e6,
        regions={"North America": 70.0, "Developed Europe": 15.0, "Developed Asia Pacific": 15.0},
        sector_exposure={"Technology": 72.0},
    ),
    _instrument(
        "AMIB50",
        "CloudAtlas AMI Big50 ex-SA ETF",
        exchange="JSE",
        provider="Cloud Atlas",
        asset_class="equity",
        tracking_index="Solactive Africa Big 50 ex-SA Index",
        geographic_focus="Emerging Markets",
        ter=0.0095,
        aum=2.1e8,
        average_daily_volume=None,
        replication_method=None,
        regions={"Emerging EMEA": 100.0},
    ),
    _instrument(
        "SPY",
        "SPDR S&P 500 ETF Trust",
        isin="US78462F1030",
        exchange="NYSE ARCA",
        provider="State Street Global Advisors",
        asset_class="equity",
        tracking_index="S&P 500 Index",
        tracking_difference=0.09,
        geographic_focus="United States",
        domicile="US",
        legal_structure="Unit Investment Trust",
        ter=0.000945,
        aum=5.6e11,
        average_daily_volume=3.0e10,
        regions={"North America": 100.0},
        countries={"US": 100.0},
        asset_breakdown=_GLOBAL_EQUITY,
        sector_exposure={"Technology": 31.0, "Healthcare": 11.5, "Financials": 13.0},
        factsheet_url="https://www.ssga.com/us/en/intermediary/etfs/spdr-sp-500-etf-trust-spy",
    ),
    _instrument(
        "VOO",
        "Vanguard S&P 500 ETF",
        isin="US9229083632",
        exchange="NYSE ARCA",
        provider="Vanguard",
        asset_class="equity",
        tracking_index="S&P 500 Index",
        tracking_difference=0.03,
        geographic_focus="United States",
        domicile="US",
        legal_structure="Open-End Fund",
        ter=0.0003,
        aum=5.0e11,
        average_daily_volume=2.8e9,
        regions={"North America": 100.0},
        countries={"US": 100.0},
        asset_breakdown=_GLOBAL_EQUITY,
        sector_exposure={"Technology": 31.0, "Healthcare": 11.5, "Financials": 13.0},
        factsheet_url="https://investor.vanguard.com/investment-products/etfs/profile/voo",
    ),
    _instrument(
        "IVV",
        "iShares Core S&P 500 ETF",
        isin="US4642872000",
        exchange="NYSE ARCA",
        provider="iShares",
        asset_class="equity",
        tracking_index="S&P 500 Index",
        tracking_difference=0.04,
        geographic_focus="United States",
        domicile="US",
        ter=0.0003,
        aum=5.2e11,
        average_daily_volume=3.1e9,
        regions={"North America": 100.0},
        countries={"US": 100.0},
        sector_exposure={"Technology": 31.0, "Healthcare": 11.5, "Financials": 13.0},
    ),
    _instrument(
        "VTI",
        "Vanguard Total Stock Market ETF",
        isin="US9229087690",
        exchange="NYSE ARCA",
        provider="Vanguard",
        asset_class="equity",
        tracking_index="CRSP US Total Market Index",
        tracking_difference=0.04,
        geographic_focus="United States",
        domicile="US",
        ter=0.0003,
        aum=4.3e11,
        average_daily_volume=1.0e9,
        regions={"North America": 100.0},
        countries={"US": 100.0},
    ),
    _instrument(
        "QQQ",
        "Invesco QQQ Trust",
        isin="US46090E1038",
        exchange="NASDAQ",
        provider="Invesco",
        asset_class="equity",
        tracking_index="Nasdaq 100 Index",
        tracking_difference=0.20,
        geographic_focus="United States",
        domicile="US",
        ter=0.0020,
        aum=2.9e11,
        average_daily_volume=1.9e10,
        regions={"North America": 100.0},
        countries={"US": 100.0},
        sector_exposure={"Technology": 58.0, "Communication Services": 15.0},
    ),
    _instrument(
        "EEM",
        "iShares MSCI Emerging Markets ETF",
        isin="US4642872349",
        exchange="NYSE ARCA",
        provider="iShares",
        asset_class="equity",
        tracking_index="MSCI Emerging Markets Index",
        tracking_difference=0.75,
        geographic_focus="Emerging Markets",
        domicile="US",
        ter=0.0070,
        aum=1.8e10,
        average_daily_volume=1.1e9,
        regions={"Emerging Asia": 78.0, "Emerging Latin America": 8.0, "Emerging EMEA": 14.0},
    ),
    _instrument(
        "VWO",
        "Vanguard FTSE Emerging Markets ETF",
        isin="US9220428588",
        exchange="NYSE ARCA",
        provider="Vanguard",
        asset_class="equity",
        tracking_index="FTSE Emerging Markets All Cap China A Inclusion Index",
        tracking_difference=0.15,
        geographic_focus="Emerging Markets",
        domicile="US",
        ter=0.0008,
        aum=8.5e10,
        average_daily_volume=6.0e8,
        regions={"Emerging Asia": 80.0, "Emerging Latin America": 8.0, "Emerging EMEA": 12.0},
    ),
    _instrument(
        "AGG",
        "iShares Core US Aggregate Bond ETF",
        isin="US4642872265",
        exchange="NYSE ARCA",
        provider="iShares",
        asset_class="bond",
        tracking_index="Bloomberg US Aggregate Bond Index",
        tracking_difference=0.06,
        geographic_focus="United States",
        domicile="US",
        ter=0.0003,
        aum=1.2e11,
        average_daily_volume=8.0e8,
        regions={"North America": 100.0},
        asset_breakdown=_BONDS,
    ),
    _instrument(
        "BND",
        "Vanguard Total Bond Market ETF",
        isin="US9219378356",
        exchange="NASDAQ",
        provider="Vanguard",
        asset_class="bond",
        tracking_index="Bloomberg US Aggregate Float Adjusted Index",
        tracking_difference=0.05,
        geographic_focus="United States",
        domicile="US",
        ter=0.0003,
        aum=1.2e11,
        average_daily_volume=6.0e8,
        regions={"North America": 100.0},
        asset_breakdown=_BONDS,
    ),
    _instrument(
        "TLT",
        "iShares 20+ Year Treasury Bond ETF",
        isin="US4642874329",
        exchange="NASDAQ",
        provider="iShares",
        asset_class="bond",
        tracking_index="ICE US Treasury 20+ Year Index",
        tracking_difference=0.17,
        geographic_focus="United States",
        domicile="US",
        ter=0.0015,
        aum=5.5e10,
        average_daily_volume=3.5e9,
        regions={"North America": 100.0},
        asset_breakdown=_BONDS,
    ),
    _instrument(
        "TQQQ",
        "ProShares UltraPro QQQ",
        exchange="NASDAQ",
        provider="ProShares",
        asset_class="equity",
        tracking_index="Nasdaq 100 Index",
        geographic_focus="United States",
        ter=0.0084,
        aum=2.5e10,
        average_daily_volume=4.0e9,
        replication_method="synthetic",
        is_leveraged=True,
        regions={"North America": 100.0},
    ),
    _instrument(
        "SH",
        "ProShares Short S&P500",
        exchange="NYSE ARCA",
        provider="ProShares",
        asset_class="equity",
        tracking_index="S&P 500 Index",
        geographic_focus="United States",
        ter=0.0089,
        aum=1.2e9,
        average_daily_volume=1.0e8,
        replication_method="synthetic",
        is_inverse=True,
        regions={"North America": 100.0},
    ),
    _instrument(
        "AAPL",
        "Apple Inc",
        exchange="NASDAQ",
        provider=None,
        asset_class="equity",
        vehicle_type="stock",
        geographic_focus="United States",
        ter=None,
        aum=None,
        average_daily_volume=1.2e10,
        replication_method=None,
        sector_exposure={"Technology": 100.0},
    ),
    _instrument(
        "MSFT",
        "Microsoft Corp",
        exchange="NASDAQ",
        provider=None,
        asset_class="equity",
        vehicle_type="stock",
        geographic_focus="United States",
        ter=None,
        aum=None,
        average_daily_volume=9.0e9,
        replication_method=None,
        sector_exposure={"Technology": 100.0},
    ),
    _instrument(
        "VUSA",
        "Vanguard S&P 500 UCITS ETF",
        isin="IE00B3XXRP09",
        exchange="LSE",
        provider="Vanguard",
        asset_class="equity",
        tracking_index="S&P 500 Index",
        tracking_difference=0.10,
        geographic_focus="United States",
        domicile="IE",
        legal_structure="UCITS",
        ter=0.0007,
        aum=4.0e10,
        average_daily_volume=1.0e8,
        regions={"North America": 100.0},
        countries={"US": 100.0},
    ),
    _instrument(
        "ISF",
        "iShares Core FTSE 100 UCITS ETF",
        isin="IE0005042456",
        exchange="LSE",
        provider="iShares",
        asset_class="equity",
        tracking_index="FTSE 100 Index",
        tracking_difference=0.08,
        geographic_focus="United Kingdom",
        domicile="IE",
        legal_structure="UCITS",
        ter=0.0007,
        aum=1.4e10,
        average_daily_volume=4.0e7,
        regions={"United Kingdom": 100.0},
        countries={"GB": 100.0},
    ),
    _instrument(
        "VWRL",
        "Vanguard FTSE All-World UCITS ETF",
        isin="IE00B3RBWM25",
        exchange="LSE",
        provider="Vanguard",
        asset_class="equity",
        tracking_index="FTSE All-World Index",
        tracking_difference=0.12,
        geographic_focus="Global",
        domicile="IE",
        legal_structure="UCITS",
        ter=0.0019,
        aum=1.6e10,
        average_daily_volume=5.0e7,
        regions={"North America": 64.0, "Developed Europe": 15.0, "Emerging Asia": 9.0},
    ),
    _instrument(
        "XSPX",
        "Xtrackers S&P 500 Swap UCITS ETF",
        exchange="LSE",
        provider="Xtrackers",
        asset_class="equity",
        tracking_index="S&P 500 Index",
        tracking_difference=0.02,
        geographic_focus="United States",
        domicile="LU",
        legal_structure="UCITS",
        ter=0.0015,
        aum=6.0e9,
        average_daily_volume=1.0e7,
        replication_method="synthetic",
        regions={"North America": 100.0},
    ),
)


def seed_catalog_source() -> InMemoryCatalogSource:
    return InMemoryCatalogSource(name="seed", instruments=SEED_INSTRUMENTS)
