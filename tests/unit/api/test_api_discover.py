from fastapi.testclient import TestClient

from etf_discovery.api.main import app
from etf_discovery.api.routers.discovery_config import set_discovery_orchestrator
from tests.factories import FlakySource, SlowSource, discovery_payload, instrument, orchestrator


def test_discover_ranks_seed_catalog_for_za_tfsa():
    with TestClient(app) as client:
        response = client.post("/discover", json=discovery_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["requestId"] == response.headers["X-Request-Id"]
    tickers = [item["ticker"] for item in body["results"]]
    assert "STX40" in tickers
    assert "CTOP50" in tickers
    assert "STXRES" not in tickers

    top = body["results"][0]
    assert top["rank"] == 1
    assert top["eligibility"]["isEligible"] is True
    assert top["eligibility"]["ruleVersion"] == "tfsa_za_v1.0"
    assert 0 <= top["rankingScore"] <= 100
    assert top["dataSources"][0]["asOfDate"] == "2025-09-30"

    summary = body["summary"]
    assert summary["dataSourcesQueried"] == ["seed"]
    assert summary["totalExcludedByConstraints"] >= 1
    assert (
        summary["totalEligible"]
        + summary["totalIneligible"]
        + summary["totalConditional"]
        + summary["totalUnknown"]
        == summary["totalSearched"]
    )


def test_versioned_discover_route_matches_primary_route():
    with TestClient(app) as client:
        primary = client.post("/discover", json=discovery_payload()).json()
        versioned = client.post("/api/v1/discover", json=discovery_payload()).json()

    assert [item["ticker"] for item in versioned["results"]] == [
        item["ticker"] for item in primary["results"]
    ]


def test_repeat_query_is_served_from_result_cache():
    with TestClient(app) as client:
        first = client.post("/discover", json=discovery_payload()).json()
        second = client.post("/discover", json=discovery_payload()).json()

    assert first["cacheHit"] is False
    assert second["cacheHit"] is True
    assert second["requestId"] != first["requestId"]


def test_invalid_profile_is_rejected_with_validation_error():
    payload = discovery_payload(
        investorProfile={"country": "ZAF", "accountType": "tfsa", "currency": "ZAR"}
    )

    with TestClient(app) as client:
        response = client.post("/discover", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["requestId"]
    assert body["details"]["errors"]


def test_out_of_range_constraints_are_rejected():
    with TestClient(app) as client:
        response = client.post(
            "/discover",
            json=discovery_payload(
                constraints={"maxTER": -1}, outputOptions={"maxResults": 0}
            ),
        )

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_catalog_outage_maps_to_service_unavailable():
    source = FlakySource("listing", [instrument("STX40")])
    source.available = False
    set_discovery_orchestrator(orchestrator(sources=[source]))

    with TestClient(app) as client:
        response = client.post("/discover", json=discovery_payload())

    assert response.status_code == 503
    assert response.json()["code"] == "CATALOG_UNAVAILABLE"


def test_catalog_query_over_budget_maps_to_gateway_timeout():
    set_discovery_orchestrator(
        orchestrator(sources=[SlowSource(1.0, [instrument("STX40")])], timeout_ms=200)
    )

    with TestClient(app) as client:
        response = client.post("/discover", json=discovery_payload())

    assert response.status_code == 504
    assert response.json()["code"] == "DISCOVERY_TIMEOUT"


def test_top_bond_funds_use_relaxed_us_standard_profile():
    with TestClient(app) as client:
        response = client.get("/discover/bonds")

    assert response.status_code == 200
    results = response.json()["results"]
    tickers = {item["ticker"] for item in results}
    assert {"AGG", "BND", "TLT"} <= tickers
    assert all(item["assetClass"] == "bond" for item in results)
    assert all(item["eligibility"]["ruleVersion"] == "standard_us_v1.0" for item in results)


def test_top_funds_rejects_unknown_type():
    with TestClient(app) as client:
        response = client.get("/api/v1/discover/crypto")

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "MALFORMED_QUERY"
    assert "INVALID_TYPE" in body["message"]
