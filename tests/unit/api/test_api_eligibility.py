from fastapi.testclient import TestClient

from etf_discovery.api.main import app


def test_rule_set_catalog_lists_published_versions():
    with TestClient(app) as client:
        response = client.get("/eligibility/rule-sets")

    assert response.status_code == 200
    body = response.json()
    assert body["registryVersion"] == len(body["ruleSets"])
    za_tfsa = next(
        item
        for item in body["ruleSets"]
        if item["jurisdiction"] == "ZA" and item["accountType"] == "tfsa"
    )
    assert za_tfsa["version"] == "tfsa_za_v1.0"
    assert [rule["name"] for rule in za_tfsa["rules"]][:2] == [
        "jse_listing",
        "currency_denomination",
    ]
    assert za_tfsa["rules"][0]["severity"] == "HARD"


def test_ticker_eligibility_replays_assessment_with_justification():
    with TestClient(app) as client:
        response = client.get(
            "/eligibility/stx40", params={"country": "za", "accountType": "TFSA"}
        )

    assert response.status_code == 200
    body = response.json()
    assert body["ticker"] == "STX40"
    assert body["country"] == "ZA"
    assert body["accountType"] == "tfsa"
    assessment = body["assessment"]
    assert assessment["status"] == "eligible"
    assert assessment["confidence"] == "high"
    assert assessment["ruleVersion"] == "tfsa_za_v1.0"
    assert assessment["justification"].startswith("Eligible under tfsa_za_v1.0")
    assert "jse_listing" in assessment["rulesPassed"]


def test_offshore_listing_is_ineligible_for_za_tfsa():
    with TestClient(app) as client:
        response = client.get("/eligibility/VOO", params={"country": "ZA", "accountType": "tfsa"})

    assessment = response.json()["assessment"]
    assert assessment["status"] == "ineligible"
    assert "jse_listing" in assessment["rulesFailed"]


def test_unpublished_rule_version_reports_unknown():
    with TestClient(app) as client:
        response = client.get(
            "/eligibility/STX40",
            params={"country": "ZA", "accountType": "tfsa", "ruleVersion": "tfsa_za_v9.9"},
        )

    assert response.status_code == 200
    assessment = response.json()["assessment"]
    assert assessment["status"] == "unknown"
    assert assessment["confidence"] == "unknown"


def test_unknown_ticker_is_not_found():
    with TestClient(app) as client:
        response = client.get("/eligibility/NOPE", params={"country": "ZA", "accountType": "tfsa"})

    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "NOT_FOUND"
    assert body["message"] == "INSTRUMENT_NOT_FOUND: NOPE"


def test_invalid_country_is_malformed_query():
    with TestClient(app) as client:
        response = client.get(
            "/eligibility/STX40", params={"country": "ZAF", "accountType": "tfsa"}
        )

    assert response.status_code == 400
    assert response.json()["code"] == "MALFORMED_QUERY"
