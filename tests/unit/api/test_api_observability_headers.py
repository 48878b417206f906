import re

from fastapi.testclient import TestClient

from etf_discovery.api.main import app
from etf_discovery.api.routers.discovery_config import set_discovery_orchestrator
from tests.factories import discovery_payload


def test_observability_headers_preserve_inbound_correlation_and_trace_id():
    with TestClient(app) as client:
        response = client.get(
            "/health",
            headers={
                "X-Correlation-Id": "corr-inbound-123",
                "X-Request-Id": "req-inbound-123",
                "traceparent": "00-1234567890abcdef1234567890abcdef-0000000000000001-01",
            },
        )

    assert response.status_code == 200
    assert response.headers["X-Correlation-Id"] == "corr-inbound-123"
    assert response.headers["X-Request-Id"] == "req-inbound-123"
    assert response.headers["X-Trace-Id"] == "1234567890abcdef1234567890abcdef"


def test_observability_headers_generate_ids_when_missing():
    with TestClient(app) as client:
        response = client.get("/health/live")

    assert re.fullmatch(r"corr_[0-9a-f]{12}", response.headers["X-Correlation-Id"])
    assert re.fullmatch(r"req_[0-9a-f]{12}", response.headers["X-Request-Id"])
    assert re.fullmatch(
        r"00-[0-9a-f]{32}-0000000000000001-01",
        response.headers["traceparent"],
    )


def test_discovery_response_echoes_inbound_request_id():
    with TestClient(app) as client:
        response = client.post(
            "/discover",
            json=discovery_payload(),
            headers={"X-Request-Id": "req-audit-42"},
        )

    assert response.status_code == 200
    assert response.json()["requestId"] == "req-audit-42"
    assert response.headers["X-Request-Id"] == "req-audit-42"


def test_error_bodies_carry_the_request_id_header():
    with TestClient(app) as client:
        response = client.post("/discover", json={}, headers={"X-Request-Id": "req-bad-1"})

    assert response.status_code == 400
    assert response.json()["requestId"] == "req-bad-1"


class _CrashingOrchestrator:
    def discover(self, request, *, request_id=None):
        raise KeyError("ranking_key")

    def shutdown(self) -> None:
        pass


def test_unhandled_errors_keep_the_inbound_request_id(caplog):
    set_discovery_orchestrator(_CrashingOrchestrator())

    with caplog.at_level("ERROR"):
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.post(
                "/discover",
                json=discovery_payload(),
                headers={"X-Request-Id": "req_fixed"},
            )

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "INTERNAL_ERROR"
    assert body["requestId"] == "req_fixed"
    assert body["details"] == {"path": "/discover"}
    assert response.headers["X-Request-Id"] == "req_fixed"
    assert any(
        record.getMessage() == "Unhandled exception while serving request"
        for record in caplog.records
    )
