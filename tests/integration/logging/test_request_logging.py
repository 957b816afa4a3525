import json
import logging

import pytest

from src.core.logger.logger import JsonFormatter


@pytest.fixture(autouse=True)
def setup_logging(caplog):
    """Setup logging to capture logs in tests"""
    caplog.set_level(logging.INFO)
    yield


def request_logs(caplog):
    return [record for record in caplog.records if record.getMessage() == "Request completed"]


@pytest.mark.asyncio
async def test_request_logging(client, healthy_database, caplog):
    """API requests are logged with the caller's correlation ID"""
    correlation_id = "test-correlation-id"

    response = await client.get("/api/v1/health", headers={"X-Request-ID": correlation_id})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == correlation_id

    record = next(record for record in request_logs(caplog) if record.request_id == correlation_id)
    assert record.method == "GET"
    assert record.path == "/api/v1/health"
    assert record.status_code == 200
    assert record.duration_ms >= 0


@pytest.mark.asyncio
async def test_request_id_is_generated(client, healthy_database, caplog):
    response = await client.get("/api/v1/health")

    generated = response.headers["X-Request-ID"]
    assert generated
    assert any(record.request_id == generated for record in request_logs(caplog))


@pytest.mark.asyncio
async def test_error_response_carries_request_id(client):
    response = await client.post(
        "/api/v1/auth/start-session",
        json={"loginSessionToken": "token", "claimedAddress": "nope"},
        headers={"X-Request-ID": "error-correlation-id"}
    )

    assert response.status_code == 400
    assert response.json()["error"]["request_id"] == "error-correlation-id"


def test_json_formatter_includes_extra_fields():
    record = logging.makeLogRecord({
        "name": "test",
        "levelno": logging.INFO,
        "levelname": "INFO",
        "msg": "Challenge issued",
        "wallet_address": "0xff893698fac953dbbcdc3276e8ad13ed3267fb06"
    })

    data = json.loads(JsonFormatter().format(record))

    assert data["message"] == "Challenge issued"
    assert data["level"] == "INFO"
    assert data["wallet_address"] == "0xff893698fac953dbbcdc3276e8ad13ed3267fb06"
