"""Tests for structured logging and request_id propagation."""

import json
import logging

from fastapi.testclient import TestClient

from subledger.core.logging import JsonFormatter, log_event, request_id_ctx_var
from subledger.main import app


def test_request_id_in_response_and_logs(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="subledger"):
        response = client.get("/healthz")
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"


def test_incoming_request_id_is_echoed():
    client = TestClient(app)
    response = client.get("/healthz", headers={"x-request-id": "rid-123"})
    assert response.headers.get("x-request-id") == "rid-123"


def test_request_id_in_error_response():
    client = TestClient(app)
    response = client.get("/v1/plans/does-not-exist")
    rid = response.headers.get("x-request-id")
    assert response.status_code == 404
    assert rid
    assert response.json()["error"]["request_id"] == rid


def test_log_event_uses_context_request_id(caplog):
    token = request_id_ctx_var.set("ctx-rid")
    try:
        with caplog.at_level(logging.INFO, logger="subledger"):
            log_event("info", "plan.created", address="addr-1", event_type="create_plan", extra={"price": 5})
    finally:
        request_id_ctx_var.reset(token)

    record = next(r for r in caplog.records if r.getMessage() == "plan.created")
    assert record.request_id == "ctx-rid"
    assert record.address == "addr-1"
    assert record.price == "5"


def test_json_formatter_includes_event_fields():
    record = logging.LogRecord("subledger", logging.INFO, __file__, 1, "subscription.created", None, None)
    record.request_id = "rid-1"
    record.address = "addr-1"
    record.event_type = "subscribe"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "subscription.created"
    assert payload["request_id"] == "rid-1"
    assert payload["address"] == "addr-1"
    assert payload["event_type"] == "subscribe"


def test_request_log_carries_signer_on_writes(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="subledger"):
        client.post(
            "/v1/plans",
            headers={"X-Signer": "creator-a", "x-request-id": "rid-write"},
            json={"plan_id": 1, "name": "Premium", "price": 1_000, "duration_days": 30},
        )
        client.get("/healthz", headers={"x-request-id": "rid-read"})

    done = {r.request_id: r for r in caplog.records if r.getMessage() == "request.complete"}
    assert done["rid-write"].signer == "creator-a"
    assert done["rid-write"].event_type == "ledger_write"
    assert done["rid-write"].status == 402
    assert not hasattr(done["rid-read"], "signer")
    assert done["rid-read"].event_type == "ledger_read"
