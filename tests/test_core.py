from __future__ import annotations
import json
import logging
import re

from app import create_app
from blueprints.core.routes import JSONFormatter

def test_health_ok():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/health")
        assert rv.status_code == 200
        data = rv.get_json()
        assert data["status"] == "ok"
        assert re.fullmatch(r"[0-9a-f]{32}", data["request_id"]), "expected uuid4 hex"
        assert rv.headers["X-Request-ID"] == data["request_id"]

def test_request_id_is_propagated():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/health", headers={"X-Request-ID": "req-123"})
        assert rv.get_json()["request_id"] == "req-123"
        assert rv.headers["X-Request-ID"] == "req-123"

def test_unknown_route_is_json_404():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/no/such/page")
        assert rv.status_code == 404
        assert rv.get_json()["code"] == "NOT_FOUND"

def test_runtime_state_is_per_app():
    a, b = create_app("test"), create_app("test")
    assert a.extensions["search_cache"] is not b.extensions["search_cache"]
    assert a.extensions["admission_gate"] is not b.extensions["admission_gate"]
    assert a.extensions["search_cache"].ttl == 300

def test_cache_settings_from_config():
    app = create_app("test", overrides={"SEARCH_CACHE_TTL": 60, "SEARCH_CACHE_MAXSIZE": 10})
    stats = app.extensions["search_cache"].stats()
    assert stats["ttl_seconds"] == 60
    assert stats["maxsize"] == 10

def test_json_formatter_keeps_extras():
    record = logging.LogRecord("blueprints.test", logging.INFO, __file__, 1, "reservation admitted", None, None)
    record.event = "reservation_admitted"
    record.restaurant_id = 7
    payload = json.loads(JSONFormatter().format(record))
    assert payload["msg"] == "reservation admitted"
    assert payload["level"] == "INFO"
    assert payload["event"] == "reservation_admitted"
    assert payload["restaurant_id"] == 7
    assert payload["ts"].endswith("Z")

def test_request_is_logged(caplog):
    app = create_app("test")
    with caplog.at_level(logging.INFO, logger=app.logger.name):
        with app.test_client() as c:
            c.get("/health")
    records = [r for r in caplog.records if getattr(r, "event", None) == "http_request"]
    assert records
    assert records[-1].path == "/health"
    assert records[-1].status == 200
