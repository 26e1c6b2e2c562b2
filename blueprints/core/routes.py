from __future__ import annotations
import json, logging
import time
from datetime import datetime, timezone
from uuid import uuid4

from flask import current_app, g, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers.response import Response

from blueprints.availability.services import AvailabilityError
from blueprints.reservations.services import ReservationError
from . import bp

REQUEST_ID_HEADER = "X-Request-ID"
# loggers under these names share the JSON handler
STRUCTURED_LOGGERS = ("blueprints",)

class JSONFormatter(logging.Formatter):
    EXTRA_KEYS = (
        "event", "path", "method", "status", "duration_ms", "request_id",
        "restaurant_id", "reservation_id", "party_size", "used", "capacity",
        "total", "page", "q", "key", "ttl", "days", "org_id", "slug", "fields",
    )

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in self.EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)

def _has_json_handler(logger: logging.Logger) -> bool:
    return any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in logger.handlers
    )

def _setup_structured_logging(app):
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    for logger in (app.logger, *(logging.getLogger(n) for n in STRUCTURED_LOGGERS)):
        if not _has_json_handler(logger):
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            logger.addHandler(handler)
        logger.setLevel(level)

def _pydantic_errors_safe(ve: ValidationError):
    errs = ve.errors(include_url=False)
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        if "input" in e:
            e["input"] = e["input"] if isinstance(e["input"], (str, int, float, bool, type(None))) else str(e["input"])
    return errs

def _error(message: str, code: str, status: int, details=None):
    return jsonify({"error": message, "code": code, "details": details or {}}), status

# ---------- request lifecycle ----------
@bp.before_app_request
def _start_timer_and_tag():
    g._req_start = time.perf_counter()
    g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex

@bp.after_app_request
def _log_request(response: Response):
    start = getattr(g, "_req_start", None)
    duration_ms = int((time.perf_counter() - start) * 1000) if start is not None else None
    rid = getattr(g, "request_id", None)
    if rid:
        response.headers[REQUEST_ID_HEADER] = rid
    current_app.logger.info("request handled", extra={
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "request_id": rid,
    })
    return response

@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)

# ---------- error mapping ----------
@bp.app_errorhandler(AvailabilityError)
def _availability_error(err: AvailabilityError):
    return _error(err.message, err.code, err.status, err.details)

@bp.app_errorhandler(ReservationError)
def _reservation_error(err: ReservationError):
    return _error(err.message, err.code, err.status, err.details)

@bp.app_errorhandler(ValidationError)
def _validation_error(err: ValidationError):
    return _error("validation error", "VALIDATION_ERROR", 400, {"errors": _pydantic_errors_safe(err)})

@bp.app_errorhandler(HTTPException)
def _http_error(err: HTTPException):
    code = (err.name or "error").upper().replace(" ", "_")
    return _error(err.description or err.name, code, err.code or 500)

# ---------- endpoints ----------
@bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "request_id": getattr(g, "request_id", None),
    })
