import hashlib
import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from flask import g, has_request_context, request, session

try:
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
    from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
    from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
    from opentelemetry.sdk.resources import Resource
except ImportError:  # pragma: no cover - OpenTelemetry export is an optional extra
    LoggerProvider = None  # type: ignore
    LoggingHandler = None  # type: ignore

SESSION_KEY = "sid"

# spotipy and urllib3 log full request URLs and headers at DEBUG
NOISY_LOGGERS = ("spotipy", "urllib3")

_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9._\-]+", re.IGNORECASE),
    re.compile(r"""(["']?access_token["']?\s*[:=]\s*["']?)[^"'&\s,}]+""", re.IGNORECASE),
    re.compile(r"""(["']?refresh_token["']?\s*[:=]\s*["']?)[^"'&\s,}]+""", re.IGNORECASE),
)
REDACTED = "[redacted]"


def redact(text: str) -> str:
    """Mask bearer and OAuth tokens in ``text``."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
    return text


def _session_hint() -> Optional[str]:
    """Short digest of the session id so log lines correlate without exposing it."""
    sid = session.get(SESSION_KEY)
    if not sid:
        return None
    return hashlib.sha256(sid.encode("utf-8")).hexdigest()[:12]


class RequestContextFilter(logging.Filter):
    """Tag records with the request id, route and hashed session."""

    def filter(self, record: logging.LogRecord) -> bool:
        in_request = has_request_context()
        record.request_id = getattr(g, "request_id", None) if in_request else None
        record.path = request.path if in_request else None
        record.method = request.method if in_request else None
        record.session = _session_hint() if in_request else None
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; tokens never leave the process."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
            "method": getattr(record, "method", None),
            "path": getattr(record, "path", None),
            "session": getattr(record, "session", None),
        }
        if record.exc_info:
            payload["exc_info"] = redact(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False)


def _build_otlp_handler(app) -> Optional[logging.Handler]:
    if LoggerProvider is None or LoggingHandler is None:
        return None

    endpoint = app.config.get("OTEL_EXPORTER_OTLP_ENDPOINT") or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not endpoint:
        return None

    provider = LoggerProvider(
        resource=Resource.create({"service.name": app.config.get("OTEL_SERVICE_NAME", "vinyl-player")})
    )
    provider.add_log_record_processor(BatchLogRecordProcessor(OTLPLogExporter(endpoint=endpoint)))
    return LoggingHandler(level=logging.INFO, logger_provider=provider)


def _quiet(names: Iterable[str], level: int = logging.WARNING) -> None:
    for name in names:
        logging.getLogger(name).setLevel(level)


def configure_structured_logging(app) -> None:
    """Send JSON logs to stdout, plus OTLP when an endpoint is configured.

    Safe to call once per app instance; the stdout handler is only added the
    first time so test suites that build many apps do not multiply output.
    """
    root = logging.getLogger()
    context_filter = RequestContextFilter()
    formatter = JsonFormatter()

    already_attached = any(isinstance(h.formatter, JsonFormatter) for h in root.handlers)
    if not already_attached:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        stream_handler.addFilter(context_filter)
        root.addHandler(stream_handler)

    otlp_handler = _build_otlp_handler(app)
    if otlp_handler is not None:
        otlp_handler.setFormatter(formatter)
        otlp_handler.addFilter(context_filter)
        root.addHandler(otlp_handler)

    _quiet(NOISY_LOGGERS)
