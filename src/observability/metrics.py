from __future__ import annotations

from flask import Blueprint, Response
from prometheus_client import Counter, Gauge, generate_latest

metrics_blueprint = Blueprint("metrics_bp", __name__)

CONTENT_TYPE_LATEST = "text/plain; version=0.0.4; charset=utf-8"

OAUTH_EXCHANGES = Counter(
    "vinylplayer_oauth_exchanges_total",
    "Authorization-code exchanges attempted, by result.",
    ["result"],
)
UPSTREAM_CALLS = Counter(
    "vinylplayer_upstream_calls_total",
    "Calls made to the Spotify Web API, by operation and outcome.",
    ["operation", "outcome"],
)
LIVE_SESSIONS = Gauge(
    "vinylplayer_sessions",
    "Sessions currently held by the in-process session store.",
)


def record_oauth_exchange(result: str) -> None:
    OAUTH_EXCHANGES.labels(result=result).inc()


def record_upstream_call(operation: str, outcome: str) -> None:
    UPSTREAM_CALLS.labels(operation=operation, outcome=outcome).inc()


def update_session_gauge(count: int) -> None:
    LIVE_SESSIONS.set(max(0, count))


@metrics_blueprint.route("/metrics")
def metrics_endpoint() -> Response:
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
