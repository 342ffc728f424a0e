from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from src.observability.metrics import update_session_gauge

health_bp = Blueprint("health_bp", __name__)


def _session_count() -> int:
    store = current_app.extensions.get("session_store")
    if store is None:
        return 0
    store.purge_expired()
    return len(store)


@health_bp.route("/healthz")
def healthz():
    settings = current_app.extensions["app_settings"]
    checks = {
        "spotify_credentials": "ok" if settings.credentials_configured else "missing",
        "redirect_uri": "ok" if settings.redirect_uri else "missing",
        "sessions": _session_count(),
    }
    return jsonify({"status": "ok", "checks": checks}), 200


@health_bp.route("/readyz")
def readyz():
    settings = current_app.extensions["app_settings"]
    count = _session_count()
    update_session_gauge(count)
    ready = settings.credentials_configured and bool(settings.redirect_uri)
    payload = {
        "status": "ready" if ready else "blocked",
        "sessions": count,
    }
    return jsonify(payload), 200 if ready else 503
