#!/usr/bin/env python
# config.py
import os
from typing import List

# This assumes config.py is at the root of your project
basedir = os.path.abspath(os.path.dirname(__file__))


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _get_csv_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name)
    source = raw if raw is not None else default
    return [token.strip() for token in source.split(",") if token and token.strip()]


class Config:
    # Signs the session cookie that carries the opaque session id
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.environ.get('REPL_ID') or 'vinyl-player-secret'

    # Spotify application credentials
    SPOTIFY_CLIENT_ID = os.environ.get('SPOTIFY_CLIENT_ID')
    SPOTIFY_CLIENT_SECRET = os.environ.get('SPOTIFY_CLIENT_SECRET')

    # Public hostname(s) of the deployment; the first one builds the OAuth redirect URI.
    # REPLIT_DOMAINS is honoured for compatibility with the hosted deployment.
    PUBLIC_HOSTNAMES = _get_csv_list('PUBLIC_HOSTNAME', '') or _get_csv_list('REPLIT_DOMAINS', '')
    # Explicit override, wins over PUBLIC_HOSTNAME when set
    SPOTIFY_REDIRECT_URI = os.environ.get('SPOTIFY_REDIRECT_URI')
    SPOTIFY_MARKET = os.getenv('SPOTIFY_MARKET', 'US')
    UPSTREAM_TIMEOUT_SECONDS = _get_float('UPSTREAM_TIMEOUT_SECONDS', 10.0)

    # Sessions
    SESSION_LIFETIME_SECONDS = max(1, _get_int('SESSION_LIFETIME_SECONDS', 24 * 60 * 60))
    SESSION_COOKIE_SECURE = _get_bool(
        'SESSION_COOKIE_SECURE',
        os.getenv('FLASK_ENV', os.getenv('NODE_ENV', '')).strip().lower() == 'production',
    )

    CORS_ALLOWED_ORIGINS = _get_csv_list('CORS_ALLOWED_ORIGINS', '')

    # Runtime behavior
    # Turn Flask debug on/off from env; default off to avoid noisy console
    DEBUG = _get_bool('DEBUG', False)
    # Control console logging; when disabled, logs go only to file
    ENABLE_CONSOLE_LOGS = _get_bool('ENABLE_CONSOLE_LOGS', False)
    # Per-run log files land here; relative paths resolve against the project root
    LOG_DIR = os.getenv('LOG_DIR', 'logs')

    # Observability
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
    OTEL_SERVICE_NAME = os.getenv('OTEL_SERVICE_NAME', 'vinyl-player')
