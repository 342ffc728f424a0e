#!/usr/bin/env python
"""
Centralized configuration schema for the Spotify proxy.

Merges defaults from config.Config with runtime overrides and derives the
OAuth redirect URI from the deployment's public hostname.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import Config

CALLBACK_PATH = "/api/spotify/callback"

SPOTIFY_SCOPES = (
    "streaming",
    "user-read-email",
    "user-read-private",
    "user-read-playback-state",
    "user-modify-playback-state",
)


def _parse_hostnames(value: Optional[object]) -> List[str]:
    """Normalize a comma separated host list (or sequence) into bare hostnames."""
    if value is None:
        tokens: List[str] = []
    elif isinstance(value, str):
        tokens = [token.strip() for token in value.split(",")]
    elif isinstance(value, (list, tuple, set)):
        tokens = [str(token).strip() for token in value]
    else:
        tokens = [str(value).strip()]

    hosts: List[str] = []
    for token in tokens:
        if not token:
            continue
        for prefix in ("https://", "http://"):
            if token.lower().startswith(prefix):
                token = token[len(prefix):]
        token = token.rstrip("/")
        if token and token not in hosts:
            hosts.append(token)
    return hosts


def derive_redirect_uri(public_hostnames: List[str], override: Optional[str] = None) -> Optional[str]:
    """Build the callback URI from the first public hostname, or return the override."""
    if override and override.strip():
        return override.strip()
    if not public_hostnames:
        return None
    return f"https://{public_hostnames[0]}{CALLBACK_PATH}"


class AppSettings(BaseModel):
    """Settings consumed by the OAuth gateway and the playback proxy."""

    model_config = ConfigDict(extra="ignore")

    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    public_hostnames: List[str] = Field(default_factory=list)
    redirect_uri_override: Optional[str] = None
    scopes: List[str] = Field(default_factory=lambda: list(SPOTIFY_SCOPES))
    market: str = "US"
    session_lifetime_seconds: int = 24 * 60 * 60
    upstream_timeout_seconds: float = 10.0

    @field_validator("public_hostnames", mode="before")
    @classmethod
    def _normalize_hostnames(cls, value: Optional[object]) -> List[str]:
        return _parse_hostnames(value)

    @field_validator("market", mode="before")
    @classmethod
    def _normalize_market(cls, value: object) -> str:
        market = str(value or "").strip().upper()
        return market or "US"

    @field_validator("session_lifetime_seconds", mode="before")
    @classmethod
    def _coerce_lifetime(cls, value: object) -> int:
        try:
            seconds = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 24 * 60 * 60
        return max(1, seconds)

    @property
    def redirect_uri(self) -> Optional[str]:
        return derive_redirect_uri(self.public_hostnames, self.redirect_uri_override)

    @property
    def credentials_configured(self) -> bool:
        return bool(self.spotify_client_id and self.spotify_client_secret)


def load_app_settings(overrides: Optional[Dict[str, Any]] = None) -> AppSettings:
    """Load settings merging config defaults with optional runtime overrides."""
    data: Dict[str, Any] = {
        "spotify_client_id": Config.SPOTIFY_CLIENT_ID,
        "spotify_client_secret": Config.SPOTIFY_CLIENT_SECRET,
        "public_hostnames": Config.PUBLIC_HOSTNAMES,
        "redirect_uri_override": Config.SPOTIFY_REDIRECT_URI,
        "market": Config.SPOTIFY_MARKET,
        "session_lifetime_seconds": Config.SESSION_LIFETIME_SECONDS,
        "upstream_timeout_seconds": Config.UPSTREAM_TIMEOUT_SECONDS,
    }
    if overrides:
        data.update(overrides)
    return AppSettings.model_validate(data)


__all__ = [
    "AppSettings",
    "CALLBACK_PATH",
    "SPOTIFY_SCOPES",
    "derive_redirect_uri",
    "load_app_settings",
]
