#!/usr/bin/env python
"""
Error taxonomy for the Spotify proxy.

Every failure that can reach an HTTP client is one of these types. Provider
errors are translated at the proxy boundary and never surface raw.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class PlaybackServiceError(Exception):
    """Base class carrying the HTTP status and a stable error code."""

    status_code = 500
    error_code = "internal_error"
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


class MissingInputError(PlaybackServiceError):
    status_code = 400
    error_code = "missing_input"
    default_message = "A required field is missing"


class MissingCodeError(MissingInputError):
    error_code = "missing_code"
    default_message = "Authorization code is required"


class MissingQueryError(MissingInputError):
    error_code = "missing_query"
    default_message = "Search query is required"


class MissingArtistError(MissingInputError):
    error_code = "missing_artist_id"
    default_message = "artistId is required"


class NotAuthenticatedError(PlaybackServiceError):
    status_code = 401
    error_code = "not_authenticated"
    default_message = "Not authenticated with Spotify"


class NoActiveSessionError(PlaybackServiceError):
    status_code = 404
    error_code = "no_active_session"
    default_message = "No active playback session"


class NoTracksError(PlaybackServiceError):
    status_code = 404
    error_code = "no_tracks"
    default_message = "Artist has no top tracks"


class PlaybackBusyError(PlaybackServiceError):
    status_code = 409
    error_code = "playback_busy"
    default_message = "A playback command is already in progress"


class ConfigurationError(PlaybackServiceError):
    status_code = 500
    error_code = "configuration_error"
    default_message = "Spotify integration is not configured"


class UpstreamError(PlaybackServiceError):
    """Spotify answered with a failure or with a body we could not use."""

    status_code = 502
    error_code = "upstream_error"
    default_message = "Spotify request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        upstream_status: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["upstream_status"] = self.upstream_status
        if self.details:
            payload["details"] = self.details
        return payload


class ExchangeError(UpstreamError):
    error_code = "token_exchange_failed"
    default_message = "Spotify token exchange failed"


__all__ = [
    "PlaybackServiceError",
    "MissingInputError",
    "MissingCodeError",
    "MissingQueryError",
    "MissingArtistError",
    "NotAuthenticatedError",
    "NoActiveSessionError",
    "NoTracksError",
    "PlaybackBusyError",
    "ConfigurationError",
    "UpstreamError",
    "ExchangeError",
]
