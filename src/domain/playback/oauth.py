#!/usr/bin/env python
"""
Spotify authorization-code flow, proxied through the server-side session store.

``Unauthenticated -> AwaitingCallback -> Authenticated`` where the middle state
lives at Spotify: the gateway only builds the authorize URL, then exchanges the
code that comes back on the callback and stores the resulting token.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

import requests
from requests.auth import HTTPBasicAuth

from src.core.errors import ConfigurationError, ExchangeError, MissingCodeError
from src.core.messages import AUTH_ERROR, AUTH_SUCCESS
from src.core.session_store import SessionStore
from src.models.dto import CallbackResultDTO
from src.observability.metrics import record_oauth_exchange
from src.settings import AppSettings

logger = logging.getLogger(__name__)

SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"


class OAuthGateway:
    def __init__(
        self,
        settings: AppSettings,
        session_store: SessionStore,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings
        self.session_store = session_store
        self._http = http or requests.Session()

    def _require_redirect_uri(self) -> str:
        redirect_uri = self.settings.redirect_uri
        if not redirect_uri:
            logger.error(
                "Spotify redirect URI cannot be derived; set PUBLIC_HOSTNAME or SPOTIFY_REDIRECT_URI."
            )
            raise ConfigurationError("Spotify redirect URI is not configured")
        return redirect_uri

    def build_authorize_url(self) -> str:
        """Return the Spotify consent URL the browser should be redirected to."""
        redirect_uri = self._require_redirect_uri()
        if not self.settings.spotify_client_id:
            logger.error("Spotify client id is missing; cannot start login.")
            raise ConfigurationError("Spotify client id is not configured")
        logger.info("Spotify login redirect via %s", redirect_uri)
        query = urlencode(
            {
                "response_type": "code",
                "client_id": self.settings.spotify_client_id,
                "scope": " ".join(self.settings.scopes),
                "redirect_uri": redirect_uri,
            }
        )
        return f"{SPOTIFY_AUTHORIZE_URL}?{query}"

    def exchange_code(self, code: str) -> str:
        """Swap an authorization code for an access token (single POST, no retry)."""
        redirect_uri = self._require_redirect_uri()
        if not self.settings.credentials_configured:
            raise ExchangeError("Spotify client credentials are not configured")
        try:
            response = self._http.post(
                SPOTIFY_TOKEN_URL,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": redirect_uri,
                },
                auth=HTTPBasicAuth(self.settings.spotify_client_id, self.settings.spotify_client_secret),
                timeout=self.settings.upstream_timeout_seconds,
            )
        except requests.RequestException as exc:
            raise ExchangeError("Spotify token endpoint unreachable", details=str(exc)) from exc

        if not 200 <= response.status_code < 300:
            raise ExchangeError(
                f"Spotify API error: {response.reason or response.status_code}",
                upstream_status=response.status_code,
                details=response.text,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ExchangeError(
                "Invalid token response from Spotify", upstream_status=response.status_code
            ) from exc
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise ExchangeError("No access token received", upstream_status=response.status_code)
        return token

    def handle_callback(self, session_id: str, code: Optional[str]) -> CallbackResultDTO:
        """Complete the login for ``session_id``.

        A missing code raises :class:`MissingCodeError`. Exchange failures are
        logged and reported as ``auth-error``; they never touch a token that
        is already stored for the session.
        """
        if not code or not code.strip():
            raise MissingCodeError()
        try:
            token = self.exchange_code(code.strip())
        except (ExchangeError, ConfigurationError) as exc:
            record_oauth_exchange("error")
            logger.error(
                "Spotify authentication failed (redirect URI %s): %s",
                self.settings.redirect_uri or "not configured",
                exc,
                exc_info=True,
            )
            return CallbackResultDTO(
                authenticated=self.session_store.is_authenticated(session_id),
                message=AUTH_ERROR,
            )

        self.session_store.set_token(session_id, token)
        record_oauth_exchange("success")
        logger.info("Spotify session authenticated")
        return CallbackResultDTO(authenticated=True, message=AUTH_SUCCESS)

    def logout(self, session_id: Optional[str]) -> None:
        self.session_store.clear_token(session_id)


__all__ = ["OAuthGateway", "SPOTIFY_AUTHORIZE_URL", "SPOTIFY_TOKEN_URL"]
