#!/usr/bin/env python
"""
Client-side state for the vinyl player UI.

``SpotifyClientState`` is what the presentation layer consumes: it polls the
backend for the session and the now-playing state, and exposes the login,
search, toggle-play and play-random actions. It never calls Spotify itself
and never raises into the caller: failures become notifications and the
action resolves to a safe default.
"""

from __future__ import annotations

import functools
import logging
import threading
import webbrowser
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

import requests
from pydantic import ValidationError

from src.core.messages import AUTH_ERROR, AUTH_SUCCESS, is_auth_message
from src.models.dto import ArtistDTO, PlaybackStateDTO, ToggleResultDTO, TrackDTO

from .device import PlaybackDevice

logger = logging.getLogger(__name__)

T = TypeVar("T")

API_PREFIX = "/api/spotify"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = "destructive"


Notifier = Callable[[Notification], None]


def _log_notification(notification: Notification) -> None:
    logger.warning("%s: %s", notification.title, notification.description)


class BackendRequestError(Exception):
    """The backend answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"backend returned {status_code}")
        self.status_code = status_code
        self.body = body


class CachedQuery(Generic[T]):
    """Value fetched on first read and re-fetched only after ``invalidate()``."""

    def __init__(self, fetch: Callable[[], Optional[T]]) -> None:
        self._fetch = fetch
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._stale = True

    def get(self) -> Optional[T]:
        with self._lock:
            if self._stale:
                self._value = self._fetch()
                self._stale = False
            return self._value

    def invalidate(self) -> None:
        with self._lock:
            self._stale = True


class SpotifyClientState:
    def __init__(
        self,
        base_url: str,
        http: Optional[requests.Session] = None,
        notifier: Optional[Notifier] = None,
        opener: Optional[Callable[[str], Any]] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = http or requests.Session()
        self._notify = notifier or _log_notification
        self._open = opener or functools.partial(webbrowser.open, new=1)
        self.timeout = timeout
        self.search_results: List[ArtistDTO] = []
        self.device: Optional[PlaybackDevice] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._session_query: CachedQuery[bool] = CachedQuery(self._fetch_session)
        self._playback_query: CachedQuery[PlaybackStateDTO] = CachedQuery(self._fetch_current_track)

    # --- plumbing ---
    def _url(self, path: str) -> str:
        return f"{self.base_url}{API_PREFIX}{path}"

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self._http.request(method, self._url(path), timeout=self.timeout, **kwargs)
        if not response.ok:
            raise BackendRequestError(response.status_code, response.text)
        return response.json()

    def _fetch_session(self) -> bool:
        try:
            data = self._request("GET", "/session")
        except (requests.RequestException, BackendRequestError, ValueError) as exc:
            logger.debug("Session poll: not authenticated (%s)", exc)
            return False
        return bool(isinstance(data, dict) and data.get("authenticated"))

    def _fetch_current_track(self) -> Optional[PlaybackStateDTO]:
        try:
            data = self._request("GET", "/current-track")
        except (requests.RequestException, BackendRequestError, ValueError) as exc:
            logger.debug("Current track poll failed: %s", exc)
            return None
        if not data:
            return None
        try:
            return PlaybackStateDTO.model_validate(data)
        except ValidationError:
            logger.warning("Discarding malformed current-track payload", exc_info=True)
            return None

    def _device_payload(self) -> Dict[str, Any]:
        if self.device is not None and self.device.device_id:
            return {"device_id": self.device.device_id}
        return {}

    # --- polled state ---
    @property
    def is_authenticated(self) -> bool:
        return bool(self._session_query.get())

    @property
    def playback(self) -> Optional[PlaybackStateDTO]:
        if not self.is_authenticated:
            return None
        return self._playback_query.get()

    @property
    def current_track(self) -> Optional[TrackDTO]:
        state = self.playback
        return state.current_track if state is not None else None

    @property
    def is_playing(self) -> bool:
        state = self.playback
        return bool(state and state.is_playing)

    def refresh(self) -> None:
        self._session_query.invalidate()
        self._playback_query.invalidate()

    # --- login ---
    def login(self) -> str:
        """Open the Spotify login popup; completion arrives via ``handle_auth_message``."""
        url = self._url("/login")
        self._open(url)
        return url

    def handle_auth_message(self, message: object) -> bool:
        """Handle a message posted by the callback window; returns False for noise."""
        if not is_auth_message(message):
            return False
        self.refresh()
        if message == AUTH_ERROR:
            self._notify(Notification("Error", "Failed to connect to Spotify"))
        elif message == AUTH_SUCCESS:
            logger.info("Spotify login completed")
        return True

    # --- actions ---
    def search_artists(self, query: str) -> List[ArtistDTO]:
        try:
            data = self._request("GET", "/search", params={"q": query})
            results = [ArtistDTO.model_validate(item) for item in data]
        except (requests.RequestException, BackendRequestError, ValueError, TypeError) as exc:
            logger.error("Search failed: %s", exc)
            self._notify(Notification("Error", "Failed to search artists"))
            return []
        self.search_results = results
        return results

    def toggle_play(self) -> Optional[ToggleResultDTO]:
        try:
            data = self._request("POST", "/toggle-play", json=self._device_payload())
            result = ToggleResultDTO.model_validate(data)
        except (requests.RequestException, BackendRequestError, ValueError) as exc:
            logger.error("Toggle play failed: %s", exc)
            self._notify(Notification("Error", "Failed to control playback"))
            return None
        self._playback_query.invalidate()
        return result

    def play_random_track(self, artist_id: str) -> Optional[TrackDTO]:
        payload = {"artistId": artist_id, **self._device_payload()}
        try:
            data = self._request("POST", "/play-random", json=payload)
            track = TrackDTO.model_validate(data)
        except (requests.RequestException, BackendRequestError, ValueError) as exc:
            logger.error("Play random track failed: %s", exc)
            self._notify(Notification("Error", "Failed to play random track"))
            return None
        self._playback_query.invalidate()
        return track

    # --- playback device ---
    def fetch_token(self) -> str:
        data = self._request("GET", "/token")
        return data["token"]

    def token_provider(self) -> "Future[str]":
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="spotify-token")
        return self._executor.submit(self.fetch_token)

    def attach_device(self, name: str = "Vinyl Player") -> PlaybackDevice:
        self.device = PlaybackDevice(name, token_provider=self.token_provider, on_error=self._device_failed)
        return self.device

    def _device_failed(self, exc: Exception) -> None:
        logger.error("Playback device token fetch failed: %s", exc)
        self._notify(Notification("Error", "Failed to connect playback device"))

    def close(self) -> None:
        if self.device is not None:
            self.device.disconnect()
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None


__all__ = [
    "BackendRequestError",
    "CachedQuery",
    "Notification",
    "SpotifyClientState",
]
