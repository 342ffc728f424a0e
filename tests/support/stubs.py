"""Shared test stubs for the Spotify Web API, token endpoint and backend HTTP."""

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import requests


NO_BODY = object()


class FakeResponse:
    """Just enough of ``requests.Response`` for the code under test."""

    def __init__(self, status_code: int = 200, payload: Any = NO_BODY, text: Optional[str] = None,
                 reason: str = ""):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = "" if payload is NO_BODY else str(payload)
        self.text = text
        self.reason = reason

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is NO_BODY:
            raise ValueError("No JSON body")
        return self._payload


class FakeTokenEndpoint:
    """Stands in for ``requests.Session`` when posting to the Spotify token URL."""

    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None):
        self.response = response or FakeResponse(200, {"access_token": "tok-123", "token_type": "Bearer"})
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def post(self, url, data=None, auth=None, timeout=None, **kwargs):
        self.calls.append({"url": url, "data": data, "auth": auth, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


class FakeSpotify:
    """Minimal Spotipy client stub recording every call made against it."""

    def __init__(self, search_response: Optional[dict] = None, top_tracks: Optional[list] = None,
                 playback: Optional[dict] = None,
                 errors: Optional[Dict[str, Exception]] = None):
        self.search_response = search_response if search_response is not None else {"artists": {"items": []}}
        self.top_tracks = top_tracks if top_tracks is not None else []
        self.playback = playback
        self.errors = errors or {}
        self.calls: List[Tuple[str, dict]] = []

    def _record(self, name: str, **kwargs):
        self.calls.append((name, kwargs))
        if name in self.errors:
            raise self.errors[name]

    def called(self, name: str) -> List[dict]:
        return [kwargs for call, kwargs in self.calls if call == name]

    def search(self, q, type="artist", **kwargs):
        self._record("search", q=q, type=type)
        return self.search_response

    def artist_top_tracks(self, artist_id, country="US"):
        self._record("artist_top_tracks", artist_id=artist_id, country=country)
        return {"tracks": self.top_tracks}

    def current_playback(self, *args, **kwargs):
        self._record("current_playback")
        return self.playback

    def start_playback(self, device_id=None, context_uri=None, uris=None, offset=None, position_ms=None):
        self._record("start_playback", device_id=device_id, uris=uris)

    def pause_playback(self, device_id=None):
        self._record("pause_playback", device_id=device_id)


class FakeBackend:
    """Routes ``requests.Session.request`` calls to canned responses keyed by (method, path)."""

    def __init__(self, routes: Optional[Dict[Tuple[str, str], Any]] = None):
        self.routes = dict(routes or {})
        self.calls: List[Dict[str, Any]] = []

    def request(self, method, url, timeout=None, **kwargs):
        path = urlparse(url).path
        self.calls.append({"method": method, "path": path, **kwargs})
        outcome = self.routes.get((method, path))
        if outcome is None:
            return FakeResponse(404, text="not found")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def calls_to(self, method: str, path: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method and c["path"] == path]


def make_track(index: int) -> dict:
    return {
        "id": f"t{index}",
        "name": f"Track {index}",
        "artists": [{"name": "Artist One", "id": "a1"}],
        "uri": f"spotify:track:t{index}",
        "album": {"name": "Album"},
    }


CONNECTION_ERROR = requests.ConnectionError("connection refused")

TEST_SESSION_ID = "test-session"
