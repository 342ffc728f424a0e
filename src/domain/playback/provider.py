# src/domain/playback/provider.py
import logging
from contextlib import contextmanager
from typing import Callable, Iterator

import requests
import spotipy
from spotipy.exceptions import SpotifyException

from src.core.errors import UpstreamError
from src.observability.metrics import record_upstream_call

logger = logging.getLogger(__name__)

# Builds a Spotify Web API client bound to one user's access token
SpotifyClientFactory = Callable[[str], spotipy.Spotify]


def build_spotify_client(access_token: str, timeout: float = 10.0) -> spotipy.Spotify:
    """Create a per-request Spotipy client for a user token.

    Retries are disabled: a failed call is reported straight back to the
    caller instead of being replayed against the user's player.
    """
    return spotipy.Spotify(
        auth=access_token,
        requests_timeout=timeout,
        retries=0,
        status_retries=0,
    )


def make_client_factory(timeout: float) -> SpotifyClientFactory:
    def _factory(access_token: str) -> spotipy.Spotify:
        return build_spotify_client(access_token, timeout=timeout)

    return _factory


@contextmanager
def upstream_call(operation: str) -> Iterator[None]:
    """Translate Spotipy/requests failures raised inside the block into UpstreamError."""
    try:
        yield
    except SpotifyException as exc:
        record_upstream_call(operation, "error")
        logger.error("Spotify API call failed during %s: %s", operation, exc)
        raise UpstreamError(
            f"Spotify {operation} failed",
            upstream_status=exc.http_status,
            details=getattr(exc, "msg", None) or str(exc),
        ) from exc
    except requests.RequestException as exc:
        record_upstream_call(operation, "error")
        logger.error("Spotify API unreachable during %s: %s", operation, exc)
        raise UpstreamError(f"Spotify {operation} failed", details=str(exc)) from exc
    else:
        record_upstream_call(operation, "ok")


__all__ = ["SpotifyClientFactory", "build_spotify_client", "make_client_factory", "upstream_call"]
