"""Playback domain services (OAuth gateway, Spotify proxy)."""

from .guard import InFlightGuard
from .oauth import OAuthGateway
from .provider import build_spotify_client, make_client_factory
from .proxy import PlaybackProxy

__all__ = [
    "InFlightGuard",
    "OAuthGateway",
    "PlaybackProxy",
    "build_spotify_client",
    "make_client_factory",
]
