# src/domain/playback/proxy.py
import logging
import random
from typing import List, Optional

import spotipy
from pydantic import ValidationError

from src.core.errors import (
    MissingArtistError,
    MissingQueryError,
    NoActiveSessionError,
    NotAuthenticatedError,
    NoTracksError,
    UpstreamError,
)
from src.core.session_store import SessionStore
from src.models.dto import ArtistDTO, PlaybackStateDTO, ToggleResultDTO, TrackDTO

from .guard import InFlightGuard
from .provider import SpotifyClientFactory, build_spotify_client, upstream_call

logger = logging.getLogger(__name__)


class PlaybackProxy:
    """Session-scoped facade over the Spotify Web API player and search endpoints.

    Every public method authenticates the session before talking to Spotify
    and only ever raises errors from :mod:`src.core.errors`.
    """

    def __init__(self, session_store: SessionStore,
                 client_factory: Optional[SpotifyClientFactory] = None,
                 rng: Optional[random.Random] = None,
                 market: str = "US",
                 guard: Optional[InFlightGuard] = None):
        self.session_store = session_store
        self._client_factory = client_factory or build_spotify_client
        self._rng = rng or random.Random()
        self.market = market
        self._guard = guard or InFlightGuard()

    def _client_for(self, session_id: Optional[str]) -> spotipy.Spotify:
        token = self.session_store.get_token(session_id)
        if token is None:
            raise NotAuthenticatedError()
        return self._client_factory(token)

    def get_token(self, session_id: Optional[str]) -> str:
        """Hand the raw token to the in-browser playback device."""
        token = self.session_store.get_token(session_id)
        if token is None:
            raise NotAuthenticatedError("No token available")
        return token

    def search_artists(self, session_id: Optional[str], query: Optional[str]) -> List[ArtistDTO]:
        sp = self._client_for(session_id)
        if not query or not query.strip():
            raise MissingQueryError()

        with upstream_call("artist search"):
            results = sp.search(q=query, type="artist")

        items = ((results or {}).get("artists") or {}).get("items")
        if not isinstance(items, list):
            raise UpstreamError("Invalid response format from Spotify API")
        try:
            return [ArtistDTO.model_validate(item) for item in items]
        except ValidationError as exc:
            raise UpstreamError("Invalid artist in Spotify search response", details=str(exc)) from exc

    def get_current_track(self, session_id: Optional[str]) -> Optional[PlaybackStateDTO]:
        """Return the player state (``/me/player``), or None when no device is active (204)."""
        sp = self._client_for(session_id)
        with upstream_call("current track"):
            payload = sp.current_playback()
        if not payload:
            return None
        try:
            return PlaybackStateDTO.from_provider(payload)
        except ValidationError as exc:
            raise UpstreamError("Invalid currently-playing response", details=str(exc)) from exc

    def toggle_play(self, session_id: Optional[str], device_id: Optional[str] = None) -> ToggleResultDTO:
        sp = self._client_for(session_id)
        with self._guard.hold(session_id):
            with upstream_call("playback state"):
                state = sp.current_playback()
            if not state:
                logger.warning("Toggle play rejected: no active playback session")
                raise NoActiveSessionError()

            was_playing = bool(state.get("is_playing"))
            action = "pause" if was_playing else "play"
            with upstream_call(action):
                if was_playing:
                    sp.pause_playback(device_id=device_id)
                else:
                    sp.start_playback(device_id=device_id)

        device = state.get("device") or {}
        return ToggleResultDTO(
            success=True,
            is_playing=not was_playing,
            device_id=device_id or device.get("id"),
        )

    def play_random_track(self, session_id: Optional[str], artist_id: Optional[str],
                          device_id: Optional[str] = None) -> TrackDTO:
        sp = self._client_for(session_id)
        if not artist_id or not str(artist_id).strip():
            raise MissingArtistError()

        with upstream_call("top tracks"):
            payload = sp.artist_top_tracks(artist_id, country=self.market)
        tracks = (payload or {}).get("tracks")
        if not isinstance(tracks, list):
            raise UpstreamError("Invalid top-tracks response from Spotify API")
        if not tracks:
            raise NoTracksError()

        chosen = self._rng.choice(tracks)
        try:
            track = TrackDTO.model_validate(chosen)
        except ValidationError as exc:
            raise UpstreamError("Invalid track in top-tracks response", details=str(exc)) from exc

        with upstream_call("play"):
            sp.start_playback(device_id=device_id, uris=[track.uri])
        logger.info("Started random top track %s for artist %s", track.id, artist_id)
        return track


__all__ = ["PlaybackProxy"]
