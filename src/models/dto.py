#!/usr/bin/env python
"""
Pydantic DTOs for the Spotify objects the proxy hands to the client.

Models keep unknown provider fields (``extra="allow"``) so search results and
tracks reach the client exactly as Spotify ranked and described them.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ArtistDTO(BaseModel):
    """Artist snapshot taken from a search response."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    name: str


class TrackArtistDTO(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    name: str


class TrackDTO(BaseModel):
    """Playable track snapshot."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: Optional[str] = None
    name: str
    artists: List[TrackArtistDTO] = Field(default_factory=list)
    uri: str


class PlaybackStateDTO(BaseModel):
    """What the player is doing right now; re-fetched on every poll."""

    is_playing: bool = False
    current_track: Optional[TrackDTO] = None
    device_id: Optional[str] = None
    progress_ms: Optional[int] = None

    @classmethod
    def from_provider(cls, payload: Dict[str, Any]) -> "PlaybackStateDTO":
        item = payload.get("item")
        device = payload.get("device") or {}
        return cls(
            is_playing=bool(payload.get("is_playing")),
            current_track=TrackDTO.model_validate(item) if item else None,
            device_id=device.get("id"),
            progress_ms=payload.get("progress_ms"),
        )


class ToggleResultDTO(BaseModel):
    success: bool = True
    is_playing: bool
    device_id: Optional[str] = None


class CallbackResultDTO(BaseModel):
    authenticated: bool
    message: str


__all__ = [
    "ArtistDTO",
    "TrackArtistDTO",
    "TrackDTO",
    "PlaybackStateDTO",
    "ToggleResultDTO",
    "CallbackResultDTO",
]
