"""Client-side state consumed by the presentation layer."""

from .device import PlaybackDevice
from .state import Notification, SpotifyClientState

__all__ = ["Notification", "PlaybackDevice", "SpotifyClientState"]
