"""Per-session in-flight guard for playback commands."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator, Set

from src.core.errors import PlaybackBusyError


class InFlightGuard:
    """Allow at most one running command per key; overlapping calls are rejected."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: Set[Hashable] = set()

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._lock:
            if key in self._active:
                raise PlaybackBusyError()
            self._active.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(key)

    def is_active(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._active


__all__ = ["InFlightGuard"]
