#!/usr/bin/env python
"""
In-process session store mapping cookie-carried session ids to access tokens.

The store is the only owner of Spotify access tokens. Sessions expire after a
fixed wall-clock lifetime and expiry is enforced on every read.
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional

DEFAULT_SESSION_LIFETIME_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class Session:
    session_id: str
    created_at: float
    expires_at: float
    access_token: Optional[str] = None

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    @property
    def has_token(self) -> bool:
        return bool(self.access_token)


class SessionStore:
    """Thread-safe keyed storage of :class:`Session` records."""

    def __init__(
        self,
        lifetime_seconds: float = DEFAULT_SESSION_LIFETIME_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if lifetime_seconds <= 0:
            raise ValueError("lifetime_seconds must be positive")
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._sessions: Dict[str, Session] = {}

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    def _live(self, session_id: Optional[str], now: float) -> Optional[Session]:
        # Caller holds the lock
        if not session_id:
            return None
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        if entry.is_expired(now):
            self._sessions.pop(session_id, None)
            return None
        return entry

    def _evict_expired(self, now: float) -> int:
        # Caller holds the lock
        expired = [sid for sid, entry in self._sessions.items() if entry.is_expired(now)]
        for sid in expired:
            self._sessions.pop(sid, None)
        return len(expired)

    def create(self, session_id: Optional[str] = None) -> Session:
        """Return the live session for ``session_id``, creating it when missing or expired."""
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            existing = self._live(session_id, now)
            if existing is not None:
                return existing
            sid = session_id or self.new_session_id()
            entry = Session(session_id=sid, created_at=now, expires_at=now + self.lifetime_seconds)
            self._sessions[sid] = entry
            return entry

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        with self._lock:
            return self._live(session_id, self._clock())

    def set_token(self, session_id: str, token: str) -> Session:
        """Store ``token``, overwriting any previous one; the expiry window restarts."""
        if not session_id:
            raise ValueError("session_id is required")
        if not token:
            raise ValueError("token must be a non-empty string")
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            entry = self._live(session_id, now) or Session(
                session_id=session_id, created_at=now, expires_at=now
            )
            entry = replace(entry, access_token=token, expires_at=now + self.lifetime_seconds)
            self._sessions[session_id] = entry
            return entry

    def clear_token(self, session_id: Optional[str]) -> None:
        """Forget the session; a record without a token carries nothing worth keeping."""
        if not session_id:
            return
        with self._lock:
            self._sessions.pop(session_id, None)

    def get_token(self, session_id: Optional[str]) -> Optional[str]:
        entry = self.get(session_id)
        return entry.access_token if entry is not None and entry.has_token else None

    def is_authenticated(self, session_id: Optional[str]) -> bool:
        return self.get_token(session_id) is not None

    def purge_expired(self) -> int:
        """Drop expired sessions and return how many were removed."""
        with self._lock:
            return self._evict_expired(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["Session", "SessionStore", "DEFAULT_SESSION_LIFETIME_SECONDS"]
