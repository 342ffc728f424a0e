"""
In-browser playback device registration.

The device never sees the session cookie's token store directly: it receives
a short-lived token through an explicit token provider that returns a future,
and forgets the token when it disconnects.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], "Future[str]"]
ErrorHandler = Callable[[Exception], None]


class PlaybackDevice:
    def __init__(
        self,
        name: str,
        token_provider: TokenProvider,
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        self.name = name
        self._token_provider = token_provider
        self._on_error = on_error
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._device_id: Optional[str] = None

    def connect(self, timeout: Optional[float] = None) -> Optional[str]:
        """Resolve a token from the provider and keep it for this device's lifetime.

        Without an ``on_error`` handler a failed or empty token fetch raises;
        with one, the handler receives the exception and ``None`` is returned.
        """
        try:
            token = self._token_provider().result(timeout=timeout)
            if not token:
                raise ValueError("token provider resolved to an empty token")
        except Exception as exc:
            if self._on_error is None:
                raise
            logger.warning("Playback device %s could not connect: %s", self.name, exc)
            self._on_error(exc)
            return None
        with self._lock:
            self._token = token
        logger.info("Playback device %s connected", self.name)
        return token

    def mark_ready(self, device_id: str) -> None:
        with self._lock:
            if self._token is None:
                raise RuntimeError("device must be connected before it can become ready")
            self._device_id = device_id
        logger.info("Playback device %s ready as %s", self.name, device_id)

    def mark_not_ready(self) -> None:
        with self._lock:
            self._device_id = None

    def disconnect(self) -> None:
        with self._lock:
            self._token = None
            self._device_id = None

    @property
    def token(self) -> Optional[str]:
        with self._lock:
            return self._token

    @property
    def device_id(self) -> Optional[str]:
        with self._lock:
            return self._device_id

    @property
    def is_ready(self) -> bool:
        return self.device_id is not None


__all__ = ["ErrorHandler", "PlaybackDevice", "TokenProvider"]
