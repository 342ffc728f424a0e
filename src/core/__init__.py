"""Core primitives shared across backend layers."""

from .session_store import Session, SessionStore
from .messages import AUTH_ERROR, AUTH_SUCCESS, is_auth_message

__all__ = ["Session", "SessionStore", "AUTH_ERROR", "AUTH_SUCCESS", "is_auth_message"]
