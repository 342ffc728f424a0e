"""Cross-window messages posted by the OAuth callback page to its opener."""

AUTH_SUCCESS = "auth-success"
AUTH_ERROR = "auth-error"

AUTH_MESSAGES = frozenset({AUTH_SUCCESS, AUTH_ERROR})


def is_auth_message(value: object) -> bool:
    return isinstance(value, str) and value in AUTH_MESSAGES


__all__ = ["AUTH_SUCCESS", "AUTH_ERROR", "AUTH_MESSAGES", "is_auth_message"]
