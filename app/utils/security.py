"""
Security utilities.

Scheduled trigger authorization and masking of secrets in logs.
"""

import hmac

from app.utils.exceptions import UnauthorizedError

BEARER_PREFIX = "Bearer "


def mask_sensitive(value: str | None, show_chars: int = 4) -> str:
    """
    Mask sensitive string (secrets, tokens).

    Args:
        value: Sensitive value to mask
        show_chars: Number of leading characters to keep

    Returns:
        Masked value, '***' for empty or short values

    Examples:
        >>> mask_sensitive("supersecret")
        'supe***'
    """
    if not value or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}***"


def is_authorized_trigger(authorization: str | None, secret: str | None) -> bool:
    """
    Check an Authorization header against the configured trigger secret.

    The comparison runs in constant time. A missing secret rejects every
    request.

    Args:
        authorization: Raw Authorization header value
        secret: Configured secret

    Returns:
        True if header is exactly "Bearer <secret>"
    """
    if not secret or not authorization:
        return False
    expected = f"{BEARER_PREFIX}{secret}"
    return hmac.compare_digest(authorization.encode("utf-8"), expected.encode("utf-8"))


def require_trigger_secret(authorization: str | None, secret: str | None) -> None:
    """
    Raise UnauthorizedError unless the header carries the trigger secret.

    Raises:
        UnauthorizedError: If the secret is missing or does not match
    """
    if not is_authorized_trigger(authorization, secret):
        raise UnauthorizedError("Invalid or missing trigger secret")
