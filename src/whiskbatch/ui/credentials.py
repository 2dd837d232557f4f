"""Session credential parsing and status checks.

Users paste the cookies exported from their browser (a JSON array of cookie
objects, as produced by common cookie-export extensions).  The session token
cookie provides the credential, and its ``expirationDate`` (epoch seconds)
provides the expiry used for the advisory status shown in the UI.
"""

import json
import logging
import time

from whiskbatch.core.errors import ValidationError

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAMES = ("__Secure-next-auth.session-token", "next-auth.session-token")

# A credential expiring within this window is reported as expired.
EXPIRY_WARNING_MS = 5 * 60 * 1000


class CredentialNotFoundError(ValidationError):
    """The pasted cookies do not contain a session token."""

    pass


def parse_cookie_export(text: str) -> tuple[str, int | None]:
    """Extract the session token and its expiry from a cookie export.

    Args:
        text: JSON array of cookie objects

    Returns:
        Tuple of (token, expiry_ms); expiry is ``None`` for session cookies

    Raises:
        ValidationError: If the input is empty or not a JSON array
        CredentialNotFoundError: If no session-token cookie is present
    """
    if not text or not text.strip():
        raise ValidationError("Please paste the cookie JSON array.")

    try:
        cookies = json.loads(text)
    except ValueError as e:
        raise ValidationError("Invalid JSON format.") from e

    if not isinstance(cookies, list):
        raise ValidationError("Invalid JSON format.")

    target = next(
        (
            cookie
            for cookie in cookies
            if isinstance(cookie, dict) and cookie.get("name") in SESSION_COOKIE_NAMES
        ),
        None,
    )
    if target is None or not target.get("value"):
        raise CredentialNotFoundError("Session token not found in JSON.")

    expiration = target.get("expirationDate")
    expiry_ms = int(float(expiration) * 1000) if expiration else None
    return str(target["value"]), expiry_ms


def credential_status(expiry_ms: int | None, now_ms: int | None = None) -> str:
    """Return "valid" or "expired" for a credential expiry.

    A credential without an expiry is always "valid".
    """
    if not expiry_ms:
        return "valid"
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return "expired" if now_ms + EXPIRY_WARNING_MS > expiry_ms else "valid"
