"""Session credential and preference handlers."""

import logging

from whiskbatch.core.config import (
    ASPECT_RATIOS,
    DEFAULT_ASPECT_RATIO,
    MAX_REQUEST_DELAY_MS,
    MIN_REQUEST_DELAY_MS,
)
from whiskbatch.core.errors import ValidationError

from ..credentials import CredentialNotFoundError, credential_status, parse_cookie_export
from ..formatting import format_session_status
from ..models import DEFAULT_PREFERENCES, CredentialState, UIState

logger = logging.getLogger(__name__)


def save_session(cookie_text: str, state: UIState) -> tuple[str, str, str, dict, UIState]:
    """Save the session credential pasted as a cookie JSON export.

    Args:
        cookie_text: Pasted cookie JSON array
        state: UI state

    Returns:
        Tuple of (session_status_md, status_message, cookie_input_value,
        stored_session, updated_state)
    """
    state = state or UIState()
    credential = state.credential

    try:
        token, expiry_ms = parse_cookie_export(cookie_text)
    except CredentialNotFoundError as e:
        credential.status = "missing"
        return format_session_status(credential), f"❌ {e}", cookie_text, credential.to_storage(), state
    except ValidationError as e:
        return format_session_status(credential), f"❌ {e}", cookie_text, credential.to_storage(), state

    state.credential = CredentialState(
        token=token,
        expiry_ms=expiry_ms,
        status=credential_status(expiry_ms),
        saved=True,
    )
    logger.info(f"Session credential saved (status={state.credential.status})")
    return (
        format_session_status(state.credential),
        "✅ Session updated!",
        "",
        state.credential.to_storage(),
        state,
    )


def clear_session(state: UIState) -> tuple[str, str, dict, UIState]:
    """Forget the saved credential.

    Returns:
        Tuple of (session_status_md, status_message, stored_session, updated_state)
    """
    state = state or UIState()
    state.credential = CredentialState()
    logger.info("Session credential cleared")
    return (
        format_session_status(state.credential),
        "🗑️ Session cleared.",
        state.credential.to_storage(),
        state,
    )


def restore_session(stored: dict | None, state: UIState) -> tuple[str, UIState]:
    """Load the credential persisted in browser storage on page load.

    Invalid stored data is ignored and leaves the credential unset.

    Returns:
        Tuple of (session_status_md, updated_state)
    """
    state = state or UIState()
    token = stored.get("token") if isinstance(stored, dict) else None
    if token:
        expiry = stored.get("expiry")
        expiry_ms = int(expiry) if isinstance(expiry, (int, float)) else None
        state.credential = CredentialState(
            token=str(token),
            expiry_ms=expiry_ms,
            status=credential_status(expiry_ms),
            saved=True,
        )
    return format_session_status(state.credential), state


def refresh_session_status(state: UIState) -> tuple[str, UIState]:
    """Re-check the saved credential's expiry (run periodically by a timer).

    Credentials without an expiry keep their current status.
    """
    state = state or UIState()
    if state.credential.saved and state.credential.expiry_ms:
        state.credential.status = credential_status(state.credential.expiry_ms)
    return format_session_status(state.credential), state


def load_preferences(stored: dict | None) -> tuple[str, int]:
    """Read aspect ratio and request delay from browser storage.

    Unknown or out-of-range values fall back to the defaults.

    Returns:
        Tuple of (aspect_ratio, request_delay_ms)
    """
    prefs = dict(DEFAULT_PREFERENCES)
    if isinstance(stored, dict):
        prefs.update({key: value for key, value in stored.items() if key in prefs})

    aspect_ratio = prefs["aspect_ratio"]
    if aspect_ratio not in ASPECT_RATIOS:
        aspect_ratio = DEFAULT_ASPECT_RATIO

    try:
        delay = int(prefs["request_delay"])
    except (TypeError, ValueError):
        delay = DEFAULT_PREFERENCES["request_delay"]
    if delay < MIN_REQUEST_DELAY_MS or delay > MAX_REQUEST_DELAY_MS:
        delay = DEFAULT_PREFERENCES["request_delay"]

    return aspect_ratio, delay


def save_preferences(aspect_ratio: str, request_delay: float) -> dict:
    """Build the preferences value persisted in browser storage."""
    return {"aspect_ratio": aspect_ratio, "request_delay": int(request_delay)}
