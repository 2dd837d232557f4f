"""Cached upstream session for the Whisk proxy.

The identity endpoint returns a session payload containing an ``access_token``
and an ``expires`` timestamp.  One such payload is cached per process (or per
Redis deployment) under a single well-known key, and every generation request
reuses it until it is about to expire.

Usability Rules
---------------
:meth:`SessionCache.get` never raises for bad data.  It returns a
:class:`SessionUnusable` carrying a reason when the cached value is:

- absent                                  -> ``"session not found"``
- not JSON                                -> ``"invalid session data"``
- not a JSON object                       -> ``"invalid session structure"``
- missing ``access_token`` or ``expires`` -> ``"missing access token or expiry"``
- carrying an unparseable ``expires``     -> ``"invalid expiry format"``
- expiring within the lookahead window    -> ``"token expired"``

The lookahead window (5 minutes by default) treats nearly expired sessions as
expired so a token cannot lapse between validation and use.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .kv_store import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD = timedelta(minutes=5)

_datetime_adapter = TypeAdapter(datetime)


@dataclass(frozen=True)
class SessionRecord:
    """A usable cached session.

    Attributes:
        access_token: Bearer token for the generation endpoint
        expires: Expiry exactly as stored by the identity endpoint
        expires_at: Parsed, timezone-aware expiry
        payload: The complete stored payload, unmodified
    """

    access_token: str
    expires: Any
    expires_at: datetime
    payload: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SessionUnusable:
    """Result of :meth:`SessionCache.get` when no usable session is cached."""

    reason: str


SessionLookup = SessionRecord | SessionUnusable


def parse_expiry(value: Any) -> datetime | None:
    """Parse an ``expires`` value into an aware datetime.

    Accepts ISO 8601 strings and numeric timestamps.  Naive datetimes are
    taken to be UTC.

    Numbers follow pydantic's rule: values up to about ``2e10`` are epoch
    seconds, larger ones epoch milliseconds.  A JavaScript ``new Date(n)``
    always reads milliseconds, so a small hand-written number means a
    different instant here.  The identity endpoint sends ISO strings.

    Returns:
        The parsed datetime, or ``None`` if the value cannot be parsed
    """
    if isinstance(value, bool):
        return None
    try:
        parsed = _datetime_adapter.validate_python(value)
    except PydanticValidationError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionCache:
    """Process-wide cache of the single upstream session record.

    Args:
        store: Backing key-value store
        key: Store key holding the serialized record
        lookahead: Sessions expiring within this window count as expired
        clock: Returns the current aware datetime (injectable for tests)
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = "whisk:session",
        lookahead: timedelta = DEFAULT_LOOKAHEAD,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.key = key
        self.lookahead = lookahead
        self._clock = clock

    async def get(self) -> SessionLookup:
        """Read the cached session and decide whether it is usable.

        Returns:
            :class:`SessionRecord` when usable, otherwise :class:`SessionUnusable`
        """
        raw = await self.store.get(self.key)
        if not raw:
            return SessionUnusable("session not found")

        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            return SessionUnusable("invalid session data")

        if not isinstance(data, dict):
            return SessionUnusable("invalid session structure")

        access_token = data.get("access_token")
        expires = data.get("expires")
        if not access_token or not expires:
            return SessionUnusable("missing access token or expiry")

        expires_at = parse_expiry(expires)
        if expires_at is None:
            return SessionUnusable("invalid expiry format")

        if expires_at <= self._clock() + self.lookahead:
            return SessionUnusable("token expired")

        return SessionRecord(
            access_token=access_token,
            expires=expires,
            expires_at=expires_at,
            payload=data,
        )

    async def set(self, record: Mapping[str, Any] | SessionRecord) -> None:
        """Replace the cached session unconditionally.

        Args:
            record: The session payload to store verbatim, or a
                :class:`SessionRecord` whose payload is stored
        """
        if isinstance(record, SessionRecord):
            payload = dict(record.payload) or {
                "access_token": record.access_token,
                "expires": record.expires,
            }
        else:
            payload = dict(record)

        await self.store.set(self.key, json.dumps(payload))
        logger.debug(f"Session cache updated under key '{self.key}'")
