"""Unit tests for the session cache usability rules."""

import asyncio
import json
from datetime import timedelta, timezone

import pytest

from whiskbatch.core.session_cache import (
    SessionCache,
    SessionRecord,
    SessionUnusable,
    parse_expiry,
)

from conftest import FIXED_NOW


def _store_raw(cache: SessionCache, raw: str) -> None:
    asyncio.run(cache.store.set(cache.key, raw))


def _store_payload(cache: SessionCache, payload) -> None:
    _store_raw(cache, json.dumps(payload))


class TestSessionCacheGet:
    """Tests for SessionCache.get."""

    def test_usable_session_returned(self, session_cache, valid_session_payload):
        """A session expiring well after the lookahead window is returned."""
        _store_payload(session_cache, valid_session_payload)

        result = asyncio.run(session_cache.get())

        assert isinstance(result, SessionRecord)
        assert result.access_token == "cached-token"
        assert result.expires == valid_session_payload["expires"]

    def test_missing_session(self, session_cache):
        result = asyncio.run(session_cache.get())
        assert result == SessionUnusable("session not found")

    def test_unparsable_session(self, session_cache):
        _store_raw(session_cache, "{not json")
        result = asyncio.run(session_cache.get())
        assert result == SessionUnusable("invalid session data")

    @pytest.mark.parametrize("payload", [[1, 2], "a string", 42, None])
    def test_non_object_session(self, session_cache, payload):
        _store_payload(session_cache, payload)
        result = asyncio.run(session_cache.get())
        assert result == SessionUnusable("invalid session structure")

    @pytest.mark.parametrize(
        "payload",
        [
            {"expires": "2030-01-01T00:00:00Z"},
            {"access_token": "t"},
            {"access_token": "", "expires": "2030-01-01T00:00:00Z"},
        ],
    )
    def test_missing_fields(self, session_cache, payload):
        _store_payload(session_cache, payload)
        result = asyncio.run(session_cache.get())
        assert result == SessionUnusable("missing access token or expiry")

    def test_invalid_expiry_format(self, session_cache):
        _store_payload(session_cache, {"access_token": "t", "expires": "next tuesday"})
        result = asyncio.run(session_cache.get())
        assert result == SessionUnusable("invalid expiry format")

    @pytest.mark.parametrize(
        "offset",
        [
            timedelta(minutes=-10),
            timedelta(0),
            timedelta(minutes=4, seconds=59),
            timedelta(minutes=5),
        ],
    )
    def test_expiring_within_lookahead_is_unusable(self, session_cache, offset):
        """Past, present and near-future expiries are all treated as expired."""
        expires = (FIXED_NOW + offset).isoformat()
        _store_payload(session_cache, {"access_token": "t", "expires": expires})

        result = asyncio.run(session_cache.get())

        assert result == SessionUnusable("token expired")

    def test_expiring_just_after_lookahead_is_usable(self, session_cache):
        expires = (FIXED_NOW + timedelta(minutes=5, seconds=1)).isoformat()
        _store_payload(session_cache, {"access_token": "t", "expires": expires})

        assert isinstance(asyncio.run(session_cache.get()), SessionRecord)

    def test_custom_lookahead(self, memory_store):
        cache = SessionCache(memory_store, lookahead=timedelta(0), clock=lambda: FIXED_NOW)
        expires = (FIXED_NOW + timedelta(seconds=30)).isoformat()
        asyncio.run(cache.set({"access_token": "t", "expires": expires}))

        assert isinstance(asyncio.run(cache.get()), SessionRecord)

    def test_reasons_are_distinct(self, session_cache):
        """Each unusable case reports its own reason string."""
        reasons = set()
        for raw in [
            None,
            "{oops",
            json.dumps([1]),
            json.dumps({"access_token": "t"}),
            json.dumps({"access_token": "t", "expires": "garbage"}),
            json.dumps({"access_token": "t", "expires": FIXED_NOW.isoformat()}),
        ]:
            if raw is not None:
                _store_raw(session_cache, raw)
            reasons.add(asyncio.run(session_cache.get()).reason)

        assert len(reasons) == 6


class TestSessionCacheSet:
    """Tests for SessionCache.set."""

    def test_round_trip_preserves_fields(self, session_cache, valid_session_payload):
        """Storing then reading returns the exact record."""
        asyncio.run(session_cache.set(valid_session_payload))

        result = asyncio.run(session_cache.get())

        assert isinstance(result, SessionRecord)
        assert result.payload == valid_session_payload
        assert result.access_token == valid_session_payload["access_token"]
        assert result.expires == valid_session_payload["expires"]

    def test_set_overwrites_previous_record(self, session_cache, valid_session_payload):
        asyncio.run(session_cache.set(valid_session_payload))
        replacement = dict(valid_session_payload, access_token="second-token")

        asyncio.run(session_cache.set(replacement))

        assert asyncio.run(session_cache.get()).access_token == "second-token"

    def test_set_accepts_record(self, session_cache, valid_session_payload):
        asyncio.run(session_cache.set(valid_session_payload))
        record = asyncio.run(session_cache.get())

        asyncio.run(session_cache.set(record))

        assert asyncio.run(session_cache.get()) == record

    def test_set_serializes_json(self, session_cache, valid_session_payload):
        asyncio.run(session_cache.set(valid_session_payload))
        raw = asyncio.run(session_cache.store.get("whisk:session"))
        assert json.loads(raw) == valid_session_payload


class TestParseExpiry:
    """Tests for parse_expiry."""

    def test_iso_with_z_suffix(self):
        parsed = parse_expiry("2030-01-01T00:00:00.000Z")
        assert parsed is not None
        assert parsed.year == 2030
        assert parsed.utcoffset() == timedelta(0)

    def test_naive_is_utc(self):
        parsed = parse_expiry("2030-01-01T00:00:00")
        assert parsed.tzinfo == timezone.utc

    def test_numeric_timestamp(self):
        parsed = parse_expiry(1893456000)
        assert parsed == parse_expiry("2030-01-01T00:00:00Z")

    def test_large_numeric_timestamp_is_milliseconds(self):
        assert parse_expiry(1893456000000) == parse_expiry(1893456000)

    @pytest.mark.parametrize("value", ["garbage", "", True, {"a": 1}])
    def test_unparseable(self, value):
        assert parse_expiry(value) is None
