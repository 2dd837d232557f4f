"""Shared pytest fixtures for whiskbatch tests."""

import base64
import io
import json
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import httpx
import pytest
from PIL import Image

from whiskbatch.core.config import WhiskConfig
from whiskbatch.core.kv_store import MemoryKeyValueStore
from whiskbatch.core.session_cache import SessionCache
from whiskbatch.ui.models import CredentialState, UIState

FIXED_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeUpstream:
    """Stand-in for the identity and generation endpoints.

    Responses are stored as (status, body) pairs and rebuilt for every call.
    A ``dict``/``list`` body is sent as JSON, a ``str`` body as plain text.
    """

    def __init__(self, identity_url: str, generation_url: str):
        self.identity_url = identity_url
        self.generation_url = generation_url
        self.identity = (200, {"access_token": "fresh-token", "expires": _future_iso(hours=1)})
        self.generation = (200, generation_response(2))
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url == self.identity_url:
            status, body = self.identity
        elif url == self.generation_url:
            status, body = self.generation
        else:
            return httpx.Response(404, text="not found")
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def calls_to(self, url: str) -> list[httpx.Request]:
        return [request for request in self.requests if str(request.url) == url]


def _future_iso(hours: float = 1) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


def make_jpeg_b64(color: str = "red", size: tuple[int, int] = (8, 8)) -> str:
    """Encode a tiny solid-colour JPEG as base64."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def generation_response(count: int = 1, prompt: str = "a red square") -> dict:
    """Upstream generation body with *count* images in one panel."""
    return {
        "imagePanels": [
            {
                "prompt": prompt,
                "generatedImages": [
                    {
                        "encodedImage": make_jpeg_b64(),
                        "prompt": prompt,
                        "aspectRatio": "IMAGE_ASPECT_RATIO_SQUARE",
                        "seed": 100 + index,
                        "imageModel": "IMAGEN_3_5",
                    }
                    for index in range(count)
                ],
            }
        ]
    }


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> WhiskConfig:
    """Create a test configuration with a temporary outputs directory.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        WhiskConfig instance for testing
    """
    return WhiskConfig(
        _env_file=None,
        outputs_dir=str(temp_dir / "outputs"),
        redis_url=None,
        request_delay_ms=100,
    )


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    """Empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def session_cache(memory_store: MemoryKeyValueStore) -> SessionCache:
    """Session cache over the memory store with the clock fixed at FIXED_NOW."""
    return SessionCache(memory_store, key="whisk:session", clock=lambda: FIXED_NOW)


@pytest.fixture
def upstream(test_config: WhiskConfig) -> FakeUpstream:
    """Fake identity/generation endpoints at the configured URLs."""
    return FakeUpstream(test_config.identity_url, test_config.generation_url)


@pytest.fixture
def valid_session_payload() -> dict:
    """Identity payload expiring an hour after FIXED_NOW."""
    return {
        "user": {"name": "Test User"},
        "access_token": "cached-token",
        "expires": (FIXED_NOW + timedelta(hours=1)).isoformat(),
    }


@pytest.fixture
def signed_in_state() -> UIState:
    """UI state with a saved credential that never expires."""
    return UIState(credential=CredentialState(token="cookie-value", status="valid", saved=True))


@pytest.fixture
def cookie_export() -> str:
    """Cookie export JSON containing a session token."""
    return json.dumps(
        [
            {"name": "_ga", "value": "GA1.1.123", "expirationDate": 1900000000},
            {
                "name": "__Secure-next-auth.session-token",
                "value": "cookie-value",
                "expirationDate": 1900000000.5,
            },
        ]
    )


@pytest.fixture
def make_generation_response():
    """Factory for upstream generation bodies (see generation_response)."""
    return generation_response


@pytest.fixture
def jpeg_b64() -> str:
    """A tiny base64-encoded JPEG."""
    return make_jpeg_b64()
