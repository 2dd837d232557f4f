"""Unit tests for the generate request handler."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from whiskbatch.api.generate_handler import (
    PROMPT_REQUIRED,
    TOKEN_REQUIRED,
    handle_generate,
    parse_generate_request,
)
from whiskbatch.core.errors import AuthError, UpstreamError, ValidationError


def _handle(body, client, default_aspect_ratio="IMAGE_ASPECT_RATIO_LANDSCAPE"):
    raw = body if isinstance(body, (str, bytes)) else json.dumps(body)
    return asyncio.run(handle_generate(raw, client, default_aspect_ratio))


@pytest.fixture
def client() -> AsyncMock:
    """Mock WhiskClient returning a fixed result."""
    mock = AsyncMock()
    mock.generate.return_value = {"imagePanels": []}
    return mock


class TestParseGenerateRequest:
    """Tests for parse_generate_request."""

    def test_valid_request(self):
        request = parse_generate_request(
            json.dumps({"prompt": "cat", "token": "tok", "aspect_ratio": "IMAGE_ASPECT_RATIO_SQUARE"})
        )

        assert request.prompt == "cat"
        assert request.token == "tok"
        assert request.aspect_ratio == "IMAGE_ASPECT_RATIO_SQUARE"

    def test_camel_case_aspect_ratio(self):
        request = parse_generate_request(
            json.dumps({"prompt": "cat", "token": "tok", "aspectRatio": "IMAGE_ASPECT_RATIO_PORTRAIT"})
        )
        assert request.aspect_ratio == "IMAGE_ASPECT_RATIO_PORTRAIT"

    def test_null_fields_treated_as_missing(self):
        with pytest.raises(ValidationError, match=PROMPT_REQUIRED):
            parse_generate_request(json.dumps({"prompt": None, "token": "tok"}))

    def test_whitespace_prompt(self):
        with pytest.raises(ValidationError, match=PROMPT_REQUIRED):
            parse_generate_request(json.dumps({"prompt": "   ", "token": "tok"}))

    def test_wrong_field_type(self):
        with pytest.raises(ValidationError, match="Invalid field 'prompt'"):
            parse_generate_request(json.dumps({"prompt": ["a"], "token": "tok"}))

    def test_non_object_body(self):
        with pytest.raises(ValidationError, match="Request body must be a JSON object"):
            parse_generate_request("[1, 2]")


class TestHandleGenerate:
    """Tests for handle_generate."""

    def test_missing_prompt(self, client):
        assert _handle({}, client) == (400, {"error": PROMPT_REQUIRED})
        client.generate.assert_not_called()

    def test_missing_token(self, client):
        assert _handle({"prompt": "x"}, client) == (400, {"error": TOKEN_REQUIRED})
        client.generate.assert_not_called()

    def test_invalid_json(self, client):
        assert _handle("{oops", client) == (400, {"error": "Invalid JSON body"})

    def test_success_returns_raw_result(self, client):
        status, body = _handle(
            {"prompt": "cat", "token": "tok", "aspect_ratio": "IMAGE_ASPECT_RATIO_SQUARE"}, client
        )

        assert (status, body) == (200, {"imagePanels": []})
        client.generate.assert_awaited_once_with("cat", "IMAGE_ASPECT_RATIO_SQUARE", "tok")

    def test_default_aspect_ratio(self, client):
        _handle({"prompt": "cat", "token": "tok"}, client, default_aspect_ratio="IMAGE_ASPECT_RATIO_PORTRAIT")

        client.generate.assert_awaited_once_with("cat", "IMAGE_ASPECT_RATIO_PORTRAIT", "tok")

    def test_upstream_error_envelope(self, client):
        client.generate.side_effect = UpstreamError(503, "unavailable")

        assert _handle({"prompt": "cat", "token": "tok"}, client) == (
            500,
            {"error": "ERROR: Failed to generate image: 503 unavailable"},
        )

    def test_auth_error_envelope(self, client):
        client.generate.side_effect = AuthError("Access token not found in session data.")

        status, body = _handle({"prompt": "cat", "token": "tok"}, client)

        assert status == 500
        assert body == {"error": "ERROR: Access token not found in session data."}
