"""Pydantic request and response models for the proxy API.

Models
------
GenerateRequest
    Payload for ``POST /generate``: prompt, session credential and optional
    aspect ratio.
ErrorResponse
    Envelope for every 4xx/5xx answer.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field


class GenerateRequest(BaseModel):
    """Request body for the ``POST /generate`` endpoint.

    Attributes:
        prompt: Prompt text.  Required (checked by the handler so the error
            message matches the API contract).
        token: Session credential forwarded to the identity exchange.
            Required.
        aspect_ratio: Upstream aspect ratio identifier.  Also accepted as
            ``aspectRatio``.  ``None`` means the configured default.
    """

    prompt: str = Field(
        default="",
        description="Prompt text.",
    )
    token: str = Field(
        default="",
        description="Session credential (session-token cookie value).",
    )
    aspect_ratio: str | None = Field(
        default=None,
        validation_alias=AliasChoices("aspect_ratio", "aspectRatio"),
        description="Aspect ratio identifier, e.g. 'IMAGE_ASPECT_RATIO_SQUARE'.",
    )


class ErrorResponse(BaseModel):
    """Error envelope returned for failed requests.

    Attributes:
        error: Human-readable error message.
    """

    error: str = Field(
        ...,
        description="Human-readable error message.",
    )
