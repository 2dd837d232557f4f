"""Request handling for ``POST /generate``.

This module isolates the generate endpoint's logic from
``whiskbatch.api.main`` so it can be exercised without an ASGI server.  The
handler is single pass:

1. **parsing**: decode the body as JSON (``400 Invalid JSON body``)
2. **validating**: require ``prompt`` and ``token`` (``400``), default the
   aspect ratio
3. **generating**: one call to :meth:`WhiskClient.generate`
4. **responding**: ``200`` with the raw upstream result, or ``500`` with
   ``{"error": "ERROR: <message>"}`` for any failure

The caller's credential is used for the duration of the call only and is
never logged.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError as PydanticValidationError

from whiskbatch.core.config import DEFAULT_ASPECT_RATIO
from whiskbatch.core.errors import ValidationError
from whiskbatch.core.whisk_client import WhiskClient

from .models import GenerateRequest

logger = logging.getLogger(__name__)

PROMPT_REQUIRED = "Prompt is required for image generation"
TOKEN_REQUIRED = "Authentication token is required for image generation"


def parse_generate_request(raw_body: bytes | str) -> GenerateRequest:
    """Parse and validate a generate request body.

    Raises:
        ValidationError: With the message to return to the caller
    """
    try:
        data = json.loads(raw_body)
    except (TypeError, ValueError) as e:
        raise ValidationError("Invalid JSON body") from e

    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    # null is treated the same as an omitted field
    data = {key: value for key, value in data.items() if value is not None}

    try:
        request = GenerateRequest.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"Invalid field '{field}': {first['msg']}") from e

    if not request.prompt.strip():
        raise ValidationError(PROMPT_REQUIRED)
    if not request.token.strip():
        raise ValidationError(TOKEN_REQUIRED)

    return request


async def handle_generate(
    raw_body: bytes | str,
    client: WhiskClient,
    default_aspect_ratio: str = DEFAULT_ASPECT_RATIO,
) -> tuple[int, dict]:
    """Run one generate request through parse, validate, generate, respond.

    Args:
        raw_body: Raw request body
        client: Upstream generation client
        default_aspect_ratio: Aspect ratio used when the request omits one

    Returns:
        Tuple of (status_code, json_body)
    """
    try:
        request = parse_generate_request(raw_body)
    except ValidationError as e:
        logger.warning(f"Rejected generate request: {e}")
        return 400, {"error": str(e)}

    aspect_ratio = request.aspect_ratio or default_aspect_ratio

    try:
        result = await client.generate(request.prompt, aspect_ratio, request.token)
    except Exception as e:
        logger.error(f"Image generation failed: {e}", exc_info=True)
        return 500, {"error": f"ERROR: {e}"}

    return 200, result
