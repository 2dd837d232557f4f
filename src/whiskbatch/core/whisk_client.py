"""Whisk image generation HTTP client.

Processing flow:
    1. Resolve an access token through :class:`AccessTokenResolver`.
    2. Build the fixed generation payload (model, aspect ratio, prompt).
    3. Issue a single bearer-authenticated ``POST``.
    4. Return the parsed JSON body unmodified or raise on non-2xx status.

Base64 handling:
    - This module does not decode ``encodedImage`` payloads; see
      :mod:`whiskbatch.core.images`.

Error handling strategy:
    - Token problems propagate as :class:`AuthError`.
    - Non-2xx responses raise :class:`UpstreamError` with status and body.
    - No retries.
"""

from __future__ import annotations

import logging

import httpx

from .errors import MalformedResponseError, UpstreamError
from .token_resolver import AccessTokenResolver

logger = logging.getLogger(__name__)


def build_generation_payload(prompt: str, aspect_ratio: str, model: str) -> dict:
    """Build the JSON body expected by the generation endpoint."""
    return {
        "imageModelSettings": {
            "imageModel": model,
            "aspectRatio": aspect_ratio,
        },
        "prompt": prompt,
    }


class WhiskClient:
    """Issue generation requests against the upstream service.

    Args:
        resolver: Access token resolver
        http_client: Async HTTP client used for the generation call
        generation_url: Image generation endpoint
        model: Image model identifier
    """

    def __init__(
        self,
        resolver: AccessTokenResolver,
        http_client: httpx.AsyncClient,
        generation_url: str,
        model: str = "IMAGEN_3_5",
    ):
        self.resolver = resolver
        self.http_client = http_client
        self.generation_url = generation_url
        self.model = model

    async def generate(self, prompt: str, aspect_ratio: str, credential: str) -> dict:
        """Generate images for a single prompt.

        Args:
            prompt: Prompt text
            aspect_ratio: Upstream aspect ratio identifier
            credential: Caller's session credential

        Returns:
            Upstream JSON response, unmodified

        Raises:
            AuthError: If no access token can be obtained
            UpstreamError: If the upstream service answers with a non-2xx status
            MalformedResponseError: If a 2xx body is not JSON
        """
        access_token = await self.resolver.resolve(credential)
        payload = build_generation_payload(prompt, aspect_ratio, self.model)

        response = await self.http_client.post(
            self.generation_url,
            json=payload,
            headers={"Authorization": f"Bearer {access_token}"},
        )

        if not response.is_success:
            logger.warning(f"Generation request failed with status {response.status_code}")
            raise UpstreamError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError("Generation response is not JSON") from e
