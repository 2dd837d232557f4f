"""HTTP client the UI uses to reach the proxy's ``/generate`` endpoint."""

import logging

import httpx

from whiskbatch.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class ProxyClient:
    """Post single prompts to the proxy server.

    Args:
        base_url: Base URL of the proxy API
        transport: Optional httpx transport (tests pass a MockTransport)
    """

    def __init__(self, base_url: str, transport: httpx.AsyncBaseTransport | None = None):
        self._client = httpx.AsyncClient(base_url=base_url, timeout=None, transport=transport)

    async def generate(self, prompt: str, *, token: str, aspect_ratio: str) -> dict:
        """Request images for one prompt.

        Returns:
            Parsed generation result

        Raises:
            UpstreamError: If the proxy answers with a non-2xx status
        """
        response = await self._client.post(
            "/generate",
            json={"prompt": prompt, "token": token, "aspect_ratio": aspect_ratio},
        )
        if not response.is_success:
            raise UpstreamError(response.status_code, response.text)
        return response.json()

    async def aclose(self) -> None:
        await self._client.aclose()
