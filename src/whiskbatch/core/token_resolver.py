"""Access token resolution for the Whisk proxy.

Processing flow:
    1. Read the session cache.
    2. If the cached session is usable, return its access token.
    3. Otherwise exchange the caller's credential with the identity endpoint
       (one ``GET`` presenting the credential as the session cookie).
    4. Store the returned payload verbatim and re-read the cache.
    5. Return the token, or raise :class:`AuthError` if there still is none.

Only one refresh is attempted per call.  A refresh that fails leaves the
cache untouched.
"""

from __future__ import annotations

import logging

import httpx

from .errors import AuthError
from .session_cache import SessionCache, SessionRecord

logger = logging.getLogger(__name__)


class AccessTokenResolver:
    """Turn a user credential into a usable upstream access token.

    Args:
        cache: Shared session cache
        http_client: Async HTTP client used for the identity exchange
        identity_url: Session exchange endpoint
        cookie_name: Cookie name the credential is sent under
    """

    def __init__(
        self,
        cache: SessionCache,
        http_client: httpx.AsyncClient,
        identity_url: str,
        cookie_name: str = "__Secure-next-auth.session-token",
    ):
        self.cache = cache
        self.http_client = http_client
        self.identity_url = identity_url
        self.cookie_name = cookie_name

    async def resolve(self, credential: str) -> str:
        """Return an access token, refreshing the cached session at most once.

        Args:
            credential: Opaque session credential supplied by the caller

        Returns:
            Access token for the generation endpoint

        Raises:
            AuthError: If the refresh fails or yields no usable session
        """
        session = await self.cache.get()

        if not isinstance(session, SessionRecord):
            logger.info(f"Cached session unusable ({session.reason}), refreshing")
            await self.refresh(credential)
            session = await self.cache.get()

        if not isinstance(session, SessionRecord) or not session.access_token:
            raise AuthError("Access token not found in session data.")

        return session.access_token

    async def refresh(self, credential: str) -> dict:
        """Exchange *credential* for a new session payload and cache it.

        Returns:
            The payload as stored

        Raises:
            AuthError: On a non-2xx status, a non-JSON body, or an ``error``
                field in the payload
        """
        try:
            response = await self.http_client.get(
                self.identity_url,
                headers={"Cookie": f"{self.cookie_name}={credential}"},
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Failed to update session: {e}") from e

        if not response.is_success:
            raise AuthError(f"Failed to update session: {response.status_code} {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise AuthError("Failed to update session: response is not JSON") from e

        if not isinstance(data, dict):
            raise AuthError("Failed to update session: unexpected payload")

        if data.get("error"):
            raise AuthError(f"Failed to update session: {data['error']}")

        await self.cache.set(data)
        logger.info("Upstream session refreshed")
        return data
