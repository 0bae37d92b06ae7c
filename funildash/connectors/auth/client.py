"""FunilDash — Identity Provider Client.

Verifies bearer tokens against the hosted auth service (GoTrue-compatible
``/auth/v1/user``). Handles retry on transient failures.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from funildash.config import settings
from funildash.core.logging import get_logger

logger = get_logger("auth.client")

MAX_RETRIES = 3
RETRY_BASE_DELAY = 0.5  # seconds


class AuthAPIError(Exception):
    """Raised when the identity provider rejects a token or cannot be reached."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class AuthClient:
    """Async HTTP client for the identity provider."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.auth_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.auth_api_key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=settings.auth_timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Core Request Method ──

    async def _request(self, method: str, url: str, token: str) -> Dict[str, Any]:
        """Make a request with retry on 5xx and connection errors."""
        headers = {"Authorization": f"Bearer {token}"}
        if self.api_key:
            headers["apikey"] = self.api_key

        client = await self._get_client()

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                resp = await client.request(method, url, headers=headers)
                resp.raise_for_status()
                return resp.json()

            except httpx.HTTPStatusError as e:
                if attempt < MAX_RETRIES and e.response.status_code >= 500:
                    wait = RETRY_BASE_DELAY * (2 ** (attempt - 1))
                    logger.warning(
                        f"Auth server error {e.response.status_code}. Retrying in {wait}s"
                    )
                    await asyncio.sleep(wait)
                    continue
                raise AuthAPIError(
                    f"Token rejected ({e.response.status_code})", e.response.status_code
                ) from e

            except httpx.RequestError as e:
                if attempt < MAX_RETRIES:
                    wait = RETRY_BASE_DELAY * (2 ** (attempt - 1))
                    logger.warning(f"Auth request error: {e}. Retrying in {wait}s")
                    await asyncio.sleep(wait)
                    continue
                raise AuthAPIError(
                    f"Auth service unreachable after {MAX_RETRIES} retries: {e}"
                ) from e

        raise AuthAPIError("Max retries exhausted")

    # ── Token Verification ──

    async def get_user_id(self, token: str) -> str:
        """Return the user id the token belongs to."""
        if not self.base_url:
            raise AuthAPIError("Identity provider URL is not configured")
        result = await self._request("GET", f"{self.base_url}/auth/v1/user", token)
        user_id = result.get("id")
        if not user_id:
            raise AuthAPIError("Identity provider returned no user id")
        return str(user_id)
