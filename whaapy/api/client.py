"""
Async HTTP client for the Whaapy REST API.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from whaapy.api.assembler import OutboundRequest
from whaapy.config import settings
from whaapy.credentials.models import WhaapyCredential

logger = logging.getLogger(__name__)


class WhaapyClient:
    """
    Sends assembled requests with the credential's bearer token.

    Can wrap an existing ``httpx.AsyncClient`` (tests pass one built on a
    ``MockTransport``); otherwise it owns one for the duration of the
    ``async with`` block.
    """

    def __init__(
        self,
        credential: WhaapyCredential,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.credential = credential
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> "WhaapyClient":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def headers(self) -> Dict[str, str]:
        return {
            **self.credential.auth_headers,
            "Accept": "application/json",
        }

    async def request(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Perform one API call and return the decoded response.

        Raises:
            httpx.HTTPStatusError: On a 4xx/5xx response
            httpx.TransportError: On connection failures and timeouts
        """
        if self._client is None:
            raise RuntimeError("WhaapyClient must be used inside 'async with'")

        url = f"{self.credential.base_url}{path}"
        logger.debug(f"Whaapy request: {method} {path}")

        response = await self._client.request(
            method,
            url,
            params=query or None,
            json=body,
            headers=self.headers,
            timeout=self.timeout,
        )
        response.raise_for_status()

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"text": response.text}

    async def send(self, outbound: OutboundRequest) -> Any:
        return await self.request(outbound.method, outbound.path, outbound.query, outbound.body)
