"""Workplace Graph API client.

Thin request/response adapter: every call returns the parsed JSON body or
raises the httpx error untouched (no retries).
"""

import logging
from typing import Any

import httpx

from workplace_admin.core.config import Settings

logger = logging.getLogger(__name__)

# HTTP client settings
HTTPX_TIMEOUT = httpx.Timeout(15.0, connect=5.0)


class GraphClient:
    """Graph API calls scoped to one app's credentials."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: httpx.Timeout = HTTPX_TIMEOUT,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict:
        """
        Issue a Graph API call.

        Raises:
            httpx.HTTPStatusError: Non-2xx response
            httpx.TransportError: Network failure
        """
        query = dict(params or {})
        if token:
            query["access_token"] = token
        url = f"{self.settings.graph_url}/{path.lstrip('/')}"

        async with self._client() as client:
            response = await client.request(method, url, params=query)
            response.raise_for_status()
            return response.json()

    # =========================================================================
    # OAuth
    # =========================================================================

    async def exchange_code(
        self,
        code: str,
        redirect_uri: str,
        grant_type: str | None = None,
    ) -> dict:
        """
        Exchange an authorization code for an access token.

        Returns:
            Token response containing access_token (and id_token for OIDC installs)
        """
        params = {
            "client_id": self.settings.APP_ID,
            "client_secret": self.settings.APP_SECRET,
            "redirect_uri": redirect_uri,
            "code": code,
        }
        if grant_type:
            params["grant_type"] = grant_type
        return await self.request("GET", "oauth/access_token", params=params)

    # =========================================================================
    # Profile and install metadata
    # =========================================================================

    async def get_me(self, token: str, fields: str = "name") -> dict:
        return await self.request("GET", "me", token=token, params={"fields": fields})

    async def get_community(self, token: str, fields: str = "name") -> dict:
        return await self.request("GET", "community", token=token, params={"fields": fields})

    # =========================================================================
    # Webhooks
    # =========================================================================

    async def subscribe_webhook(self, topic: str, fields: list[str]) -> dict:
        """Subscribe the app to a webhook topic using the app access token."""
        params = {
            "object": topic,
            "callback_url": self.settings.absolute_url(f"api/{topic}/callback"),
            "verify_token": self.settings.VERIFY_TOKEN,
            "fields": ",".join(fields),
        }
        logger.info("Subscribing webhook topic=%s fields=%s", topic, params["fields"])
        return await self.request(
            "POST",
            "app/subscriptions",
            token=self.settings.app_access_token,
            params=params,
        )
