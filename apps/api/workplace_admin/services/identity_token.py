"""OIDC identity token verification for user installs."""

import logging
from typing import Any

import httpx
import jwt

from workplace_admin.core.config import Settings
from workplace_admin.core.errors import TokenInvalid, UnknownKey
from workplace_admin.services.graph_api import HTTPX_TIMEOUT

logger = logging.getLogger(__name__)

ALGORITHMS = ["RS256"]


def _index_keys(raw_keys: Any) -> dict[str, Any]:
    """Normalise a key set to ``{kid: key}``.

    Workplace publishes ``{kid: pem}``; a standard JWK list is also accepted.
    """
    if isinstance(raw_keys, dict):
        return raw_keys
    if isinstance(raw_keys, list):
        return {key["kid"]: key for key in raw_keys if isinstance(key, dict) and "kid" in key}
    return {}


class IdentityTokenVerifier:
    """Verifies identity tokens against the published key set."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.keys_url = settings.OIDC_KEYS_URL
        self.audience = settings.APP_ID
        self.issuer = settings.OIDC_ISSUER
        self.transport = transport

    async def fetch_keys(self) -> dict[str, Any]:
        """
        Fetch the public key set.

        Fetched on every call; there is no cache.

        Raises:
            httpx.HTTPStatusError: If the discovery endpoint fails
            httpx.DecodingError: If the body is not a JSON object
        """
        async with httpx.AsyncClient(transport=self.transport, timeout=HTTPX_TIMEOUT) as client:
            response = await client.get(self.keys_url)
            response.raise_for_status()
            body = response.json()
            if not isinstance(body, dict):
                raise httpx.DecodingError(
                    "Key set response is not a JSON object", request=response.request
                )
            return _index_keys(body.get("keys"))

    def verify(self, keys: dict[str, Any], id_token: str) -> dict[str, Any]:
        """
        Verify an identity token and return its claims.

        Raises:
            UnknownKey: Token kid not in keys
            TokenInvalid: Bad header, signature, audience, issuer or expiry
        """
        try:
            header = jwt.get_unverified_header(id_token)
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid(f"Identity token could not be decoded: {exc}") from exc

        kid = header.get("kid")
        if kid not in keys:
            raise UnknownKey(f"No public key for key id {kid!r}.")

        key = keys[kid]
        try:
            if isinstance(key, dict):
                key = jwt.PyJWK(key).key
            return jwt.decode(
                id_token,
                key,
                algorithms=ALGORITHMS,
                audience=self.audience,
                issuer=self.issuer,
            )
        except jwt.PyJWTError as exc:
            logger.warning("Identity token rejected: %s", exc)
            raise TokenInvalid(f"Identity token is invalid: {exc}") from exc


def decode_unverified(id_token: str) -> dict[str, Any]:
    """Complete decode (header and payload) without verification, for display."""
    return {
        "header": jwt.get_unverified_header(id_token),
        "payload": jwt.decode(id_token, options={"verify_signature": False}),
    }
