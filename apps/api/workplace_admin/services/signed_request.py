"""Signed request verification for account linking.

A signed request is ``base64url(signature).base64url(json_payload)`` where the
signature is the hex HMAC-SHA256 of the still-encoded payload segment, keyed
with the app secret.
"""

import base64
import binascii
import hmac
import json
from typing import Any

from workplace_admin.core.errors import MalformedRequest, SignatureMismatch
from workplace_admin.core.security import hmac_sha256_hex


def base64url_decode(value: str) -> bytes:
    """Decode base64url, restoring stripped padding."""
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def _decode_segment(segment: str) -> str:
    try:
        return base64url_decode(segment).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise MalformedRequest(f"Signed request is malformatted: {segment}") from exc


def verify_signed_request(
    signed_request: str | None,
    redirect_uri: str | None,
    app_secret: str,
) -> dict[str, Any]:
    """
    Verify a signed request and return its payload.

    Args:
        signed_request: Raw ``signature.payload`` string from the form body
        redirect_uri: Where to send the user once the link is confirmed
        app_secret: Shared HMAC secret

    Returns:
        Decoded payload with ``redirect`` set to redirect_uri

    Raises:
        MalformedRequest: Missing input or undecodable parts
        SignatureMismatch: HMAC does not match
    """
    if not signed_request:
        raise MalformedRequest("No signed request sent.")
    if not redirect_uri:
        raise MalformedRequest("No redirect uri parameter sent.")

    parts = signed_request.split(".")
    if len(parts) != 2:
        raise MalformedRequest(f"Signed request is malformatted: {signed_request}")

    signature = _decode_segment(parts[0])
    payload = _decode_segment(parts[1])

    expected = hmac_sha256_hex(app_secret, parts[1].encode())
    if not hmac.compare_digest(expected.encode(), signature.encode()):
        raise SignatureMismatch(expected, signature)

    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise MalformedRequest(f"Signed request payload is not JSON: {payload}") from exc
    if not isinstance(decoded, dict):
        raise MalformedRequest(f"Signed request payload is not an object: {payload}")

    decoded["redirect"] = redirect_uri
    return decoded
