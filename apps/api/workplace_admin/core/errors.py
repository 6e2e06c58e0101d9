"""Request-level error taxonomy.

Each error carries the HTTP status it is rendered with. Validation-class
errors render as 400 with their message; upstream failures (Graph API,
database) are not wrapped and reach the generic handlers untouched.
"""


class ConsoleError(Exception):
    """Base exception for errors rendered on the error page."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingCode(ConsoleError):
    """OAuth callback arrived without an authorization code."""


class MalformedRequest(ConsoleError):
    """Signed request or install callback is missing parts or undecodable."""


class SignatureMismatch(ConsoleError):
    """Signed request HMAC does not match the payload."""

    def __init__(self, expected: str, received: str):
        super().__init__(
            f"Signed request does not match. Expected {expected} but got {received}."
        )
        self.expected = expected
        self.received = received


class UnknownKey(ConsoleError):
    """Identity token references a key id missing from the key set."""


class TokenInvalid(ConsoleError):
    """Identity token failed signature, audience, issuer or expiry checks."""


class NotFound(ConsoleError):
    status_code = 404


class DuplicateUser(ConsoleError):
    """Username is already registered."""
