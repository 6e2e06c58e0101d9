"""Rate limiting configuration for the admin console."""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from workplace_admin.core.config import settings

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=not IS_TESTING and settings.RATE_LIMIT_AUTH > 0,
)


def auth_limit() -> str:
    """Limit string for credential endpoints."""
    return f"{max(settings.RATE_LIMIT_AUTH, 1)}/minute"
