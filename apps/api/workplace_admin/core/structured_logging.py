"""Structured logging helpers (token-safe)."""

import logging
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once at startup."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def build_log_context(
    *,
    user_id: int | str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
    topic: str | None = None,
) -> dict[str, Any]:
    """Return a log context dict that never carries tokens or secrets."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    if topic:
        context["topic"] = topic
    return context
