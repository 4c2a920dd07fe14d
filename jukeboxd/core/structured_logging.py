"""Structured logging helpers (PII-safe)."""

import logging
from typing import Any
from uuid import UUID

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger (CLI/worker entry points)."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)


def build_log_context(
    *,
    user_id: UUID | str | None = None,
    target_user_id: UUID | str | None = None,
    item_id: str | None = None,
    operation: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict.

    Only identifiers are accepted: usernames, emails and review text never
    belong in log records.
    """
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if target_user_id:
        context["target_user_id"] = str(target_user_id)
    if item_id:
        context["item_id"] = item_id
    if operation:
        context["operation"] = operation
    return context
