"""Structured logging helpers (PII-safe)."""

from typing import Any


def build_log_context(
    *,
    case_manager_pin: str | None = None,
    case_pin: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict.

    Only identifiers go in here. Client names, referral payloads and
    signature data must never be passed as log context.
    """
    context: dict[str, Any] = {}
    if case_manager_pin:
        context["case_manager_pin"] = case_manager_pin
    if case_pin:
        context["case_pin"] = case_pin
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context


def hash_prefix(value: str | None, length: int = 16) -> str:
    """Shorten a content hash for log lines."""
    if not value:
        return ""
    return f"{value[:length]}..."
