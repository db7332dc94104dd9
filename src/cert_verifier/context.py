"""
Request context extraction from inbound headers, and context-tagged logging.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping

from .models import RequestContext

# Header carrying the caller's correlation id
REQUEST_MESSAGE_ID = "x-request-message-id"


def _normalize(headers: Mapping[str, Any]) -> dict[str, Any]:
    return {k.lower(): v for k, v in headers.items()}


def _first(value: Any) -> str | None:
    """Headers may arrive as a single value or a list of values."""
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else None
    if value is None:
        return None
    return str(value)


def request_context_from_headers(
    headers: Mapping[str, Any],
    operation: str | None = None,
) -> RequestContext:
    """
    Build a RequestContext from inbound headers.

    A trace id is generated when the caller did not send ``x-trace-id``.

    Args:
        headers: Request headers (case-insensitive keys)
        operation: Operation being served

    Returns:
        RequestContext for the request

    Examples:
        >>> ctx = request_context_from_headers({"X-Trace-Id": "abc"}, "verifyCertificate")
        >>> ctx.trace_id
        'abc'
    """
    normalized = _normalize(headers)

    def get(name: str) -> str | None:
        return _first(normalized.get(name))

    trace_enabled = (get("x-trace-enabled") or "false").lower() == "true"

    return RequestContext(
        trace_id=get("x-trace-id") or str(uuid.uuid4()),
        user_id=get("x-user-id"),
        device_id=get("x-device-id"),
        session_id=get("x-session-id"),
        app_id=get("x-app-id"),
        app_version=get("x-app-ver"),
        locale=get("accept-language"),
        debug_enabled=trace_enabled,
        operation=operation,
    )


def extract_message_id(headers: Mapping[str, Any]) -> str | None:
    """Return the caller's correlation id, or None if it sent none."""
    return _first(_normalize(headers).get(REQUEST_MESSAGE_ID))


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Prefixes each record with the request's trace id and operation."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return f"[trace_id={extra.get('trace_id')} op={extra.get('operation')}] {msg}", kwargs


def context_logger(logger: logging.Logger, context: RequestContext | None) -> logging.LoggerAdapter:
    fields = context.log_fields() if context is not None else {}
    return ContextLoggerAdapter(logger, fields)
