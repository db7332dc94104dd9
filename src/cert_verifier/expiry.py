"""
Expiry date check.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from .context import context_logger
from .models import RequestContext

logger = logging.getLogger(__name__)

EXPIRY_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
EXPIRED_MESSAGE = "ERROR: Assertion.expires - certificate has expired"


def check_expiry(
    expires: str | None,
    context: RequestContext | None = None,
    now: datetime | None = None,
) -> str | None:
    """
    Check an expiry timestamp against the current UTC time.

    Both sides are compared at second granularity. A timestamp that does not
    parse is logged and treated as no finding.

    Args:
        expires: Expiry timestamp, ``yyyy-MM-dd'T'HH:mm:ss'Z'`` in UTC
        context: Request context for log records
        now: Current time override (aware or naive UTC)

    Returns:
        EXPIRED_MESSAGE if the certificate has expired, else None
    """
    if expires is None or not expires.strip():
        return None

    try:
        expiry = datetime.strptime(expires.strip(), EXPIRY_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as e:
        context_logger(logger, context).info("check_expiry: could not parse expiry date %r: %s", expires, e)
        return None

    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    current = current.astimezone(timezone.utc).replace(microsecond=0)

    if expiry < current:
        return EXPIRED_MESSAGE
    return None
