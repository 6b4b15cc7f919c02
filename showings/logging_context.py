"""Request ID logging context.

Every log record emitted while serving a request carries the request's ID,
so one booking or availability computation can be followed across modules.

Usage:
    from showings.logging_context import set_request_id

    set_request_id("req-abc123")
    logger.info("Computing slots")  # → [req-abc123] Computing slots
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Optional

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set the request ID for the current async context and return it."""
    request_id = request_id or new_request_id()
    _request_id.set(request_id)
    return request_id


def get_request_id() -> str:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True
