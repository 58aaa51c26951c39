from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from typing import Optional

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def set_request_id(request_id: str | None) -> None:
    """Bind the id to the current task context; None clears it."""
    _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()


def resolve_request_id(incoming: str | None) -> str:
    """Reuse a caller-supplied id when it is non-blank, otherwise mint one."""
    if incoming and incoming.strip():
        return incoming.strip()[:MAX_REQUEST_ID_LENGTH]
    return generate_request_id()


class RequestIdLogFilter(logging.Filter):
    """Stamps every record with the bound request id ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True
