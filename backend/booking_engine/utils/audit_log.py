from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Literal, Optional

from .request_id import get_request_id

AuditAction = Literal[
    "capacity.daily_limit_set",
    "capacity.hour_allocation_set",
    "capacity.hour_configuration_saved",
    "capacity.hour_set_saved",
    "day.opened",
    "day.closed",
    "modification.recorded",
]
AuditInitiator = Literal["staff", "system"]

_audit_logger = logging.getLogger("audit")
_audit_logger.setLevel(logging.INFO)
if not _audit_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _audit_logger.addHandler(handler)
_audit_logger.propagate = False


def _to_jsonable(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return value


def emit_audit_log(
    *,
    action: AuditAction,
    initiator: AuditInitiator,
    restaurant_id: int,
    day: Optional[date] = None,
    user_id: Optional[int] = None,
    booking_id: Optional[int] = None,
    old_value: Any = None,
    new_value: Any = None,
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Emit one JSON line describing a configuration or history change. Raises RuntimeError if logging fails."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "info",
        "action": action,
        "initiator": initiator,
        "request_id": get_request_id(),
        "restaurant_id": restaurant_id,
        "date": _to_jsonable(day),
        "user_id": user_id,
        "booking_id": booking_id,
        "old_value": _to_jsonable(old_value),
        "new_value": _to_jsonable(new_value),
    }
    if message is not None:
        payload["message"] = message
    if extra:
        payload.update({k: _to_jsonable(v) for k, v in extra.items()})

    compact_payload = {k: v for k, v in payload.items() if v is not None}
    try:
        _audit_logger.info(json.dumps(compact_payload, ensure_ascii=True))
    except Exception as exc:
        raise RuntimeError("failed to emit audit log") from exc
