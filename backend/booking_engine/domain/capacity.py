from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import Any, Iterable, Mapping, Union

from ..models import SlotStatus
from .errors import InvalidAllocationError

logger = logging.getLogger(__name__)


class CapacityPath(StrEnum):
    """Selects which daily-limit store (and default) a caller reads."""

    BOOKING = "booking"
    MODIFICATION = "modification"


class HourSetPath(StrEnum):
    """Selects which default hour list applies when no per-date override exists."""

    PERCENTAGES = "percentages"
    SLOT_CONFIG = "slot_config"


# booking path reads reservation_manager, modification path reads daily_limits; never merged
BOOKING_DAILY_LIMIT_DEFAULT = 45
MODIFICATION_DAILY_LIMIT_DEFAULT = 100

DAILY_LIMIT_DEFAULTS: dict[CapacityPath, int] = {
    CapacityPath.BOOKING: BOOKING_DAILY_LIMIT_DEFAULT,
    CapacityPath.MODIFICATION: MODIFICATION_DAILY_LIMIT_DEFAULT,
}

PERCENTAGE_HOURS_DEFAULT: tuple[str, ...] = ("13:30", "14:00", "14:30", "15:00", "15:30")
SLOT_CONFIG_HOURS_DEFAULT: tuple[str, ...] = ("13:30", "14:00", "14:30", "15:00")

HOUR_SET_DEFAULTS: dict[HourSetPath, tuple[str, ...]] = {
    HourSetPath.PERCENTAGES: PERCENTAGE_HOURS_DEFAULT,
    HourSetPath.SLOT_CONFIG: SLOT_CONFIG_HOURS_DEFAULT,
}

ALLOCATION_TOLERANCE = 0.1
FULL_THRESHOLD = 90.0
LIMITED_THRESHOLD = 70.0


@dataclass(frozen=True)
class OpenSlot:
    percentage: float


@dataclass(frozen=True)
class ClosedSlot:
    # share kept so staff still see the slot's nominal capacity
    percentage: float = 0.0


SlotConfig = Union[OpenSlot, ClosedSlot]


@dataclass(frozen=True)
class SlotCapacity:
    status: SlotStatus
    remaining_capacity: int
    total_capacity: int
    booked_count: int
    allocation_percentage: float
    completion_percentage: float

    @property
    def closed(self) -> bool:
        return self.status == SlotStatus.CLOSED


def resolve_limit_value(stored: int | None, path: CapacityPath) -> int:
    if stored is None or stored <= 0:
        return DAILY_LIMIT_DEFAULTS[path]
    return int(stored)


def resolve_hour_list(stored: Iterable[str] | None, path: HourSetPath) -> list[str]:
    hours = [h for h in (stored or []) if h]
    if not hours:
        return list(HOUR_SET_DEFAULTS[path])
    return hours


def equal_split(hours: Iterable[str]) -> dict[str, float]:
    hours = list(hours)
    if not hours:
        return {}
    share = 100.0 / len(hours)
    return {hour: share for hour in hours}


def validate_allocation(percentages: Mapping[str, float]) -> float:
    """Return the total when it is within tolerance of 100, else raise."""
    total = float(sum(percentages.values()))
    if abs(total - 100.0) > ALLOCATION_TOLERANCE:
        raise InvalidAllocationError(total)
    return total


def round_half_up(value: float, digits: int = 1) -> float:
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def slot_total_capacity(percentage: float, daily_limit: int) -> int:
    # round away float noise first: 100/3 % of 45 must give 15, not 16
    return int(math.ceil(round((percentage / 100.0) * daily_limit, 9)))


def completion_percentage(booked: int, total_capacity: int) -> float:
    if total_capacity <= 0:
        return 0.0
    raw = (booked / total_capacity) * 100.0
    return min(round_half_up(raw, 1), 100.0)


def classify_completion(completion: float) -> SlotStatus:
    if completion > FULL_THRESHOLD:
        return SlotStatus.FULL
    if completion > LIMITED_THRESHOLD:
        return SlotStatus.LIMITED
    return SlotStatus.AVAILABLE


def build_slot_capacity(config: SlotConfig, *, booked: int, daily_limit: int) -> SlotCapacity:
    total = slot_total_capacity(config.percentage, daily_limit)
    completion = completion_percentage(booked, total)
    if isinstance(config, ClosedSlot):
        status = SlotStatus.CLOSED
    else:
        status = classify_completion(completion)
    return SlotCapacity(
        status=status,
        remaining_capacity=total - booked,
        total_capacity=total,
        booked_count=booked,
        allocation_percentage=config.percentage,
        completion_percentage=completion,
    )


def compute_slot_capacity(
    configs: Mapping[str, SlotConfig],
    *,
    booked_by_hour: Mapping[str, int],
    daily_limit: int,
) -> dict[str, SlotCapacity]:
    """Derive per-slot figures, ordered by time of day."""
    return {
        hour: build_slot_capacity(configs[hour], booked=int(booked_by_hour.get(hour, 0)), daily_limit=daily_limit)
        for hour in sorted(configs)
    }


def parse_hour_set(raw: str | None) -> list[str] | None:
    """Decode a stored JSON array of hours. Unusable payloads count as absent."""
    if raw is None or not raw.strip():
        return None
    try:
        decoded = json.loads(raw)
    except ValueError:
        logger.warning("ignoring malformed hoursarray payload")
        return None
    if not isinstance(decoded, list) or not all(isinstance(h, str) for h in decoded):
        logger.warning("ignoring hoursarray payload that is not a list of strings")
        return None
    return decoded or None


def parse_allocation(raw: str | None) -> dict[str, float] | None:
    if raw is None or not raw.strip():
        return None
    try:
        decoded = json.loads(raw)
    except ValueError:
        logger.warning("ignoring malformed hoursPercentages payload")
        return None
    if not isinstance(decoded, dict) or not decoded:
        return None
    try:
        return {str(hour): float(pct) for hour, pct in decoded.items()}
    except (TypeError, ValueError):
        logger.warning("ignoring hoursPercentages payload with non-numeric values")
        return None


def _slot_from_payload(entry: Any) -> SlotConfig:
    if not isinstance(entry, dict):
        raise ValueError("slot entry must be an object")
    percentage = float(entry.get("percentage", 0) or 0)
    if entry.get("isClosed") or str(entry.get("status", "")).lower() == SlotStatus.CLOSED:
        return ClosedSlot(percentage=percentage)
    return OpenSlot(percentage=percentage)


def parse_hour_configuration(raw: str | None) -> dict[str, SlotConfig] | None:
    """Decode a persisted hour configuration into tagged slot variants.

    Legacy rows carry derived fields (capacity, bookings, completion) next to the
    percentage; only the percentage and the closed marker are read back.
    """
    if raw is None or not raw.strip():
        return None
    try:
        decoded = json.loads(raw)
        if not isinstance(decoded, dict) or not decoded:
            return None
        return {str(hour): _slot_from_payload(entry) for hour, entry in decoded.items()}
    except (TypeError, ValueError):
        logger.warning("ignoring malformed hourData payload")
        return None


def serialize_hour_configuration(configs: Mapping[str, SlotConfig]) -> str:
    payload = {
        hour: {"percentage": config.percentage, "isClosed": isinstance(config, ClosedSlot)}
        for hour, config in sorted(configs.items())
    }
    return json.dumps(payload)
