import json
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Iterable, Mapping

from ..domain.capacity import (
    CapacityPath,
    HourSetPath,
    equal_split,
    parse_allocation,
    parse_hour_configuration,
    parse_hour_set,
    resolve_hour_list,
    resolve_limit_value,
    validate_allocation,
)
from ..domain.errors import InvalidTimeError
from ..domain.repositories import CapacityConfigRepository
from ..utils.time import to_hhmm


class AllocationSource(StrEnum):
    HOUR_CONFIGURATION = "hour_configuration"
    HOUR_ALLOCATION = "hour_allocation"
    EQUAL_SPLIT = "equal_split"


@dataclass(frozen=True)
class ResolvedAllocation:
    percentages: dict[str, float]
    source: AllocationSource


async def resolve_daily_limit(config_repo: CapacityConfigRepository, *, day: date, path: CapacityPath) -> int:
    stored = await config_repo.get_daily_limit(day, path)
    return resolve_limit_value(stored, path)


async def resolve_hour_set(config_repo: CapacityConfigRepository, *, day: date, path: HourSetPath) -> list[str]:
    stored = parse_hour_set(await config_repo.get_hour_set_raw(day))
    return resolve_hour_list(stored, path)


async def resolve_hour_allocation(
    config_repo: CapacityConfigRepository,
    *,
    day: date,
    hour_set: Iterable[str],
) -> ResolvedAllocation:
    """Hour configuration wins over the standalone allocation, which wins over an equal split."""
    configured = parse_hour_configuration(await config_repo.get_hour_configuration_raw(day))
    if configured:
        return ResolvedAllocation(
            percentages={hour: slot.percentage for hour, slot in configured.items()},
            source=AllocationSource.HOUR_CONFIGURATION,
        )
    stored = parse_allocation(await config_repo.get_allocation_raw(day))
    if stored:
        return ResolvedAllocation(percentages=stored, source=AllocationSource.HOUR_ALLOCATION)
    return ResolvedAllocation(percentages=equal_split(hour_set), source=AllocationSource.EQUAL_SPLIT)


async def set_daily_limit(
    config_repo: CapacityConfigRepository,
    *,
    day: date,
    limit: int,
    path: CapacityPath,
) -> int:
    if limit < 0:
        raise ValueError("daily limit must be >= 0")
    await config_repo.set_daily_limit(day, limit, path)
    return limit


async def set_hour_allocation(
    config_repo: CapacityConfigRepository,
    *,
    day: date,
    percentages: Mapping[str, float],
) -> str:
    """Validate and store; returns "inserted" or "updated"."""
    normalized: dict[str, float] = {}
    for hour, pct in percentages.items():
        key = to_hhmm(hour)
        if key in normalized:
            raise InvalidTimeError(f"duplicate hour after normalization: {key}")
        normalized[key] = float(pct)
    validate_allocation(normalized)
    inserted = await config_repo.upsert_allocation_raw(day, json.dumps(normalized, sort_keys=True))
    return "inserted" if inserted else "updated"


async def set_hour_set(config_repo: CapacityConfigRepository, *, day: date, hours: Iterable[str]) -> list[str]:
    normalized = sorted({to_hhmm(hour) for hour in hours})
    await config_repo.set_hour_set_raw(day, json.dumps(normalized))
    return normalized
