import logging
from dataclasses import dataclass
from datetime import date
from typing import Mapping

from ..domain.capacity import (
    CapacityPath,
    HourSetPath,
    OpenSlot,
    SlotCapacity,
    SlotConfig,
    compute_slot_capacity,
    equal_split,
    parse_hour_configuration,
    serialize_hour_configuration,
)
from ..domain.repositories import BookingRepository, CapacityConfigRepository
from ..utils.time import to_hhmm
from .capacity_config import AllocationSource, resolve_daily_limit, resolve_hour_allocation, resolve_hour_set

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayCapacity:
    day: date
    slots: dict[str, SlotCapacity]
    daily_limit: int
    total_people: int
    is_default_data: bool


@dataclass(frozen=True)
class HourPercentageReport:
    day: date
    hours: list[str]
    percentages: dict[str, float]
    source: AllocationSource
    daily_limit: int
    total_people: int
    slots: dict[str, SlotCapacity]


async def compute(
    booking_repo: BookingRepository,
    config_repo: CapacityConfigRepository,
    *,
    day: date,
) -> DayCapacity:
    booked = await booking_repo.booked_by_hour(day)
    daily_limit = await resolve_daily_limit(config_repo, day=day, path=CapacityPath.BOOKING)

    configs: Mapping[str, SlotConfig] | None = parse_hour_configuration(
        await config_repo.get_hour_configuration_raw(day)
    )
    is_default = configs is None
    if configs is None:
        hours = await resolve_hour_set(config_repo, day=day, path=HourSetPath.SLOT_CONFIG)
        configs = {hour: OpenSlot(pct) for hour, pct in equal_split(hours).items()}

    slots = compute_slot_capacity(configs, booked_by_hour=booked, daily_limit=daily_limit)
    return DayCapacity(
        day=day,
        slots=slots,
        daily_limit=daily_limit,
        total_people=sum(booked.values()),
        is_default_data=is_default,
    )


async def hour_percentage_report(
    booking_repo: BookingRepository,
    config_repo: CapacityConfigRepository,
    *,
    day: date,
) -> HourPercentageReport:
    hours = sorted(await resolve_hour_set(config_repo, day=day, path=HourSetPath.PERCENTAGES))
    allocation = await resolve_hour_allocation(config_repo, day=day, hour_set=hours)
    booked = await booking_repo.booked_by_hour(day)
    daily_limit = await resolve_daily_limit(config_repo, day=day, path=CapacityPath.BOOKING)

    # bookings at times outside the hour set are ignored here
    configs = {hour: OpenSlot(allocation.percentages.get(hour, 0.0)) for hour in hours}
    slots = compute_slot_capacity(configs, booked_by_hour=booked, daily_limit=daily_limit)
    return HourPercentageReport(
        day=day,
        hours=hours,
        percentages={hour: allocation.percentages.get(hour, 0.0) for hour in hours},
        source=allocation.source,
        daily_limit=daily_limit,
        total_people=sum(booked.values()),
        slots=slots,
    )


async def save_hour_configuration(
    booking_repo: BookingRepository,
    config_repo: CapacityConfigRepository,
    *,
    day: date,
    slots: Mapping[str, SlotConfig],
) -> DayCapacity:
    """Persist percentages and closed flags, then return the recomputed view."""
    normalized = {to_hhmm(hour): config for hour, config in slots.items()}
    await config_repo.upsert_hour_configuration_raw(day, serialize_hour_configuration(normalized))
    logger.info("hour configuration saved for %s (%d slots)", day.isoformat(), len(normalized))
    return await compute(booking_repo, config_repo, day=day)
