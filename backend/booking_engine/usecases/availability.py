from dataclasses import dataclass
from datetime import date

from ..domain.availability import (
    WEEKDAY_NAMES,
    AvailableSlot,
    FeasibilityReason,
    FeasibilityResult,
    alternatives_message,
    capacity_exceeded_message,
    closed_day_message,
    current_time_available_message,
    date_open_message,
    days_until,
    filter_available_slots,
    holiday_message,
    is_beyond_horizon,
    is_date_closed,
    is_default_closed_weekday,
    is_special_holiday,
    no_hours_message,
    too_far_message,
)
from ..domain.capacity import CapacityPath
from ..domain.errors import InvalidTimeError
from ..domain.repositories import BookingRepository, CapacityConfigRepository
from ..utils.time import local_today, to_hhmm
from .capacity_config import resolve_daily_limit
from .slot_capacity import compute


@dataclass(frozen=True)
class DayStatus:
    day: date
    weekday: str
    is_open: bool
    is_default_closed_day: bool


@dataclass(frozen=True)
class DayOverrides:
    closed_days: list[date]
    opened_days: list[date]


@dataclass(frozen=True)
class Occupancy:
    day: date
    daily_limit: int
    total_people: int
    free_seats: int


async def available_slots(
    booking_repo: BookingRepository,
    config_repo: CapacityConfigRepository,
    *,
    day: date,
    party_size: int,
) -> list[AvailableSlot]:
    capacity = await compute(booking_repo, config_repo, day=day)
    return filter_available_slots(capacity.slots, party_size=party_size)


def _requested_time(current_time: str | None) -> str | None:
    """The caller's current slot as "HH:MM"; an unparseable value never matches a slot."""
    if not current_time or not current_time.strip():
        return None
    try:
        return to_hhmm(current_time)
    except InvalidTimeError:
        return current_time.strip()[:5]


async def check_date_feasibility(
    booking_repo: BookingRepository,
    config_repo: CapacityConfigRepository,
    *,
    day: date,
    party_size: int | None = None,
    current_time: str | None = None,
    exclude_booking_id: int | None = None,
    today: date | None = None,
) -> FeasibilityResult:
    """
    Walk the rejection pipeline for a prospective date and stop at the first hit.
    Without a party size only the calendar rules are applied (date_open).
    """
    today = today or local_today()
    until = days_until(day, today=today)

    if is_special_holiday(day):
        return FeasibilityResult(
            available=False,
            reason=FeasibilityReason.SPECIAL_HOLIDAY,
            message=holiday_message(),
            days_until=until,
        )

    override = await config_repo.get_day_override(day)
    if is_date_closed(day, override):
        return FeasibilityResult(
            available=False,
            reason=FeasibilityReason.CLOSED_DAY,
            message=closed_day_message(day),
            days_until=until,
        )

    if is_beyond_horizon(day, today=today):
        return FeasibilityResult(
            available=False,
            reason=FeasibilityReason.TOO_FAR_FUTURE,
            message=too_far_message(),
            days_until=until,
        )

    if party_size is None:
        return FeasibilityResult(
            available=True,
            reason=FeasibilityReason.DATE_OPEN,
            message=date_open_message(day),
            days_until=until,
            is_explicitly_opened=override is True,
        )

    slots = await available_slots(booking_repo, config_repo, day=day, party_size=party_size)
    if not slots:
        return FeasibilityResult(
            available=False,
            reason=FeasibilityReason.NO_HOURS_AVAILABLE,
            message=no_hours_message(day, party_size),
            days_until=until,
        )

    wanted = _requested_time(current_time)
    time_matches = wanted is not None and any(slot.time == wanted for slot in slots)

    if exclude_booking_id is not None:
        limit = await resolve_daily_limit(config_repo, day=day, path=CapacityPath.MODIFICATION)
        current_total = await booking_repo.sum_party_size(day, exclude_booking_id=exclude_booking_id)
        if current_total + party_size > limit:
            return FeasibilityResult(
                available=False,
                reason=FeasibilityReason.CAPACITY_EXCEEDED_NEW_DATE,
                message=capacity_exceeded_message(day, party_size),
                days_until=until,
                daily_limit=limit,
                current_total=current_total,
            )

    if time_matches:
        return FeasibilityResult(
            available=True,
            reason=None,
            message=current_time_available_message(day, party_size, wanted),
            days_until=until,
            current_time_available=True,
            available_slots=slots,
        )
    return FeasibilityResult(
        available=True,
        reason=FeasibilityReason.CURRENT_TIME_NOT_AVAILABLE,
        message=alternatives_message(day, party_size, wanted, slots),
        days_until=until,
        current_time_available=False,
        available_slots=slots,
    )


async def day_status(config_repo: CapacityConfigRepository, *, day: date) -> DayStatus:
    override = await config_repo.get_day_override(day)
    return DayStatus(
        day=day,
        weekday=WEEKDAY_NAMES[day.weekday()],
        is_open=not is_date_closed(day, override),
        is_default_closed_day=is_default_closed_weekday(day),
    )


async def closed_and_opened_days(config_repo: CapacityConfigRepository) -> DayOverrides:
    overrides = await config_repo.day_overrides()
    return DayOverrides(
        closed_days=sorted(day for day, is_open in overrides.items() if not is_open),
        opened_days=sorted(day for day, is_open in overrides.items() if is_open),
    )


async def occupancy(
    booking_repo: BookingRepository,
    config_repo: CapacityConfigRepository,
    *,
    day: date,
) -> Occupancy:
    limit = await resolve_daily_limit(config_repo, day=day, path=CapacityPath.BOOKING)
    total = await booking_repo.sum_party_size(day)
    return Occupancy(day=day, daily_limit=limit, total_people=total, free_seats=limit - total)


async def set_day_open(config_repo: CapacityConfigRepository, *, day: date, is_open: bool) -> DayStatus:
    await config_repo.set_day_override(day, is_open)
    return await day_status(config_repo, day=day)
