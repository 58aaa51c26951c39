import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable

from ..domain.availability import BOOKING_HORIZON_DAYS, is_date_closed, is_default_closed_weekday, is_special_holiday
from ..domain.capacity import BOOKING_DAILY_LIMIT_DEFAULT, CapacityPath, resolve_limit_value, round_half_up
from ..domain.errors import InvalidPeriodError
from ..domain.repositories import BookingRepository, CapacityConfigRepository
from ..utils.cache import TTLCache
from ..utils.time import local_today

logger = logging.getLogger(__name__)

MIN_CALENDAR_YEAR = 2000
MAX_CALENDAR_YEAR = 2100


@dataclass(frozen=True)
class DayWindowEntry:
    day: date
    available: bool
    free_seats: int
    total_capacity: int
    reason: str | None = None
    booked: int | None = None
    occupancy_percentage: float | None = None


@dataclass(frozen=True)
class WindowSummary:
    total_days: int
    available_days: int
    unavailable_days: int
    closed_days: int
    window_start: date
    window_end: date


@dataclass(frozen=True)
class WindowStatus:
    summary: WindowSummary
    days: list[DayWindowEntry] = field(default_factory=list)

    @property
    def available_dates(self) -> list[date]:
        return [entry.day for entry in self.days if entry.available]

    @property
    def unavailable_dates(self) -> list[date]:
        return [entry.day for entry in self.days if not entry.available]

    @property
    def closed_dates(self) -> list[date]:
        return [entry.day for entry in self.days if entry.reason == "closed"]


@dataclass(frozen=True)
class CalendarDay:
    day: date
    booking_count: int
    total_people: int
    limit: int
    free_seats: int
    is_open: bool


def _window_entry(day: date, override: bool | None, limit: int, booked: int) -> DayWindowEntry:
    if is_special_holiday(day) or is_date_closed(day, override):
        return DayWindowEntry(day=day, available=False, reason="closed", free_seats=0, total_capacity=0)
    free = limit - booked
    if free <= 0:
        return DayWindowEntry(
            day=day,
            available=False,
            reason="fully_booked",
            free_seats=0,
            total_capacity=limit,
            booked=booked,
        )
    return DayWindowEntry(
        day=day,
        available=True,
        free_seats=free,
        total_capacity=limit,
        booked=booked,
        occupancy_percentage=round_half_up(booked / limit * 100.0, 1),
    )


class DayAvailabilityAggregator:
    """Multi-day views for one restaurant: the booking window and the month grid.

    The month grid goes through `cache`, keyed by (restaurant_id, year, month).
    """

    def __init__(
        self,
        booking_repo: BookingRepository,
        config_repo: CapacityConfigRepository,
        *,
        restaurant_id: int,
        cache: TTLCache,
        today: Callable[[], date] = local_today,
    ) -> None:
        self.booking_repo = booking_repo
        self.config_repo = config_repo
        self.restaurant_id = restaurant_id
        self.cache = cache
        self._today = today

    async def window_status(self, days: int = BOOKING_HORIZON_DAYS) -> WindowStatus:
        start = self._today()
        end = start + timedelta(days=days)
        overrides = await self.config_repo.day_overrides(start, end)
        limits = await self.config_repo.daily_limits_between(start, end)
        totals = await self.booking_repo.totals_between(start, end)

        entries: list[DayWindowEntry] = []
        cur = start
        while cur <= end:
            limit = resolve_limit_value(limits.get(cur), CapacityPath.BOOKING)
            entries.append(_window_entry(cur, overrides.get(cur), limit, totals.get(cur, (0, 0))[1]))
            cur += timedelta(days=1)

        available = sum(1 for entry in entries if entry.available)
        summary = WindowSummary(
            total_days=len(entries),
            available_days=available,
            unavailable_days=len(entries) - available,
            closed_days=sum(1 for entry in entries if entry.reason == "closed"),
            window_start=start,
            window_end=end,
        )
        return WindowStatus(summary=summary, days=entries)

    async def month_grid(self, year: int, month: int) -> list[CalendarDay]:
        if not (1 <= month <= 12) or not (MIN_CALENDAR_YEAR <= year <= MAX_CALENDAR_YEAR):
            raise InvalidPeriodError("Invalid month or year")

        key = (self.restaurant_id, year, month)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        grid = await self._build_month(year, month)
        self.cache.set(key, grid)
        return grid

    async def _build_month(self, year: int, month: int) -> list[CalendarDay]:
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        totals = await self.booking_repo.totals_between(first, last)
        limits = await self.config_repo.daily_limits_between(first, last)
        overrides = await self.config_repo.day_overrides(first, last)
        logger.debug("building calendar %d-%02d for restaurant %d", year, month, self.restaurant_id)

        grid: list[CalendarDay] = []
        for offset in range((last - first).days + 1):
            day = first + timedelta(days=offset)
            count, people = totals.get(day, (0, 0))
            # stored limits are taken as-is here, including zero
            limit = limits.get(day, BOOKING_DAILY_LIMIT_DEFAULT)
            is_open = not is_default_closed_weekday(day)
            if day in overrides:
                is_open = overrides[day]
            grid.append(
                CalendarDay(
                    day=day,
                    booking_count=count,
                    total_people=people,
                    limit=limit,
                    free_seats=limit - people,
                    is_open=is_open,
                )
            )
        return grid
