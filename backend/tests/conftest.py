from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any

import pytest
from booking_engine.domain.capacity import CapacityPath
from booking_engine.domain.errors import StorageUnavailableError
from booking_engine.domain.modifications import BookingSnapshot
from booking_engine.models import BookingStatus


@dataclass
class FakeBooking:
    id: int
    day: date
    at: str
    party_size: int
    status: BookingStatus = BookingStatus.CONFIRMED


class FakeBookingRepository:
    def __init__(self, bookings: list[FakeBooking] | None = None, *, fail: bool = False) -> None:
        self.bookings = list(bookings or [])
        self.fail = fail
        self.calls: list[str] = []

    def add(self, booking_id: int, day: date, at: str, party_size: int, status: BookingStatus = BookingStatus.CONFIRMED):
        self.bookings.append(FakeBooking(booking_id, day, at, party_size, status))

    def _active(self, day: date) -> list[FakeBooking]:
        return [b for b in self.bookings if b.day == day and b.status != BookingStatus.CANCELLED]

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail:
            raise StorageUnavailableError(operation)

    async def booked_by_hour(self, day: date) -> dict[str, int]:
        self._check("booked_by_hour")
        out: dict[str, int] = {}
        for b in self._active(day):
            out[b.at[:5]] = out.get(b.at[:5], 0) + b.party_size
        return out

    async def sum_party_size(self, day: date, *, exclude_booking_id: int | None = None) -> int:
        self._check("sum_party_size")
        return sum(b.party_size for b in self._active(day) if b.id != exclude_booking_id)

    async def totals_between(self, start: date, end: date) -> dict[date, tuple[int, int]]:
        self._check("totals_between")
        out: dict[date, tuple[int, int]] = {}
        for b in self.bookings:
            if b.status == BookingStatus.CANCELLED or not (start <= b.day <= end):
                continue
            count, people = out.get(b.day, (0, 0))
            out[b.day] = (count + 1, people + b.party_size)
        return out

    async def get_snapshot(self, booking_id: int) -> BookingSnapshot | None:
        self._check("get_booking")
        for b in self.bookings:
            if b.id == booking_id:
                return BookingSnapshot(
                    booking_id=b.id,
                    reservation_date=b.day,
                    reservation_time=time.fromisoformat(b.at),
                    party_size=b.party_size,
                    status=b.status,
                )
        return None


class FakeCapacityConfigRepository:
    def __init__(self, *, fail: bool = False) -> None:
        self.limits: dict[tuple[CapacityPath, date], int] = {}
        self.hour_sets: dict[date, str] = {}
        self.allocations: dict[date, str] = {}
        self.hour_configs: dict[date, str] = {}
        self.overrides: dict[date, bool] = {}
        self.fail = fail
        self.calls: list[str] = []

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail:
            raise StorageUnavailableError(operation)

    async def get_daily_limit(self, day: date, path: CapacityPath) -> int | None:
        self._check("get_daily_limit")
        return self.limits.get((path, day))

    async def daily_limits_between(self, start: date, end: date) -> dict[date, int]:
        self._check("daily_limits_between")
        return {d: v for (p, d), v in self.limits.items() if p == CapacityPath.BOOKING and start <= d <= end}

    async def set_daily_limit(self, day: date, limit: int, path: CapacityPath) -> None:
        self._check("set_daily_limit")
        self.limits[(path, day)] = limit

    async def get_hour_set_raw(self, day: date) -> str | None:
        self._check("get_hour_set")
        return self.hour_sets.get(day)

    async def set_hour_set_raw(self, day: date, payload: str) -> None:
        self._check("set_hour_set")
        self.hour_sets[day] = payload

    async def get_allocation_raw(self, day: date) -> str | None:
        self._check("get_hour_allocation")
        return self.allocations.get(day)

    async def upsert_allocation_raw(self, day: date, payload: str) -> bool:
        self._check("set_hour_allocation")
        inserted = day not in self.allocations
        self.allocations[day] = payload
        return inserted

    async def get_hour_configuration_raw(self, day: date) -> str | None:
        self._check("get_hour_configuration")
        return self.hour_configs.get(day)

    async def upsert_hour_configuration_raw(self, day: date, payload: str) -> None:
        self._check("save_hour_configuration")
        self.hour_configs[day] = payload

    async def get_day_override(self, day: date) -> bool | None:
        self._check("get_day_override")
        return self.overrides.get(day)

    async def day_overrides(self, start: date | None = None, end: date | None = None) -> dict[date, bool]:
        self._check("day_overrides")
        return {
            d: v
            for d, v in self.overrides.items()
            if (start is None or d >= start) and (end is None or d <= end)
        }

    async def set_day_override(self, day: date, is_open: bool) -> None:
        self._check("set_day_override")
        self.overrides[day] = is_open


class FakeModificationHistoryRepository:
    def __init__(self, counts: dict[int, int] | None = None) -> None:
        self.counts = dict(counts or {})
        self.records: list[dict[str, Any]] = []

    async def count_for_booking(self, booking_id: int) -> int:
        return self.counts.get(booking_id, 0) + sum(1 for r in self.records if r["booking_id"] == booking_id)

    async def append(
        self,
        booking_id: int,
        *,
        field_modified: str,
        old_value: str,
        new_value: str,
        customer_phone: str | None,
    ) -> int:
        self.records.append(
            {
                "booking_id": booking_id,
                "field_modified": field_modified,
                "old_value": old_value,
                "new_value": new_value,
                "customer_phone": customer_phone,
                "modification_date": datetime(2025, 1, 1),
            }
        )
        return len(self.records)


class DummySession:
    def __init__(self, user_exists: bool = True) -> None:
        self.user_exists = user_exists
        self.commits = 0

    async def scalar(self, *args: Any, **kwargs: Any) -> int | None:
        return 1 if self.user_exists else None

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        return None


@pytest.fixture
def booking_repo() -> FakeBookingRepository:
    return FakeBookingRepository()


@pytest.fixture
def config_repo() -> FakeCapacityConfigRepository:
    return FakeCapacityConfigRepository()


@pytest.fixture
def history_repo() -> FakeModificationHistoryRepository:
    return FakeModificationHistoryRepository()


@pytest.fixture
def failing_booking_repo() -> FakeBookingRepository:
    return FakeBookingRepository(fail=True)


@pytest.fixture
def failing_config_repo() -> FakeCapacityConfigRepository:
    return FakeCapacityConfigRepository(fail=True)
