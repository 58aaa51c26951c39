from __future__ import annotations

from datetime import date
from typing import Protocol

from .capacity import CapacityPath
from .modifications import BookingSnapshot


class BookingRepository(Protocol):
    """Aggregates over one restaurant's bookings. Cancelled bookings never count."""

    async def booked_by_hour(self, day: date) -> dict[str, int]: ...

    async def sum_party_size(self, day: date, *, exclude_booking_id: int | None = None) -> int: ...

    async def totals_between(self, start: date, end: date) -> dict[date, tuple[int, int]]: ...

    async def get_snapshot(self, booking_id: int) -> BookingSnapshot | None: ...


class CapacityConfigRepository(Protocol):
    """Per-date overrides for one restaurant. `None` means "not configured"."""

    async def get_daily_limit(self, day: date, path: CapacityPath) -> int | None: ...

    async def daily_limits_between(self, start: date, end: date) -> dict[date, int]: ...

    async def set_daily_limit(self, day: date, limit: int, path: CapacityPath) -> None: ...

    async def get_hour_set_raw(self, day: date) -> str | None: ...

    async def set_hour_set_raw(self, day: date, payload: str) -> None: ...

    async def get_allocation_raw(self, day: date) -> str | None: ...

    async def upsert_allocation_raw(self, day: date, payload: str) -> bool: ...

    async def get_hour_configuration_raw(self, day: date) -> str | None: ...

    async def upsert_hour_configuration_raw(self, day: date, payload: str) -> None: ...

    async def get_day_override(self, day: date) -> bool | None: ...

    async def day_overrides(self, start: date | None = None, end: date | None = None) -> dict[date, bool]: ...

    async def set_day_override(self, day: date, is_open: bool) -> None: ...


class ModificationHistoryRepository(Protocol):
    async def count_for_booking(self, booking_id: int) -> int: ...

    async def append(
        self,
        booking_id: int,
        *,
        field_modified: str,
        old_value: str,
        new_value: str,
        customer_phone: str | None,
    ) -> int: ...
