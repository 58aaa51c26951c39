from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterator

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.capacity import CapacityPath
from ..domain.errors import StorageUnavailableError
from ..domain.modifications import BookingSnapshot
from ..domain.repositories import BookingRepository, CapacityConfigRepository, ModificationHistoryRepository
from ..models import (
    Booking,
    BookingStatus,
    HourConfiguration,
    HoursPercentage,
    ModificationDailyLimit,
    ModificationHistory,
    OpeningHours,
    ReservationManagerLimit,
    RestaurantDay,
)
from ..utils.time import to_hhmm


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@contextmanager
def _storage(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageUnavailableError(operation) from exc


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession, restaurant_id: int) -> None:
        self.session = session
        self.restaurant_id = restaurant_id

    def _active(self):
        return (
            Booking.restaurant_id == self.restaurant_id,
            Booking.status != BookingStatus.CANCELLED,
        )

    async def booked_by_hour(self, day: date) -> dict[str, int]:
        stmt = (
            select(Booking.reservation_time, func.coalesce(func.sum(Booking.party_size), 0))
            .where(*self._active(), Booking.reservation_date == day)
            .group_by(Booking.reservation_time)
        )
        with _storage("booked_by_hour"):
            rows = (await self.session.execute(stmt)).all()
        out: dict[str, int] = {}
        for reservation_time, total in rows:
            hour = to_hhmm(reservation_time)
            out[hour] = out.get(hour, 0) + int(total)
        return out

    async def sum_party_size(self, day: date, *, exclude_booking_id: int | None = None) -> int:
        stmt = select(func.coalesce(func.sum(Booking.party_size), 0)).where(
            *self._active(),
            Booking.reservation_date == day,
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)
        with _storage("sum_party_size"):
            return int(await self.session.scalar(stmt) or 0)

    async def totals_between(self, start: date, end: date) -> dict[date, tuple[int, int]]:
        stmt = (
            select(
                Booking.reservation_date,
                func.count(Booking.id),
                func.coalesce(func.sum(Booking.party_size), 0),
            )
            .where(*self._active(), Booking.reservation_date.between(start, end))
            .group_by(Booking.reservation_date)
        )
        with _storage("totals_between"):
            rows = (await self.session.execute(stmt)).all()
        return {day: (int(count), int(people)) for day, count, people in rows}

    async def get_snapshot(self, booking_id: int) -> BookingSnapshot | None:
        stmt = select(Booking).where(Booking.restaurant_id == self.restaurant_id, Booking.id == booking_id)
        with _storage("get_booking"):
            booking = await self.session.scalar(stmt)
        if booking is None:
            return None
        return BookingSnapshot(
            booking_id=booking.id,
            reservation_date=booking.reservation_date,
            reservation_time=booking.reservation_time,
            party_size=booking.party_size,
            status=booking.status,
        )


class SqlAlchemyCapacityConfigRepository(CapacityConfigRepository):
    def __init__(self, session: AsyncSession, restaurant_id: int) -> None:
        self.session = session
        self.restaurant_id = restaurant_id

    async def get_daily_limit(self, day: date, path: CapacityPath) -> int | None:
        if path == CapacityPath.MODIFICATION:
            stmt = select(ModificationDailyLimit.daily_limit).where(
                ModificationDailyLimit.restaurant_id == self.restaurant_id,
                ModificationDailyLimit.day == day,
            )
        else:
            stmt = select(ReservationManagerLimit.daily_limit).where(
                ReservationManagerLimit.restaurant_id == self.restaurant_id,
                ReservationManagerLimit.reservation_date == day,
            )
        with _storage(f"get_daily_limit[{path}]"):
            value = await self.session.scalar(stmt.limit(1))
        return None if value is None else int(value)

    async def daily_limits_between(self, start: date, end: date) -> dict[date, int]:
        stmt = select(ReservationManagerLimit.reservation_date, ReservationManagerLimit.daily_limit).where(
            ReservationManagerLimit.restaurant_id == self.restaurant_id,
            ReservationManagerLimit.reservation_date.between(start, end),
        )
        with _storage("daily_limits_between"):
            rows = (await self.session.execute(stmt)).all()
        return {day: int(limit) for day, limit in rows}

    async def set_daily_limit(self, day: date, limit: int, path: CapacityPath) -> None:
        with _storage(f"set_daily_limit[{path}]"):
            if path == CapacityPath.MODIFICATION:
                row = await self.session.scalar(
                    select(ModificationDailyLimit).where(
                        ModificationDailyLimit.restaurant_id == self.restaurant_id,
                        ModificationDailyLimit.day == day,
                    )
                )
                if row is None:
                    self.session.add(
                        ModificationDailyLimit(restaurant_id=self.restaurant_id, day=day, daily_limit=limit)
                    )
                else:
                    row.daily_limit = limit
            else:
                # legacy table has no unique key: keep exactly one row per date
                await self.session.execute(
                    delete(ReservationManagerLimit).where(
                        ReservationManagerLimit.restaurant_id == self.restaurant_id,
                        ReservationManagerLimit.reservation_date == day,
                    )
                )
                self.session.add(
                    ReservationManagerLimit(restaurant_id=self.restaurant_id, reservation_date=day, daily_limit=limit)
                )
            await self.session.flush()

    async def get_hour_set_raw(self, day: date) -> str | None:
        stmt = select(OpeningHours.hours_array).where(
            OpeningHours.restaurant_id == self.restaurant_id,
            OpeningHours.date_selected == day,
        )
        with _storage("get_hour_set"):
            return await self.session.scalar(stmt.limit(1))

    async def set_hour_set_raw(self, day: date, payload: str) -> None:
        with _storage("set_hour_set"):
            row = await self.session.scalar(
                select(OpeningHours).where(
                    OpeningHours.restaurant_id == self.restaurant_id,
                    OpeningHours.date_selected == day,
                )
            )
            if row is None:
                self.session.add(OpeningHours(restaurant_id=self.restaurant_id, date_selected=day, hours_array=payload))
            else:
                row.hours_array = payload
            await self.session.flush()

    async def get_allocation_raw(self, day: date) -> str | None:
        stmt = select(HoursPercentage.hours_percentages).where(
            HoursPercentage.restaurant_id == self.restaurant_id,
            HoursPercentage.reservation_date == day,
        )
        with _storage("get_hour_allocation"):
            return await self.session.scalar(stmt.limit(1))

    async def upsert_allocation_raw(self, day: date, payload: str) -> bool:
        """Store the allocation; returns True when a new row was inserted."""
        with _storage("set_hour_allocation"):
            row = await self.session.scalar(
                select(HoursPercentage).where(
                    HoursPercentage.restaurant_id == self.restaurant_id,
                    HoursPercentage.reservation_date == day,
                )
            )
            inserted = row is None
            if row is None:
                self.session.add(
                    HoursPercentage(restaurant_id=self.restaurant_id, reservation_date=day, hours_percentages=payload)
                )
            else:
                row.hours_percentages = payload
            await self.session.flush()
        return inserted

    async def get_hour_configuration_raw(self, day: date) -> str | None:
        stmt = select(HourConfiguration.hour_data).where(
            HourConfiguration.restaurant_id == self.restaurant_id,
            HourConfiguration.day == day,
        )
        with _storage("get_hour_configuration"):
            return await self.session.scalar(stmt.limit(1))

    async def upsert_hour_configuration_raw(self, day: date, payload: str) -> None:
        now = _utc_now_naive()
        with _storage("save_hour_configuration"):
            row = await self.session.scalar(
                select(HourConfiguration).where(
                    HourConfiguration.restaurant_id == self.restaurant_id,
                    HourConfiguration.day == day,
                )
            )
            if row is None:
                self.session.add(
                    HourConfiguration(
                        restaurant_id=self.restaurant_id,
                        day=day,
                        hour_data=payload,
                        created_at=now,
                        updated_at=now,
                    )
                )
            else:
                row.hour_data = payload
                row.updated_at = now
            await self.session.flush()

    async def get_day_override(self, day: date) -> bool | None:
        stmt = select(RestaurantDay.is_open).where(
            RestaurantDay.restaurant_id == self.restaurant_id,
            RestaurantDay.day == day,
        )
        with _storage("get_day_override"):
            value = await self.session.scalar(stmt.limit(1))
        return None if value is None else bool(value)

    async def day_overrides(self, start: date | None = None, end: date | None = None) -> dict[date, bool]:
        stmt = select(RestaurantDay.day, RestaurantDay.is_open).where(RestaurantDay.restaurant_id == self.restaurant_id)
        if start is not None:
            stmt = stmt.where(RestaurantDay.day >= start)
        if end is not None:
            stmt = stmt.where(RestaurantDay.day <= end)
        with _storage("day_overrides"):
            rows = (await self.session.execute(stmt)).all()
        return {day: bool(is_open) for day, is_open in rows}

    async def set_day_override(self, day: date, is_open: bool) -> None:
        with _storage("set_day_override"):
            row = await self.session.scalar(
                select(RestaurantDay).where(
                    RestaurantDay.restaurant_id == self.restaurant_id,
                    RestaurantDay.day == day,
                )
            )
            if row is None:
                self.session.add(RestaurantDay(restaurant_id=self.restaurant_id, day=day, is_open=is_open))
            else:
                row.is_open = is_open
            await self.session.flush()


class SqlAlchemyModificationHistoryRepository(ModificationHistoryRepository):
    def __init__(self, session: AsyncSession, restaurant_id: int) -> None:
        self.session = session
        self.restaurant_id = restaurant_id

    async def count_for_booking(self, booking_id: int) -> int:
        stmt = select(func.count(ModificationHistory.id)).where(
            ModificationHistory.restaurant_id == self.restaurant_id,
            ModificationHistory.booking_id == booking_id,
        )
        with _storage("count_modifications"):
            return int(await self.session.scalar(stmt) or 0)

    async def append(
        self,
        booking_id: int,
        *,
        field_modified: str,
        old_value: str,
        new_value: str,
        customer_phone: str | None,
    ) -> int:
        record = ModificationHistory(
            restaurant_id=self.restaurant_id,
            booking_id=booking_id,
            customer_phone=customer_phone,
            field_modified=field_modified,
            old_value=old_value,
            new_value=new_value,
            modification_date=_utc_now_naive(),
        )
        with _storage("append_modification"):
            self.session.add(record)
            await self.session.flush()
        return record.id
