from __future__ import annotations

from datetime import date, datetime, time
from enum import StrEnum
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Enum, Index, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql.sqltypes import BigInteger, Date, DateTime, Integer, String, Time


class Base(DeclarativeBase):
    pass


class BookingStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class SlotStatus(StrEnum):
    AVAILABLE = "available"
    LIMITED = "limited"
    FULL = "full"
    CLOSED = "closed"


class User(Base):
    """Back-office staff account allowed to change capacity configuration."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("party_size >= 1", name="chk_bookings_party_size"),
        Index("idx_bookings_restaurant_date", "restaurant_id", "reservation_date"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    reservation_date: Mapped[date] = mapped_column(Date, nullable=False)
    reservation_time: Mapped[time] = mapped_column(Time, nullable=False)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    contact_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(
            BookingStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=BookingStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class ReservationManagerLimit(Base):
    """Daily headcount ceiling used by the booking and availability flows."""

    __tablename__ = "reservation_manager"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1, index=True)
    reservation_date: Mapped[date] = mapped_column("reservationDate", Date, nullable=False)
    daily_limit: Mapped[int] = mapped_column("dailyLimit", Integer, nullable=False)


class ModificationDailyLimit(Base):
    """Daily headcount ceiling used when cross-checking reservation modifications."""

    __tablename__ = "daily_limits"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1, index=True)
    day: Mapped[date] = mapped_column("date", Date, nullable=False)
    daily_limit: Mapped[int] = mapped_column(Integer, nullable=False)


class OpeningHours(Base):
    __tablename__ = "openinghours"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1, index=True)
    date_selected: Mapped[date] = mapped_column("dateselected", Date, nullable=False)
    # JSON array of "HH:MM" strings
    hours_array: Mapped[Optional[str]] = mapped_column("hoursarray", Text, nullable=True)


class HoursPercentage(Base):
    __tablename__ = "hours_percentage"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1, index=True)
    reservation_date: Mapped[date] = mapped_column("reservationDate", Date, nullable=False)
    # JSON object {"HH:MM": percentage}
    hours_percentages: Mapped[Optional[str]] = mapped_column("hoursPercentages", Text, nullable=True)


class HourConfiguration(Base):
    __tablename__ = "hour_configuration"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1, index=True)
    day: Mapped[date] = mapped_column("date", Date, nullable=False)
    # JSON object {"HH:MM": {"percentage": float, "isClosed": bool, ...}}
    hour_data: Mapped[Optional[str]] = mapped_column("hourData", Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class RestaurantDay(Base):
    __tablename__ = "restaurant_days"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1, index=True)
    day: Mapped[date] = mapped_column("date", Date, nullable=False)
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False)


class ModificationHistory(Base):
    __tablename__ = "modification_history"
    __table_args__ = (
        Index("idx_restaurant_booking", "restaurant_id", "booking_id"),
        Index("idx_modification_date", "modification_date"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    booking_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    field_modified: Mapped[str] = mapped_column(String(50), nullable=False)
    old_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    new_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    modification_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
