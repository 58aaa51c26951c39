from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Mapping, Sequence

from .capacity import SlotCapacity

BOOKING_HORIZON_DAYS = 35

# (month, day) pairs closed to booking and modification every year
SPECIAL_HOLIDAYS: frozenset[tuple[int, int]] = frozenset(
    {(12, 24), (12, 25), (12, 31), (1, 1), (1, 5), (1, 6)}
)

# Monday, Tuesday, Wednesday
DEFAULT_CLOSED_WEEKDAYS: frozenset[int] = frozenset({0, 1, 2})

WEEKDAY_NAMES = ("Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado", "Domingo")


class FeasibilityReason(StrEnum):
    SPECIAL_HOLIDAY = "special_holiday"
    CLOSED_DAY = "closed_day"
    TOO_FAR_FUTURE = "too_far_future"
    DATE_OPEN = "date_open"
    NO_HOURS_AVAILABLE = "no_hours_available"
    CURRENT_TIME_NOT_AVAILABLE = "current_time_not_available"
    CAPACITY_EXCEEDED_NEW_DATE = "capacity_exceeded_new_date"


@dataclass(frozen=True)
class AvailableSlot:
    time: str
    remaining_capacity: int
    total_capacity: int
    booked_count: int
    status: str


@dataclass
class FeasibilityResult:
    available: bool
    reason: FeasibilityReason | None
    message: str
    days_until: int | None = None
    current_time_available: bool | None = None
    available_slots: list[AvailableSlot] = field(default_factory=list)
    is_explicitly_opened: bool | None = None
    daily_limit: int | None = None
    current_total: int | None = None


def is_special_holiday(day: date) -> bool:
    return (day.month, day.day) in SPECIAL_HOLIDAYS


def is_default_closed_weekday(day: date) -> bool:
    return day.weekday() in DEFAULT_CLOSED_WEEKDAYS


def is_date_closed(day: date, open_override: bool | None) -> bool:
    """An explicit override always wins; otherwise the weekday rule applies."""
    if open_override is not None:
        return not open_override
    return is_default_closed_weekday(day)


def days_until(day: date, *, today: date) -> int:
    return abs((day - today).days)


def is_beyond_horizon(day: date, *, today: date, horizon_days: int = BOOKING_HORIZON_DAYS) -> bool:
    return (day - today).days > horizon_days


def filter_available_slots(capacities: Mapping[str, SlotCapacity], *, party_size: int) -> list[AvailableSlot]:
    out: list[AvailableSlot] = []
    for hour in sorted(capacities):
        slot = capacities[hour]
        if slot.closed:
            continue
        if slot.remaining_capacity >= party_size:
            out.append(
                AvailableSlot(
                    time=hour,
                    remaining_capacity=slot.remaining_capacity,
                    total_capacity=slot.total_capacity,
                    booked_count=slot.booked_count,
                    status=slot.status.value,
                )
            )
    return out


def format_slot_list(slots: Sequence[AvailableSlot | str]) -> str:
    """Join slot times as a Spanish disjunction: "13:30, 14:00 o 14:30"."""
    times = [s if isinstance(s, str) else s.time for s in slots]
    if not times:
        return ""
    if len(times) == 1:
        return times[0]
    return ", ".join(times[:-1]) + " o " + times[-1]


def format_day(day: date) -> str:
    return day.strftime("%d/%m/%Y")


def holiday_message() -> str:
    return (
        "Uy, esos días festivos (24, 25 y 31 de diciembre, 1, 5 y 6 de enero) tienen un menú especial "
        "y no se pueden modificar reservas. ¿Prefieres otro día? 😊"
    )


def closed_day_message(day: date) -> str:
    return f"Ese día ({format_day(day)}) estamos cerrados. ¿Qué tal otro día? Abrimos jueves, viernes, sábado y domingo 😊"


def too_far_message() -> str:
    return (
        f"Uy, esa fecha está muy lejos todavía (más de {BOOKING_HORIZON_DAYS} días). Solo aceptamos reservas "
        f"con un máximo de {BOOKING_HORIZON_DAYS} días de antelación. ¿Qué tal una fecha más cercana? 😊"
    )


def date_open_message(day: date) -> str:
    return f"El día {format_day(day)} está disponible para reservas 😊"


def no_hours_message(day: date, party_size: int) -> str:
    return (
        f"Ay, lo siento 😔 Ese día ({format_day(day)}) no tengo ninguna mesa libre para "
        f"{party_size} personas. ¿Te vendría bien otro día?"
    )


def capacity_exceeded_message(day: date, party_size: int) -> str:
    return (
        f"Ay, qué pena 😔 Ese día ({format_day(day)}) ya estamos completos para grupos de "
        f"{party_size} personas. ¿Te viene bien otro día?"
    )


def current_time_available_message(day: date, party_size: int, current_time: str) -> str:
    return f"¡Perfecto! 😊 Hay disponibilidad para {party_size} personas el {format_day(day)} a las {current_time}"


def alternatives_message(day: date, party_size: int, current_time: str | None, slots: Sequence[AvailableSlot]) -> str:
    listed = format_slot_list(slots)
    if current_time:
        return f"Esa hora ({current_time}) no está libre ese día 😔 Pero tengo disponible: {listed}. ¿Cuál te viene mejor?"
    return f"Para {party_size} personas el {format_day(day)}, tengo disponible: {listed}. ¿Qué hora prefieres?"
