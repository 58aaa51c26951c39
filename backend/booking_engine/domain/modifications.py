from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import StrEnum

from ..models import BookingStatus

MAX_MODIFICATIONS = 3
MIN_HOURS_BEFORE_RESERVATION = 24
MAX_MODIFIABLE_PARTY_SIZE = 8


class EligibilityReason(StrEnum):
    CANCELLED = "cancelled"
    PAST_DATE = "past_date"
    SAME_DAY = "same_day"
    NEXT_DAY = "next_day"
    INSUFFICIENT_TIME = "insufficient_time"
    MAX_MODIFICATIONS = "max_modifications"


ELIGIBILITY_MESSAGES: dict[EligibilityReason, str] = {
    EligibilityReason.CANCELLED: "No se puede modificar una reserva cancelada",
    EligibilityReason.PAST_DATE: "No se pueden modificar reservas que ya han pasado",
    EligibilityReason.SAME_DAY: (
        "No se pueden modificar reservas para el mismo día. Por favor, contacta directamente con el restaurante."
    ),
    EligibilityReason.NEXT_DAY: (
        "No se pueden modificar reservas para mañana. Por favor, contacta directamente con el restaurante."
    ),
    EligibilityReason.INSUFFICIENT_TIME: (
        "Se requiere al menos 24 horas de antelación para modificar una reserva. "
        "Por favor, contacta directamente con el restaurante."
    ),
    EligibilityReason.MAX_MODIFICATIONS: (
        "Has alcanzado el límite máximo de 3 modificaciones para esta reserva. "
        "Para más cambios, contacta directamente con el restaurante."
    ),
}


@dataclass(frozen=True)
class BookingSnapshot:
    booking_id: int
    reservation_date: date
    reservation_time: time
    party_size: int
    status: BookingStatus


@dataclass(frozen=True)
class EligibilityResult:
    modifiable: bool
    reason: EligibilityReason | None
    message: str
    modifications_remaining: int | None = None
    hours_until_reservation: int | None = None


@dataclass(frozen=True)
class PartySizeDecision:
    available: bool
    message: str
    reason: str | None = None
    daily_limit: int | None = None
    current_total: int | None = None
    new_total: int | None = None
    spots_remaining: int | None = None
    people_difference: int | None = None


def _refuse(reason: EligibilityReason) -> EligibilityResult:
    return EligibilityResult(modifiable=False, reason=reason, message=ELIGIBILITY_MESSAGES[reason])


def evaluate_modification(booking: BookingSnapshot, *, modification_count: int, now: datetime) -> EligibilityResult:
    """
    Decide whether a reservation may still be changed by the customer.
    Rules are checked in a fixed order and the first match wins. Pure: callers
    supply `now` and the audit count.
    """
    if booking.status == BookingStatus.CANCELLED:
        return _refuse(EligibilityReason.CANCELLED)

    starts_at = datetime.combine(booking.reservation_date, booking.reservation_time)
    if starts_at < now:
        return _refuse(EligibilityReason.PAST_DATE)

    today = now.date()
    if booking.reservation_date == today:
        return _refuse(EligibilityReason.SAME_DAY)
    if booking.reservation_date == today + timedelta(days=1):
        return _refuse(EligibilityReason.NEXT_DAY)

    hours_until = int((starts_at - now).total_seconds() // 3600)
    if hours_until < MIN_HOURS_BEFORE_RESERVATION:
        return _refuse(EligibilityReason.INSUFFICIENT_TIME)

    if modification_count >= MAX_MODIFICATIONS:
        return EligibilityResult(
            modifiable=False,
            reason=EligibilityReason.MAX_MODIFICATIONS,
            message=ELIGIBILITY_MESSAGES[EligibilityReason.MAX_MODIFICATIONS],
            modifications_remaining=0,
            hours_until_reservation=hours_until,
        )

    return EligibilityResult(
        modifiable=True,
        reason=None,
        message="Reserva puede ser modificada",
        modifications_remaining=MAX_MODIFICATIONS - modification_count,
        hours_until_reservation=hours_until,
    )


def exceeds_party_size_cap(new_party_size: int) -> bool:
    return new_party_size > MAX_MODIFIABLE_PARTY_SIZE


def decide_party_size_change(
    *,
    current_party_size: int,
    new_party_size: int,
    current_total: int,
    daily_limit: int,
) -> PartySizeDecision:
    """`current_total` already excludes the booking being changed and cancelled bookings."""
    new_total = current_total + new_party_size
    difference = new_party_size - current_party_size
    if new_total <= daily_limit:
        return PartySizeDecision(
            available=True,
            message="Hay disponibilidad para la modificación",
            daily_limit=daily_limit,
            current_total=current_total,
            new_total=new_total,
            spots_remaining=daily_limit - new_total,
            people_difference=difference,
        )
    return PartySizeDecision(
        available=False,
        reason="capacity_exceeded",
        message=(
            f"Lo siento, no hay disponibilidad para aumentar a {new_party_size} personas. "
            f"El límite diario es {daily_limit} y ya hay {current_total} personas reservadas."
        ),
        daily_limit=daily_limit,
        current_total=current_total,
        new_total=new_total,
        spots_remaining=daily_limit - current_total,
        people_difference=difference,
    )


def party_size_cap_decision() -> PartySizeDecision:
    return PartySizeDecision(
        available=False,
        reason="max_party_size",
        message=(
            f"No se pueden modificar reservas para más de {MAX_MODIFIABLE_PARTY_SIZE} comensales. "
            f"Máximo permitido: {MAX_MODIFIABLE_PARTY_SIZE} personas."
        ),
    )
