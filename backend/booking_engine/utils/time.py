from datetime import date, datetime, time
from functools import lru_cache
from zoneinfo import ZoneInfo

from ..config import get_settings
from ..domain.errors import InvalidTimeError


@lru_cache
def restaurant_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().restaurant_timezone)


def local_now() -> datetime:
    """Naive wall-clock time at the restaurant, matching how bookings are stored."""
    return datetime.now(restaurant_tz()).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def to_hhmm(value: str | time) -> str:
    """Normalize "HH:MM" / "HH:MM:SS" strings or time objects to "HH:MM"."""
    if isinstance(value, time):
        return value.strftime("%H:%M")
    text = value.strip()
    if len(text) < 5:
        raise InvalidTimeError(f"invalid time: {value!r}")
    try:
        parsed = datetime.strptime(text[:5], "%H:%M")
    except ValueError as exc:
        raise InvalidTimeError(f"invalid time: {value!r}") from exc
    return parsed.strftime("%H:%M")
