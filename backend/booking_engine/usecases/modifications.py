from datetime import date, datetime

from ..domain.capacity import CapacityPath
from ..domain.errors import BookingNotFoundError
from ..domain.modifications import (
    EligibilityResult,
    PartySizeDecision,
    decide_party_size_change,
    evaluate_modification,
    exceeds_party_size_cap,
    party_size_cap_decision,
)
from ..domain.repositories import BookingRepository, CapacityConfigRepository, ModificationHistoryRepository
from ..utils.time import local_now
from .capacity_config import resolve_daily_limit


async def validate_booking_modifiable(
    booking_repo: BookingRepository,
    history_repo: ModificationHistoryRepository,
    *,
    booking_id: int,
    now: datetime | None = None,
) -> EligibilityResult:
    booking = await booking_repo.get_snapshot(booking_id)
    if booking is None:
        raise BookingNotFoundError(f"booking {booking_id} not found")
    count = await history_repo.count_for_booking(booking_id)
    return evaluate_modification(booking, modification_count=count, now=now or local_now())


async def check_party_size_change(
    booking_repo: BookingRepository,
    config_repo: CapacityConfigRepository,
    *,
    day: date,
    current_party_size: int,
    new_party_size: int,
    exclude_booking_id: int | None,
) -> PartySizeDecision:
    if exceeds_party_size_cap(new_party_size):
        return party_size_cap_decision()
    limit = await resolve_daily_limit(config_repo, day=day, path=CapacityPath.MODIFICATION)
    current_total = await booking_repo.sum_party_size(day, exclude_booking_id=exclude_booking_id)
    return decide_party_size_change(
        current_party_size=current_party_size,
        new_party_size=new_party_size,
        current_total=current_total,
        daily_limit=limit,
    )


async def record_modification(
    history_repo: ModificationHistoryRepository,
    *,
    booking_id: int,
    field_modified: str,
    old_value: str,
    new_value: str,
    customer_phone: str | None = None,
) -> int:
    """Append one history row; rows are never updated or removed."""
    return await history_repo.append(
        booking_id,
        field_modified=field_modified,
        old_value=old_value,
        new_value=new_value,
        customer_phone=customer_phone,
    )
