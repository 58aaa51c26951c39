from datetime import date

from fastapi import APIRouter, Depends, Query

from ..deps import get_booking_repo, get_config_repo, get_day_aggregator
from ..domain.availability import BOOKING_HORIZON_DAYS, format_slot_list
from ..domain.repositories import BookingRepository, CapacityConfigRepository
from ..schemas import AvailableSlotRead, AvailableSlotsRead, FeasibilityCheck, FeasibilityRead, WindowStatusRead
from ..usecases import availability as availability_usecase
from ..usecases.day_availability import DayAvailabilityAggregator

router = APIRouter(prefix="/restaurants/{restaurant_id}/availability", tags=["availability"])


@router.get("/slots", response_model=AvailableSlotsRead)
async def list_available_slots(
    restaurant_id: int,
    day: date = Query(..., alias="date"),
    party_size: int = Query(..., alias="partySize", ge=1),
    booking_repo: BookingRepository = Depends(get_booking_repo),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
) -> AvailableSlotsRead:
    slots = await availability_usecase.available_slots(booking_repo, config_repo, day=day, party_size=party_size)
    return AvailableSlotsRead(
        date=day,
        party_size=party_size,
        available_hours=[AvailableSlotRead.from_domain(s) for s in slots],
        formatted=format_slot_list(slots),
    )


@router.post("/check-date", response_model=FeasibilityRead, response_model_exclude_none=True)
async def check_date(
    restaurant_id: int,
    payload: FeasibilityCheck,
    booking_repo: BookingRepository = Depends(get_booking_repo),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
) -> FeasibilityRead:
    result = await availability_usecase.check_date_feasibility(
        booking_repo,
        config_repo,
        day=payload.new_date,
        party_size=payload.party_size,
        current_time=payload.current_time,
        exclude_booking_id=payload.booking_id,
    )
    return FeasibilityRead.from_domain(result)


@router.get("/window", response_model=WindowStatusRead, response_model_exclude_none=True)
async def window_status(
    restaurant_id: int,
    days: int = Query(default=BOOKING_HORIZON_DAYS, ge=0, le=366),
    aggregator: DayAvailabilityAggregator = Depends(get_day_aggregator),
) -> WindowStatusRead:
    return WindowStatusRead.from_domain(await aggregator.window_status(days))
