from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_booking_repo, get_config_repo, get_current_user_id, get_session
from ..domain.errors import InvalidAllocationError, InvalidTimeError
from ..domain.repositories import BookingRepository, CapacityConfigRepository
from ..schemas import (
    DailyLimitRead,
    DailyLimitWrite,
    DayCapacityRead,
    HourAllocationResult,
    HourAllocationWrite,
    HourConfigurationWrite,
    HourPercentageReportRead,
    OccupancyRead,
    OpeningHoursRead,
    OpeningHoursWrite,
)
from ..usecases import availability as availability_usecase
from ..usecases import capacity_config as config_usecase
from ..usecases import slot_capacity as slot_usecase
from ..utils.audit_log import emit_audit_log

router = APIRouter(prefix="/restaurants/{restaurant_id}", tags=["hours"])


@router.get("/hours", response_model=DayCapacityRead)
async def get_hours(
    restaurant_id: int,
    day: date = Query(..., alias="date"),
    booking_repo: BookingRepository = Depends(get_booking_repo),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
) -> DayCapacityRead:
    capacity = await slot_usecase.compute(booking_repo, config_repo, day=day)
    return DayCapacityRead.from_domain(capacity)


@router.put("/hours", response_model=DayCapacityRead)
async def save_hours(
    restaurant_id: int,
    payload: HourConfigurationWrite,
    session: AsyncSession = Depends(get_session),
    booking_repo: BookingRepository = Depends(get_booking_repo),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
    user_id: int = Depends(get_current_user_id),
) -> DayCapacityRead:
    slots = {hour: entry.to_domain() for hour, entry in payload.hour_data.items()}
    try:
        capacity = await slot_usecase.save_hour_configuration(booking_repo, config_repo, day=payload.date, slots=slots)
    except InvalidTimeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    await session.commit()
    emit_audit_log(
        action="capacity.hour_configuration_saved",
        initiator="staff",
        restaurant_id=restaurant_id,
        day=payload.date,
        user_id=user_id,
        new_value=sorted(capacity.slots),
        extra={"closed_slots": sorted(h for h, s in capacity.slots.items() if s.closed)},
    )
    return DayCapacityRead.from_domain(capacity)


@router.get("/hour-percentages", response_model=HourPercentageReportRead)
async def get_hour_percentages(
    restaurant_id: int,
    day: date = Query(..., alias="date"),
    booking_repo: BookingRepository = Depends(get_booking_repo),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
) -> HourPercentageReportRead:
    report = await slot_usecase.hour_percentage_report(booking_repo, config_repo, day=day)
    return HourPercentageReportRead.from_domain(report)


@router.put("/hour-percentages", response_model=HourAllocationResult)
async def set_hour_percentages(
    restaurant_id: int,
    payload: HourAllocationWrite,
    session: AsyncSession = Depends(get_session),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
    user_id: int = Depends(get_current_user_id),
) -> HourAllocationResult:
    try:
        action = await config_usecase.set_hour_allocation(config_repo, day=payload.date, percentages=payload.percentages)
    except InvalidAllocationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except InvalidTimeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    await session.commit()
    emit_audit_log(
        action="capacity.hour_allocation_set",
        initiator="staff",
        restaurant_id=restaurant_id,
        day=payload.date,
        user_id=user_id,
        new_value=payload.percentages,
        extra={"result": action},
    )
    return HourAllocationResult(date=payload.date, action=action)


@router.put("/opening-hours", response_model=OpeningHoursRead)
async def set_opening_hours(
    restaurant_id: int,
    payload: OpeningHoursWrite,
    session: AsyncSession = Depends(get_session),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
    user_id: int = Depends(get_current_user_id),
) -> OpeningHoursRead:
    try:
        hours = await config_usecase.set_hour_set(config_repo, day=payload.date, hours=payload.hours)
    except InvalidTimeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    await session.commit()
    emit_audit_log(
        action="capacity.hour_set_saved",
        initiator="staff",
        restaurant_id=restaurant_id,
        day=payload.date,
        user_id=user_id,
        new_value=hours,
    )
    return OpeningHoursRead(date=payload.date, hours=hours)


@router.get("/daily-limit", response_model=OccupancyRead)
async def get_daily_limit(
    restaurant_id: int,
    day: date = Query(..., alias="date"),
    booking_repo: BookingRepository = Depends(get_booking_repo),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
) -> OccupancyRead:
    occ = await availability_usecase.occupancy(booking_repo, config_repo, day=day)
    return OccupancyRead.from_domain(occ)


@router.put("/daily-limit", response_model=DailyLimitRead)
async def set_daily_limit(
    restaurant_id: int,
    payload: DailyLimitWrite,
    session: AsyncSession = Depends(get_session),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
    user_id: int = Depends(get_current_user_id),
) -> DailyLimitRead:
    limit = await config_usecase.set_daily_limit(
        config_repo,
        day=payload.date,
        limit=payload.daily_limit,
        path=payload.path,
    )
    await session.commit()
    emit_audit_log(
        action="capacity.daily_limit_set",
        initiator="staff",
        restaurant_id=restaurant_id,
        day=payload.date,
        user_id=user_id,
        new_value=limit,
        extra={"path": payload.path},
    )
    return DailyLimitRead(date=payload.date, daily_limit=limit, path=payload.path)
