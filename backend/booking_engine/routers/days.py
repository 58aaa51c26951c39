from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_config_repo, get_current_user_id, get_session
from ..domain.repositories import CapacityConfigRepository
from ..schemas import DayOverridesRead, DayStatusRead
from ..usecases import availability as availability_usecase
from ..utils.audit_log import emit_audit_log

router = APIRouter(prefix="/restaurants/{restaurant_id}/days", tags=["days"])


@router.get("/closed", response_model=DayOverridesRead)
async def list_closed_and_opened_days(
    restaurant_id: int,
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
) -> DayOverridesRead:
    overrides = await availability_usecase.closed_and_opened_days(config_repo)
    return DayOverridesRead.from_domain(overrides)


@router.get("/{day}", response_model=DayStatusRead)
async def get_day_status(
    restaurant_id: int,
    day: date,
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
) -> DayStatusRead:
    return DayStatusRead.from_domain(await availability_usecase.day_status(config_repo, day=day))


async def _set_open(
    restaurant_id: int,
    day: date,
    is_open: bool,
    *,
    session: AsyncSession,
    config_repo: CapacityConfigRepository,
    user_id: int,
) -> DayStatusRead:
    result = await availability_usecase.set_day_open(config_repo, day=day, is_open=is_open)
    await session.commit()
    emit_audit_log(
        action="day.opened" if is_open else "day.closed",
        initiator="staff",
        restaurant_id=restaurant_id,
        day=day,
        user_id=user_id,
        new_value=is_open,
    )
    return DayStatusRead.from_domain(result)


@router.put("/{day}/open", response_model=DayStatusRead)
async def open_day(
    restaurant_id: int,
    day: date,
    session: AsyncSession = Depends(get_session),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
    user_id: int = Depends(get_current_user_id),
) -> DayStatusRead:
    return await _set_open(restaurant_id, day, True, session=session, config_repo=config_repo, user_id=user_id)


@router.put("/{day}/close", response_model=DayStatusRead)
async def close_day(
    restaurant_id: int,
    day: date,
    session: AsyncSession = Depends(get_session),
    config_repo: CapacityConfigRepository = Depends(get_config_repo),
    user_id: int = Depends(get_current_user_id),
) -> DayStatusRead:
    return await _set_open(restaurant_id, day, False, session=session, config_repo=config_repo, user_id=user_id)
