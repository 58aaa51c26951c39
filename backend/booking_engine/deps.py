from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import ProgrammingError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import session_scope
from .infrastructure.repositories import (
    SqlAlchemyBookingRepository,
    SqlAlchemyCapacityConfigRepository,
    SqlAlchemyModificationHistoryRepository,
)
from .models import User
from .usecases.day_availability import DayAvailabilityAggregator
from .utils.auth import bearer_token, decode_staff_token
from .utils.cache import TTLCache


async def get_session() -> AsyncIterator[AsyncSession]:
    async for session in session_scope():
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> int:
    """Staff id from a bearer token; the user must still exist."""
    token = bearer_token(authorization)
    if token is None:
        raise _unauthorized("bearer token required")

    settings = get_settings()
    try:
        user_id = decode_staff_token(token, secret=settings.auth_secret, algorithms=[settings.auth_algorithm])
    except ValueError as exc:
        raise _unauthorized("invalid token") from exc

    try:
        found = await session.scalar(select(User.id).where(User.id == user_id))
    except ProgrammingError as exc:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="users table is not available",
        ) from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "storage_unavailable", "operation": "get_current_user"},
        ) from exc
    if found is None:
        raise _unauthorized("user not found")
    return user_id


async def get_booking_repo(
    restaurant_id: int,
    session: AsyncSession = Depends(get_session),
) -> SqlAlchemyBookingRepository:
    return SqlAlchemyBookingRepository(session, restaurant_id)


async def get_config_repo(
    restaurant_id: int,
    session: AsyncSession = Depends(get_session),
) -> SqlAlchemyCapacityConfigRepository:
    return SqlAlchemyCapacityConfigRepository(session, restaurant_id)


async def get_history_repo(
    restaurant_id: int,
    session: AsyncSession = Depends(get_session),
) -> SqlAlchemyModificationHistoryRepository:
    return SqlAlchemyModificationHistoryRepository(session, restaurant_id)


@lru_cache
def get_calendar_cache() -> TTLCache:
    """One month-grid cache shared by every request in the process."""
    return TTLCache(get_settings().calendar_cache_ttl_seconds)


async def get_day_aggregator(
    restaurant_id: int,
    booking_repo: SqlAlchemyBookingRepository = Depends(get_booking_repo),
    config_repo: SqlAlchemyCapacityConfigRepository = Depends(get_config_repo),
    cache: TTLCache = Depends(get_calendar_cache),
) -> DayAvailabilityAggregator:
    return DayAvailabilityAggregator(booking_repo, config_repo, restaurant_id=restaurant_id, cache=cache)
