import hashlib

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status

from ..deps import get_day_aggregator
from ..domain.errors import InvalidPeriodError
from ..schemas import CalendarDayRead, CalendarRead
from ..usecases.day_availability import DayAvailabilityAggregator

router = APIRouter(prefix="/restaurants/{restaurant_id}", tags=["calendar"])


def etag_for(payload: bytes) -> str:
    return '"' + hashlib.md5(payload).hexdigest() + '"'


@router.get("/calendar", response_model=CalendarRead)
async def month_calendar(
    restaurant_id: int,
    year: int = Query(...),
    month: int = Query(...),
    if_none_match: str | None = Header(default=None),
    aggregator: DayAvailabilityAggregator = Depends(get_day_aggregator),
) -> Response:
    try:
        grid = await aggregator.month_grid(year, month)
    except InvalidPeriodError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    body = CalendarRead(data=[CalendarDayRead.from_domain(day) for day in grid]).model_dump_json().encode()
    etag = etag_for(body)
    if if_none_match is not None and if_none_match.strip() == etag:
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": etag})
    return Response(content=body, media_type="application/json", headers={"ETag": etag})
