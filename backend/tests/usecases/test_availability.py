import json
from datetime import date

import pytest
from booking_engine.domain.availability import FeasibilityReason
from booking_engine.domain.capacity import CapacityPath
from booking_engine.domain.errors import StorageUnavailableError
from booking_engine.usecases import availability as uc

TODAY = date(2025, 3, 1)  # Saturday
TUESDAY = date(2025, 3, 4)
THURSDAY = date(2025, 3, 6)


async def _check(booking_repo, config_repo, day: date, **kwargs):
    return await uc.check_date_feasibility(booking_repo, config_repo, day=day, today=TODAY, **kwargs)


@pytest.mark.asyncio
async def test_tuesday_without_override_is_closed(booking_repo, config_repo) -> None:
    config_repo.limits[(CapacityPath.BOOKING, TUESDAY)] = 500
    config_repo.hour_configs[TUESDAY] = json.dumps({"13:30": {"percentage": 100}})
    result = await _check(booking_repo, config_repo, TUESDAY, party_size=2)
    assert result.available is False
    assert result.reason == FeasibilityReason.CLOSED_DAY
    assert "04/03/2025" in result.message


@pytest.mark.asyncio
@pytest.mark.parametrize("year", [2025, 2026])
async def test_christmas_is_always_blocked(booking_repo, config_repo, year: int) -> None:
    christmas = date(year, 12, 25)
    config_repo.overrides[christmas] = True
    result = await uc.check_date_feasibility(
        booking_repo, config_repo, day=christmas, party_size=2, today=date(year, 12, 1)
    )
    assert result.available is False
    assert result.reason == FeasibilityReason.SPECIAL_HOLIDAY
    assert config_repo.calls == []


@pytest.mark.asyncio
async def test_beyond_horizon(booking_repo, config_repo) -> None:
    result = await _check(booking_repo, config_repo, date(2025, 4, 10), party_size=2)
    assert result.reason == FeasibilityReason.TOO_FAR_FUTURE
    assert result.days_until == 40


@pytest.mark.asyncio
async def test_calendar_only_check_reports_date_open(booking_repo, config_repo) -> None:
    result = await _check(booking_repo, config_repo, THURSDAY)
    assert result.available is True
    assert result.reason == FeasibilityReason.DATE_OPEN
    assert result.is_explicitly_opened is False
    assert booking_repo.calls == []

    config_repo.overrides[TUESDAY] = True
    opened = await _check(booking_repo, config_repo, TUESDAY)
    assert opened.reason == FeasibilityReason.DATE_OPEN
    assert opened.is_explicitly_opened is True


@pytest.mark.asyncio
async def test_no_slot_fits_party(booking_repo, config_repo) -> None:
    result = await _check(booking_repo, config_repo, THURSDAY, party_size=13)
    assert result.available is False
    assert result.reason == FeasibilityReason.NO_HOURS_AVAILABLE
    assert result.available_slots == []


@pytest.mark.asyncio
async def test_requested_time_available(booking_repo, config_repo) -> None:
    result = await _check(booking_repo, config_repo, THURSDAY, party_size=2, current_time="14:00:00")
    assert result.available is True
    assert result.reason is None
    assert result.current_time_available is True
    assert "14:00" in result.message


@pytest.mark.asyncio
async def test_requested_time_not_available_lists_alternatives(booking_repo, config_repo) -> None:
    booking_repo.add(1, THURSDAY, "14:00", 11)
    result = await _check(booking_repo, config_repo, THURSDAY, party_size=2, current_time="14:00")
    assert result.available is True
    assert result.reason == FeasibilityReason.CURRENT_TIME_NOT_AVAILABLE
    assert result.current_time_available is False
    assert [s.time for s in result.available_slots] == ["13:30", "14:30", "15:00"]
    assert "13:30, 14:30 o 15:00" in result.message


@pytest.mark.asyncio
async def test_without_requested_time_reports_alternatives(booking_repo, config_repo) -> None:
    result = await _check(booking_repo, config_repo, THURSDAY, party_size=2)
    assert result.reason == FeasibilityReason.CURRENT_TIME_NOT_AVAILABLE
    assert "13:30, 14:00, 14:30 o 15:00" in result.message


@pytest.mark.asyncio
async def test_modification_cross_check_uses_modification_ceiling(booking_repo, config_repo) -> None:
    config_repo.limits[(CapacityPath.MODIFICATION, THURSDAY)] = 10
    booking_repo.add(1, THURSDAY, "13:30", 9)
    booking_repo.add(5, THURSDAY, "15:00", 8)

    result = await _check(booking_repo, config_repo, THURSDAY, party_size=2, exclude_booking_id=5)

    assert result.available is False
    assert result.reason == FeasibilityReason.CAPACITY_EXCEEDED_NEW_DATE
    assert result.daily_limit == 10
    assert result.current_total == 9


@pytest.mark.asyncio
async def test_modification_cross_check_excludes_own_booking(booking_repo, config_repo) -> None:
    config_repo.limits[(CapacityPath.MODIFICATION, THURSDAY)] = 10
    booking_repo.add(5, THURSDAY, "15:00", 8)
    result = await _check(booking_repo, config_repo, THURSDAY, party_size=2, exclude_booking_id=5, current_time="13:30")
    assert result.available is True
    assert result.current_time_available is True


@pytest.mark.asyncio
async def test_storage_failure_propagates(booking_repo, failing_config_repo) -> None:
    with pytest.raises(StorageUnavailableError):
        await _check(booking_repo, failing_config_repo, THURSDAY, party_size=2)


@pytest.mark.asyncio
async def test_available_slots_sorted_and_filtered(booking_repo, config_repo) -> None:
    booking_repo.add(1, THURSDAY, "15:00", 12)
    slots = await uc.available_slots(booking_repo, config_repo, day=THURSDAY, party_size=4)
    assert [s.time for s in slots] == ["13:30", "14:00", "14:30"]
    assert slots[0].remaining_capacity == 12


@pytest.mark.asyncio
async def test_day_status_and_override_lists(config_repo) -> None:
    status = await uc.day_status(config_repo, day=TUESDAY)
    assert status.weekday == "Martes"
    assert status.is_open is False
    assert status.is_default_closed_day is True

    await uc.set_day_open(config_repo, day=TUESDAY, is_open=True)
    await uc.set_day_open(config_repo, day=THURSDAY, is_open=False)
    reopened = await uc.day_status(config_repo, day=TUESDAY)
    assert reopened.is_open is True

    lists = await uc.closed_and_opened_days(config_repo)
    assert lists.closed_days == [THURSDAY]
    assert lists.opened_days == [TUESDAY]


@pytest.mark.asyncio
async def test_occupancy_is_unclamped(booking_repo, config_repo) -> None:
    config_repo.limits[(CapacityPath.BOOKING, THURSDAY)] = 10
    booking_repo.add(1, THURSDAY, "13:30", 12)
    occ = await uc.occupancy(booking_repo, config_repo, day=THURSDAY)
    assert occ.daily_limit == 10
    assert occ.total_people == 12
    assert occ.free_seats == -2


@pytest.mark.asyncio
@pytest.mark.parametrize("current_time", ["9:30", "lunch"])
async def test_unparseable_requested_time_is_treated_as_no_match(booking_repo, config_repo, current_time: str) -> None:
    result = await _check(booking_repo, config_repo, THURSDAY, party_size=2, current_time=current_time)
    assert result.available is True
    assert result.reason == FeasibilityReason.CURRENT_TIME_NOT_AVAILABLE
    assert result.current_time_available is False
    assert [s.time for s in result.available_slots] == ["13:30", "14:00", "14:30", "15:00"]
