import json
from datetime import date

import pytest
from booking_engine.domain.capacity import CapacityPath, ClosedSlot, OpenSlot
from booking_engine.domain.errors import InvalidAllocationError, InvalidTimeError, StorageUnavailableError
from booking_engine.models import BookingStatus, SlotStatus
from booking_engine.usecases import capacity_config as config_uc
from booking_engine.usecases import slot_capacity as uc
from booking_engine.usecases.capacity_config import AllocationSource

THURSDAY = date(2025, 3, 6)


@pytest.mark.asyncio
async def test_default_path_uses_four_slot_equal_split(booking_repo, config_repo) -> None:
    result = await uc.compute(booking_repo, config_repo, day=THURSDAY)
    assert result.is_default_data is True
    assert result.daily_limit == 45
    assert list(result.slots) == ["13:30", "14:00", "14:30", "15:00"]
    assert all(slot.total_capacity == 12 for slot in result.slots.values())
    assert all(slot.status == SlotStatus.AVAILABLE for slot in result.slots.values())


@pytest.mark.asyncio
async def test_five_slot_set_gives_nine_seats_and_full_slot(booking_repo, config_repo) -> None:
    config_repo.hour_sets[THURSDAY] = json.dumps(["13:30", "14:00", "14:30", "15:00", "15:30"])
    booking_repo.add(1, THURSDAY, "14:00:00", 9)

    result = await uc.compute(booking_repo, config_repo, day=THURSDAY)

    assert all(slot.total_capacity == 9 for slot in result.slots.values())
    slot = result.slots["14:00"]
    assert slot.completion_percentage == 100.0
    assert slot.status == SlotStatus.FULL
    assert slot.remaining_capacity == 0
    assert result.total_people == 9


@pytest.mark.asyncio
async def test_cancelled_bookings_do_not_count(booking_repo, config_repo) -> None:
    booking_repo.add(1, THURSDAY, "13:30", 6)
    booking_repo.add(2, THURSDAY, "13:30", 6, BookingStatus.CANCELLED)
    result = await uc.compute(booking_repo, config_repo, day=THURSDAY)
    assert result.slots["13:30"].booked_count == 6
    assert result.total_people == 6


@pytest.mark.asyncio
async def test_persisted_configuration_wins_and_keeps_closed_slots(booking_repo, config_repo) -> None:
    config_repo.limits[(CapacityPath.BOOKING, THURSDAY)] = 60
    config_repo.hour_configs[THURSDAY] = json.dumps(
        {
            "13:30": {"percentage": 50, "isClosed": False},
            "14:00": {"percentage": 30, "status": "closed"},
            "14:30": {"percentage": 20},
        }
    )
    booking_repo.add(1, THURSDAY, "13:30", 28)

    result = await uc.compute(booking_repo, config_repo, day=THURSDAY)

    assert result.is_default_data is False
    assert result.daily_limit == 60
    assert result.slots["13:30"].total_capacity == 30
    assert result.slots["13:30"].completion_percentage == 93.3
    assert result.slots["13:30"].status == SlotStatus.FULL
    assert result.slots["14:00"].status == SlotStatus.CLOSED
    assert result.slots["14:00"].total_capacity == 18
    assert result.slots["14:30"].status == SlotStatus.AVAILABLE


@pytest.mark.asyncio
async def test_malformed_configuration_falls_back_to_defaults(booking_repo, config_repo) -> None:
    config_repo.hour_configs[THURSDAY] = "{broken"
    result = await uc.compute(booking_repo, config_repo, day=THURSDAY)
    assert result.is_default_data is True
    assert len(result.slots) == 4


@pytest.mark.asyncio
async def test_compute_is_deterministic(booking_repo, config_repo) -> None:
    booking_repo.add(1, THURSDAY, "14:30", 5)
    first = await uc.compute(booking_repo, config_repo, day=THURSDAY)
    second = await uc.compute(booking_repo, config_repo, day=THURSDAY)
    assert first == second


@pytest.mark.asyncio
async def test_storage_failure_is_not_reported_as_free_capacity(failing_booking_repo, config_repo) -> None:
    with pytest.raises(StorageUnavailableError) as excinfo:
        await uc.compute(failing_booking_repo, config_repo, day=THURSDAY)
    assert excinfo.value.operation == "booked_by_hour"


@pytest.mark.asyncio
async def test_save_hour_configuration_persists_only_inputs(booking_repo, config_repo) -> None:
    booking_repo.add(1, THURSDAY, "13:30", 3)
    result = await uc.save_hour_configuration(
        booking_repo,
        config_repo,
        day=THURSDAY,
        slots={"13:30:00": OpenSlot(60.0), "14:00": ClosedSlot(40.0)},
    )
    stored = json.loads(config_repo.hour_configs[THURSDAY])
    assert stored == {
        "13:30": {"percentage": 60.0, "isClosed": False},
        "14:00": {"percentage": 40.0, "isClosed": True},
    }
    assert result.is_default_data is False
    assert result.slots["13:30"].booked_count == 3
    assert result.slots["14:00"].closed


@pytest.mark.asyncio
async def test_hour_percentage_report_uses_five_slot_default(booking_repo, config_repo) -> None:
    booking_repo.add(1, THURSDAY, "14:00", 9)
    booking_repo.add(2, THURSDAY, "21:00", 4)

    report = await uc.hour_percentage_report(booking_repo, config_repo, day=THURSDAY)

    assert report.hours == ["13:30", "14:00", "14:30", "15:00", "15:30"]
    assert report.source == AllocationSource.EQUAL_SPLIT
    assert report.percentages["13:30"] == pytest.approx(20.0)
    assert report.slots["14:00"].total_capacity == 9
    assert report.slots["14:00"].status == SlotStatus.FULL
    assert "21:00" not in report.slots
    assert report.total_people == 13


@pytest.mark.asyncio
async def test_hour_percentage_report_prefers_configuration_then_allocation(booking_repo, config_repo) -> None:
    config_repo.allocations[THURSDAY] = json.dumps({"13:30": 40, "14:00": 60})
    report = await uc.hour_percentage_report(booking_repo, config_repo, day=THURSDAY)
    assert report.source == AllocationSource.HOUR_ALLOCATION
    assert report.percentages["14:00"] == 60.0
    assert report.percentages["15:30"] == 0.0

    config_repo.hour_configs[THURSDAY] = json.dumps({"13:30": {"percentage": 100}})
    report = await uc.hour_percentage_report(booking_repo, config_repo, day=THURSDAY)
    assert report.source == AllocationSource.HOUR_CONFIGURATION
    assert report.percentages["13:30"] == 100.0


@pytest.mark.asyncio
async def test_set_hour_allocation_validates_and_reports_action(config_repo) -> None:
    action = await config_uc.set_hour_allocation(config_repo, day=THURSDAY, percentages={"13:30": 50, "14:00": 50})
    assert action == "inserted"
    action = await config_uc.set_hour_allocation(config_repo, day=THURSDAY, percentages={"13:30": 49.95, "14:00": 50})
    assert action == "updated"
    with pytest.raises(InvalidAllocationError):
        await config_uc.set_hour_allocation(config_repo, day=THURSDAY, percentages={"13:30": 50, "14:00": 49})
    assert json.loads(config_repo.allocations[THURSDAY]) == {"13:30": 49.95, "14:00": 50.0}


@pytest.mark.asyncio
async def test_set_hour_set_normalizes(config_repo) -> None:
    hours = await config_uc.set_hour_set(config_repo, day=THURSDAY, hours=["14:00:00", "13:30", "14:00"])
    assert hours == ["13:30", "14:00"]
    assert await config_uc.resolve_hour_set(config_repo, day=THURSDAY, path=config_uc.HourSetPath.SLOT_CONFIG) == hours


@pytest.mark.asyncio
async def test_set_daily_limit_targets_selected_store(config_repo) -> None:
    await config_uc.set_daily_limit(config_repo, day=THURSDAY, limit=20, path=CapacityPath.MODIFICATION)
    assert await config_uc.resolve_daily_limit(config_repo, day=THURSDAY, path=CapacityPath.MODIFICATION) == 20
    assert await config_uc.resolve_daily_limit(config_repo, day=THURSDAY, path=CapacityPath.BOOKING) == 45
    with pytest.raises(ValueError):
        await config_uc.set_daily_limit(config_repo, day=THURSDAY, limit=-1, path=CapacityPath.BOOKING)


@pytest.mark.asyncio
async def test_set_hour_allocation_rejects_colliding_hours(config_repo) -> None:
    with pytest.raises(InvalidTimeError):
        await config_uc.set_hour_allocation(
            config_repo,
            day=THURSDAY,
            percentages={"13:30": 50, "13:30:00": 25, "14:00": 25},
        )
    assert config_repo.allocations == {}


@pytest.mark.asyncio
async def test_set_hour_allocation_validates_normalized_sum(config_repo) -> None:
    await config_uc.set_hour_allocation(config_repo, day=THURSDAY, percentages={"13:30:00": 40, "14:00": 60})
    stored = json.loads(config_repo.allocations[THURSDAY])
    assert stored == {"13:30": 40.0, "14:00": 60.0}
    assert abs(sum(stored.values()) - 100.0) <= 0.1
