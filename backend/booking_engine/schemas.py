from datetime import date
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .domain.availability import AvailableSlot, FeasibilityReason, FeasibilityResult
from .domain.capacity import CapacityPath, ClosedSlot, OpenSlot, SlotCapacity, SlotConfig
from .domain.modifications import EligibilityReason, EligibilityResult, PartySizeDecision
from .models import SlotStatus
from .usecases.availability import DayOverrides, DayStatus, Occupancy
from .usecases.capacity_config import AllocationSource
from .usecases.day_availability import CalendarDay, DayWindowEntry, WindowStatus, WindowSummary
from .usecases.slot_capacity import DayCapacity, HourPercentageReport


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SlotCapacityRead(CamelModel):
    status: SlotStatus
    remaining_capacity: int
    total_capacity: int
    booked_count: int
    allocation_percentage: float
    completion_percentage: float
    closed: bool

    @classmethod
    def from_domain(cls, slot: SlotCapacity) -> "SlotCapacityRead":
        return cls(
            status=slot.status,
            remaining_capacity=slot.remaining_capacity,
            total_capacity=slot.total_capacity,
            booked_count=slot.booked_count,
            allocation_percentage=slot.allocation_percentage,
            completion_percentage=slot.completion_percentage,
            closed=slot.closed,
        )


class DayCapacityRead(CamelModel):
    date: date
    daily_limit: int
    total_people: int
    is_default_data: bool
    hour_data: dict[str, SlotCapacityRead]

    @classmethod
    def from_domain(cls, capacity: DayCapacity) -> "DayCapacityRead":
        return cls(
            date=capacity.day,
            daily_limit=capacity.daily_limit,
            total_people=capacity.total_people,
            is_default_data=capacity.is_default_data,
            hour_data={hour: SlotCapacityRead.from_domain(slot) for hour, slot in capacity.slots.items()},
        )


class SlotConfigWrite(CamelModel):
    percentage: float = Field(ge=0, le=100)
    is_closed: bool = False

    def to_domain(self) -> SlotConfig:
        if self.is_closed:
            return ClosedSlot(percentage=self.percentage)
        return OpenSlot(percentage=self.percentage)


class HourConfigurationWrite(CamelModel):
    date: date
    hour_data: dict[str, SlotConfigWrite] = Field(min_length=1)


class HourPercentageReportRead(CamelModel):
    date: date
    hours: list[str]
    percentages: dict[str, float]
    source: AllocationSource
    daily_limit: int
    total_people: int
    hour_data: dict[str, SlotCapacityRead]

    @classmethod
    def from_domain(cls, report: HourPercentageReport) -> "HourPercentageReportRead":
        return cls(
            date=report.day,
            hours=report.hours,
            percentages=report.percentages,
            source=report.source,
            daily_limit=report.daily_limit,
            total_people=report.total_people,
            hour_data={hour: SlotCapacityRead.from_domain(slot) for hour, slot in report.slots.items()},
        )


class HourAllocationWrite(CamelModel):
    date: date
    percentages: dict[str, Annotated[float, Field(ge=0, le=100)]] = Field(min_length=1)


class HourAllocationResult(CamelModel):
    date: date
    action: str


class OpeningHoursWrite(CamelModel):
    date: date
    hours: list[str] = Field(min_length=1)


class OpeningHoursRead(CamelModel):
    date: date
    hours: list[str]


class DailyLimitWrite(CamelModel):
    date: date
    daily_limit: int = Field(ge=0)
    path: CapacityPath = CapacityPath.BOOKING


class DailyLimitRead(CamelModel):
    date: date
    daily_limit: int
    path: CapacityPath


class OccupancyRead(CamelModel):
    date: date
    daily_limit: int
    total_people: int
    free_seats: int

    @classmethod
    def from_domain(cls, occ: Occupancy) -> "OccupancyRead":
        return cls(date=occ.day, daily_limit=occ.daily_limit, total_people=occ.total_people, free_seats=occ.free_seats)


class DayStatusRead(CamelModel):
    date: date
    weekday: str
    is_open: bool
    is_default_closed_day: bool

    @classmethod
    def from_domain(cls, status: DayStatus) -> "DayStatusRead":
        return cls(
            date=status.day,
            weekday=status.weekday,
            is_open=status.is_open,
            is_default_closed_day=status.is_default_closed_day,
        )


class DayOverridesRead(CamelModel):
    closed_days: list[date]
    opened_days: list[date]

    @classmethod
    def from_domain(cls, overrides: DayOverrides) -> "DayOverridesRead":
        return cls(closed_days=overrides.closed_days, opened_days=overrides.opened_days)


class AvailableSlotRead(CamelModel):
    time: str
    remaining_capacity: int
    total_capacity: int
    booked_count: int
    status: str

    @classmethod
    def from_domain(cls, slot: AvailableSlot) -> "AvailableSlotRead":
        return cls(
            time=slot.time,
            remaining_capacity=slot.remaining_capacity,
            total_capacity=slot.total_capacity,
            booked_count=slot.booked_count,
            status=slot.status,
        )


class AvailableSlotsRead(CamelModel):
    date: date
    party_size: int
    available_hours: list[AvailableSlotRead]
    formatted: str


class FeasibilityCheck(CamelModel):
    new_date: date
    party_size: Optional[int] = Field(default=None, ge=1)
    current_time: Optional[str] = None
    booking_id: Optional[int] = None


class FeasibilityRead(CamelModel):
    available: bool
    reason: Optional[FeasibilityReason] = None
    message: str
    days_until: Optional[int] = None
    current_time_available: Optional[bool] = None
    available_hours: list[AvailableSlotRead] = Field(default_factory=list)
    is_explicitly_opened: Optional[bool] = None
    daily_limit: Optional[int] = None
    current_total: Optional[int] = None

    @classmethod
    def from_domain(cls, result: FeasibilityResult) -> "FeasibilityRead":
        return cls(
            available=result.available,
            reason=result.reason,
            message=result.message,
            days_until=result.days_until,
            current_time_available=result.current_time_available,
            available_hours=[AvailableSlotRead.from_domain(s) for s in result.available_slots],
            is_explicitly_opened=result.is_explicitly_opened,
            daily_limit=result.daily_limit,
            current_total=result.current_total,
        )


class DayWindowRead(CamelModel):
    date: date
    available: bool
    reason: Optional[str] = None
    free_seats: int
    total_capacity: int
    booked: Optional[int] = None
    occupancy_percentage: Optional[float] = None

    @classmethod
    def from_domain(cls, entry: DayWindowEntry) -> "DayWindowRead":
        return cls(
            date=entry.day,
            available=entry.available,
            reason=entry.reason,
            free_seats=entry.free_seats,
            total_capacity=entry.total_capacity,
            booked=entry.booked,
            occupancy_percentage=entry.occupancy_percentage,
        )


class WindowSummaryRead(CamelModel):
    total_days: int
    available_days: int
    unavailable_days: int
    closed_days: int
    booking_window_start: date
    booking_window_end: date

    @classmethod
    def from_domain(cls, summary: WindowSummary) -> "WindowSummaryRead":
        return cls(
            total_days=summary.total_days,
            available_days=summary.available_days,
            unavailable_days=summary.unavailable_days,
            closed_days=summary.closed_days,
            booking_window_start=summary.window_start,
            booking_window_end=summary.window_end,
        )


class WindowStatusRead(CamelModel):
    summary: WindowSummaryRead
    available_dates: list[date]
    unavailable_dates: list[date]
    closed_days: list[date]
    daily_availability: list[DayWindowRead]

    @classmethod
    def from_domain(cls, window: WindowStatus) -> "WindowStatusRead":
        return cls(
            summary=WindowSummaryRead.from_domain(window.summary),
            available_dates=window.available_dates,
            unavailable_dates=window.unavailable_dates,
            closed_days=window.closed_dates,
            daily_availability=[DayWindowRead.from_domain(e) for e in window.days],
        )


class CalendarDayRead(BaseModel):
    # calendar keys stay snake_case like the legacy calendar payload
    date: date
    booking_count: int
    total_people: int
    limit: int
    free_seats: int
    is_open: bool

    @classmethod
    def from_domain(cls, day: CalendarDay) -> "CalendarDayRead":
        return cls(
            date=day.day,
            booking_count=day.booking_count,
            total_people=day.total_people,
            limit=day.limit,
            free_seats=day.free_seats,
            is_open=day.is_open,
        )


class CalendarRead(BaseModel):
    success: bool = True
    data: list[CalendarDayRead]


class ModificationValidate(CamelModel):
    booking_id: int


class EligibilityRead(CamelModel):
    modifiable: bool
    reason: Optional[EligibilityReason] = None
    message: str
    modifications_remaining: Optional[int] = None
    hours_until_reservation: Optional[int] = None

    @classmethod
    def from_domain(cls, result: EligibilityResult) -> "EligibilityRead":
        return cls(
            modifiable=result.modifiable,
            reason=result.reason,
            message=result.message,
            modifications_remaining=result.modifications_remaining,
            hours_until_reservation=result.hours_until_reservation,
        )


class PartySizeCheck(CamelModel):
    date: date
    current_party_size: int = Field(ge=1)
    new_party_size: int = Field(ge=1)
    booking_id: Optional[int] = None


class PartySizeRead(CamelModel):
    available: bool
    message: str
    reason: Optional[str] = None
    daily_limit: Optional[int] = None
    current_total: Optional[int] = None
    new_total: Optional[int] = None
    spots_remaining: Optional[int] = None
    people_difference: Optional[int] = None

    @classmethod
    def from_domain(cls, decision: PartySizeDecision) -> "PartySizeRead":
        return cls(
            available=decision.available,
            message=decision.message,
            reason=decision.reason,
            daily_limit=decision.daily_limit,
            current_total=decision.current_total,
            new_total=decision.new_total,
            spots_remaining=decision.spots_remaining,
            people_difference=decision.people_difference,
        )


class ModificationRecordWrite(CamelModel):
    booking_id: int
    field_modified: str = Field(min_length=1, max_length=50)
    old_value: str
    new_value: str
    customer_phone: Optional[str] = Field(default=None, max_length=20)


class ModificationRecordRead(CamelModel):
    id: int
    booking_id: int
