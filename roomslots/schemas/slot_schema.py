"""Engine value types and the JSON shapes of the slot and calendar queries."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from roomslots.schemas.policy_schema import DayHours, Weekday
from roomslots.utils import format_minutes


class ConflictKind(str, Enum):
    BOOKING = "booking"
    BLACKOUT = "blackout"


class BlockReason(str, Enum):
    CONFLICT_BOOKING = "conflict_booking"
    CONFLICT_BLACKOUT = "conflict_blackout"
    CONFLICT_BUFFER = "conflict_buffer"

    @classmethod
    def for_kind(cls, kind: ConflictKind) -> "BlockReason":
        if kind is ConflictKind.BOOKING:
            return cls.CONFLICT_BOOKING
        return cls.CONFLICT_BLACKOUT

    @property
    def wire(self) -> str:
        """Reason string used in the ``unavailableReasons`` response map."""
        return _WIRE_REASONS[self]


_WIRE_REASONS = {
    BlockReason.CONFLICT_BOOKING: "conflict:existing_booking",
    BlockReason.CONFLICT_BLACKOUT: "conflict:blackout",
    BlockReason.CONFLICT_BUFFER: "conflict:buffer",
}


class DateRestrictionKind(str, Enum):
    CLOSED = "closed"
    BLACKOUT = "blackout"
    BEYOND_WINDOW = "beyond_window"
    NONE = "none"


@dataclass(frozen=True)
class ConflictInterval:
    """A committed interval on one local date, in minutes since midnight.

    ``end_minute`` may be 1440 when the source interval runs past midnight.
    """

    start_minute: int
    end_minute: int
    kind: ConflictKind

    @property
    def start(self) -> str:
        return format_minutes(self.start_minute)

    @property
    def end(self) -> str:
        return format_minutes(self.end_minute)


@dataclass(frozen=True)
class SlotState:
    available: bool
    reason: Optional[BlockReason] = None


@dataclass(frozen=True)
class BookingOption:
    start_minute: int
    end_minute: int

    @property
    def duration(self) -> int:
        return self.end_minute - self.start_minute


@dataclass(frozen=True)
class BookingOptions:
    """Start points, their legal end points, and reasons for blocked points."""

    start_options: list[int] = field(default_factory=list)
    end_options_by_start: dict[int, list[int]] = field(default_factory=dict)
    unavailable_reasons: dict[int, Optional[BlockReason]] = field(default_factory=dict)

    def pairs(self) -> list[BookingOption]:
        return [
            BookingOption(start, end)
            for start in self.start_options
            for end in self.end_options_by_start.get(start, [])
        ]


@dataclass(frozen=True)
class DateRestriction:
    kind: DateRestrictionKind
    reason: Optional[str] = None

    @property
    def restricted(self) -> bool:
        return self.kind is not DateRestrictionKind.NONE


class RestrictionSummary(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min_duration: int = Field(alias="minDuration")
    max_duration: int = Field(alias="maxDuration")
    buffer_time: int = Field(alias="bufferTime")
    advance_booking_days: int = Field(alias="advanceBookingDays")
    same_day_booking_enabled: bool = Field(alias="sameDayBookingEnabled")


class SlotQueryResult(BaseModel):
    """Response of the slot query for one room and date."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: str
    operating_hours: Optional[DayHours] = Field(alias="operatingHours")
    restrictions: RestrictionSummary
    start_options: list[str] = Field(default_factory=list, alias="startOptions")
    end_options_by_start: dict[str, list[str]] = Field(
        default_factory=dict, alias="endOptionsByStart"
    )
    unavailable_reasons: dict[str, Optional[str]] = Field(
        default_factory=dict, alias="unavailableReasons"
    )
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting ``error`` when absent."""
        data = self.model_dump(mode="json", by_alias=True)
        if data.get("error") is None:
            data.pop("error", None)
        return data


class BlackoutDate(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    reason: str


class CalendarRestrictions(BaseModel):
    """Whole-day restrictions for one room over one calendar month."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    operating_hours: Optional[dict[Weekday, DayHours]] = Field(alias="operatingHours")
    advance_booking_days: int = Field(alias="advanceBookingDays")
    same_day_booking_enabled: bool = Field(alias="sameDayBookingEnabled")
    closed_dates: list[str] = Field(default_factory=list, alias="closedDates")
    blackout_dates: list[BlackoutDate] = Field(default_factory=list, alias="blackoutDates")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
