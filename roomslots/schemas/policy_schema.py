"""Room availability policy, reservation and blackout records."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from roomslots.utils import parse_hhmm, time_to_minutes


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, day: date) -> "Weekday":
        return list(cls)[day.weekday()]

    @property
    def label(self) -> str:
        return self.value.capitalize()


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"

    @property
    def blocks_slots(self) -> bool:
        return self in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


class BlackoutType(str, Enum):
    MAINTENANCE = "maintenance"
    CLEANING = "cleaning"
    EVENT = "event"
    HOLIDAY = "holiday"
    REPAIR = "repair"
    OTHER = "other"


class DayHours(BaseModel):
    """Operating hours for one weekday, as ``HH:MM`` strings."""

    model_config = ConfigDict(frozen=True)

    enabled: bool
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def _check_hhmm(cls, value: str) -> str:
        parse_hhmm(value)
        return value.strip()

    @model_validator(mode="after")
    def _check_window(self) -> "DayHours":
        if self.enabled and self.open_minute >= self.close_minute:
            raise ValueError(
                f"Opening time {self.start} must be before closing time {self.end}"
            )
        return self

    @property
    def open_minute(self) -> int:
        return time_to_minutes(parse_hhmm(self.start))

    @property
    def close_minute(self) -> int:
        return time_to_minutes(parse_hhmm(self.end))


class AvailabilityPolicy(BaseModel):
    """Validated availability settings for a single room."""

    model_config = ConfigDict(frozen=True)

    operating_hours: dict[Weekday, DayHours]
    min_booking_duration: int = Field(ge=1)
    max_booking_duration: int = Field(ge=1)
    buffer_time: int = Field(default=0, ge=0)
    advance_booking_days: int = Field(ge=0)
    same_day_booking_enabled: bool = True
    max_bookings_per_user_per_day: int = Field(default=1, ge=0)
    max_bookings_per_user_per_week: int = Field(default=5, ge=0)

    @model_validator(mode="after")
    def _check_policy(self) -> "AvailabilityPolicy":
        missing = [day.value for day in Weekday if day not in self.operating_hours]
        if missing:
            raise ValueError(f"Operating hours missing for: {', '.join(missing)}")
        if self.min_booking_duration > self.max_booking_duration:
            raise ValueError(
                f"min_booking_duration ({self.min_booking_duration}) exceeds "
                f"max_booking_duration ({self.max_booking_duration})"
            )
        return self

    def hours_for(self, day: date) -> DayHours:
        return self.operating_hours[Weekday.from_date(day)]


class CommittedReservation(BaseModel):
    """A reservation record as held by the booking store."""

    model_config = ConfigDict(frozen=True)

    id: str
    room_id: str
    start: datetime
    end: datetime
    status: ReservationStatus = ReservationStatus.PENDING
    user_id: Optional[str] = None
    title: Optional[str] = None

    @model_validator(mode="after")
    def _check_order(self) -> "CommittedReservation":
        if self.end <= self.start:
            raise ValueError("Reservation end must be after start")
        return self


class Blackout(BaseModel):
    """An administrator-declared period during which a room cannot be booked."""

    model_config = ConfigDict(frozen=True)

    id: str
    room_id: str
    start: datetime
    end: datetime
    reason: str = ""
    blackout_type: BlackoutType = BlackoutType.MAINTENANCE
    is_active: bool = True

    @model_validator(mode="after")
    def _check_order(self) -> "Blackout":
        if self.end <= self.start:
            raise ValueError("End time must be after start time")
        return self
