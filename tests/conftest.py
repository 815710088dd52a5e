"""Shared test fixtures and helpers."""

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from roomslots.engine.grid import build_slot_grid
from roomslots.schemas.policy_schema import (
    AvailabilityPolicy,
    Blackout,
    CommittedReservation,
    DayHours,
    ReservationStatus,
)
from roomslots.schemas.slot_schema import ConflictInterval, ConflictKind
from roomslots.service import AvailabilityService
from roomslots.sources.config_resolver import ConfigResolver
from roomslots.sources.conflicts import ConflictCollector
from roomslots.sources.memory_store import InMemoryRoomStore
from roomslots.utils import parse_hhmm, time_to_minutes

UTC = ZoneInfo("UTC")

# 2026-10-18 is a Sunday; 2026-10-19 is the following Monday.
TODAY = date(2026, 10, 18)
NOW = datetime(2026, 10, 18, 8, 0, tzinfo=UTC)
MONDAY = date(2026, 10, 19)
SUNDAY = date(2026, 10, 25)

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]
WEEKEND = ["saturday", "sunday"]


def m(hhmm: str) -> int:
    """Minutes since midnight for an ``HH:MM`` string; ``24:00`` is end of day."""
    if hhmm == "24:00":
        return 24 * 60
    return time_to_minutes(parse_hhmm(hhmm))


def make_policy_record(
    open_: str = "09:00",
    close: str = "17:00",
    min_duration: int = 30,
    max_duration: int = 120,
    buffer_time: int = 15,
    advance_days: int = 30,
    same_day: bool = True,
    closed_days: Optional[list[str]] = None,
) -> dict:
    """Raw availability record: weekdays open, weekend closed by default."""
    closed = WEEKEND if closed_days is None else closed_days
    return {
        "operating_hours": {
            day: {"enabled": day not in closed, "start": open_, "end": close}
            for day in WEEKDAYS + WEEKEND
        },
        "min_booking_duration": min_duration,
        "max_booking_duration": max_duration,
        "buffer_time": buffer_time,
        "advance_booking_days": advance_days,
        "same_day_booking_enabled": same_day,
    }


def make_policy(**kwargs) -> AvailabilityPolicy:
    return AvailabilityPolicy.model_validate(make_policy_record(**kwargs))


def make_hours(open_: str = "09:00", close: str = "17:00", enabled: bool = True) -> DayHours:
    return DayHours(enabled=enabled, start=open_, end=close)


def make_grid(open_: str = "09:00", close: str = "17:00") -> list[int]:
    return build_slot_grid(make_hours(open_, close))


def booking(start: str, end: str) -> ConflictInterval:
    return ConflictInterval(m(start), m(end), ConflictKind.BOOKING)


def blackout_interval(start: str, end: str) -> ConflictInterval:
    return ConflictInterval(m(start), m(end), ConflictKind.BLACKOUT)


def make_reservation(
    start: datetime,
    end: datetime,
    status: ReservationStatus = ReservationStatus.CONFIRMED,
    room_id: str = "room-a",
    reservation_id: str = "RES-TEST",
) -> CommittedReservation:
    return CommittedReservation(
        id=reservation_id, room_id=room_id, start=start, end=end, status=status
    )


def make_blackout(
    start: datetime,
    end: datetime,
    reason: str = "Maintenance window",
    room_id: str = "room-a",
    blackout_id: str = "BLK-TEST",
    is_active: bool = True,
) -> Blackout:
    return Blackout(
        id=blackout_id,
        room_id=room_id,
        start=start,
        end=end,
        reason=reason,
        is_active=is_active,
    )


@pytest.fixture
def store():
    return InMemoryRoomStore(tz=UTC)


@pytest.fixture
def service(store):
    return AvailabilityService(ConfigResolver(store), ConflictCollector(store, tz=UTC))


class FailingSource:
    """Source whose every fetch raises, to check that failures propagate."""

    async def fetch_policy(self, room_id):
        raise ConnectionError("policy store unreachable")

    async def fetch_reservations(self, room_id, window_start, window_end):
        raise ConnectionError("reservation store unreachable")

    async def fetch_blackouts(self, room_id):
        raise ConnectionError("blackout store unreachable")
