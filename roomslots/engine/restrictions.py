"""
Whole-day restrictions for calendar rendering.

A date is classified, in priority order, as closed (weekday disabled),
blackout (covered by any blackout, compared by local date), beyond the
advance-booking window, or unrestricted. Same-day booking is deliberately
not folded in here; only the slot query enforces it.
"""

import calendar
import logging
from datetime import date, timedelta, tzinfo
from typing import Optional, Sequence

from roomslots.schemas.policy_schema import AvailabilityPolicy, Blackout, Weekday
from roomslots.schemas.slot_schema import (
    BlackoutDate,
    CalendarRestrictions,
    DateRestriction,
    DateRestrictionKind,
)
from roomslots.utils import to_local

logger = logging.getLogger(__name__)

NOT_CONFIGURED_REASON = "Room availability not configured"
DEFAULT_BLACKOUT_REASON = "Maintenance"


def is_closed_day(day: date, policy: AvailabilityPolicy) -> bool:
    return not policy.hours_for(day).enabled


def is_beyond_advance_window(day: date, today: date, advance_booking_days: int) -> bool:
    return day > today + timedelta(days=advance_booking_days)


def find_blackout_for_date(
    day: date, blackouts: Sequence[Blackout], tz: tzinfo
) -> Optional[Blackout]:
    """Return the first blackout whose local start..end dates include ``day``."""
    for blackout in blackouts:
        first = to_local(blackout.start, tz).date()
        last = to_local(blackout.end, tz).date()
        if first <= day <= last:
            return blackout
    return None


def resolve_date_restriction(
    day: date,
    policy: Optional[AvailabilityPolicy],
    blackouts: Sequence[Blackout],
    today: date,
    tz: tzinfo,
) -> DateRestriction:
    if policy is None:
        return DateRestriction(DateRestrictionKind.CLOSED, NOT_CONFIGURED_REASON)

    if is_closed_day(day, policy):
        return DateRestriction(
            DateRestrictionKind.CLOSED,
            f"Room closed on {Weekday.from_date(day).label}s",
        )

    blackout = find_blackout_for_date(day, blackouts, tz)
    if blackout is not None:
        return DateRestriction(
            DateRestrictionKind.BLACKOUT, blackout.reason or DEFAULT_BLACKOUT_REASON
        )

    if is_beyond_advance_window(day, today, policy.advance_booking_days):
        return DateRestriction(
            DateRestrictionKind.BEYOND_WINDOW,
            f"Bookings only allowed up to {policy.advance_booking_days} days in advance",
        )

    return DateRestriction(DateRestrictionKind.NONE)


def month_days(year: int, month: int) -> list[date]:
    _, last_day = calendar.monthrange(year, month)
    return [date(year, month, day) for day in range(1, last_day + 1)]


def build_calendar_restrictions(
    policy: Optional[AvailabilityPolicy],
    blackouts: Sequence[Blackout],
    year: int,
    month: int,
    today: date,
    tz: tzinfo,
    fallback_advance_days: int,
    fallback_same_day: bool,
) -> CalendarRestrictions:
    """Classify every date of a month and list the closed and blacked-out ones.

    An unconfigured room reports every date as closed. Dates beyond the
    advance window are not listed; callers derive them from
    ``advanceBookingDays``.
    """
    closed_dates: list[str] = []
    blackout_dates: list[BlackoutDate] = []

    for day in month_days(year, month):
        verdict = resolve_date_restriction(day, policy, blackouts, today, tz)
        if verdict.kind is DateRestrictionKind.CLOSED:
            closed_dates.append(day.isoformat())
        elif verdict.kind is DateRestrictionKind.BLACKOUT:
            blackout_dates.append(BlackoutDate(date=day.isoformat(), reason=verdict.reason))

    logger.debug(
        "Calendar %04d-%02d: %d closed, %d blackout dates",
        year, month, len(closed_dates), len(blackout_dates),
    )

    if policy is None:
        return CalendarRestrictions(
            operating_hours=None,
            advance_booking_days=fallback_advance_days,
            same_day_booking_enabled=fallback_same_day,
            closed_dates=closed_dates,
            blackout_dates=[],
        )

    return CalendarRestrictions(
        operating_hours=policy.operating_hours,
        advance_booking_days=policy.advance_booking_days,
        same_day_booking_enabled=policy.same_day_booking_enabled,
        closed_dates=closed_dates,
        blackout_dates=blackout_dates,
    )
