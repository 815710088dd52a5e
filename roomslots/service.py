"""
Slot and calendar queries.

Wires the policy and conflict sources into the pure evaluation pipeline:

    ConfigResolver ─┐
                    ├─> grid ─> slot classification ─> booking options
    ConflictCollector ┘

Whole-day restrictions short-circuit the slot query with an explicit
``error`` message instead of an ambiguous empty result: a closed weekday,
opening hours too short for one slot, same-day booking disabled, or a date
beyond the advance window. The output is advisory: the write path must
re-check before committing a reservation.

Usage:
    store = InMemoryRoomStore.from_json("rooms.json")
    service = AvailabilityService.from_store(store)
    result = await service.get_slots("room-a", "2026-10-19", now=datetime.now(tz))
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Optional

from roomslots.config import AppConfig, settings
from roomslots.engine.evaluator import evaluate_slots
from roomslots.engine.grid import SLOT_GRANULARITY_MINUTES, build_slot_grid
from roomslots.engine.options import build_booking_options
from roomslots.engine.restrictions import build_calendar_restrictions, is_beyond_advance_window
from roomslots.logging_context import new_request_id
from roomslots.schemas.policy_schema import AvailabilityPolicy, DayHours, Weekday
from roomslots.schemas.slot_schema import (
    CalendarRestrictions,
    RestrictionSummary,
    SlotQueryResult,
)
from roomslots.sources.config_resolver import ConfigResolver
from roomslots.sources.conflicts import ConflictCollector
from roomslots.utils import format_minutes, parse_iso_date, to_local

logger = logging.getLogger(__name__)

NOT_CONFIGURED_ERROR = "No availability settings found for this room"
SAME_DAY_DISABLED_ERROR = "Same-day booking is not enabled for this room"


class InvalidRequestError(ValueError):
    """Raised for malformed query input, before any evaluation happens."""


def _require_room_id(room_id: Optional[str]) -> str:
    if not room_id or not str(room_id).strip():
        raise InvalidRequestError("Room ID is required")
    return str(room_id).strip()


class AvailabilityService:
    """Answers slot and calendar queries for rooms."""

    def __init__(
        self,
        resolver: ConfigResolver,
        collector: ConflictCollector,
        config: Optional[AppConfig] = None,
    ) -> None:
        self.resolver = resolver
        self.collector = collector
        self.config = config or settings

    @classmethod
    def from_store(cls, store: Any, config: Optional[AppConfig] = None) -> "AvailabilityService":
        """Build a service whose policy and conflicts both come from ``store``."""
        config = config or settings
        return cls(
            ConfigResolver(store),
            ConflictCollector(store, tz=config.engine.tzinfo),
            config,
        )

    # -- slot query ----------------------------------------------------------

    def _restrictions(self, policy: Optional[AvailabilityPolicy]) -> RestrictionSummary:
        if policy is None:
            fallback = self.config.fallback
            return RestrictionSummary(
                min_duration=fallback.min_duration,
                max_duration=fallback.max_duration,
                buffer_time=fallback.buffer_time,
                advance_booking_days=fallback.advance_booking_days,
                same_day_booking_enabled=fallback.same_day_booking_enabled,
            )
        return RestrictionSummary(
            min_duration=policy.min_booking_duration,
            max_duration=policy.max_booking_duration,
            buffer_time=policy.buffer_time,
            advance_booking_days=policy.advance_booking_days,
            same_day_booking_enabled=policy.same_day_booking_enabled,
        )

    def _restricted_day(
        self,
        day: date,
        policy: AvailabilityPolicy,
        hours: DayHours,
        today: date,
    ) -> Optional[str]:
        """Return the error for a whole-day restriction on the slot query, if any."""
        if not hours.enabled:
            return f"Room is closed on {Weekday.from_date(day).value}s"
        if not build_slot_grid(hours):
            return (
                f"Operating hours {hours.start}-{hours.end} are shorter than one "
                f"{SLOT_GRANULARITY_MINUTES}-minute slot"
            )
        if not policy.same_day_booking_enabled and day == today:
            return SAME_DAY_DISABLED_ERROR
        if is_beyond_advance_window(day, today, policy.advance_booking_days):
            return (
                "Bookings can only be made up to "
                f"{policy.advance_booking_days} days in advance"
            )
        return None

    async def get_slots(self, room_id: str, date_str: str, now: datetime) -> SlotQueryResult:
        """Compute start options and end options for one room on one date.

        ``now`` is the evaluation instant; it decides "today" for the
        same-day and advance-window checks.
        """
        room_id = _require_room_id(room_id)
        if not date_str:
            raise InvalidRequestError("Date parameter is required (format: YYYY-MM-DD)")
        try:
            day = parse_iso_date(date_str)
        except ValueError:
            raise InvalidRequestError("Invalid date format. Use YYYY-MM-DD") from None

        new_request_id()
        logger.info("Slot query for room %s on %s", room_id, day)
        today = to_local(now, self.collector.tz).date()

        try:
            policy = await self.resolver.resolve(room_id)
        except Exception:
            logger.exception("Failed to load availability for room %s", room_id)
            raise

        if policy is None:
            return SlotQueryResult(
                date=day.isoformat(),
                operating_hours=None,
                restrictions=self._restrictions(None),
                error=NOT_CONFIGURED_ERROR,
            )

        hours = policy.hours_for(day)
        restrictions = self._restrictions(policy)
        error = self._restricted_day(day, policy, hours, today)
        if error:
            logger.info("Room %s restricted on %s: %s", room_id, day, error)
            return SlotQueryResult(
                date=day.isoformat(),
                operating_hours=hours,
                restrictions=restrictions,
                error=error,
            )

        try:
            conflicts = await self.collector.collect(room_id, day)
        except Exception:
            logger.exception("Failed to load conflicts for room %s", room_id)
            raise

        grid = build_slot_grid(hours)
        states = evaluate_slots(grid, conflicts, policy.buffer_time)
        options = build_booking_options(
            states, policy.min_booking_duration, policy.max_booking_duration
        )
        logger.info(
            "Room %s on %s: %d of %d slots free",
            room_id, day, len(options.start_options), len(grid),
        )

        return SlotQueryResult(
            date=day.isoformat(),
            operating_hours=hours,
            restrictions=restrictions,
            start_options=[format_minutes(m) for m in options.start_options],
            end_options_by_start={
                format_minutes(start): [format_minutes(end) for end in ends]
                for start, ends in options.end_options_by_start.items()
            },
            unavailable_reasons={
                format_minutes(m): reason.wire if reason else None
                for m, reason in options.unavailable_reasons.items()
            },
        )

    # -- calendar query ------------------------------------------------------

    async def get_calendar(
        self, room_id: str, month: int, year: int, now: datetime
    ) -> CalendarRestrictions:
        """List closed and blacked-out dates of a month.

        ``month`` is 1-12 (January is 1). Each date is listed at most once:
        a blacked-out date that is also a closed weekday appears only in
        ``closed_dates``.
        """
        room_id = _require_room_id(room_id)
        if not isinstance(month, int) or not 1 <= month <= 12:
            raise InvalidRequestError("Invalid month parameter. Must be 1-12.")
        if not isinstance(year, int) or not date.min.year <= year <= date.max.year:
            raise InvalidRequestError(f"Invalid year parameter: {year!r}")

        new_request_id()
        logger.info("Calendar query for room %s, %02d/%d", room_id, month, year)

        try:
            policy, blackouts = await asyncio.gather(
                self.resolver.resolve(room_id),
                self.collector.collect_blackouts(room_id),
            )
        except Exception:
            logger.exception(
                "Failed to load calendar restrictions for room %s", room_id
            )
            raise

        fallback = self.config.fallback
        return build_calendar_restrictions(
            policy,
            blackouts,
            year,
            month,
            today=to_local(now, self.collector.tz).date(),
            tz=self.collector.tz,
            fallback_advance_days=fallback.advance_booking_days,
            fallback_same_day=fallback.same_day_booking_enabled,
        )
