"""
Committed-interval collection for a single room and date.

Reservations count when their start falls within the local day and their
status is pending or confirmed. Active blackouts count when they overlap
the day at all. Both are clipped to the day and expressed in minutes since
local midnight.

The conflict source is any object exposing::

    async def fetch_reservations(room_id, window_start, window_end) -> list[CommittedReservation]
    async def fetch_blackouts(room_id) -> list[Blackout]
"""

import logging
from datetime import date, datetime, tzinfo
from typing import Any, Iterable, Optional

from roomslots.config import settings
from roomslots.schemas.policy_schema import Blackout, CommittedReservation
from roomslots.schemas.slot_schema import ConflictInterval, ConflictKind
from roomslots.utils import MINUTES_PER_DAY, local_day_bounds, to_local

logger = logging.getLogger(__name__)

_KIND_ORDER = {ConflictKind.BOOKING: 0, ConflictKind.BLACKOUT: 1}


def _clip_to_day(
    start: datetime, end: datetime, day_start: datetime, day_end: datetime
) -> Optional[tuple[int, int]]:
    if start >= day_end or end <= day_start:
        return None
    start_minute = 0 if start <= day_start else start.hour * 60 + start.minute
    end_minute = MINUTES_PER_DAY if end >= day_end else end.hour * 60 + end.minute
    if end_minute <= start_minute:
        return None
    return start_minute, end_minute


def build_conflict_intervals(
    day: date,
    reservations: Iterable[CommittedReservation],
    blackouts: Iterable[Blackout],
    tz: tzinfo,
) -> list[ConflictInterval]:
    """Normalize reservations and blackouts into ordered conflicts for ``day``."""
    day_start, day_end = local_day_bounds(day, tz)
    intervals: list[ConflictInterval] = []

    for reservation in reservations:
        if not reservation.status.blocks_slots:
            continue
        start = to_local(reservation.start, tz)
        if not day_start <= start < day_end:
            continue
        span = _clip_to_day(start, to_local(reservation.end, tz), day_start, day_end)
        if span:
            intervals.append(ConflictInterval(span[0], span[1], ConflictKind.BOOKING))

    for blackout in blackouts:
        if not blackout.is_active:
            continue
        span = _clip_to_day(
            to_local(blackout.start, tz), to_local(blackout.end, tz), day_start, day_end
        )
        if span:
            intervals.append(ConflictInterval(span[0], span[1], ConflictKind.BLACKOUT))

    intervals.sort(key=lambda c: (c.start_minute, c.end_minute, _KIND_ORDER[c.kind]))
    return intervals


class ConflictCollector:
    """Fetches and normalizes the committed intervals of a room."""

    def __init__(self, source: Any, tz: Optional[tzinfo] = None) -> None:
        self._source = source
        self._tz = tz or settings.engine.tzinfo

    @property
    def tz(self) -> tzinfo:
        return self._tz

    async def collect(self, room_id: str, day: date) -> list[ConflictInterval]:
        """Return the conflicts for ``room_id`` on ``day``; fetch errors propagate."""
        window_start, window_end = local_day_bounds(day, self._tz)
        reservations = await self._source.fetch_reservations(room_id, window_start, window_end)
        blackouts = await self._source.fetch_blackouts(room_id)
        conflicts = build_conflict_intervals(day, reservations, blackouts, self._tz)
        logger.debug(
            "Collected %d conflicts for room %s on %s", len(conflicts), room_id, day
        )
        return conflicts

    async def collect_blackouts(self, room_id: str) -> list[Blackout]:
        """Return the active blackouts of a room for whole-day evaluation."""
        blackouts = await self._source.fetch_blackouts(room_id)
        return [blackout for blackout in blackouts if blackout.is_active]
