"""
Slot classification against committed intervals.

Every grid point is tested against each conflict widened by the room's
buffer time. Intervals are half-open ``[start, end)`` throughout, so a
conflict never blocks its own end point when the buffer is zero.
"""

import logging
from typing import Any, Iterable, Sequence

from roomslots.schemas.slot_schema import BlockReason, ConflictInterval, SlotState

logger = logging.getLogger(__name__)

AVAILABLE = SlotState(available=True)


def classify_slot(
    minute: int, conflicts: Iterable[ConflictInterval], buffer_minutes: int
) -> SlotState:
    """Classify one grid point; the first conflict that covers it decides the reason."""
    for conflict in conflicts:
        buffered_start = conflict.start_minute - buffer_minutes
        buffered_end = conflict.end_minute + buffer_minutes
        if not buffered_start <= minute < buffered_end:
            continue
        if conflict.start_minute <= minute < conflict.end_minute:
            return SlotState(available=False, reason=BlockReason.for_kind(conflict.kind))
        return SlotState(available=False, reason=BlockReason.CONFLICT_BUFFER)
    return AVAILABLE


def evaluate_slots(
    grid: Sequence[int], conflicts: Sequence[ConflictInterval], buffer_minutes: int
) -> dict[int, SlotState]:
    """Map every grid point, in grid order, to its availability state."""
    states = {minute: classify_slot(minute, conflicts, buffer_minutes) for minute in grid}
    blocked = sum(1 for state in states.values() if not state.available)
    logger.debug(
        "Evaluated %d slots against %d conflicts (buffer=%d): %d blocked",
        len(states), len(conflicts), buffer_minutes, blocked,
    )
    return states


def spans_overlap(start: Any, end: Any, other_start: Any, other_end: Any, margin: Any) -> bool:
    """Whether ``[start, end)`` meets ``[other_start - margin, other_end + margin)``.

    Works for minute offsets with an int margin or datetimes with a timedelta.
    Used by the write path to re-check a requested reservation with the same
    rule slot evaluation applies.
    """
    return other_start - margin < end and start < other_end + margin
