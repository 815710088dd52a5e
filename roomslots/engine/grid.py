"""Fixed-granularity candidate time points for a day's operating window."""

from typing import Optional

from roomslots.schemas.policy_schema import DayHours

SLOT_GRANULARITY_MINUTES = 30


def build_slot_grid(hours: Optional[DayHours]) -> list[int]:
    """Return grid points ``open, open+30, ...`` in minutes since midnight.

    Only points whose full 30-minute interval fits before closing are
    produced, so a window that is not a multiple of 30 minutes loses its
    trailing partial interval. A disabled or missing day yields no points.
    """
    if hours is None or not hours.enabled:
        return []
    return list(
        range(
            hours.open_minute,
            hours.close_minute - SLOT_GRANULARITY_MINUTES + 1,
            SLOT_GRANULARITY_MINUTES,
        )
    )
