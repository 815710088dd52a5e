"""
Booking option derivation.

For each free start point, walk forward along the grid and collect every
end point that keeps the booking inside the duration bounds and inside a
contiguous run of free points. The walk stops at the first blocked point
(any later end would enclose it) or once the maximum duration is passed.
"""

import logging
from typing import Mapping

from roomslots.schemas.slot_schema import BookingOptions, SlotState

logger = logging.getLogger(__name__)


def build_booking_options(
    states: Mapping[int, SlotState], min_duration: int, max_duration: int
) -> BookingOptions:
    """Derive start options, end options per start, and unavailable reasons.

    ``states`` must be ordered by grid position. Starts without any legal
    end are still listed in ``start_options`` with an empty end list.
    """
    grid = list(states)
    start_options: list[int] = []
    end_options_by_start: dict[int, list[int]] = {}
    unavailable_reasons = {}

    for index, start in enumerate(grid):
        state = states[start]
        if not state.available:
            unavailable_reasons[start] = state.reason
            continue

        start_options.append(start)
        ends: list[int] = []
        for end in grid[index + 1:]:
            if not states[end].available:
                break
            duration = end - start
            if duration > max_duration:
                break
            if duration >= min_duration:
                ends.append(end)
        end_options_by_start[start] = ends

    logger.debug(
        "Built options: %d starts, %d bookable, %d blocked",
        len(start_options),
        sum(1 for ends in end_options_by_start.values() if ends),
        len(unavailable_reasons),
    )
    return BookingOptions(
        start_options=start_options,
        end_options_by_start=end_options_by_start,
        unavailable_reasons=unavailable_reasons,
    )
