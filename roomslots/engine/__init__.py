from roomslots.engine.evaluator import classify_slot, evaluate_slots, spans_overlap
from roomslots.engine.grid import SLOT_GRANULARITY_MINUTES, build_slot_grid
from roomslots.engine.options import build_booking_options
from roomslots.engine.restrictions import (
    build_calendar_restrictions,
    resolve_date_restriction,
)

__all__ = [
    "SLOT_GRANULARITY_MINUTES",
    "build_slot_grid",
    "classify_slot",
    "evaluate_slots",
    "spans_overlap",
    "build_booking_options",
    "resolve_date_restriction",
    "build_calendar_restrictions",
]
