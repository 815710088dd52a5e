from roomslots.sources.config_resolver import ConfigResolver, InvalidPolicyError
from roomslots.sources.conflicts import ConflictCollector
from roomslots.sources.memory_store import (
    BookingLimitError,
    InMemoryRoomStore,
    ReservationConflictError,
)

__all__ = [
    "ConfigResolver",
    "InvalidPolicyError",
    "ConflictCollector",
    "InMemoryRoomStore",
    "ReservationConflictError",
    "BookingLimitError",
]
