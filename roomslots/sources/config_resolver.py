"""
Availability policy lookup and validation.

The resolver turns stored availability records into validated
``AvailabilityPolicy`` values. A room with no record resolves to ``None``,
which every caller must treat as fully unavailable.

The policy source is any object exposing::

    async def fetch_policy(room_id: str) -> Optional[dict]
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from roomslots.config import PolicyLimitsConfig, settings
from roomslots.engine.grid import SLOT_GRANULARITY_MINUTES, build_slot_grid
from roomslots.schemas.policy_schema import AvailabilityPolicy, Weekday

logger = logging.getLogger(__name__)


class InvalidPolicyError(ValueError):
    """Raised when an availability record violates the policy invariants."""


DEFAULT_POLICY_RECORD: dict[str, Any] = {
    "operating_hours": {
        "monday": {"enabled": True, "start": "08:00", "end": "18:00"},
        "tuesday": {"enabled": True, "start": "08:00", "end": "18:00"},
        "wednesday": {"enabled": True, "start": "08:00", "end": "18:00"},
        "thursday": {"enabled": True, "start": "08:00", "end": "18:00"},
        "friday": {"enabled": True, "start": "08:00", "end": "18:00"},
        "saturday": {"enabled": False, "start": "09:00", "end": "17:00"},
        "sunday": {"enabled": False, "start": "09:00", "end": "17:00"},
    },
    "min_booking_duration": 30,
    "max_booking_duration": 480,
    "buffer_time": 15,
    "advance_booking_days": 30,
    "same_day_booking_enabled": True,
    "max_bookings_per_user_per_day": 1,
    "max_bookings_per_user_per_week": 5,
}


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "policy"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def parse_policy(record: dict[str, Any]) -> AvailabilityPolicy:
    """Validate a raw availability record into an ``AvailabilityPolicy``."""
    try:
        return AvailabilityPolicy.model_validate(record)
    except ValidationError as exc:
        raise InvalidPolicyError(
            f"Invalid availability settings: {_describe_validation_error(exc)}"
        ) from exc


def validate_policy_update(
    record: dict[str, Any], limits: Optional[PolicyLimitsConfig] = None
) -> AvailabilityPolicy:
    """Check administrator-submitted settings against the configured bounds."""
    limits = limits or settings.limits

    hours = record.get("operating_hours")
    if not isinstance(hours, dict):
        raise InvalidPolicyError("Operating hours are required")
    for day in Weekday:
        entry = hours.get(day.value)
        if (
            not isinstance(entry, dict)
            or not isinstance(entry.get("enabled"), bool)
            or not entry.get("start")
            or not entry.get("end")
        ):
            raise InvalidPolicyError(f"Invalid operating hours for {day.value}")

    bounds = [
        ("min_booking_duration", "Minimum booking duration",
         limits.min_duration_floor, limits.min_duration_ceiling, "minutes"),
        ("max_booking_duration", "Maximum booking duration",
         limits.max_duration_floor, limits.max_duration_ceiling, "minutes"),
        ("buffer_time", "Buffer time", 0, limits.buffer_ceiling, "minutes"),
        ("advance_booking_days", "Advance booking days",
         limits.advance_days_floor, limits.advance_days_ceiling, ""),
    ]
    for key, label, low, high, unit in bounds:
        value = record.get(key)
        if value is None:
            continue
        if not isinstance(value, int) or isinstance(value, bool) or not low <= value <= high:
            suffix = f" {unit}" if unit else ""
            raise InvalidPolicyError(f"{label} must be between {low} and {high}{suffix}")

    merged = {**DEFAULT_POLICY_RECORD, **record}
    policy = parse_policy(merged)
    for day, day_hours in policy.operating_hours.items():
        if day_hours.enabled and not build_slot_grid(day_hours):
            raise InvalidPolicyError(
                f"Operating hours for {day.value} must span at least "
                f"{SLOT_GRANULARITY_MINUTES} minutes"
            )
    return policy


class ConfigResolver:
    """Resolves the availability policy of a room from a policy source."""

    def __init__(self, source: Any) -> None:
        self._source = source

    async def resolve(self, room_id: str) -> Optional[AvailabilityPolicy]:
        """Return the room's policy, or ``None`` when the room is not configured.

        Source failures propagate unchanged.
        """
        record = await self._source.fetch_policy(room_id)
        if record is None:
            logger.warning("No availability settings for room %s", room_id)
            return None
        policy = parse_policy(record)
        logger.debug(
            "Resolved policy for room %s (min=%d, max=%d, buffer=%d, advance=%d)",
            room_id,
            policy.min_booking_duration,
            policy.max_booking_duration,
            policy.buffer_time,
            policy.advance_booking_days,
        )
        return policy
