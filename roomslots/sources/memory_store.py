"""
In-memory room store.

Holds availability records, reservations and blackouts, and serves them
through the async policy and conflict source interfaces. In production,
this would be backed by the reservation database; the write path here
performs the authoritative overlap re-check that the advisory slot query
cannot guarantee.
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from typing import Any, Optional, Union

from roomslots.config import settings
from roomslots.engine.evaluator import spans_overlap
from roomslots.schemas.policy_schema import (
    AvailabilityPolicy,
    Blackout,
    CommittedReservation,
    ReservationStatus,
)
from roomslots.sources.config_resolver import parse_policy
from roomslots.utils import to_local

logger = logging.getLogger(__name__)


class ReservationConflictError(ValueError):
    """Raised when a requested reservation overlaps a committed interval."""


class BookingLimitError(ReservationConflictError):
    """Raised when a user already holds the maximum bookings for a day or week."""


class InMemoryRoomStore:
    """Dict-backed store implementing the policy and conflict source interfaces."""

    def __init__(self, tz: Optional[tzinfo] = None) -> None:
        self._tz = tz or settings.engine.tzinfo
        self._policies: dict[str, dict[str, Any]] = {}
        self._reservations: dict[str, CommittedReservation] = {}
        self._blackouts: dict[str, Blackout] = {}
        self._write_lock = asyncio.Lock()

    # -- seeding -------------------------------------------------------------

    def put_policy(self, room_id: str, record: dict[str, Any]) -> None:
        self._policies[room_id] = dict(record)

    def add_reservation(self, reservation: CommittedReservation) -> CommittedReservation:
        """Insert a reservation as-is, without any overlap check."""
        self._reservations[reservation.id] = reservation
        return reservation

    def add_blackout(self, blackout: Blackout) -> Blackout:
        self._blackouts[blackout.id] = blackout
        return blackout

    @classmethod
    def from_dict(cls, data: dict[str, Any], tz: Optional[tzinfo] = None) -> "InMemoryRoomStore":
        """Build a store from ``{"rooms": {...}, "reservations": [...], "blackouts": [...]}``."""
        store = cls(tz=tz)
        for room_id, record in (data.get("rooms") or {}).items():
            if record is not None:
                store.put_policy(room_id, record)
        for item in data.get("reservations") or []:
            store.add_reservation(CommittedReservation.model_validate(item))
        for item in data.get("blackouts") or []:
            store.add_blackout(Blackout.model_validate(item))
        logger.info(
            "Loaded %d rooms, %d reservations, %d blackouts",
            len(store._policies), len(store._reservations), len(store._blackouts),
        )
        return store

    @classmethod
    def from_json(cls, path: Union[str, Path], tz: Optional[tzinfo] = None) -> "InMemoryRoomStore":
        with open(path, encoding="utf-8") as handle:
            return cls.from_dict(json.load(handle), tz=tz)

    # -- sources -------------------------------------------------------------

    async def fetch_policy(self, room_id: str) -> Optional[dict[str, Any]]:
        record = self._policies.get(room_id)
        return dict(record) if record is not None else None

    async def fetch_reservations(
        self, room_id: str, window_start: datetime, window_end: datetime
    ) -> list[CommittedReservation]:
        """Reservations of any status whose start lies in ``[window_start, window_end)``."""
        found = [
            r for r in self._reservations.values()
            if r.room_id == room_id
            and window_start <= to_local(r.start, self._tz) < window_end
        ]
        return sorted(found, key=lambda r: to_local(r.start, self._tz))

    async def fetch_blackouts(self, room_id: str) -> list[Blackout]:
        found = [
            b for b in self._blackouts.values()
            if b.room_id == room_id and b.is_active
        ]
        return sorted(found, key=lambda b: to_local(b.start, self._tz))

    # -- write path ----------------------------------------------------------

    async def create_reservation(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        user_id: Optional[str] = None,
        title: Optional[str] = None,
        status: ReservationStatus = ReservationStatus.PENDING,
    ) -> CommittedReservation:
        """Create a reservation after re-checking it against committed intervals.

        The check applies the room's buffer time with the same half-open
        rule as slot evaluation, and runs under a lock so two concurrent
        requests cannot both pass it.
        """
        async with self._write_lock:
            reservation = CommittedReservation(
                id=f"RES-{uuid.uuid4().hex[:8].upper()}",
                room_id=room_id,
                start=start,
                end=end,
                status=status,
                user_id=user_id,
                title=title,
            )
            record = self._policies.get(room_id)
            if record is None:
                raise ReservationConflictError(
                    f"Room {room_id} has no availability settings"
                )
            policy = parse_policy(record)
            if user_id is not None:
                self._check_user_limits(reservation, policy)
            margin = timedelta(minutes=policy.buffer_time)
            conflict = self._find_conflict(reservation, margin)
            if conflict is not None:
                logger.warning(
                    "Rejected reservation for room %s %s-%s: overlaps %s",
                    room_id, start, end, conflict,
                )
                raise ReservationConflictError(
                    f"Requested time overlaps an existing {conflict}"
                )

            self._reservations[reservation.id] = reservation
            logger.info(
                "Reservation created: %s for room %s from %s to %s",
                reservation.id, room_id, start, end,
            )
            return reservation

    def _check_user_limits(
        self, request: CommittedReservation, policy: AvailabilityPolicy
    ) -> None:
        """Enforce the per-user daily and weekly booking limits of the room.

        Only pending and confirmed reservations in the same room count. A
        week runs Monday to Sunday in local time.
        """
        day = to_local(request.start, self._tz).date()
        week = day.isocalendar()[:2]
        held = [
            to_local(r.start, self._tz).date()
            for r in self._reservations.values()
            if r.room_id == request.room_id
            and r.user_id == request.user_id
            and r.status.blocks_slots
        ]
        if sum(1 for d in held if d == day) >= policy.max_bookings_per_user_per_day:
            raise BookingLimitError(
                f"User {request.user_id} has reached the limit of "
                f"{policy.max_bookings_per_user_per_day} bookings per day"
            )
        weekly = sum(1 for d in held if d.isocalendar()[:2] == week)
        if weekly >= policy.max_bookings_per_user_per_week:
            raise BookingLimitError(
                f"User {request.user_id} has reached the limit of "
                f"{policy.max_bookings_per_user_per_week} bookings per week"
            )

    def _find_conflict(
        self, request: CommittedReservation, margin: timedelta
    ) -> Optional[str]:
        """Describe the first committed interval within ``margin`` of the request."""
        start = to_local(request.start, self._tz)
        end = to_local(request.end, self._tz)
        for reservation in self._reservations.values():
            if reservation.room_id != request.room_id or not reservation.status.blocks_slots:
                continue
            if spans_overlap(
                start, end,
                to_local(reservation.start, self._tz), to_local(reservation.end, self._tz),
                margin,
            ):
                return f"booking {reservation.id}"
        for blackout in self._blackouts.values():
            if blackout.room_id != request.room_id or not blackout.is_active:
                continue
            if spans_overlap(
                start, end,
                to_local(blackout.start, self._tz), to_local(blackout.end, self._tz),
                margin,
            ):
                return f"blackout {blackout.id}"
        return None

    async def cancel_reservation(self, reservation_id: str) -> CommittedReservation:
        async with self._write_lock:
            reservation = self._reservations.get(reservation_id)
            if reservation is None:
                raise KeyError(f"Reservation {reservation_id} not found")
            updated = reservation.model_copy(update={"status": ReservationStatus.CANCELLED})
            self._reservations[reservation_id] = updated
            logger.info("Reservation cancelled: %s", reservation_id)
            return updated

    async def expire_pending_reservations(self, now: datetime) -> list[CommittedReservation]:
        """Cancel pending reservations whose start time has already passed."""
        async with self._write_lock:
            expired = []
            for reservation_id, reservation in list(self._reservations.items()):
                if (
                    reservation.status is ReservationStatus.PENDING
                    and to_local(reservation.start, self._tz) < to_local(now, self._tz)
                ):
                    updated = reservation.model_copy(
                        update={"status": ReservationStatus.CANCELLED}
                    )
                    self._reservations[reservation_id] = updated
                    expired.append(updated)
            if expired:
                logger.info("Expired %d pending reservations", len(expired))
            else:
                logger.debug("No pending reservations to expire")
            return expired

    def get_reservation(self, reservation_id: str) -> Optional[CommittedReservation]:
        return self._reservations.get(reservation_id)

    def reset(self) -> None:
        """Clear all records. Used by test fixtures for isolation."""
        self._policies.clear()
        self._reservations.clear()
        self._blackouts.clear()
