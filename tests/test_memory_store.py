"""Tests for the in-memory store and its write-path overlap re-check."""

import asyncio
import json
from datetime import datetime

import pytest

from roomslots.schemas.policy_schema import ReservationStatus
from roomslots.sources.memory_store import (
    BookingLimitError,
    InMemoryRoomStore,
    ReservationConflictError,
)

from tests.conftest import NOW, UTC, make_blackout, make_policy_record, make_reservation


@pytest.fixture
def room(store):
    store.put_policy("room-a", make_policy_record(buffer_time=15))
    store.add_reservation(
        make_reservation(datetime(2026, 10, 19, 10), datetime(2026, 10, 19, 11))
    )
    return store


class TestCreateReservation:
    @pytest.mark.asyncio
    async def test_free_interval_accepted(self, room):
        created = await room.create_reservation(
            "room-a", datetime(2026, 10, 19, 12), datetime(2026, 10, 19, 13), user_id="u1"
        )
        assert created.id.startswith("RES-")
        assert created.status == ReservationStatus.PENDING
        assert room.get_reservation(created.id) == created

    @pytest.mark.asyncio
    async def test_overlap_rejected(self, room):
        with pytest.raises(ReservationConflictError, match="booking"):
            await room.create_reservation(
                "room-a", datetime(2026, 10, 19, 10, 30), datetime(2026, 10, 19, 11, 30)
            )

    @pytest.mark.asyncio
    async def test_inside_buffer_rejected(self, room):
        with pytest.raises(ReservationConflictError):
            await room.create_reservation(
                "room-a", datetime(2026, 10, 19, 11), datetime(2026, 10, 19, 12)
            )

    @pytest.mark.asyncio
    async def test_just_after_buffer_accepted(self, room):
        created = await room.create_reservation(
            "room-a", datetime(2026, 10, 19, 11, 15), datetime(2026, 10, 19, 12)
        )
        assert created.start == datetime(2026, 10, 19, 11, 15)

    @pytest.mark.asyncio
    async def test_blackout_rejected(self, room):
        room.add_blackout(make_blackout(datetime(2026, 10, 20, 9), datetime(2026, 10, 20, 12)))
        with pytest.raises(ReservationConflictError, match="blackout"):
            await room.create_reservation(
                "room-a", datetime(2026, 10, 20, 11), datetime(2026, 10, 20, 12)
            )

    @pytest.mark.asyncio
    async def test_unconfigured_room_rejected(self, store):
        with pytest.raises(ReservationConflictError, match="no availability settings"):
            await store.create_reservation(
                "room-x", datetime(2026, 10, 19, 12), datetime(2026, 10, 19, 13)
            )

    @pytest.mark.asyncio
    async def test_concurrent_requests_only_one_wins(self, room):
        results = await asyncio.gather(
            room.create_reservation(
                "room-a", datetime(2026, 10, 19, 14), datetime(2026, 10, 19, 15)
            ),
            room.create_reservation(
                "room-a", datetime(2026, 10, 19, 14, 30), datetime(2026, 10, 19, 15, 30)
            ),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, ReservationConflictError)]
        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_cancelled_reservation_frees_interval(self, room):
        await room.cancel_reservation("RES-TEST")
        created = await room.create_reservation(
            "room-a", datetime(2026, 10, 19, 10), datetime(2026, 10, 19, 11)
        )
        assert created.status == ReservationStatus.PENDING


class TestUserLimits:
    @pytest.mark.asyncio
    async def test_daily_limit(self, room):
        await room.create_reservation(
            "room-a", datetime(2026, 10, 19, 12), datetime(2026, 10, 19, 13), user_id="u1"
        )
        with pytest.raises(BookingLimitError, match="per day"):
            await room.create_reservation(
                "room-a", datetime(2026, 10, 19, 15), datetime(2026, 10, 19, 16), user_id="u1"
            )

    @pytest.mark.asyncio
    async def test_other_user_and_other_day_unaffected(self, room):
        await room.create_reservation(
            "room-a", datetime(2026, 10, 19, 12), datetime(2026, 10, 19, 13), user_id="u1"
        )
        await room.create_reservation(
            "room-a", datetime(2026, 10, 19, 15), datetime(2026, 10, 19, 16), user_id="u2"
        )
        created = await room.create_reservation(
            "room-a", datetime(2026, 10, 20, 12), datetime(2026, 10, 20, 13), user_id="u1"
        )
        assert created.user_id == "u1"

    @pytest.mark.asyncio
    async def test_weekly_limit(self, store):
        record = make_policy_record(buffer_time=0)
        record["max_bookings_per_user_per_day"] = 2
        record["max_bookings_per_user_per_week"] = 2
        store.put_policy("room-a", record)
        # Monday and Friday of the same week.
        await store.create_reservation(
            "room-a", datetime(2026, 10, 19, 9), datetime(2026, 10, 19, 10), user_id="u1"
        )
        await store.create_reservation(
            "room-a", datetime(2026, 10, 23, 9), datetime(2026, 10, 23, 10), user_id="u1"
        )
        with pytest.raises(BookingLimitError, match="per week"):
            await store.create_reservation(
                "room-a", datetime(2026, 10, 21, 9), datetime(2026, 10, 21, 10), user_id="u1"
            )
        # The following Monday starts a new week.
        created = await store.create_reservation(
            "room-a", datetime(2026, 10, 26, 9), datetime(2026, 10, 26, 10), user_id="u1"
        )
        assert created.start.date().isoformat() == "2026-10-26"

    @pytest.mark.asyncio
    async def test_cancelled_booking_does_not_count(self, room):
        first = await room.create_reservation(
            "room-a", datetime(2026, 10, 19, 12), datetime(2026, 10, 19, 13), user_id="u1"
        )
        await room.cancel_reservation(first.id)
        created = await room.create_reservation(
            "room-a", datetime(2026, 10, 19, 15), datetime(2026, 10, 19, 16), user_id="u1"
        )
        assert created.status == ReservationStatus.PENDING

    def test_limit_error_is_a_conflict(self):
        assert issubclass(BookingLimitError, ReservationConflictError)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_cancel_unknown_reservation(self, store):
        with pytest.raises(KeyError):
            await store.cancel_reservation("RES-NOPE")

    @pytest.mark.asyncio
    async def test_expire_pending_reservations(self, store):
        store.add_reservation(
            make_reservation(
                datetime(2026, 10, 17, 10), datetime(2026, 10, 17, 11),
                status=ReservationStatus.PENDING, reservation_id="RES-OLD",
            )
        )
        store.add_reservation(
            make_reservation(
                datetime(2026, 10, 19, 10), datetime(2026, 10, 19, 11),
                status=ReservationStatus.PENDING, reservation_id="RES-NEW",
            )
        )
        store.add_reservation(
            make_reservation(
                datetime(2026, 10, 17, 12), datetime(2026, 10, 17, 13),
                reservation_id="RES-DONE",
            )
        )
        expired = await store.expire_pending_reservations(NOW)
        assert [r.id for r in expired] == ["RES-OLD"]
        assert store.get_reservation("RES-OLD").status == ReservationStatus.CANCELLED
        assert store.get_reservation("RES-NEW").status == ReservationStatus.PENDING
        assert store.get_reservation("RES-DONE").status == ReservationStatus.CONFIRMED

    def test_reset_clears_everything(self, room):
        room.reset()
        assert room.get_reservation("RES-TEST") is None


class TestLoading:
    def test_from_json(self, tmp_path):
        path = tmp_path / "rooms.json"
        path.write_text(json.dumps({
            "rooms": {"room-a": make_policy_record(), "room-b": None},
            "reservations": [{
                "id": "RES-1", "room_id": "room-a",
                "start": "2026-10-19T10:00:00", "end": "2026-10-19T11:00:00",
                "status": "confirmed",
            }],
            "blackouts": [{
                "id": "BLK-1", "room_id": "room-a",
                "start": "2026-10-22T00:00:00", "end": "2026-10-22T23:00:00",
                "reason": "Carpet", "blackout_type": "repair",
            }],
        }))
        store = InMemoryRoomStore.from_json(path, tz=UTC)
        assert store.get_reservation("RES-1").status == ReservationStatus.CONFIRMED
        assert asyncio.run(store.fetch_policy("room-b")) is None
        blackouts = asyncio.run(store.fetch_blackouts("room-a"))
        assert [b.reason for b in blackouts] == ["Carpet"]

    def test_invalid_reservation_rejected(self):
        with pytest.raises(ValueError):
            InMemoryRoomStore.from_dict({
                "reservations": [{
                    "id": "RES-1", "room_id": "room-a",
                    "start": "2026-10-19T11:00:00", "end": "2026-10-19T10:00:00",
                }],
            })
