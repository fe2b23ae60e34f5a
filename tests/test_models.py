"""Tests for sync data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as ModelValidationError

from front_desk_sync.sync.models import (
    Booking,
    BookingStatus,
    DrainOutcome,
    DrainResult,
    MergedBooking,
    PendingCheckinEvent,
    Scope,
    SignalReading,
    SignalSource,
)


def _event(**overrides) -> PendingCheckinEvent:
    fields = {
        "booking_id": "b1",
        "room_number": 7,
        "hotel_id": "h1",
        "today": "2024-01-01",
        "timestamp": 1_704_100_000_000,
    }
    fields.update(overrides)
    return PendingCheckinEvent(**fields)


class TestBookingStatus:
    @pytest.mark.parametrize(
        "status,expected",
        [
            (BookingStatus.CONFIRMED, True),
            (BookingStatus.CHECKED_IN, True),
            (BookingStatus.CHECKED_OUT, False),
            (BookingStatus.CANCELLED, False),
        ],
    )
    def test_is_actionable(self, status, expected):
        assert status.is_actionable is expected


class TestBooking:
    def test_numeric_ids_become_strings(self, booking_row):
        row = booking_row("1", "Alice")
        row["id"] = 1
        row["hotel_id"] = 5
        booking = Booking.model_validate(row)
        assert booking.id == "1"
        assert booking.hotel_id == "5"

    def test_room_defaults_to_none(self):
        booking = Booking(
            id="1", hotel_id="h1", guest_name="Alice", status="confirmed"
        )
        assert booking.room_number is None

    def test_unknown_status_rejected(self, booking_row):
        with pytest.raises(ModelValidationError):
            Booking.model_validate(booking_row("1", "Alice", status="lost"))

    def test_frozen(self, booking_row):
        booking = Booking.model_validate(booking_row("1", "Alice"))
        with pytest.raises(ModelValidationError):
            booking.guest_name = "Bob"

    def test_merged_booking_defaults_not_pending(self, booking_row):
        merged = MergedBooking.model_validate(booking_row("1", "Alice"))
        assert merged.pending_sync is False


class TestPendingCheckinEvent:
    def test_client_event_body(self):
        assert _event().to_client_event() == {
            "type": "offline_checkin",
            "booking_id": "b1",
            "room_number": 7,
            "today": "2024-01-01",
        }

    def test_json_round_trip(self):
        event = _event()
        assert PendingCheckinEvent.model_validate(event.model_dump(mode="json")) == event


class TestScope:
    def test_matches_same_hotel_and_day(self):
        assert Scope(hotel_id="h1", today="2024-01-01").matches(_event())

    def test_other_hotel_does_not_match(self):
        assert not Scope(hotel_id="h2", today="2024-01-01").matches(_event())

    def test_other_day_does_not_match(self):
        assert not Scope(hotel_id="h1", today="2024-01-02").matches(_event())

    def test_numeric_hotel_id(self):
        scope = Scope(hotel_id=1, today="2024-01-01")
        assert scope.matches(_event(hotel_id="1"))


class TestSignalRanking:
    def test_priority_order(self):
        assert (
            SignalSource.TRANSPORT.priority
            > SignalSource.HOST.priority
            > SignalSource.POLL.priority
        )

    def test_transport_failure_keeps_transport_rank(self):
        reading = SignalReading(source=SignalSource.TRANSPORT, offline=True, at=1.0)
        assert reading.rank == SignalSource.TRANSPORT.priority

    def test_transport_success_ranks_with_host(self):
        reading = SignalReading(source=SignalSource.TRANSPORT, offline=False, at=1.0)
        assert reading.rank == SignalSource.HOST.priority

    def test_poll_rank(self):
        reading = SignalReading(source=SignalSource.POLL, offline=False, at=1.0)
        assert reading.rank == SignalSource.POLL.priority


class TestDrainResult:
    @pytest.mark.parametrize(
        "outcome,removed",
        [
            (DrainOutcome.DELIVERED, True),
            (DrainOutcome.REJECTED, True),
            (DrainOutcome.RETRY, False),
            (DrainOutcome.NETWORK_ERROR, False),
            (DrainOutcome.IDLE, False),
            (DrainOutcome.BUSY, False),
        ],
    )
    def test_removed_head(self, outcome, removed):
        assert DrainResult(outcome=outcome).removed_head is removed
