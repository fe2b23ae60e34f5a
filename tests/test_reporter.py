"""Tests for dashboard and queue formatting."""

from __future__ import annotations

import json

from front_desk_sync.sync.models import (
    Booking,
    DrainOutcome,
    DrainResult,
    PendingCheckinEvent,
    Scope,
)
from front_desk_sync.sync.reconcile import merge
from front_desk_sync.sync.reporter import (
    format_banner,
    format_drain_result,
    format_queue,
    format_view,
    view_to_json,
)

SCOPE = Scope(hotel_id="h1", today="2024-01-01")


def _event(booking_id: str = "1", room: int = 7) -> PendingCheckinEvent:
    return PendingCheckinEvent(
        booking_id=booking_id,
        room_number=room,
        hotel_id="h1",
        today="2024-01-01",
        timestamp=1_704_110_400_000,
    )


def _view():
    base = [
        Booking(id="1", hotel_id="h1", guest_name="Alice", status="confirmed"),
        Booking(id="2", hotel_id="h1", guest_name="Bob", status="checked_out", room_number=3),
    ]
    return merge(base, [_event()], SCOPE)


class TestFormatBanner:
    def test_online_live(self):
        assert format_banner(SCOPE, offline=False, live=True, pending_count=0) == (
            "[ONLINE] Hotel h1 - 2024-01-01 - live data"
        )

    def test_offline_cached_with_queue(self):
        banner = format_banner(
            SCOPE,
            offline=True,
            live=False,
            pending_count=2,
            saved_at="2024-01-01T08:00:00+00:00",
        )
        assert banner.startswith("[OFFLINE]")
        assert "cached data from 2024-01-01T08:00:00+00:00" in banner
        assert "2 check-in(s) waiting to sync" in banner

    def test_no_data(self):
        assert "no data" in format_banner(SCOPE, True, False, 0)


class TestFormatView:
    def test_empty(self):
        assert format_view([]) == "No bookings."

    def test_pending_flag_and_legend(self):
        lines = format_view(_view()).splitlines()
        assert lines[0].lstrip().startswith("Guest")
        assert lines[1].startswith("* Alice")
        assert "checked_in" in lines[1]
        assert " 7 " in lines[1]
        assert lines[2].startswith("  Bob")
        assert lines[-1] == "* pending sync"

    def test_no_legend_without_pending(self):
        view = merge(
            [Booking(id="1", hotel_id="h1", guest_name="Alice", status="confirmed")],
            [],
            SCOPE,
        )
        assert "pending sync" not in format_view(view)


class TestFormatQueue:
    def test_empty(self):
        assert format_queue([]) == "Outbox is empty."

    def test_lists_oldest_first(self):
        text = format_queue([_event("1", 7), _event("2", 8)])
        lines = text.splitlines()
        assert lines[0] == "2 pending check-in(s):"
        assert lines[1].startswith("  1. booking 1 -> room 7 (hotel h1, 2024-01-01)")
        assert "queued 2024-01-01 12:00:00" in lines[1]
        assert lines[2].startswith("  2. booking 2 -> room 8")


class TestFormatDrainResult:
    def test_each_outcome_has_a_message(self):
        for outcome in DrainOutcome:
            result = DrainResult(outcome=outcome, booking_id="1", status_code=500, error="x")
            assert format_drain_result(result)

    def test_rejected_mentions_status(self):
        result = DrainResult(outcome=DrainOutcome.REJECTED, booking_id="1", status_code=409)
        assert "HTTP 409" in format_drain_result(result)
        assert "removed from queue" in format_drain_result(result)

    def test_idle(self):
        assert "nothing to sync" in format_drain_result(DrainResult(outcome=DrainOutcome.IDLE))


class TestViewToJson:
    def test_structure_is_serialisable(self):
        data = view_to_json(SCOPE, offline=True, live=False, view=_view(), pending=[_event()])

        assert data["hotel_id"] == "h1"
        assert data["offline"] is True
        assert data["counts"] == {
            "bookings": 2,
            "actionable": 1,
            "pending_sync": 1,
            "queued": 1,
        }
        assert data["bookings"][0]["status"] == "checked_in"
        assert data["bookings"][0]["pending_sync"] is True
        assert data["queue"][0]["booking_id"] == "1"
        json.dumps(data)
