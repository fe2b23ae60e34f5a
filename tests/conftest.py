"""Shared pytest fixtures for front-desk-sync tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from front_desk_sync.config import Config
from front_desk_sync.errors import NetworkError
from front_desk_sync.sync.connectivity import ConnectivityMonitor
from front_desk_sync.sync.state import StateStore


class FakeBookingClient:
    """Minimal BookingApiClient replacement for testing.

    Serves bookings from an in-memory list and records every mutation.
    Set ``offline`` to make every call fail at the transport level, or
    queue exceptions in ``event_failures`` to fail the next
    ``send_client_event`` calls in order (``None`` entries succeed).
    """

    def __init__(self, bookings: Optional[List[Dict[str, Any]]] = None) -> None:
        self.bookings: List[Dict[str, Any]] = list(bookings or [])
        self.offline = False
        self.event_failures: List[Optional[Exception]] = []
        self.sent_events: List[Dict[str, Any]] = []
        self.checkins: List[tuple] = []
        self.checkouts: List[str] = []
        self.cancels: List[str] = []
        self.shape_calls = 0
        self.room_count = 10

    def _transport(self) -> None:
        if self.offline:
            raise NetworkError("Connection refused")

    def list_hotels(self) -> List[Dict[str, Any]]:
        self._transport()
        return [{"id": "h1", "room_count": self.room_count}]

    def get_hotel(self, hotel_id: str) -> Dict[str, Any]:
        self._transport()
        return {"id": hotel_id, "room_count": self.room_count}

    def get_booking_shape(self, hotel_id: str, today: str) -> List[Dict[str, Any]]:
        self.shape_calls += 1
        self._transport()
        return [b for b in self.bookings if str(b["hotel_id"]) == hotel_id]

    def check_in(self, booking_id: str, today: str) -> Dict[str, Any]:
        self._transport()
        self.checkins.append((booking_id, today))
        return {"ok": True}

    def check_out(self, booking_id: str) -> Dict[str, Any]:
        self._transport()
        self.checkouts.append(booking_id)
        return {"ok": True}

    def cancel(self, booking_id: str) -> Dict[str, Any]:
        self._transport()
        self.cancels.append(booking_id)
        return {"ok": True}

    def send_client_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        self._transport()
        if self.event_failures:
            failure = self.event_failures.pop(0)
            if failure is not None:
                raise failure
        self.sent_events.append(event)
        return {"ok": True}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def mock_config(tmp_path: Path) -> Config:
    """Create a Config instance pointing at a temporary state dir."""
    return Config(
        api_url="https://bookings.example.com/api",
        state_dir=str(tmp_path / "state"),
        insecure=False,
    )


@pytest.fixture
def fake_client() -> FakeBookingClient:
    return FakeBookingClient()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monitor() -> ConnectivityMonitor:
    return ConnectivityMonitor()


@pytest.fixture
def store(tmp_path: Path) -> StateStore:
    return StateStore(tmp_path / "state")


@pytest.fixture
def booking_row():
    """Factory fixture for raw booking rows as the backend sends them."""

    def _row(
        booking_id: str,
        guest_name: str,
        status: str = "confirmed",
        room_number: Optional[int] = None,
        hotel_id: str = "h1",
    ) -> Dict[str, Any]:
        return {
            "id": booking_id,
            "hotel_id": hotel_id,
            "room_number": room_number,
            "guest_name": guest_name,
            "start_time": "2024-01-01T15:00:00Z",
            "end_time": "2024-01-03T11:00:00Z",
            "status": status,
        }

    return _row
