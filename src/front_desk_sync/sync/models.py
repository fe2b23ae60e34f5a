"""Pydantic models for the offline sync engine.

Defines the core data contracts used across all sync modules:

- ``BookingStatus``: Lifecycle states of a booking.
- ``Booking``: Remote-owned booking record.
- ``PendingCheckinEvent``: An offline check-in waiting in the outbox.
- ``Scope``: The hotel/date pair a dashboard is looking at.
- ``MergedBooking``: A booking in the reconciled view.
- ``SignalSource`` / ``SignalReading``: Connectivity signal bookkeeping.
- ``DrainOutcome`` / ``DrainResult``: Outcome of one outbox drain attempt.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, field_validator


class BookingStatus(str, Enum):
    """Lifecycle states of a booking."""

    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"

    @property
    def is_actionable(self) -> bool:
        """True when a front-desk action is still possible."""
        return self in (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN)


def _coerce_id(value: object) -> object:
    # Integers from the wire become strings; bools are left for pydantic to reject.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class Booking(BaseModel):
    """A booking as delivered by the backend.

    Attributes:
        id: Opaque stable identifier, always held as a string.
        hotel_id: Owning hotel identifier.
        room_number: Assigned room, or ``None`` when unassigned.
        guest_name: Guest display name.
        start_time: Arrival date/time as delivered.
        end_time: Departure date/time as delivered.
        status: Current booking status.
    """

    id: str
    hotel_id: str
    room_number: int | None = None
    guest_name: str
    start_time: str = ""
    end_time: str = ""
    status: BookingStatus

    model_config = {"frozen": True}

    @field_validator("id", "hotel_id", mode="before")
    @classmethod
    def coerce_ids(cls, value: object) -> object:
        return _coerce_id(value)


class MergedBooking(Booking):
    """A booking in the reconciled view.

    Attributes:
        pending_sync: True when the displayed state reflects a queued,
            unacknowledged local check-in.
    """

    pending_sync: bool = False


class PendingCheckinEvent(BaseModel):
    """An offline check-in waiting in the outbox queue.

    Attributes:
        booking_id: Booking to check in.
        room_number: Room assigned by the operator.
        hotel_id: Hotel the booking belongs to.
        today: Operational date (``YYYY-MM-DD``) the check-in applies to.
        timestamp: Creation time in epoch milliseconds.
    """

    booking_id: str
    room_number: int
    hotel_id: str
    today: str
    timestamp: int

    model_config = {"frozen": True}

    @field_validator("booking_id", "hotel_id", mode="before")
    @classmethod
    def coerce_ids(cls, value: object) -> object:
        return _coerce_id(value)

    def to_client_event(self) -> dict:
        """Render the ``POST /client-events`` request body."""
        return {
            "type": "offline_checkin",
            "booking_id": self.booking_id,
            "room_number": self.room_number,
            "today": self.today,
        }


class Scope(BaseModel):
    """The hotel/date pair a dashboard is operating on."""

    hotel_id: str
    today: str

    model_config = {"frozen": True}

    @field_validator("hotel_id", mode="before")
    @classmethod
    def coerce_hotel_id(cls, value: object) -> object:
        return _coerce_id(value)

    def matches(self, event: PendingCheckinEvent) -> bool:
        """Return ``True`` if *event* applies to this scope."""
        return event.hotel_id == self.hotel_id and event.today == self.today


class SignalSource(str, Enum):
    """Connectivity signal sources."""

    TRANSPORT = "transport"
    HOST = "host"
    POLL = "poll"

    @property
    def priority(self) -> int:
        """Higher wins when signals disagree within one window."""
        return _SIGNAL_PRIORITY[self]


_SIGNAL_PRIORITY = {
    SignalSource.TRANSPORT: 3,
    SignalSource.HOST: 2,
    SignalSource.POLL: 1,
}


class SignalReading(BaseModel):
    """Last reading reported by one connectivity signal source.

    Attributes:
        source: Which signal produced the reading.
        offline: The state the signal reported.
        at: Monotonic clock time of the reading.
    """

    source: SignalSource
    offline: bool
    at: float

    model_config = {"frozen": True}

    @property
    def rank(self) -> int:
        """Resolution rank of this reading.

        A transport failure carries the full transport priority.  A
        successful call only ranks with host edges, so a newer host edge
        overrides an older success and vice versa.
        """
        if self.source is SignalSource.TRANSPORT and not self.offline:
            return SignalSource.HOST.priority
        return self.source.priority


class DrainOutcome(str, Enum):
    """Possible outcomes of one outbox drain attempt."""

    IDLE = "idle"
    BUSY = "busy"
    DELIVERED = "delivered"
    REJECTED = "rejected"
    RETRY = "retry"
    NETWORK_ERROR = "network_error"


class DrainResult(BaseModel):
    """Result of one drain attempt.

    Attributes:
        outcome: What happened to the queue head.
        booking_id: Booking of the head event, when one was sent.
        status_code: HTTP status returned, when a response arrived.
        error: Error text for retained or rejected events.
    """

    outcome: DrainOutcome
    booking_id: str | None = None
    status_code: int | None = None
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def removed_head(self) -> bool:
        """True if the head event left the queue."""
        return self.outcome in (DrainOutcome.DELIVERED, DrainOutcome.REJECTED)
