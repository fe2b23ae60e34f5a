"""Overlay pending check-ins onto a booking list.

``merge()`` is a pure function: it never mutates its inputs and identical
inputs always give value-equal output.  The result order is total:

1. actionable bookings (confirmed, checked in) before the rest;
2. guest name, compared case-insensitively;
3. booking id, so equal names never depend on sort stability.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from .models import (
    Booking,
    BookingStatus,
    MergedBooking,
    PendingCheckinEvent,
    Scope,
)


def _sort_key(booking: MergedBooking) -> tuple[int, str, str]:
    return (
        0 if booking.status.is_actionable else 1,
        booking.guest_name.casefold(),
        booking.id,
    )


def merge(
    base: Sequence[Booking],
    pending: Iterable[PendingCheckinEvent],
    scope: Scope,
) -> list[MergedBooking]:
    """Apply the in-scope pending events to *base* and order the result.

    Events are applied oldest first, so when several events target the
    same booking the one queued last wins.  Events whose booking is not
    in *base* are skipped; they are looked at again on the next merge.

    Args:
        base: Live or cached booking list.
        pending: Outbox contents, oldest first.
        scope: Hotel and operational day being displayed.

    Returns:
        The merged view.
    """
    working: dict[str, MergedBooking] = {}
    for booking in base:
        working[booking.id] = MergedBooking(
            **booking.model_dump(exclude={"pending_sync"})
        )

    for event in pending:
        if not scope.matches(event):
            continue
        current = working.get(event.booking_id)
        if current is None:
            continue
        working[event.booking_id] = current.model_copy(
            update={
                "status": BookingStatus.CHECKED_IN,
                "room_number": event.room_number,
                "pending_sync": True,
            }
        )

    return sorted(working.values(), key=_sort_key)


def occupied_rooms(view: Iterable[Booking]) -> set[int]:
    """Rooms held by checked-in bookings in *view*."""
    return {
        b.room_number
        for b in view
        if b.status == BookingStatus.CHECKED_IN and b.room_number is not None
    }


def available_rooms(room_count: int, view: Iterable[Booking]) -> list[int]:
    """Rooms ``1..room_count`` not held by a checked-in booking."""
    taken = occupied_rooms(view)
    return [room for room in range(1, room_count + 1) if room not in taken]
