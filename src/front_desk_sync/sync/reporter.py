"""Dashboard and queue formatting functions.

Provides human-readable and machine-readable output for the front desk:

- ``format_banner`` -- one-line connectivity/data-source banner.
- ``format_view`` -- the merged booking list as a table.
- ``format_queue`` -- pending offline check-ins, oldest first.
- ``format_drain_result`` -- one line describing a drain attempt.
- ``view_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models import (
        DrainResult,
        MergedBooking,
        PendingCheckinEvent,
        Scope,
    )

from .models import DrainOutcome

# ------------------------------------------------------------------
# Banner
# ------------------------------------------------------------------


def format_banner(
    scope: Scope,
    offline: bool,
    live: bool,
    pending_count: int,
    saved_at: str | None = None,
) -> str:
    """Format the status banner shown above the booking list.

    Args:
        scope: Hotel and day being displayed.
        offline: Current connectivity flag.
        live: Whether the list comes from the live feed.
        pending_count: Number of events in the outbox.
        saved_at: When the cached snapshot was taken, if one is shown.

    Returns:
        Single-line string.
    """
    state = "OFFLINE" if offline else "ONLINE"
    banner = f"[{state}] Hotel {scope.hotel_id} - {scope.today}"
    if live:
        banner += " - live data"
    elif saved_at:
        banner += f" - cached data from {saved_at}"
    else:
        banner += " - no data"
    if pending_count:
        banner += f" - {pending_count} check-in(s) waiting to sync"
    return banner


# ------------------------------------------------------------------
# Booking list
# ------------------------------------------------------------------


def format_view(view: Sequence[MergedBooking]) -> str:
    """Format the merged view as a fixed-width table.

    Bookings with an unacknowledged local check-in are flagged with ``*``.
    """
    if not view:
        return "No bookings."

    name_width = max(len("Guest"), *(len(b.guest_name) for b in view))
    lines = [
        f"  {'Guest':<{name_width}}  {'Room':>4}  {'Status':<11}  Booking",
    ]
    for b in view:
        room = str(b.room_number) if b.room_number is not None else "-"
        flag = "*" if b.pending_sync else " "
        lines.append(
            f"{flag} {b.guest_name:<{name_width}}  {room:>4}  "
            f"{b.status.value:<11}  {b.id}"
        )
    if any(b.pending_sync for b in view):
        lines.append("")
        lines.append("* pending sync")
    return "\n".join(lines)


# ------------------------------------------------------------------
# Outbox
# ------------------------------------------------------------------


def _format_timestamp(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S"
    )


def format_queue(pending: Sequence[PendingCheckinEvent]) -> str:
    """Format the outbox contents, oldest first."""
    if not pending:
        return "Outbox is empty."

    lines = [f"{len(pending)} pending check-in(s):"]
    for position, event in enumerate(pending, start=1):
        lines.append(
            f"  {position}. booking {event.booking_id} -> room "
            f"{event.room_number} (hotel {event.hotel_id}, {event.today}) "
            f"queued {_format_timestamp(event.timestamp)}"
        )
    return "\n".join(lines)


def format_drain_result(result: DrainResult) -> str:
    """Describe one drain attempt in a single line."""
    if result.outcome == DrainOutcome.IDLE:
        return "Outbox is empty, nothing to sync."
    if result.outcome == DrainOutcome.BUSY:
        return "A drain is already in progress."
    if result.outcome == DrainOutcome.DELIVERED:
        return f"Synced check-in for booking {result.booking_id}."
    if result.outcome == DrainOutcome.REJECTED:
        return (
            f"Backend rejected check-in for booking {result.booking_id} "
            f"(HTTP {result.status_code}); removed from queue."
        )
    if result.outcome == DrainOutcome.RETRY:
        return (
            f"Backend error for booking {result.booking_id} "
            f"(HTTP {result.status_code}); will retry."
        )
    return (
        f"Network error for booking {result.booking_id}; will retry: "
        f"{result.error}"
    )


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def view_to_json(
    scope: Scope,
    offline: bool,
    live: bool,
    view: Sequence[MergedBooking],
    pending: Sequence[PendingCheckinEvent],
) -> dict:
    """Convert the dashboard state to a structured dict for JSON output.

    Returns:
        Dict with scope, connectivity, bookings and the outbox.
    """
    return {
        "hotel_id": scope.hotel_id,
        "today": scope.today,
        "offline": offline,
        "live": live,
        "counts": {
            "bookings": len(view),
            "actionable": sum(1 for b in view if b.status.is_actionable),
            "pending_sync": sum(1 for b in view if b.pending_sync),
            "queued": len(pending),
        },
        "bookings": [b.model_dump(mode="json") for b in view],
        "queue": [e.model_dump(mode="json") for e in pending],
    }
