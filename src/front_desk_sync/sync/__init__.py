"""Offline-resilient sync engine for the front desk.

Public API for keeping a hotel's booking list usable while the terminal
has no connectivity.

Architecture
------------
Check-ins made while offline go into a durable **outbox** and are replayed
to the backend in FIFO order once the connection returns.  The dashboard
never shows the outbox directly: every render is the result of
``merge()``, which overlays the pending check-ins on the live booking list,
or on the last cached snapshot while the live feed is unavailable.

Modules:

- ``engine``       -- ``SyncEngine``: wires the components for one scope.
- ``connectivity`` -- ``ConnectivityMonitor``: priority-resolved offline flag.
- ``outbox``       -- ``OutboxQueue``: durable FIFO, single-flight drain.
- ``reconcile``    -- ``merge()``: pure overlay and ordering.
- ``snapshot``     -- ``SnapshotCache``: last known-good list per hotel.
- ``feed``         -- ``LiveBookingFeed``: periodic fetch of the live list.
- ``state``        -- ``StateStore``: atomic JSON records on disk.
- ``models``       -- ``Booking``, ``PendingCheckinEvent``, ``Scope``,
  ``MergedBooking`` and friends.
- ``reporter``     -- Human-readable and JSON formatting.

Usage example
-------------
::

    from pathlib import Path
    from front_desk_sync.core.client import BookingApiClient
    from front_desk_sync.sync import Scope, SyncEngine, format_view

    engine = SyncEngine(
        client=BookingApiClient(config),
        scope=Scope(hotel_id="1", today="2024-01-01"),
        state_dir=Path(".front_desk/state"),
    )
    engine.subscribe(lambda view: print(format_view(view)))
    engine.start()

    # Queued if the terminal is offline, sent directly otherwise.
    await engine.check_in("42", room_number=7)

    await engine.stop()
"""

from .connectivity import ConnectivityMonitor
from .engine import SyncEngine
from .feed import LiveBookingFeed, parse_shape_rows
from .models import (
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
from .outbox import OutboxQueue
from .reconcile import available_rooms, merge, occupied_rooms
from .reporter import (
    format_banner,
    format_drain_result,
    format_queue,
    format_view,
    view_to_json,
)
from .snapshot import SnapshotCache
from .state import StateStore

__all__ = [
    "Booking",
    "BookingStatus",
    "ConnectivityMonitor",
    "DrainOutcome",
    "DrainResult",
    "LiveBookingFeed",
    "MergedBooking",
    "OutboxQueue",
    "PendingCheckinEvent",
    "Scope",
    "SignalReading",
    "SignalSource",
    "SnapshotCache",
    "StateStore",
    "SyncEngine",
    "available_rooms",
    "format_banner",
    "format_drain_result",
    "format_queue",
    "format_view",
    "merge",
    "occupied_rooms",
    "parse_shape_rows",
    "view_to_json",
]
