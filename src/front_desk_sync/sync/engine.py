"""Sync engine that ties the offline components together for one scope.

The ``SyncEngine`` owns one instance of each component and is the only
place they meet:

1. ``ConnectivityMonitor`` decides whether the terminal is offline.
2. ``LiveBookingFeed`` fetches the authoritative booking list.
3. ``SnapshotCache`` keeps the last live list per hotel.
4. ``OutboxQueue`` holds check-ins made while offline and drains them.
5. ``merge()`` overlays the queue on the live-or-cached list.

The merged view is recomputed whenever the feed delivers, the queue
changes or connectivity flips, and view subscribers are called only when
the result actually differs.

Three periodic tasks run on the event loop once ``start()`` is called:
the drain tick, the connectivity poll and the live feed refresh.  They are
coordinated only through the monitor and the drain's single-flight guard.
``stop()`` cancels them; an owner that forgets to call it leaks the tasks.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable

from ..core.client import BookingApiClient
from ..errors import NetworkError, OfflineActionError
from .connectivity import ConnectivityMonitor
from .feed import LiveBookingFeed
from .models import Booking, MergedBooking, PendingCheckinEvent, Scope
from .outbox import OutboxQueue
from .reconcile import available_rooms, merge
from .snapshot import SnapshotCache
from .state import StateStore

logger = logging.getLogger(__name__)

ViewCallback = Callable[[list[MergedBooking]], None]


class SyncEngine:
    """Offline-resilient front-desk engine for one hotel/date scope.

    Args:
        client: API client for the booking backend.
        scope: Hotel and operational day shown on this terminal.
        state_dir: Directory for the outbox and snapshot records.
        monitor: Shared connectivity monitor; one is created if omitted.
        drain_interval: Seconds between outbox drain ticks.
        poll_interval: Seconds between connectivity polls.
        feed_interval: Seconds between live feed refreshes.
    """

    def __init__(
        self,
        client: BookingApiClient,
        scope: Scope,
        state_dir: Path,
        monitor: ConnectivityMonitor | None = None,
        drain_interval: float = 1.0,
        poll_interval: float = 0.5,
        feed_interval: float = 5.0,
    ) -> None:
        self.client = client
        self.scope = scope
        self.drain_interval = drain_interval
        self.poll_interval = poll_interval
        self.feed_interval = feed_interval

        self.monitor = monitor or ConnectivityMonitor(window=poll_interval)
        self.store = StateStore(Path(state_dir))
        self.outbox = OutboxQueue(self.store, client, self.monitor)
        self.cache = SnapshotCache(self.store, self.monitor)
        self.feed = LiveBookingFeed(client, self.monitor, scope)

        self._tasks: list[asyncio.Task] = []
        self._view_subscribers: list[ViewCallback] = []

        self.monitor.add_reconnect_hook(self.feed.reconnect)
        self.feed.subscribe(self._on_live_delivery)
        self.outbox.subscribe(lambda _events: self._recompute())
        self.monitor.subscribe(self._on_connectivity_change)

        # First observation of this scope: pull its snapshot into memory.
        self.cache.load(scope.hotel_id)
        self._view = self.view()

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------

    @property
    def is_offline(self) -> bool:
        return self.monitor.is_offline

    @property
    def is_live(self) -> bool:
        """True when the view is based on the live feed, not the snapshot."""
        return self.feed.bookings is not None

    def base(self) -> list[Booking]:
        """The live dataset, or the cached snapshot when there is none."""
        return self.cache.select_base(self.scope.hotel_id, self.feed.bookings)

    def view(self) -> list[MergedBooking]:
        """Compute the merged view from the current inputs."""
        return merge(self.base(), self.outbox.pending, self.scope)

    def subscribe(self, callback: ViewCallback) -> Callable[[], None]:
        """Call *callback* with the new view whenever it changes."""
        self._view_subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._view_subscribers:
                self._view_subscribers.remove(callback)

        return _unsubscribe

    def free_rooms(self, room_count: int) -> list[int]:
        """Rooms a manual check-in may still be assigned to."""
        return available_rooms(room_count, self._view)

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    async def check_in(
        self, booking_id: str, room_number: int | None = None
    ) -> PendingCheckinEvent | None:
        """Check a guest in, queueing the action when offline.

        Online, the backend check-in endpoint is called directly and the
        feed is asked to refresh.  Offline, or when the online call fails
        at the transport level, the check-in is appended to the outbox and
        needs *room_number*.

        Returns:
            The queued event, or ``None`` if the backend accepted the
            check-in directly.

        Raises:
            ValidationError: If the check-in has to be queued and a field
                is missing or malformed.
            NetworkError: If the online call failed and no room was given.
            ApiError: If the backend rejected the online check-in.
        """
        if not self.monitor.is_offline:
            try:
                await self.monitor.call(
                    self.client.check_in, booking_id, self.scope.today
                )
            except NetworkError:
                if room_number is None:
                    raise
                logger.info(
                    "Online check-in for booking %s failed; queueing it",
                    booking_id,
                )
            else:
                self.feed.reconnect()
                return None

        return self.outbox.append(
            booking_id, room_number, self.scope.hotel_id, self.scope.today
        )

    async def check_out(self, booking_id: str) -> None:
        """Check a guest out.  Needs connectivity."""
        await self._online_action("check out", self.client.check_out, booking_id)

    async def cancel(self, booking_id: str) -> None:
        """Cancel a booking.  Needs connectivity."""
        await self._online_action("cancel", self.client.cancel, booking_id)

    async def _online_action(
        self, action: str, func: Callable[[str], object], booking_id: str
    ) -> None:
        if self.monitor.is_offline:
            raise OfflineActionError(action)
        await self.monitor.call(func, booking_id)
        self.feed.reconnect()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        """Start the drain, poll and feed tasks on the running loop."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(
                self.outbox.run(self.drain_interval), name="outbox-drain"
            ),
            asyncio.create_task(
                self.monitor.run_poll(
                    lambda: self.feed.is_connected, self.poll_interval
                ),
                name="connectivity-poll",
            ),
            asyncio.create_task(
                self.feed.run(self.feed_interval), name="live-feed"
            ),
        ]
        logger.info(
            "Sync engine started for hotel %s on %s",
            self.scope.hotel_id,
            self.scope.today,
        )

    async def stop(self) -> None:
        """Cancel the periodic tasks and wait for them to finish."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Sync engine stopped")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _on_connectivity_change(self, offline: bool) -> None:
        # Keep the poll probe (feed.is_connected) in step with transport failures.
        if offline:
            self.feed.mark_disconnected()
            self.feed.reconnect()
        self._recompute()

    def _on_live_delivery(self, bookings: list[Booking]) -> None:
        self.cache.save(self.scope.hotel_id, bookings)
        self._recompute()

    def _recompute(self) -> None:
        view = self.view()
        if view == self._view:
            return
        self._view = view
        for callback in list(self._view_subscribers):
            try:
                callback(list(view))
            except Exception:
                logger.exception("View subscriber %r failed", callback)
