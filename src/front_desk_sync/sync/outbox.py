"""Durable FIFO outbox for check-ins made while offline.

The ``OutboxQueue`` is the single owner of the pending event list.  Callers
may only ``append()``; removal happens exclusively in ``drain()`` and only
ever takes the head.  Every committed change replaces the whole tuple,
persists it with one atomic write and then notifies subscribers, so any
reader observes a fully-formed queue.

Drain outcome policy for the head event:

======================  ===========================  =================
Backend outcome         Queue                        Connectivity
======================  ===========================  =================
2xx                     head removed                 online
4xx                     head removed (logged)        unchanged
5xx                     head kept, retried next tick unchanged
transport failure       head kept, retried next tick offline
======================  ===========================  =================

Retry is indefinite and the queue is global across hotels, so an
unresolved head blocks later events for other hotels.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Callable

from pydantic import ValidationError as ModelValidationError

from ..errors import (
    ApiError,
    ClientError,
    CorruptStateError,
    NetworkError,
    ValidationError,
)
from ..validators import validate_checkin_fields
from .models import DrainOutcome, DrainResult, PendingCheckinEvent

if TYPE_CHECKING:
    from ..core.client import BookingApiClient
    from .connectivity import ConnectivityMonitor
    from .state import StateStore

logger = logging.getLogger(__name__)

QueueCallback = Callable[[tuple[PendingCheckinEvent, ...]], None]


def _now_ms() -> int:
    return int(time.time() * 1000)


class OutboxQueue:
    """Ordered, persisted queue of pending offline check-ins.

    Args:
        store: State store holding the ``outbox`` record.
        client: API client used to deliver events.
        monitor: Connectivity monitor; deliveries run through
            ``monitor.call()`` so their transport outcome is recorded.
        clock: Epoch-milliseconds clock used to stamp new events.
    """

    STORAGE_KEY = "outbox"

    def __init__(
        self,
        store: StateStore,
        client: BookingApiClient,
        monitor: ConnectivityMonitor,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store
        self._client = client
        self._monitor = monitor
        self._clock = clock
        self._subscribers: list[QueueCallback] = []
        self._draining = False
        self._events: tuple[PendingCheckinEvent, ...] = self._load()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def pending(self) -> tuple[PendingCheckinEvent, ...]:
        """The current queue, oldest first."""
        return self._events

    @property
    def is_draining(self) -> bool:
        return self._draining

    def __len__(self) -> int:
        return len(self._events)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def append(
        self,
        booking_id: str,
        room_number: int,
        hotel_id: str,
        today: str,
    ) -> PendingCheckinEvent:
        """Queue an offline check-in at the tail.

        Args:
            booking_id: Booking to check in.
            room_number: Room chosen by the operator.
            hotel_id: Hotel of the booking.
            today: Operational date (``YYYY-MM-DD``).

        Returns:
            The stored event, stamped with its creation time.

        Raises:
            ValidationError: If any field is missing or malformed.  The
                queue is left untouched.
        """
        is_valid, message = validate_checkin_fields(
            booking_id, room_number, hotel_id, today
        )
        if not is_valid:
            raise ValidationError(message)

        event = PendingCheckinEvent(
            booking_id=booking_id,
            room_number=room_number,
            hotel_id=hotel_id,
            today=today,
            timestamp=self._clock(),
        )
        self._commit(self._events + (event,))
        logger.info(
            "Queued offline check-in for booking %s (room %d, hotel %s, %s); "
            "%d pending",
            event.booking_id,
            event.room_number,
            event.hotel_id,
            event.today,
            len(self._events),
        )
        return event

    async def drain(self) -> DrainResult:
        """Try to deliver the head event once.

        At most one attempt is in flight: a call made while another drain
        is running returns ``BUSY`` without touching the network.
        """
        if self._draining:
            return DrainResult(outcome=DrainOutcome.BUSY)
        if not self._events:
            return DrainResult(outcome=DrainOutcome.IDLE)

        self._draining = True
        head = self._events[0]
        try:
            return await self._deliver(head)
        finally:
            self._draining = False

    async def run(self, interval: float) -> None:
        """Drain once every *interval* seconds until cancelled."""
        logger.debug("Outbox drain loop started (interval=%.2fs)", interval)
        while True:
            try:
                await self.drain()
            except Exception:
                logger.exception("Unexpected error while draining outbox")
            await asyncio.sleep(interval)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: QueueCallback) -> Callable[[], None]:
        """Call *callback* with the new queue after every committed change.

        Returns:
            A callable that removes the subscription.
        """
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _deliver(self, head: PendingCheckinEvent) -> DrainResult:
        try:
            await self._monitor.call(
                self._client.send_client_event, head.to_client_event()
            )
        except NetworkError as exc:
            logger.warning(
                "Network error syncing check-in for booking %s, will retry: %s",
                head.booking_id,
                exc,
            )
            return DrainResult(
                outcome=DrainOutcome.NETWORK_ERROR,
                booking_id=head.booking_id,
                error=str(exc),
            )
        except ClientError as exc:
            logger.warning(
                "Client error syncing check-in for booking %s, removed from queue: %s",
                head.booking_id,
                exc.body or exc,
            )
            self._pop_head(head)
            return DrainResult(
                outcome=DrainOutcome.REJECTED,
                booking_id=head.booking_id,
                status_code=exc.status_code,
                error=str(exc),
            )
        except ApiError as exc:
            # 5xx, or any other unexpected status: keep the head for the next tick.
            logger.error(
                "Server error syncing check-in for booking %s, will retry: %s",
                head.booking_id,
                exc.body or exc,
            )
            return DrainResult(
                outcome=DrainOutcome.RETRY,
                booking_id=head.booking_id,
                status_code=exc.status_code,
                error=str(exc),
            )

        self._pop_head(head)
        logger.info(
            "Synced offline check-in for booking %s; %d pending",
            head.booking_id,
            len(self._events),
        )
        return DrainResult(
            outcome=DrainOutcome.DELIVERED, booking_id=head.booking_id
        )

    def _pop_head(self, head: PendingCheckinEvent) -> None:
        # Only drain removes events, so the head cannot have moved.
        if self._events and self._events[0] == head:
            self._commit(self._events[1:])

    def _commit(self, events: tuple[PendingCheckinEvent, ...]) -> None:
        self._events = events
        try:
            self._store.write(
                self.STORAGE_KEY,
                [event.model_dump(mode="json") for event in events],
            )
        except OSError:
            logger.exception(
                "Failed to persist outbox (%d events kept in memory)",
                len(events),
            )
        for callback in list(self._subscribers):
            try:
                callback(events)
            except Exception:
                logger.exception("Outbox subscriber %r failed", callback)

    def _load(self) -> tuple[PendingCheckinEvent, ...]:
        try:
            return self._decode(self._store.read(self.STORAGE_KEY))
        except CorruptStateError as exc:
            logger.error("%s; dropping it and starting empty", exc)
            try:
                self._store.delete(self.STORAGE_KEY)
            except OSError:
                logger.exception("Failed to remove corrupt outbox record")
            return ()
        except OSError:
            logger.exception("Cannot read outbox record; starting empty")
            return ()

    def _decode(self, raw: object) -> tuple[PendingCheckinEvent, ...]:
        if raw is None:
            return ()
        if not isinstance(raw, list):
            raise CorruptStateError(
                self.STORAGE_KEY, f"expected a list, got {type(raw).__name__}"
            )
        try:
            events = tuple(PendingCheckinEvent.model_validate(item) for item in raw)
        except ModelValidationError as exc:
            raise CorruptStateError(self.STORAGE_KEY, str(exc)) from exc
        if events:
            logger.info("Loaded %d pending offline check-ins", len(events))
        return events
