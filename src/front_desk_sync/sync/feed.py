"""Live booking feed for one hotel/date scope.

Fetches ``GET /hotels/{id}/bookings/shape?date=`` on a fixed interval.  The
endpoint may answer with plain booking rows or with shape log messages
(``{"key", "value", "headers": {"operation": ...}}`` plus control
messages); both are accepted.

A delivery is all-or-nothing: if any row fails validation the whole
response is discarded, so a partial list never reaches the snapshot cache.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable

from pydantic import ValidationError as ModelValidationError

from ..errors import ApiError, NetworkError
from .models import Booking, Scope

if TYPE_CHECKING:
    from ..core.client import BookingApiClient
    from .connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)

FeedCallback = Callable[[list[Booking]], None]


def parse_shape_rows(payload: Any) -> list[Booking]:
    """Turn a shape response into bookings.

    Shape log messages are replayed in order: ``insert``/``update`` upsert
    by key, ``delete`` removes, control messages are ignored.

    Raises:
        ValueError: If the payload is not a list or a row is invalid.
    """
    if not isinstance(payload, list):
        raise ValueError(f"expected a list, got {type(payload).__name__}")

    rows: dict[str, dict] = {}
    for position, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ValueError(f"row {position} is not an object")
        headers = item.get("headers")
        if headers is None:
            rows[str(item.get("id", position))] = item
            continue
        if "control" in headers:
            continue
        key = str(item.get("key", position))
        if headers.get("operation") == "delete":
            rows.pop(key, None)
        else:
            merged = dict(rows.get(key, {}))
            merged.update(item.get("value") or {})
            rows[key] = merged

    try:
        return [Booking.model_validate(row) for row in rows.values()]
    except ModelValidationError as exc:
        raise ValueError(str(exc)) from exc


class LiveBookingFeed:
    """Keeps the current live dataset for one scope.

    Args:
        client: API client.
        monitor: Connectivity monitor recording each fetch's outcome.
        scope: Hotel and operational day to follow.
    """

    def __init__(
        self,
        client: BookingApiClient,
        monitor: ConnectivityMonitor,
        scope: Scope,
    ) -> None:
        self._client = client
        self._monitor = monitor
        self.scope = scope
        self._bookings: list[Booking] | None = None
        self._connected = False
        self._wake = asyncio.Event()
        self._subscribers: list[FeedCallback] = []

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def bookings(self) -> list[Booking] | None:
        """Current live dataset, or ``None`` while not connected."""
        if self._bookings is None:
            return None
        return list(self._bookings)

    def subscribe(self, callback: FeedCallback) -> Callable[[], None]:
        """Call *callback* with every live delivery."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def mark_disconnected(self) -> None:
        """Drop the live dataset until the next successful refresh."""
        if self._connected:
            logger.info("Live feed marked disconnected for hotel %s", self.scope.hotel_id)
        self._connected = False
        self._bookings = None

    def reconnect(self) -> None:
        """Skip the remaining wait and fetch on the next loop turn."""
        logger.debug("Live feed reconnect requested")
        self._wake.set()

    async def refresh(self) -> bool:
        """Fetch the scope's dataset once.

        Returns:
            ``True`` if a complete dataset was delivered.
        """
        try:
            payload = await self._monitor.call(
                self._client.get_booking_shape,
                self.scope.hotel_id,
                self.scope.today,
            )
        except NetworkError as exc:
            if self._connected:
                logger.warning("Live feed disconnected: %s", exc)
            self._connected = False
            self._bookings = None
            return False
        except ApiError as exc:
            logger.error(
                "Live feed request for hotel %s failed: %s",
                self.scope.hotel_id,
                exc,
            )
            return False

        try:
            bookings = parse_shape_rows(payload)
        except ValueError as exc:
            logger.error(
                "Discarding malformed live delivery for hotel %s: %s",
                self.scope.hotel_id,
                exc,
            )
            return False

        if not self._connected:
            logger.info("Live feed connected for hotel %s", self.scope.hotel_id)
        self._connected = True
        self._bookings = bookings
        for callback in list(self._subscribers):
            try:
                callback(list(bookings))
            except Exception:
                logger.exception("Live feed subscriber %r failed", callback)
        return True

    async def run(self, interval: float) -> None:
        """Refresh every *interval* seconds, or sooner after ``reconnect()``."""
        logger.debug("Live feed loop started (interval=%.2fs)", interval)
        while True:
            self._wake.clear()
            try:
                await self.refresh()
            except Exception:
                logger.exception("Unexpected error refreshing live feed")
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
