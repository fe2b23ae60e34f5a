"""Last known-good booking lists, per hotel, for use while disconnected.

A snapshot is only ever written from a live delivery received while the
connectivity monitor reports online; offline or partial data never
replaces it.  Each hotel's record is read from the store once, the first
time that hotel is looked at, and served from memory afterwards.

There is no expiry: a terminal that stays offline keeps serving the last
snapshot however old it is.  ``saved_at()`` exposes when it was taken.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Sequence

from pydantic import ValidationError as ModelValidationError

from ..errors import CorruptStateError
from .models import Booking

if TYPE_CHECKING:
    from .connectivity import ConnectivityMonitor
    from .state import StateStore

logger = logging.getLogger(__name__)


class SnapshotCache:
    """Load, save, and select per-hotel booking snapshots.

    Args:
        store: State store holding ``snapshot_{hotel_id}`` records.
        monitor: Connectivity monitor gating writes.
    """

    def __init__(self, store: StateStore, monitor: ConnectivityMonitor) -> None:
        self._store = store
        self._monitor = monitor
        self._bookings: dict[str, tuple[Booking, ...]] = {}
        self._saved_at: dict[str, str | None] = {}

    def load(self, hotel_id: str) -> list[Booking]:
        """Return the saved snapshot for *hotel_id*, or ``[]`` if none."""
        if hotel_id not in self._bookings:
            self._bookings[hotel_id], self._saved_at[hotel_id] = self._read(
                hotel_id
            )
        return list(self._bookings[hotel_id])

    def save(self, hotel_id: str, bookings: Sequence[Booking]) -> bool:
        """Replace the snapshot for *hotel_id* with a live delivery.

        Skipped while the monitor reports offline.

        Returns:
            ``True`` if the snapshot was written.
        """
        if self._monitor.is_offline:
            logger.debug(
                "Not saving snapshot for hotel %s while offline", hotel_id
            )
            return False

        saved_at = datetime.now(timezone.utc).isoformat()
        snapshot = tuple(bookings)
        try:
            self._store.write(
                self._key(hotel_id),
                {
                    "hotel_id": hotel_id,
                    "saved_at": saved_at,
                    "bookings": [b.model_dump(mode="json") for b in snapshot],
                },
            )
        except OSError:
            logger.exception("Failed to persist snapshot for hotel %s", hotel_id)
        self._bookings[hotel_id] = snapshot
        self._saved_at[hotel_id] = saved_at
        logger.debug(
            "Saved snapshot for hotel %s (%d bookings)", hotel_id, len(snapshot)
        )
        return True

    def saved_at(self, hotel_id: str) -> str | None:
        """ISO 8601 time the current snapshot was taken, if any."""
        self.load(hotel_id)
        return self._saved_at.get(hotel_id)

    def select_base(
        self, hotel_id: str, live: Sequence[Booking] | None
    ) -> list[Booking]:
        """Pick the dataset to reconcile against.

        The live dataset wins whenever one is present (an empty live list
        is still a live answer); otherwise the saved snapshot is used.
        """
        if live is not None:
            return list(live)
        return self.load(hotel_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _key(hotel_id: str) -> str:
        return f"snapshot_{hotel_id}"

    def _read(self, hotel_id: str) -> tuple[tuple[Booking, ...], str | None]:
        key = self._key(hotel_id)
        try:
            raw = self._store.read(key)
            if raw is None:
                return (), None
            if not isinstance(raw, dict) or not isinstance(
                raw.get("bookings"), list
            ):
                raise CorruptStateError(key, "missing 'bookings' list")
            try:
                bookings = tuple(
                    Booking.model_validate(item) for item in raw["bookings"]
                )
            except ModelValidationError as exc:
                raise CorruptStateError(key, str(exc)) from exc
        except CorruptStateError as exc:
            logger.error("%s; dropping it and starting empty", exc)
            try:
                self._store.delete(key)
            except OSError:
                logger.exception("Failed to remove corrupt snapshot %s", key)
            return (), None
        except OSError:
            logger.exception("Cannot read snapshot for hotel %s", hotel_id)
            return (), None

        logger.info(
            "Loaded snapshot for hotel %s (%d bookings)", hotel_id, len(bookings)
        )
        return bookings, raw.get("saved_at")
