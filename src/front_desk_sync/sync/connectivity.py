"""Connectivity monitor: fuses network signals into one offline flag.

Three independent sources report connectivity, in priority order:

1. ``TRANSPORT`` -- outcome of any outbound call.  A transport failure
   sets offline immediately and outranks everything else.  A successful
   call clears the flag but only ranks with host edges, so whichever of
   the two arrived last wins.
2. ``HOST`` -- host-level network down/up edges.  ``up`` additionally
   forces the live feed to reconnect through the registered hooks.
3. ``POLL`` -- periodic liveness poll of the live feed connection.

Each source keeps its last reading with a monotonic timestamp.  On every
new reading the state is resolved: among readings younger than the
evaluation window the highest-ranked one wins, the most recent one on
equal rank.  The new reading itself is always inside the window, so a
poll decides the state only when neither of the other sources fired
during the last window.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, TypeVar

from ..core.async_utils import run_sync
from ..errors import NetworkError
from .models import SignalReading, SignalSource

T = TypeVar("T")

logger = logging.getLogger(__name__)

ConnectivityCallback = Callable[[bool], None]


class ConnectivityMonitor:
    """Own the process-wide offline flag.

    Transport feedback arrives through ``call()`` and polls through
    ``run_poll()``.  Host network edges are not detected here: the
    embedding application forwards its own network notifications to
    ``host_network_down()`` and ``host_network_up()``.

    Args:
        window: Evaluation window in seconds; normally the poll interval.
        clock: Monotonic clock, injectable for tests.

    Raises:
        ValueError: If *window* is not positive.
    """

    def __init__(
        self,
        window: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if window <= 0:
            raise ValueError(f"Connectivity window must be positive, got {window}")
        self._window = window
        self._clock = clock
        self._readings: dict[SignalSource, SignalReading] = {}
        self._offline = False
        self._changed_at: float | None = None
        self._subscribers: list[ConnectivityCallback] = []
        self._reconnect_hooks: list[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_offline(self) -> bool:
        return self._offline

    @property
    def changed_at(self) -> float | None:
        """Monotonic time of the last transition, ``None`` if none yet."""
        return self._changed_at

    @property
    def readings(self) -> dict[SignalSource, SignalReading]:
        """Copy of the last reading per signal source."""
        return dict(self._readings)

    def set_offline(self, offline: bool) -> None:
        """Explicitly set the flag.

        Recorded as transport-level feedback: ``True`` outranks host edges
        and polls within the current window, ``False`` ranks like a
        successful call.
        """
        self._observe(SignalSource.TRANSPORT, offline)

    # ------------------------------------------------------------------
    # Signal inputs
    # ------------------------------------------------------------------

    def report_transport_failure(self, error: BaseException | None = None) -> None:
        """An outbound call failed before any response arrived."""
        if error is not None:
            logger.warning("Transport failure reported: %s", error)
        self._observe(SignalSource.TRANSPORT, True)

    def report_success(self) -> None:
        """An outbound call completed successfully."""
        self._observe(SignalSource.TRANSPORT, False)

    def host_network_down(self) -> None:
        self._observe(SignalSource.HOST, True)

    def host_network_up(self) -> None:
        """Host network came back; also force live feed reconnects."""
        self._observe(SignalSource.HOST, False)
        for hook in list(self._reconnect_hooks):
            try:
                hook()
            except Exception:
                logger.exception("Reconnect hook %r failed", hook)

    def observe_poll(self, connected: bool) -> None:
        """Record one liveness poll of the live feed."""
        self._observe(SignalSource.POLL, not connected)

    async def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking API call off the loop and record its transport outcome.

        A ``NetworkError`` is reported as a transport failure and re-raised;
        a normal return is reported as success.  ``ApiError`` responses
        propagate without touching the connectivity state.
        """
        try:
            result = await run_sync(func, *args, **kwargs)
        except NetworkError as exc:
            self.report_transport_failure(exc)
            raise
        self.report_success()
        return result

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: ConnectivityCallback) -> Callable[[], None]:
        """Call *callback* with the new flag after every transition.

        Returns:
            A callable that removes the subscription.
        """
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def add_reconnect_hook(self, hook: Callable[[], None]) -> None:
        """Register *hook* to run when the host network comes back up."""
        self._reconnect_hooks.append(hook)

    # ------------------------------------------------------------------
    # Poll loop
    # ------------------------------------------------------------------

    async def run_poll(
        self, probe: Callable[[], bool], interval: float
    ) -> None:
        """Poll *probe* every *interval* seconds until cancelled."""
        logger.debug("Connectivity poll started (interval=%.2fs)", interval)
        while True:
            try:
                connected = bool(probe())
            except Exception:
                logger.exception("Connectivity probe failed")
                connected = False
            self.observe_poll(connected)
            await asyncio.sleep(interval)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _observe(self, source: SignalSource, offline: bool) -> None:
        now = self._clock()
        self._readings[source] = SignalReading(
            source=source, offline=offline, at=now
        )
        self._commit(self._resolve(now), source)

    def _resolve(self, now: float) -> bool:
        # Never empty: the reading just stored is at ``now`` and window > 0.
        fresh = [
            r for r in self._readings.values() if now - r.at < self._window
        ]
        winner = max(fresh, key=lambda r: (r.rank, r.at))
        return winner.offline

    def _commit(self, offline: bool, source: SignalSource) -> None:
        if offline == self._offline:
            return
        self._offline = offline
        self._changed_at = self._clock()
        logger.info(
            "Connectivity changed: %s (signal: %s)",
            "offline" if offline else "online",
            source.value,
        )
        for callback in list(self._subscribers):
            try:
                callback(offline)
            except Exception:
                logger.exception("Connectivity subscriber %r failed", callback)
