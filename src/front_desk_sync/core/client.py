import logging
import threading
from typing import Any

import requests

from ..config import Config
from ..errors import ApiError, ClientError, NetworkError, ServerError

logger = logging.getLogger(__name__)


class BookingApiClient:
    """Blocking REST client for the hotel booking backend.

    Transport failures are raised as ``NetworkError``; non-2xx responses as
    ``ClientError`` (4xx) or ``ServerError`` (5xx).  Calls made by the sync
    engine go through ``ConnectivityMonitor.call()``, which turns those
    outcomes into connectivity signals.
    """

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.base_url = config.api_url.rstrip("/")

    @property
    def session(self) -> requests.Session:
        """Return the current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.verify = not self.config.insecure
        session.headers.update({"Accept": "application/json"})
        return session

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: Any = None,
    ) -> Any:
        """
        Send one request and classify the outcome.

        Raises:
            NetworkError: The request never got a response.
            ClientError: The backend answered 4xx.
            ServerError: The backend answered 5xx.
            ApiError: Any other non-2xx status.
        """
        session = self._get_session()
        url = self._url(path)
        timeout = (self.config.request_timeout, self.config.request_timeout)
        try:
            if method == "GET":
                response = session.get(url, params=params, timeout=timeout)
            else:
                response = session.post(
                    url, params=params, json=payload, timeout=timeout
                )
        except requests.RequestException as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc

        status = response.status_code
        if 200 <= status < 300:
            return self._decode(response)

        body = response.text or ""
        message = self._error_message(response) or response.reason or "error"
        if 400 <= status < 500:
            raise ClientError(status, message, body)
        if status >= 500:
            raise ServerError(status, message, body)
        raise ApiError(status, message, body)

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _error_message(response: requests.Response) -> str | None:
        """Pull ``error`` out of a JSON error body, if there is one."""
        try:
            data = response.json()
        except ValueError:
            return None
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
        return None

    # ------------------------------------------------------------------
    # Hotels
    # ------------------------------------------------------------------

    def list_hotels(self) -> list[dict[str, Any]]:
        """
        List all hotels.
        """
        return self._request("GET", "/hotels") or []

    def get_hotel(self, hotel_id: str) -> dict[str, Any]:
        """
        Get one hotel, including its ``room_count``.
        """
        return self._request("GET", f"/hotels/{hotel_id}")

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    def get_booking_shape(self, hotel_id: str, today: str) -> Any:
        """
        Fetch the live booking feed for one hotel and operational day.

        Returns:
            The decoded response: either plain booking rows or shape
            log messages (``{"key", "value", "headers"}``).
        """
        return self._request(
            "GET",
            f"/hotels/{hotel_id}/bookings/shape",
            params={"date": today},
        )

    def check_in(self, booking_id: str, today: str) -> Any:
        """
        Check a booking in online; the backend assigns the room.
        """
        return self._request(
            "POST",
            f"/bookings/{booking_id}/checkin",
            params={"today": today},
        )

    def check_out(self, booking_id: str) -> Any:
        return self._request("POST", f"/bookings/{booking_id}/checkout")

    def cancel(self, booking_id: str) -> Any:
        return self._request("POST", f"/bookings/{booking_id}/cancel")

    def send_client_event(self, event: dict[str, Any]) -> Any:
        """
        Deliver one offline-originated event to ``POST /client-events``.

        Args:
            event: Body such as ``{"type": "offline_checkin", "booking_id":
                "42", "room_number": 7, "today": "2024-01-01"}``.
        """
        logger.debug(
            "Sending client event %s for booking %s",
            event.get("type"),
            event.get("booking_id"),
        )
        return self._request("POST", "/client-events", payload=event)
