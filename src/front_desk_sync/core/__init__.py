"""Core booking API client shared between the CLI and the sync engine."""

from .async_utils import run_sync
from .client import BookingApiClient

__all__ = ["BookingApiClient", "run_sync"]
