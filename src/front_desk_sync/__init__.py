"""front-desk-sync: offline-resilient booking sync for hotel front desks."""

__version__ = "0.3.0"
