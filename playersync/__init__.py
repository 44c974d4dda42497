"""Realtime presence relay and the client-side avatar reconciliation that talks to it."""

__version__ = "0.1.0"
