from __future__ import annotations

from fastapi.requests import HTTPConnection

from playersync.relay import Relay


def get_relay(conn: HTTPConnection) -> Relay:
    # One relay per app instance, created in the lifespan handler.
    relay = getattr(conn.app.state, "relay", None)
    if relay is None:
        raise RuntimeError("Relay not initialized. Run the app through its lifespan.")
    return relay
