from __future__ import annotations

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True, slots=True)
class RelaySettings:
    host: str = "0.0.0.0"
    port: int = 8081
    # Clients connect to ws(s)://<host>:<port><path>
    path: str = "/players"
    # Upper bound for a single send to one peer (waiting on its send lock included).
    send_timeout_s: float = 1.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.path.startswith("/"):
            raise ValueError("path must start with '/'")
        if self.send_timeout_s <= 0:
            raise ValueError("send_timeout_s must be positive")


@dataclass(frozen=True, slots=True)
class ClientSettings:
    url: str = "ws://localhost:8081/players"
    publish_hz: float = 20.0

    def __post_init__(self) -> None:
        if self.publish_hz <= 0:
            raise ValueError("publish_hz must be positive")

    @property
    def min_publish_interval_s(self) -> float:
        return 1.0 / self.publish_hz


def relay_settings_from_env() -> RelaySettings:
    return RelaySettings(
        host=os.environ.get("PLAYERSYNC_HOST", "0.0.0.0"),
        port=int(os.environ.get("PLAYERSYNC_PORT", "8081")),
        path=os.environ.get("PLAYERSYNC_PATH", "/players"),
        send_timeout_s=_env_float("PLAYERSYNC_SEND_TIMEOUT_S", 1.0),
        log_level=os.environ.get("PLAYERSYNC_LOG_LEVEL", "INFO").upper(),
    )


def client_settings_from_env() -> ClientSettings:
    return ClientSettings(
        url=os.environ.get("PLAYERSYNC_URL", "ws://localhost:8081/players"),
        publish_hz=_env_float("PLAYERSYNC_PUBLISH_HZ", 20.0),
    )
