from __future__ import annotations

import pytest

from playersync.settings import ClientSettings, RelaySettings, client_settings_from_env, relay_settings_from_env


def test_relay_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PLAYERSYNC_HOST", "PLAYERSYNC_PORT", "PLAYERSYNC_PATH", "PLAYERSYNC_SEND_TIMEOUT_S", "PLAYERSYNC_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    s = relay_settings_from_env()
    assert (s.host, s.port, s.path, s.send_timeout_s, s.log_level) == ("0.0.0.0", 8081, "/players", 1.0, "INFO")


def test_relay_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLAYERSYNC_PORT", "9000")
    monkeypatch.setenv("PLAYERSYNC_PATH", "/ws")
    monkeypatch.setenv("PLAYERSYNC_SEND_TIMEOUT_S", "0.25")
    monkeypatch.setenv("PLAYERSYNC_LOG_LEVEL", "debug")

    s = relay_settings_from_env()
    assert (s.port, s.path, s.send_timeout_s, s.log_level) == (9000, "/ws", 0.25, "DEBUG")


def test_client_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLAYERSYNC_URL", "ws://example:1/players")
    monkeypatch.setenv("PLAYERSYNC_PUBLISH_HZ", "10")

    s = client_settings_from_env()
    assert s.url == "ws://example:1/players"
    assert s.min_publish_interval_s == pytest.approx(0.1)


def test_default_publish_rate_is_20hz() -> None:
    assert ClientSettings().min_publish_interval_s == pytest.approx(0.05)


@pytest.mark.parametrize(
    "factory",
    [
        lambda: RelaySettings(path="players"),
        lambda: RelaySettings(send_timeout_s=0),
        lambda: ClientSettings(publish_hz=0),
    ],
)
def test_invalid_settings_are_rejected(factory) -> None:  # noqa: ANN001
    with pytest.raises(ValueError):
        factory()


def test_non_numeric_env_value_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLAYERSYNC_PUBLISH_HZ", "fast")
    with pytest.raises(ValueError, match="PLAYERSYNC_PUBLISH_HZ"):
        client_settings_from_env()
