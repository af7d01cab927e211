from pathlib import Path

import pytest

from handy_dispatch import constants
from handy_dispatch.config import (
    BACKEND_DEVICE,
    BACKEND_WEBHOOK,
    ConfigError,
    ConnectionConfig,
    load_config,
    update_setting,
)


def test_load_config_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "handy-dispatch.cfg"
    config = load_config(config_path)

    assert config.connection.connection_key == ""
    assert config.connection.base_url == constants.DEFAULT_API_BASE_URL
    assert config.backend == BACKEND_DEVICE
    assert config.limits.max_speed == 10.0
    assert config.limits.max_length == 100.0
    assert config.run_seconds == constants.DEFAULT_RUN_SECONDS
    assert config.max_run_seconds == constants.DEFAULT_MAX_RUN_SECONDS
    assert config.server.port == constants.DEFAULT_SERVER_PORT
    assert config.logging.path is None


def test_load_config_overrides_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "handy-dispatch.cfg"
    config_path.write_text(
        """
[device]
connection_key = abc123
backend = webhook
webhook_url = http://motor.local/command

[limits]
max_speed = 40
max_length = 75.5

[dispatch]
run_seconds = 3

[server]
port = 9000
        """.strip()
        + "\n",
        encoding="utf-8",
    )

    config = load_config(config_path)

    assert config.connection.connection_key == "abc123"
    assert config.connection.webhook_url == "http://motor.local/command"
    assert config.backend == BACKEND_WEBHOOK
    assert config.limits.max_speed == 40.0
    assert config.limits.max_length == 75.5
    assert config.run_seconds == 3.0
    assert config.server.port == 9000


def test_blank_or_invalid_limits_are_unset(tmp_path: Path) -> None:
    config_path = tmp_path / "handy-dispatch.cfg"
    config_path.write_text("[limits]\nmax_speed =\nmax_length = lots\n", encoding="utf-8")

    config = load_config(config_path)

    assert config.limits.max_speed is None
    assert config.limits.max_length is None


def test_unknown_backend_falls_back_to_device(tmp_path: Path) -> None:
    config_path = tmp_path / "handy-dispatch.cfg"
    config_path.write_text("[device]\nbackend = carrier-pigeon\n", encoding="utf-8")

    assert load_config(config_path).backend == BACKEND_DEVICE


def test_snapshot_is_immutable(tmp_path: Path) -> None:
    settings = load_config(tmp_path / "missing.cfg").snapshot()

    with pytest.raises(AttributeError):
        settings.limits.max_speed = 99  # type: ignore[misc]


def test_update_setting_persists_and_reloads(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "handy-dispatch.cfg"
    config = load_config(config_path)

    updated = update_setting(config, "max_speed", "25")
    updated = update_setting(updated, "connection_key", "new-key")

    assert config_path.exists()
    assert updated.limits.max_speed == 25.0
    assert load_config(config_path).connection.connection_key == "new-key"


@pytest.mark.parametrize(
    "name, value",
    [("max_speed", "fast"), ("max_length", "-1"), ("backend", "serial"), ("colour", "red")],
)
def test_update_setting_rejects_bad_values(tmp_path: Path, name: str, value: str) -> None:
    config = load_config(tmp_path / "handy-dispatch.cfg")

    with pytest.raises(ConfigError):
        update_setting(config, name, value)

    assert not (tmp_path / "handy-dispatch.cfg").exists()


def test_webhook_target_accepts_url_stored_as_key() -> None:
    legacy = ConnectionConfig(connection_key="https://motor.local/command")
    explicit = ConnectionConfig(connection_key="abc", webhook_url="http://hook")
    plain = ConnectionConfig(connection_key="abc")

    assert legacy.webhook_target == "https://motor.local/command"
    assert explicit.webhook_target == "http://hook"
    assert plain.webhook_target == ""
