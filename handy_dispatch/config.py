"""Configuration loader for handy-dispatch."""

from __future__ import annotations

import logging
import math
from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from . import constants

LOGGER = logging.getLogger(__name__)

BACKEND_DEVICE = "device"
BACKEND_WEBHOOK = "webhook"
BACKENDS = (BACKEND_DEVICE, BACKEND_WEBHOOK)

# Editable fields exposed to operators: name -> (section, option, numeric)
EDITABLE_FIELDS: Dict[str, Tuple[str, str, bool]] = {
    "connection_key": ("device", "connection_key", False),
    "webhook_url": ("device", "webhook_url", False),
    "base_url": ("device", "base_url", False),
    "backend": ("device", "backend", False),
    "max_speed": ("limits", "max_speed", True),
    "max_length": ("limits", "max_length", True),
    "run_seconds": ("dispatch", "run_seconds", True),
    "max_run_seconds": ("dispatch", "max_run_seconds", True),
}


class ConfigError(ValueError):
    """Raised when a configuration value cannot be applied."""


@dataclass(frozen=True, slots=True)
class ConnectionConfig:
    connection_key: str = ""
    base_url: str = constants.DEFAULT_API_BASE_URL
    webhook_url: str = ""

    @property
    def webhook_target(self) -> str:
        """Resolve the URL used by the webhook backend.

        Older installations stored the webhook URL in the connection key
        field, so a key that looks like an http(s) URL is accepted too.
        """

        if self.webhook_url:
            return self.webhook_url
        if self.connection_key.startswith(("http://", "https://")):
            return self.connection_key
        return ""


@dataclass(frozen=True, slots=True)
class DeviceLimits:
    max_speed: Optional[float] = constants.DEFAULT_MAX_SPEED
    max_length: Optional[float] = constants.DEFAULT_MAX_LENGTH


@dataclass(frozen=True, slots=True)
class DispatchSettings:
    """Immutable view of the configuration consumed by a single dispatch."""

    connection: ConnectionConfig
    limits: DeviceLimits
    backend: str = BACKEND_DEVICE
    default_run_seconds: float = constants.DEFAULT_RUN_SECONDS
    max_run_seconds: Optional[float] = constants.DEFAULT_MAX_RUN_SECONDS


@dataclass(slots=True)
class ServerConfig:
    host: str = constants.DEFAULT_SERVER_HOST
    port: int = constants.DEFAULT_SERVER_PORT


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = None
    log_network: bool = False


@dataclass(slots=True)
class HandyConfig:
    connection: ConnectionConfig
    limits: DeviceLimits
    backend: str
    run_seconds: float
    max_run_seconds: Optional[float]
    server: ServerConfig
    logging: LoggingConfig
    raw: ConfigParser
    path: Path

    def snapshot(self) -> DispatchSettings:
        return DispatchSettings(
            connection=self.connection,
            limits=self.limits,
            backend=self.backend,
            default_run_seconds=self.run_seconds,
            max_run_seconds=self.max_run_seconds,
        )


def _optional_float(parser: ConfigParser, section: str, option: str) -> Optional[float]:
    value = parser.get(section, option, fallback="").strip()
    if not value:
        return None
    try:
        parsed = float(value)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric [%s] %s = %r", section, option, value)
        return None
    if not math.isfinite(parsed):
        LOGGER.warning("Ignoring non-finite [%s] %s = %r", section, option, value)
        return None
    return parsed


def load_config(path: Optional[Path] = None) -> HandyConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "device": {
                "backend": BACKEND_DEVICE,
                "connection_key": "",
                "base_url": constants.DEFAULT_API_BASE_URL,
                "webhook_url": "",
            },
            "limits": {
                "max_speed": str(constants.DEFAULT_MAX_SPEED),
                "max_length": str(constants.DEFAULT_MAX_LENGTH),
            },
            "dispatch": {
                "run_seconds": str(constants.DEFAULT_RUN_SECONDS),
                "max_run_seconds": str(constants.DEFAULT_MAX_RUN_SECONDS),
            },
            "server": {
                "host": constants.DEFAULT_SERVER_HOST,
                "port": str(constants.DEFAULT_SERVER_PORT),
            },
            "logging": {
                "level": "INFO",
                "path": "",
                "log_network": "false",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    connection = ConnectionConfig(
        connection_key=parser.get("device", "connection_key", fallback="").strip(),
        base_url=parser.get(
            "device", "base_url", fallback=constants.DEFAULT_API_BASE_URL
        ).strip()
        or constants.DEFAULT_API_BASE_URL,
        webhook_url=parser.get("device", "webhook_url", fallback="").strip(),
    )

    backend = parser.get("device", "backend", fallback=BACKEND_DEVICE).strip().lower()
    if backend not in BACKENDS:
        LOGGER.warning(
            "Unknown backend %r; falling back to %r", backend, BACKEND_DEVICE
        )
        backend = BACKEND_DEVICE

    limits = DeviceLimits(
        max_speed=_optional_float(parser, "limits", "max_speed"),
        max_length=_optional_float(parser, "limits", "max_length"),
    )

    run_seconds = _optional_float(parser, "dispatch", "run_seconds")
    if run_seconds is None or run_seconds <= 0:
        run_seconds = constants.DEFAULT_RUN_SECONDS

    max_run_seconds = _optional_float(parser, "dispatch", "max_run_seconds")
    if max_run_seconds is not None and max_run_seconds <= 0:
        max_run_seconds = None

    try:
        port = parser.getint("server", "port", fallback=constants.DEFAULT_SERVER_PORT)
    except ValueError:
        port = constants.DEFAULT_SERVER_PORT

    server = ServerConfig(
        host=parser.get("server", "host", fallback=constants.DEFAULT_SERVER_HOST),
        port=port,
    )

    log_path_value = parser.get("logging", "path", fallback="").strip()
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    return HandyConfig(
        connection=connection,
        limits=limits,
        backend=backend,
        run_seconds=run_seconds,
        max_run_seconds=max_run_seconds,
        server=server,
        logging=logging_config,
        raw=parser,
        path=config_path,
    )


def update_setting(config: HandyConfig, name: str, value: str) -> HandyConfig:
    """Apply an operator edit to ``config.raw`` and return the reloaded view.

    The change is persisted immediately, mirroring the host's auto-save.
    """

    try:
        section, option, numeric = EDITABLE_FIELDS[name]
    except KeyError as exc:
        raise ConfigError(
            f"Unknown setting {name!r}; expected one of {', '.join(EDITABLE_FIELDS)}"
        ) from exc

    value = value.strip()
    if numeric and value:
        try:
            parsed = float(value)
        except ValueError as exc:
            raise ConfigError(f"{name} must be a number, got {value!r}") from exc
        if not math.isfinite(parsed) or parsed < 0:
            raise ConfigError(f"{name} must be a non-negative number, got {value!r}")

    if name == "backend" and value.lower() not in BACKENDS:
        raise ConfigError(f"backend must be one of {', '.join(BACKENDS)}")

    config.raw.set(section, option, value)
    save_config(config)
    return load_config(config.path)


def save_config(config: HandyConfig) -> None:
    """Persist the current configuration to disk."""

    config_path = config.path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as stream:
        config.raw.write(stream)
