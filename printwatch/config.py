"""Configuration loader for printwatch."""

from __future__ import annotations

import logging
from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

from . import constants

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class DeviceConfig:
    url: str = constants.DEFAULT_DEVICE_URL


@dataclass(slots=True)
class SensorConfig:
    motion_timeout_ms: int = constants.DEFAULT_MOTION_TIMEOUT_MS


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = constants.DEFAULT_LOG_PATH
    log_network: bool = False


@dataclass(slots=True)
class ResilienceConfig:
    reconnect_initial_seconds: float = 1.0
    reconnect_max_seconds: float = 30.0
    health_enabled: bool = False
    health_host: str = "127.0.0.1"
    health_port: int = 0


@dataclass(slots=True)
class WatchConfig:
    device: DeviceConfig
    sensor: SensorConfig
    logging: LoggingConfig
    resilience: ResilienceConfig
    raw: ConfigParser
    path: Path


def load_config(path: Optional[Path] = None) -> WatchConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "device": {
                "url": constants.DEFAULT_DEVICE_URL,
            },
            "sensor": {
                "motion_timeout_ms": str(constants.DEFAULT_MOTION_TIMEOUT_MS),
            },
            "logging": {
                "level": "INFO",
                "path": str(constants.DEFAULT_LOG_PATH),
                "log_network": "false",
            },
            "resilience": {
                "reconnect_initial_seconds": "1.0",
                "reconnect_max_seconds": "30.0",
                "health_enabled": "false",
                "health_host": "127.0.0.1",
                "health_port": "0",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    device = DeviceConfig(url=parser.get("device", "url").strip())

    motion_timeout_ms = _read_value(
        parser.getint, "sensor", "motion_timeout_ms", constants.DEFAULT_MOTION_TIMEOUT_MS
    )
    sensor = SensorConfig(motion_timeout_ms=max(0, motion_timeout_ms))

    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(
            parser.get("logging", "path", fallback=str(constants.DEFAULT_LOG_PATH))
        ).expanduser(),
        log_network=_read_value(parser.getboolean, "logging", "log_network", False),
    )

    reconnect_initial = max(
        0.1,
        _read_value(parser.getfloat, "resilience", "reconnect_initial_seconds", 1.0),
    )
    reconnect_max = _read_value(
        parser.getfloat, "resilience", "reconnect_max_seconds", 30.0
    )
    resilience = ResilienceConfig(
        reconnect_initial_seconds=reconnect_initial,
        reconnect_max_seconds=max(reconnect_initial, reconnect_max),
        health_enabled=_read_value(
            parser.getboolean, "resilience", "health_enabled", False
        ),
        health_host=parser.get("resilience", "health_host", fallback="127.0.0.1"),
        health_port=_read_value(parser.getint, "resilience", "health_port", 0),
    )

    return WatchConfig(
        device=device,
        sensor=sensor,
        logging=logging_config,
        resilience=resilience,
        raw=parser,
        path=config_path,
    )


def _read_value(
    getter: Callable[..., T], section: str, option: str, default: T
) -> T:
    try:
        return getter(section, option, fallback=default)
    except ValueError:
        LOGGER.warning(
            "Invalid value for [%s] %s; using default %r", section, option, default
        )
        return default


def save_config(config: WatchConfig) -> None:
    """Persist the current configuration to disk."""

    config_path = config.path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as stream:
        config.raw.write(stream)
