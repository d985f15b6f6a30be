"""Constants used across the printwatch package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "printwatch"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_LOG_PATH = Path.home() / ".local" / "state" / APP_NAME / f"{APP_NAME}.log"

DEFAULT_DEVICE_HOST = "192.168.1.150"
DEFAULT_DEVICE_PORT = 81
DEFAULT_DEVICE_URL = f"ws://{DEFAULT_DEVICE_HOST}:{DEFAULT_DEVICE_PORT}/"

# Milliseconds without filament motion before the dashboard warns.
DEFAULT_MOTION_TIMEOUT_MS = 3000
