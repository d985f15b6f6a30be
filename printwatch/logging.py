"""Logging setup for the printwatch CLI and service."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# aiohttp internals are noisy at INFO; printwatch's own device link logs
# individual frames at DEBUG.
_NETWORK_LOGGERS = ("aiohttp.access", "aiohttp.client", "aiohttp.websocket")
_DEVICE_LOGGER = "printwatch.adapters"


def configure_logging(
    level: str = "INFO", *, log_path: Optional[Path] = None, log_network: bool = False
) -> None:
    """Route printwatch logs to the console and, optionally, a file.

    ``log_network`` turns on frame-level tracing of the device websocket and
    leaves aiohttp's own loggers at the root level.
    """

    logging.captureWarnings(True)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=_FORMAT)

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(file_handler)

    if log_network:
        logging.getLogger(_DEVICE_LOGGER).setLevel(logging.DEBUG)
        for name in _NETWORK_LOGGERS:
            logging.getLogger(name).setLevel(logging.NOTSET)
    else:
        logging.getLogger(_DEVICE_LOGGER).setLevel(logging.NOTSET)
        for name in _NETWORK_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
