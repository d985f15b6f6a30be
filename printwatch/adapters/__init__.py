"""Adapter modules for external integrations."""

from .device import COMMANDS, DeviceClient, build_ws_url, decode_frame

__all__ = [
    "COMMANDS",
    "DeviceClient",
    "build_ws_url",
    "decode_frame",
]
