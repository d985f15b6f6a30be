"""Print status codes reported by the device and their display labels.

The table is a closed mapping: any code the device reports that is not
listed here is rendered as ``UNKNOWN`` instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

__all__ = [
    "STATUS_CODES",
    "UNKNOWN_LABEL",
    "StatusCode",
    "ControlAvailability",
    "available_controls",
    "label_for",
    "status_tone",
]


class StatusCode:
    """Print status codes as sent in ``printStatus``."""

    IDLE = 0
    PREPARING = 8
    START = 9
    PAUSED = 10
    PRINTING = 13


STATUS_CODES: Mapping[int, str] = {
    StatusCode.IDLE: "IDLE",
    StatusCode.PREPARING: "PREPARING",
    StatusCode.START: "START",
    StatusCode.PAUSED: "PAUSED",
    StatusCode.PRINTING: "PRINTING",
}

UNKNOWN_LABEL = "UNKNOWN"


def label_for(code: Any) -> str:
    """Return the display label for ``code``, or ``UNKNOWN``."""
    if isinstance(code, bool) or not isinstance(code, int):
        return UNKNOWN_LABEL
    return STATUS_CODES.get(code, UNKNOWN_LABEL)


def status_tone(code: Any) -> str:
    """Badge tone used by renderers: printing, paused, idle or error."""
    if code == StatusCode.PRINTING:
        return "printing"
    if code == StatusCode.PAUSED:
        return "paused"
    if code == StatusCode.IDLE:
        return "idle"
    return "error"


@dataclass(slots=True, frozen=True)
class ControlAvailability:
    pause: bool
    resume: bool
    cancel: bool


def available_controls(code: Any) -> ControlAvailability:
    """Which job controls make sense for the given print status."""
    printing = code == StatusCode.PRINTING
    paused = code == StatusCode.PAUSED
    return ControlAvailability(
        pause=printing,
        resume=paused,
        cancel=printing or paused,
    )
