"""Filament alert classification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

__all__ = ["AlertKind", "ClassifiedAlert", "classify"]


class AlertKind(str, Enum):
    FILAMENT_RUNOUT = "FILAMENT_RUNOUT"
    FILAMENT_JAM = "FILAMENT_JAM"
    GENERIC = "GENERIC"


# Raw alert type -> (kind, fixed message)
_KNOWN_ALERTS = {
    "filament_runout": (AlertKind.FILAMENT_RUNOUT, "Filament exhausted"),
    "filament_jam": (AlertKind.FILAMENT_JAM, "Filament jam detected"),
}


@dataclass(slots=True, frozen=True)
class ClassifiedAlert:
    kind: AlertKind
    message: str


def classify(payload: Any) -> ClassifiedAlert:
    """Map a raw alert payload to a kind and a user-facing message.

    Filament runout and jam get fixed messages; any other type is GENERIC
    and carries the payload's ``message`` verbatim.
    """

    if not isinstance(payload, Mapping):
        return ClassifiedAlert(AlertKind.GENERIC, "")

    alert_type = payload.get("type")
    if alert_type is None:
        alert_type = payload.get("alertType")

    known = _KNOWN_ALERTS.get(alert_type) if isinstance(alert_type, str) else None
    if known is not None:
        kind, message = known
        return ClassifiedAlert(kind, message)

    message = payload.get("message")
    return ClassifiedAlert(AlertKind.GENERIC, message if isinstance(message, str) else "")
