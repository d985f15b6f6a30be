"""Typed events delivered by the device transport.

The transport emits ``(event_name, payload)`` pairs; :func:`decode_event`
turns each pair into one member of :data:`DeviceEvent` so the synchronizer
can dispatch on type instead of on callback registration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

__all__ = [
    "EVENT_NAMES",
    "AlertEvent",
    "ConnectivityEvent",
    "DeviceEvent",
    "ErrorEvent",
    "EventName",
    "FullStatusEvent",
    "PositionEvent",
    "SensorEvent",
    "StatusEvent",
    "decode_event",
]


class EventName:
    """Event names understood by the transport's ``on()`` subscription."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    STATUS = "status"
    SENSOR = "sensor"
    POSITION = "position"
    ALERT = "alert"
    FULL_STATUS = "fullStatus"


EVENT_NAMES = (
    EventName.CONNECTED,
    EventName.DISCONNECTED,
    EventName.ERROR,
    EventName.STATUS,
    EventName.SENSOR,
    EventName.POSITION,
    EventName.ALERT,
    EventName.FULL_STATUS,
)


@dataclass(slots=True, frozen=True)
class StatusEvent:
    fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class FullStatusEvent:
    fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class SensorEvent:
    record: Any = None


@dataclass(slots=True, frozen=True)
class PositionEvent:
    coord: Any = None


@dataclass(slots=True, frozen=True)
class AlertEvent:
    payload: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ConnectivityEvent:
    connected: bool


@dataclass(slots=True, frozen=True)
class ErrorEvent:
    error: Any = None


DeviceEvent = Union[
    StatusEvent,
    SensorEvent,
    PositionEvent,
    AlertEvent,
    FullStatusEvent,
    ConnectivityEvent,
    ErrorEvent,
]


def _as_mapping(payload: Any) -> Dict[str, Any]:
    return dict(payload) if isinstance(payload, Mapping) else {}


def decode_event(name: str, payload: Any = None) -> Optional[DeviceEvent]:
    """Build the typed event for a transport ``(name, payload)`` pair.

    Payloads of the wrong shape become empty events, which merge as no-ops.
    Unknown names return None.
    """

    if name == EventName.STATUS:
        return StatusEvent(_as_mapping(payload))
    if name == EventName.FULL_STATUS:
        return FullStatusEvent(_as_mapping(payload))
    if name == EventName.SENSOR:
        return SensorEvent(payload)
    if name == EventName.POSITION:
        coord = payload
        if isinstance(payload, Mapping) and "coord" in payload:
            coord = payload["coord"]
        return PositionEvent(coord)
    if name == EventName.ALERT:
        return AlertEvent(_as_mapping(payload))
    if name == EventName.CONNECTED:
        return ConnectivityEvent(True)
    if name == EventName.DISCONNECTED:
        return ConnectivityEvent(False)
    if name == EventName.ERROR:
        return ErrorEvent(payload)
    return None
