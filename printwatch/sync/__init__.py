"""State synchronization engine: snapshot model, merge rules, event routing."""

from .alerts import AlertKind, ClassifiedAlert, classify
from .event_types import (
    AlertEvent,
    ConnectivityEvent,
    DeviceEvent,
    ErrorEvent,
    EventName,
    FullStatusEvent,
    PositionEvent,
    SensorEvent,
    StatusEvent,
    decode_event,
)
from .models import FilamentSensor, Position, PrinterSnapshot, snapshot_to_dict
from .state_store import PrinterStateStore
from .synchronizer import CommandTransport, Synchronizer

__all__ = [
    "AlertEvent",
    "AlertKind",
    "ClassifiedAlert",
    "CommandTransport",
    "ConnectivityEvent",
    "DeviceEvent",
    "ErrorEvent",
    "EventName",
    "FilamentSensor",
    "FullStatusEvent",
    "Position",
    "PositionEvent",
    "PrinterSnapshot",
    "PrinterStateStore",
    "SensorEvent",
    "StatusEvent",
    "Synchronizer",
    "classify",
    "decode_event",
    "snapshot_to_dict",
]
