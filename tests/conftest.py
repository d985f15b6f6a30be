from __future__ import annotations

import inspect
from typing import Any, Callable, Optional

import pytest

from printwatch.sync import PrinterStateStore, Synchronizer
from printwatch.sync.alerts import AlertKind
from printwatch.sync.models import FilamentSensor, Position, PrinterSnapshot


class RecordingSink:
    """Render sink that records every notification in arrival order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    def on_connectivity_change(self, is_connected: bool) -> None:
        self.calls.append(("connectivity", is_connected))

    def on_snapshot(self, snapshot: PrinterSnapshot) -> None:
        self.calls.append(("snapshot", snapshot))

    def on_sensor_slice(self, sensor: FilamentSensor) -> None:
        self.calls.append(("sensor", sensor))

    def on_position_slice(self, coord: Optional[Position]) -> None:
        self.calls.append(("position", coord))

    def on_alert(self, kind: AlertKind, message: str) -> None:
        self.calls.append(("alert", (kind, message)))

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.calls]


class FakeTransport:
    """In-memory stand-in for the device client."""

    def __init__(self) -> None:
        self.handlers: dict[str, list[Callable[[Any], Any]]] = {}
        self.commands: list[str] = []
        self.connect_calls = 0
        self.close_calls = 0

    def on(self, event_name: str, handler: Callable[[Any], Any]) -> None:
        self.handlers.setdefault(event_name, []).append(handler)

    def emit(self, event_name: str, payload: Any = None) -> None:
        for handler in self.handlers.get(event_name, []):
            handler(payload)

    async def aemit(self, event_name: str, payload: Any = None) -> None:
        for handler in self.handlers.get(event_name, []):
            result = handler(payload)
            if inspect.isawaitable(result):
                await result

    async def connect(self) -> None:
        self.connect_calls += 1

    async def close(self) -> None:
        self.close_calls += 1

    def pause_print(self) -> None:
        self.commands.append("pause")

    def resume_print(self) -> None:
        self.commands.append("resume")

    def cancel_print(self) -> None:
        self.commands.append("cancel")

    def toggle_light(self) -> None:
        self.commands.append("light")


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def store() -> PrinterStateStore:
    return PrinterStateStore()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def synchronizer(store, sink, transport) -> Synchronizer:
    sync = Synchronizer(store, sink)
    sync.attach(transport)
    return sync
