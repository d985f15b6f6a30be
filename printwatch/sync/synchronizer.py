"""Routes device events into the state store and notifies the render sink."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, runtime_checkable

from .alerts import AlertKind, classify
from .event_types import (
    EVENT_NAMES,
    AlertEvent,
    ConnectivityEvent,
    DeviceEvent,
    ErrorEvent,
    FullStatusEvent,
    PositionEvent,
    SensorEvent,
    StatusEvent,
    decode_event,
)
from .models import PrinterSnapshot
from .state_store import PrinterStateStore

if TYPE_CHECKING:
    from ..render import RenderSink

LOGGER = logging.getLogger(__name__)

__all__ = ["CommandTransport", "Synchronizer"]

ErrorListener = Callable[[Any], None]


@runtime_checkable
class CommandTransport(Protocol):
    """What the synchronizer needs from the device transport."""

    def on(self, event_name: str, handler: Callable[[Any], Any]) -> None:
        ...

    def pause_print(self) -> None:
        ...

    def resume_print(self) -> None:
        ...

    def cancel_print(self) -> None:
        ...

    def toggle_light(self) -> None:
        ...


class Synchronizer:
    """Single subscription point between the transport and the state store.

    Events are applied in delivery order, synchronously: the store is
    mutated first and the sink is notified afterwards. Connectivity does not
    gate merges; the snapshot is kept across disconnects so the sink can show
    last-known values flagged as stale.
    """

    def __init__(
        self,
        store: PrinterStateStore,
        sink: "RenderSink",
        *,
        error_listener: Optional[ErrorListener] = None,
    ) -> None:
        self._store = store
        self._sink = sink
        self._error_listener = error_listener
        self._transport: Optional[CommandTransport] = None
        self._connected = False

    @property
    def store(self) -> PrinterStateStore:
        return self._store

    @property
    def connected(self) -> bool:
        return self._connected

    def snapshot(self) -> PrinterSnapshot:
        return self._store.snapshot()

    def attach(self, transport: CommandTransport) -> None:
        """Subscribe to every transport event and route it through dispatch."""

        self._transport = transport
        for name in EVENT_NAMES:
            transport.on(name, self._make_handler(name))

    def _make_handler(self, name: str) -> Callable[..., None]:
        def _handler(payload: Any = None) -> None:
            event = decode_event(name, payload)
            if event is not None:
                self.dispatch(event)

        return _handler

    def dispatch(self, event: DeviceEvent) -> None:
        if isinstance(event, StatusEvent):
            self._store.apply_partial(event.fields)
            self._notify_snapshot()
        elif isinstance(event, FullStatusEvent):
            self._store.apply_full(event.fields)
            self._notify_snapshot()
        elif isinstance(event, SensorEvent):
            self._store.replace_sensor(event.record)
            self._notify("on_sensor_slice", self._store.snapshot().sensor)
        elif isinstance(event, PositionEvent):
            self._store.set_position(event.coord)
            self._notify("on_position_slice", self._store.snapshot().current_coord)
        elif isinstance(event, AlertEvent):
            self._handle_alert(event)
        elif isinstance(event, ConnectivityEvent):
            self._handle_connectivity(event.connected)
        elif isinstance(event, ErrorEvent):
            self._handle_error(event.error)
        else:
            LOGGER.debug("Ignoring unsupported event %r", event)

    # ------------------------------------------------------------------
    # Commands (fire-and-forget)
    # ------------------------------------------------------------------
    def pause_print(self) -> None:
        LOGGER.info("Pause requested")
        self._require_transport().pause_print()

    def resume_print(self) -> None:
        LOGGER.info("Resume requested")
        self._require_transport().resume_print()

    def cancel_print(self) -> None:
        LOGGER.info("Cancel requested")
        self._require_transport().cancel_print()

    def toggle_light(self) -> None:
        LOGGER.info("Light toggle requested")
        self._require_transport().toggle_light()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _require_transport(self) -> CommandTransport:
        if self._transport is None:
            raise RuntimeError("Synchronizer is not attached to a transport")
        return self._transport

    def _handle_alert(self, event: AlertEvent) -> None:
        alert = classify(event.payload)
        if alert.kind is AlertKind.GENERIC:
            LOGGER.warning("Device alert: %s", alert.message)
        else:
            LOGGER.warning("Filament alert %s: %s", alert.kind.value, alert.message)
        self._notify("on_alert", alert.kind, alert.message)

    def _handle_connectivity(self, connected: bool) -> None:
        if connected != self._connected:
            LOGGER.info("Device %s", "connected" if connected else "disconnected")
        self._connected = connected
        self._notify("on_connectivity_change", connected)

    def _handle_error(self, error: Any) -> None:
        LOGGER.warning("Transport error: %s", error)
        if self._error_listener is None:
            return
        try:
            self._error_listener(error)
        except Exception:
            LOGGER.exception("Error listener failed")

    def _notify_snapshot(self) -> None:
        self._notify("on_snapshot", self._store.snapshot())

    def _notify(self, method: str, *args: Any) -> None:
        callback = getattr(self._sink, method, None)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            LOGGER.exception("Render sink %s failed", method)
