"""Render sinks: consumers of snapshots and slices produced by the synchronizer."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

from .status_codes import StatusCode, available_controls, label_for, status_tone
from .sync.alerts import AlertKind
from .sync.models import FilamentSensor, Position, PrinterSnapshot

LOGGER = logging.getLogger(__name__)

__all__ = [
    "LoggingRenderSink",
    "RenderSink",
    "format_position",
    "format_snapshot",
]


@runtime_checkable
class RenderSink(Protocol):
    """Contract for anything that turns printer state into visible output."""

    def on_connectivity_change(self, is_connected: bool) -> None:
        ...

    def on_snapshot(self, snapshot: PrinterSnapshot) -> None:
        ...

    def on_sensor_slice(self, sensor: FilamentSensor) -> None:
        ...

    def on_position_slice(self, coord: Optional[Position]) -> None:
        ...

    def on_alert(self, kind: AlertKind, message: str) -> None:
        ...


def format_position(coord: Optional[Position]) -> str:
    if coord is None:
        return "X - Y - Z -"
    return f"X {coord.x:.2f} Y {coord.y:.2f} Z {coord.z:.2f}"


def format_snapshot(snapshot: PrinterSnapshot) -> str:
    """One-line summary of a snapshot, formatted like the dashboard panels."""

    controls = available_controls(snapshot.print_status)
    enabled = [
        name
        for name, flag in (
            ("pause", controls.pause),
            ("resume", controls.resume),
            ("cancel", controls.cancel),
        )
        if flag
    ]
    return (
        f"{label_for(snapshot.print_status)} [{status_tone(snapshot.print_status)}] "
        f"file={snapshot.filename if snapshot.has_active_job else '-'} "
        f"progress={snapshot.progress}% "
        f"layer={snapshot.current_layer} / {snapshot.total_layers} "
        f"speed={snapshot.print_speed}% "
        f"bed={snapshot.bed_temp:.1f}/{snapshot.bed_target_temp:.1f} "
        f"nozzle={snapshot.nozzle_temp:.1f}/{snapshot.nozzle_target_temp:.1f} "
        f"chamber={snapshot.chamber_temp:.1f} "
        f"pos={format_position(snapshot.current_coord)} "
        f"zoffset={snapshot.z_offset:.2f} mm "
        f"fans={snapshot.model_fan}%/{snapshot.aux_fan}%/{snapshot.box_fan}% "
        f"controls={','.join(enabled) or 'none'}"
    )


class LoggingRenderSink:
    """Render sink that writes dashboard lines to the log.

    While disconnected every line is tagged ``stale`` so last-known values
    are not mistaken for live ones.
    """

    def __init__(
        self,
        *,
        motion_timeout_ms: int = 0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._motion_timeout_ms = motion_timeout_ms
        self._logger = logger or LOGGER
        self._connected = False
        self._print_status: int = StatusCode.IDLE

    @property
    def connected(self) -> bool:
        return self._connected

    def on_connectivity_change(self, is_connected: bool) -> None:
        self._connected = is_connected
        self._logger.info("Connection: %s", "connected" if is_connected else "disconnected")

    def on_snapshot(self, snapshot: PrinterSnapshot) -> None:
        self._print_status = snapshot.print_status
        self._logger.info("%s%s", self._prefix(), format_snapshot(snapshot))

    def on_sensor_slice(self, sensor: FilamentSensor) -> None:
        self._logger.info(
            "%sFilament present=%s lastMotion=%s pulses=%s switch=%s",
            self._prefix(),
            "yes" if sensor.present else "no",
            sensor.last_motion,
            sensor.pulses,
            sensor.switch_raw,
        )
        if (
            self._print_status == StatusCode.PRINTING
            and sensor.motion_stalled(self._motion_timeout_ms)
        ):
            self._logger.warning(
                "Filament motion stalled for %s ms (timeout %s ms)",
                sensor.last_motion,
                self._motion_timeout_ms,
            )

    def on_position_slice(self, coord: Optional[Position]) -> None:
        if coord is None:
            return
        self._logger.info("%sPosition %s", self._prefix(), format_position(coord))

    def on_alert(self, kind: AlertKind, message: str) -> None:
        self._logger.warning("ALERT %s: %s", kind.value, message)

    def _prefix(self) -> str:
        return "" if self._connected else "(stale) "
