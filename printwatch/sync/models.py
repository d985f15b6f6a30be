"""Read-only printer state types shared by the store, synchronizer and sinks."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

__all__ = [
    "FilamentSensor",
    "Position",
    "PrinterSnapshot",
    "parse_position",
    "snapshot_to_dict",
]


@dataclass(slots=True, frozen=True)
class Position:
    """Toolhead position in millimetres."""

    x: float
    y: float
    z: float

    def as_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


def parse_position(raw: Any) -> Optional[Position]:
    """Parse an ``"X,Y,Z"`` string or an ``{x, y, z}`` mapping.

    Returns None when the input does not yield exactly three finite axes.
    """

    if isinstance(raw, Position):
        return raw

    if isinstance(raw, Mapping):
        parts = [raw.get("x"), raw.get("y"), raw.get("z")]
    elif isinstance(raw, str):
        parts = raw.split(",")
        if len(parts) != 3:
            return None
    else:
        return None

    axes = []
    for part in parts:
        if isinstance(part, bool) or part is None:
            return None
        try:
            value = float(part.strip() if isinstance(part, str) else part)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(value):
            return None
        axes.append(value)

    return Position(x=axes[0], y=axes[1], z=axes[2])


@dataclass(slots=True, frozen=True)
class FilamentSensor:
    """Latest filament sensor reading as reported by the device.

    ``last_motion`` is in device clock units and ``pulses`` is an opaque
    counter that may wrap; neither is interpreted beyond display.
    """

    present: bool = False
    last_motion: float = 0
    pulses: int = 0
    switch_raw: float = 0
    error: bool = False

    def motion_stalled(self, timeout_ms: int) -> bool:
        """True when the last motion pulse is older than ``timeout_ms``."""
        return timeout_ms > 0 and self.last_motion > timeout_ms

    def as_dict(self) -> Dict[str, Any]:
        return {
            "present": self.present,
            "lastMotion": self.last_motion,
            "pulses": self.pulses,
            "switchRaw": self.switch_raw,
            "error": self.error,
        }


@dataclass(slots=True, frozen=True)
class PrinterSnapshot:
    """Immutable view of the canonical printer state."""

    print_status: int = 0
    bed_temp: float = 0.0
    nozzle_temp: float = 0.0
    chamber_temp: float = 0.0
    bed_target_temp: float = 0.0
    nozzle_target_temp: float = 0.0
    current_coord: Optional[Position] = None
    z_offset: float = 0.0
    model_fan: float = 0
    aux_fan: float = 0
    box_fan: float = 0
    filename: str = ""
    current_layer: int = 0
    total_layers: int = 0
    progress: int = 0
    print_speed: int = 100
    light_on: bool = False
    current_ticks: int = 0
    total_ticks: int = 0
    sensor: FilamentSensor = field(default_factory=FilamentSensor)

    @property
    def has_active_job(self) -> bool:
        return bool(self.filename)


def snapshot_to_dict(snapshot: PrinterSnapshot) -> Dict[str, Any]:
    """Serialise a snapshot using the device's camelCase keys."""

    coord = snapshot.current_coord
    return {
        "printStatus": snapshot.print_status,
        "bedTemp": snapshot.bed_temp,
        "nozzleTemp": snapshot.nozzle_temp,
        "chamberTemp": snapshot.chamber_temp,
        "bedTargetTemp": snapshot.bed_target_temp,
        "nozzleTargetTemp": snapshot.nozzle_target_temp,
        "currentCoord": coord.as_dict() if coord is not None else None,
        "zOffset": snapshot.z_offset,
        "modelFan": snapshot.model_fan,
        "auxFan": snapshot.aux_fan,
        "boxFan": snapshot.box_fan,
        "filename": snapshot.filename,
        "currentLayer": snapshot.current_layer,
        "totalLayers": snapshot.total_layers,
        "progress": snapshot.progress,
        "printSpeed": snapshot.print_speed,
        "lightOn": snapshot.light_on,
        "currentTicks": snapshot.current_ticks,
        "totalTicks": snapshot.total_ticks,
        "sensor": snapshot.sensor.as_dict(),
    }
