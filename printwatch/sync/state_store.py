"""Printer state store and its per-field merge rules."""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .models import FilamentSensor, PrinterSnapshot, parse_position

LOGGER = logging.getLogger(__name__)

__all__ = [
    "FIELD_SPECS",
    "FieldSpec",
    "PrinterStateStore",
    "build_sensor",
]


_MISSING = object()


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    result = float(value)
    return result if math.isfinite(result) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def _as_count(value: Any) -> Optional[int]:
    result = _as_int(value)
    if result is None or result < 0:
        return None
    return result


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    return None


def _pick(record: Mapping[str, Any], key: str, coerce: Callable[[Any], Any], default: Any) -> Any:
    value = record.get(key)
    if value is None:
        return default
    result = coerce(value)
    return default if result is None else result


def build_sensor(record: Any) -> Optional[FilamentSensor]:
    """Build a complete sensor record; keys absent from ``record`` take defaults."""

    if isinstance(record, FilamentSensor):
        return record
    if not isinstance(record, Mapping):
        return None

    defaults = FilamentSensor()
    return FilamentSensor(
        present=_pick(record, "present", _as_bool, defaults.present),
        last_motion=_pick(record, "lastMotion", _as_number, defaults.last_motion),
        pulses=_pick(record, "pulses", _as_int, defaults.pulses),
        switch_raw=_pick(record, "switchRaw", _as_number, defaults.switch_raw),
        error=_pick(record, "error", _as_bool, defaults.error),
    )


@dataclass(slots=True, frozen=True)
class FieldSpec:
    """Wire key, snapshot attribute and the coercer that validates a value.

    A coercer returns None for malformed input, which leaves the field as is.
    ``parse_position`` and ``build_sensor`` double as coercers for the
    position (parse-or-ignore) and the sensor record (wholesale rebuild).
    """

    key: str
    attribute: str
    coerce: Callable[[Any], Any]


FIELD_SPECS: Tuple[FieldSpec, ...] = (
    FieldSpec("printStatus", "print_status", _as_int),
    FieldSpec("bedTemp", "bed_temp", _as_float),
    FieldSpec("nozzleTemp", "nozzle_temp", _as_float),
    FieldSpec("chamberTemp", "chamber_temp", _as_float),
    FieldSpec("bedTargetTemp", "bed_target_temp", _as_float),
    FieldSpec("nozzleTargetTemp", "nozzle_target_temp", _as_float),
    FieldSpec("currentCoord", "current_coord", parse_position),
    FieldSpec("zOffset", "z_offset", _as_float),
    FieldSpec("modelFan", "model_fan", _as_number),
    FieldSpec("auxFan", "aux_fan", _as_number),
    FieldSpec("boxFan", "box_fan", _as_number),
    FieldSpec("filename", "filename", _as_text),
    FieldSpec("currentLayer", "current_layer", _as_count),
    FieldSpec("totalLayers", "total_layers", _as_count),
    FieldSpec("progress", "progress", _as_int),
    FieldSpec("printSpeed", "print_speed", _as_int),
    FieldSpec("lightOn", "light_on", _as_bool),
    FieldSpec("currentTicks", "current_ticks", _as_count),
    FieldSpec("totalTicks", "total_ticks", _as_count),
    FieldSpec("sensor", "sensor", build_sensor),
)

_SPECS_BY_KEY: Dict[str, FieldSpec] = {spec.key: spec for spec in FIELD_SPECS}


class PrinterStateStore:
    """Owns the printer snapshot; every mutation goes through this class.

    Readers receive the frozen :class:`PrinterSnapshot` from :meth:`snapshot`
    and cannot change it. A ``None`` value in any payload is treated as an
    absent field, so a sparse or half-filled payload never clears state.
    """

    def __init__(self, initial: Optional[PrinterSnapshot] = None) -> None:
        self._snapshot = initial if initial is not None else PrinterSnapshot()

    def snapshot(self) -> PrinterSnapshot:
        return self._snapshot

    def apply_partial(self, fields: Any) -> bool:
        """Merge only the fields present in ``fields``.

        Returns True when the snapshot changed.
        """

        if not isinstance(fields, Mapping):
            LOGGER.debug("Ignoring non-mapping status payload: %r", fields)
            return False

        updates: Dict[str, Any] = {}
        for key, value in fields.items():
            spec = _SPECS_BY_KEY.get(key)
            if spec is None:
                LOGGER.debug("Ignoring unknown status field %r", key)
                continue
            coerced = _coerce(spec, value)
            if coerced is not _MISSING:
                updates[spec.attribute] = coerced

        return self._commit(updates)

    def apply_full(self, fields: Any) -> bool:
        """Supersede every known field, falling back to the current value.

        Firmware occasionally sends "full" payloads with fields missing; those
        fields keep their existing values instead of resetting to defaults.
        """

        if not isinstance(fields, Mapping):
            LOGGER.debug("Ignoring non-mapping full status payload: %r", fields)
            return False

        updates: Dict[str, Any] = {}
        missing = []
        for spec in FIELD_SPECS:
            coerced = _coerce(spec, fields.get(spec.key))
            if coerced is _MISSING:
                missing.append(spec.key)
                continue
            updates[spec.attribute] = coerced

        if missing:
            LOGGER.debug("Full status kept existing values for: %s", ", ".join(missing))

        return self._commit(updates)

    def replace_sensor(self, record: Any) -> bool:
        sensor = build_sensor(record)
        if sensor is None:
            LOGGER.debug("Ignoring malformed sensor record: %r", record)
            return False
        return self._commit({"sensor": sensor})

    def set_position(self, raw: Any) -> bool:
        """Update ``current_coord`` from ``"X,Y,Z"``; malformed input is a no-op.

        Returns True when the position was parsed, even if unchanged.
        """

        position = parse_position(raw)
        if position is None:
            LOGGER.debug("Ignoring malformed position %r", raw)
            return False
        self._commit({"current_coord": position})
        return True

    def _commit(self, updates: Mapping[str, Any]) -> bool:
        if not updates:
            return False
        previous = self._snapshot
        self._snapshot = dataclasses.replace(previous, **updates)
        return self._snapshot != previous


def _coerce(spec: FieldSpec, value: Any) -> Any:
    if value is None:
        return _MISSING
    result = spec.coerce(value)
    if result is None:
        LOGGER.debug("Dropping malformed value for %s: %r", spec.key, value)
        return _MISSING
    return result
