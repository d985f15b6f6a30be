"""Tests for the printer state store merge rules."""

from __future__ import annotations

import dataclasses

import pytest

from printwatch.sync.models import (
    FilamentSensor,
    Position,
    PrinterSnapshot,
    parse_position,
    snapshot_to_dict,
)
from printwatch.sync.state_store import FIELD_SPECS, PrinterStateStore, build_sensor


def test_initial_snapshot_uses_defaults(store: PrinterStateStore) -> None:
    snapshot = store.snapshot()

    assert snapshot == PrinterSnapshot()
    assert snapshot.print_status == 0
    assert snapshot.print_speed == 100
    assert snapshot.filename == ""
    assert snapshot.current_coord is None
    assert snapshot.sensor == FilamentSensor()


def test_snapshot_is_read_only(store: PrinterStateStore) -> None:
    snapshot = store.snapshot()

    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.bed_temp = 99.0  # type: ignore[misc]
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.sensor.pulses = 3  # type: ignore[misc]


def test_each_store_owns_its_state() -> None:
    first = PrinterStateStore()
    second = PrinterStateStore()

    first.apply_partial({"bedTemp": 60})

    assert first.snapshot().bed_temp == 60.0
    assert second.snapshot().bed_temp == 0.0


# ============================================================================
# apply_partial
# ============================================================================


def test_partial_updates_keep_unmentioned_fields(store: PrinterStateStore) -> None:
    store.apply_partial({"bedTemp": 60.5, "filename": "benchy.gcode"})
    store.apply_partial({"nozzleTemp": 210})
    store.apply_partial({"progress": 42, "currentLayer": 7})

    snapshot = store.snapshot()
    assert snapshot.bed_temp == 60.5
    assert snapshot.filename == "benchy.gcode"
    assert snapshot.nozzle_temp == 210.0
    assert snapshot.progress == 42
    assert snapshot.current_layer == 7
    assert snapshot.print_speed == 100


def test_partial_same_field_applies_in_order(store: PrinterStateStore) -> None:
    store.apply_partial({"printStatus": 9})
    store.apply_partial({"printStatus": 13})

    assert store.snapshot().print_status == 13


def test_partial_ignores_unknown_fields(store: PrinterStateStore) -> None:
    changed = store.apply_partial({"firmwareVersion": "1.2", "bogus": 3})

    assert changed is False
    assert store.snapshot() == PrinterSnapshot()
    assert not hasattr(store.snapshot(), "firmwareVersion")


def test_partial_none_does_not_clear_existing_value(store: PrinterStateStore) -> None:
    store.apply_partial({"filename": "part.gcode", "bedTemp": 55})

    store.apply_partial({"filename": None, "bedTemp": None})

    assert store.snapshot().filename == "part.gcode"
    assert store.snapshot().bed_temp == 55.0


@pytest.mark.parametrize(
    "payload",
    [
        {"bedTemp": "hot"},
        {"bedTemp": float("nan")},
        {"bedTemp": float("inf")},
        {"bedTemp": True},
        {"printStatus": 13.5},
        {"currentLayer": -1},
        {"filename": 42},
        {"currentCoord": "bad"},
        {"sensor": "present"},
    ],
)
def test_partial_drops_malformed_values(store: PrinterStateStore, payload) -> None:
    before = store.snapshot()

    changed = store.apply_partial(payload)

    assert changed is False
    assert store.snapshot() == before


def test_partial_malformed_field_does_not_block_others(store: PrinterStateStore) -> None:
    store.apply_partial({"bedTemp": "oops", "nozzleTemp": 200})

    assert store.snapshot().bed_temp == 0.0
    assert store.snapshot().nozzle_temp == 200.0


def test_partial_accepts_integral_floats_for_int_fields(store: PrinterStateStore) -> None:
    store.apply_partial({"printStatus": 13.0, "totalLayers": 120.0})

    assert store.snapshot().print_status == 13
    assert isinstance(store.snapshot().print_status, int)
    assert store.snapshot().total_layers == 120


def test_partial_does_not_clamp_device_values(store: PrinterStateStore) -> None:
    store.apply_partial(
        {"progress": 140, "modelFan": 250, "currentLayer": 12, "totalLayers": 10}
    )

    snapshot = store.snapshot()
    assert snapshot.progress == 140
    assert snapshot.model_fan == 250
    assert snapshot.current_layer == 12
    assert snapshot.total_layers == 10


def test_partial_parses_coordinate_string(store: PrinterStateStore) -> None:
    store.apply_partial({"currentCoord": "1.5,2,3.25"})

    assert store.snapshot().current_coord == Position(1.5, 2.0, 3.25)


def test_partial_non_mapping_is_noop(store: PrinterStateStore) -> None:
    assert store.apply_partial(["bedTemp", 60]) is False
    assert store.apply_partial(None) is False
    assert store.snapshot() == PrinterSnapshot()


def test_partial_reports_change(store: PrinterStateStore) -> None:
    assert store.apply_partial({"bedTemp": 60}) is True
    assert store.apply_partial({"bedTemp": 60}) is False


# ============================================================================
# apply_full
# ============================================================================


def test_full_with_empty_payload_leaves_snapshot_unchanged(
    store: PrinterStateStore,
) -> None:
    store.apply_partial({"bedTemp": 60, "printStatus": 13, "filename": "a.gcode"})
    store.set_position("1,2,3")
    before = store.snapshot()

    changed = store.apply_full({})

    assert changed is False
    assert store.snapshot() == before


def test_full_falls_back_to_existing_values(store: PrinterStateStore) -> None:
    store.apply_partial({"bedTemp": 60, "nozzleTemp": 205, "printSpeed": 80})

    store.apply_full({"bedTemp": 65, "printStatus": 13})

    snapshot = store.snapshot()
    assert snapshot.bed_temp == 65.0
    assert snapshot.print_status == 13
    assert snapshot.nozzle_temp == 205.0
    assert snapshot.print_speed == 80


def test_full_replaces_sensor_when_present(store: PrinterStateStore) -> None:
    store.replace_sensor({"present": True, "pulses": 10, "switchRaw": 1})

    store.apply_full({"sensor": {"pulses": 2}})

    assert store.snapshot().sensor == FilamentSensor(pulses=2)


def test_full_is_idempotent(store: PrinterStateStore) -> None:
    payload = {
        "printStatus": 13,
        "bedTemp": 60.0,
        "nozzleTemp": 215.5,
        "currentCoord": "10,20,5",
        "filename": "vase.gcode",
        "currentLayer": 3,
        "totalLayers": 90,
        "progress": 4,
    }

    store.apply_full(payload)
    once = store.snapshot()
    changed = store.apply_full(payload)

    assert changed is False
    assert store.snapshot() == once


def test_full_keeps_existing_value_for_malformed_field(store: PrinterStateStore) -> None:
    store.apply_partial({"zOffset": 0.12})

    store.apply_full({"zOffset": "n/a", "chamberTemp": 31.0})

    assert store.snapshot().z_offset == 0.12
    assert store.snapshot().chamber_temp == 31.0


def test_field_specs_cover_every_snapshot_attribute() -> None:
    attributes = {spec.attribute for spec in FIELD_SPECS}
    snapshot_fields = {item.name for item in dataclasses.fields(PrinterSnapshot)}

    assert attributes == snapshot_fields


# ============================================================================
# replace_sensor
# ============================================================================


def test_replace_sensor_is_wholesale(store: PrinterStateStore) -> None:
    store.replace_sensor(
        {"present": True, "lastMotion": 1200, "pulses": 77, "switchRaw": 1, "error": True}
    )

    store.replace_sensor({"pulses": 5})

    assert store.snapshot().sensor == FilamentSensor(
        present=False, last_motion=0, pulses=5, switch_raw=0, error=False
    )


def test_replace_sensor_does_not_touch_other_fields(store: PrinterStateStore) -> None:
    store.apply_partial({"bedTemp": 60})

    store.replace_sensor({"present": True})

    assert store.snapshot().bed_temp == 60.0
    assert store.snapshot().sensor.present is True


def test_replace_sensor_ignores_non_mapping(store: PrinterStateStore) -> None:
    store.replace_sensor({"pulses": 9})

    assert store.replace_sensor("garbage") is False
    assert store.snapshot().sensor.pulses == 9


def test_replace_sensor_accepts_integer_switch_flags(store: PrinterStateStore) -> None:
    store.replace_sensor({"present": 1, "switchRaw": 1})

    assert store.snapshot().sensor.present is True
    assert store.snapshot().sensor.switch_raw == 1


# ============================================================================
# set_position
# ============================================================================


def test_set_position_parses_triple(store: PrinterStateStore) -> None:
    assert store.set_position("1,2,3") is True

    coord = store.snapshot().current_coord
    assert coord == Position(x=1.0, y=2.0, z=3.0)
    assert coord.as_dict() == {"x": 1.0, "y": 2.0, "z": 3.0}


@pytest.mark.parametrize(
    "raw", ["bad", "1,2", "1,2,3,4", "", "1,,3", "a,b,c", "nan,1,2", None, 42]
)
def test_set_position_ignores_malformed_input(store: PrinterStateStore, raw) -> None:
    store.set_position("10,20,5")

    assert store.set_position(raw) is False
    assert store.snapshot().current_coord == Position(10.0, 20.0, 5.0)


def test_set_position_malformed_without_prior_value(store: PrinterStateStore) -> None:
    store.set_position("bad")

    assert store.snapshot().current_coord is None


def test_parse_position_accepts_whitespace_and_mappings() -> None:
    assert parse_position(" 1.5 , -2 , 0.4 ") == Position(1.5, -2.0, 0.4)
    assert parse_position({"x": 1, "y": 2, "z": 3}) == Position(1.0, 2.0, 3.0)
    assert parse_position({"x": 1, "y": 2}) is None


def test_snapshot_to_dict_uses_device_keys(store: PrinterStateStore) -> None:
    store.apply_partial({"printStatus": 13, "filename": "a.gcode"})
    store.set_position("1,2,3")

    payload = snapshot_to_dict(store.snapshot())

    assert payload["printStatus"] == 13
    assert payload["filename"] == "a.gcode"
    assert payload["currentCoord"] == {"x": 1.0, "y": 2.0, "z": 3.0}
    assert payload["sensor"]["switchRaw"] == 0
    assert payload["printSpeed"] == 100


def test_field_specs_route_structured_fields() -> None:
    coercers = {spec.key: spec.coerce for spec in FIELD_SPECS}

    assert coercers["sensor"] is build_sensor
    assert coercers["currentCoord"] is parse_position


def test_replace_sensor_keeps_fractional_readings(store: PrinterStateStore) -> None:
    store.replace_sensor({"present": True, "switchRaw": 512.5, "lastMotion": 1200.7})

    sensor = store.snapshot().sensor
    assert sensor.present is True
    assert sensor.switch_raw == 512.5
    assert sensor.last_motion == 1200.7
    assert sensor.motion_stalled(1000) is True


@pytest.mark.parametrize("value", ["fast", float("nan"), True])
def test_replace_sensor_drops_malformed_readings(store: PrinterStateStore, value) -> None:
    store.replace_sensor({"lastMotion": value, "switchRaw": value, "pulses": 4})

    sensor = store.snapshot().sensor
    assert sensor.last_motion == 0
    assert sensor.switch_raw == 0
    assert sensor.pulses == 4
