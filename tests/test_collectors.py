"""
Tests for the sensor, resource and version collectors.
"""

import json
from pathlib import Path

import pytest

from cumulus_exporter.collectors.base import ParseError
from cumulus_exporter.collectors.resource import ResourceCollector, parse_resources
from cumulus_exporter.collectors.sensor import SensorCollector, parse_sensors
from cumulus_exporter.collectors.version import (
    CacheState,
    VersionCollector,
    parse_lsb_release,
)
from cumulus_exporter.config.loader import ConfigError
from cumulus_exporter.config.schema import Config
from cumulus_exporter.models.metric import MetricSink

SENSORS = [
    {
        "name": "Temp1",
        "description": "Board Sensor",
        "state": "OK",
        "type": "temp",
        "input": 31.5,
        "min": 5,
        "max": 80,
    },
    {
        "name": "Fan1",
        "description": "Fan Tray 1",
        "state": "ok",
        "type": "fan",
        "input": 6000,
        "min": 2500,
        "max": 29000,
    },
    {"name": "Fan2", "description": "Fan Tray 2", "state": "Absent", "type": "fan"},
    {"name": "PSU1", "description": "Power Supply", "state": "BAD", "type": "power"},
]

RESOURCES = {
    "host_0_entries": {"count": 12, "max": 8192, "name": "Host0Entries"},
    "mac_entries": {"count": 40, "max": 32768, "name": "MacEntries"},
}

LSB_RELEASE = """DISTRIB_ID="Cumulus Linux"
DISTRIB_RELEASE=3.7.2
DISTRIB_DESCRIPTION="Cumulus Linux 3.7.2"
"""


def values(records, fq_name: str) -> dict[tuple, float]:
    return {r.label_values: r.value for r in records if r.descriptor.fq_name == fq_name}


# ============================================================
# Sensor
# ============================================================


def test_sensor_ok_temp() -> None:
    records = parse_sensors(SENSORS[:1])
    labels = ("temp1", "board sensor")

    assert values(records, "cumulus_sensor_state") == {labels: 1.0}
    assert values(records, "cumulus_sensor_temperature_celsius") == {labels: 31.5}
    assert values(records, "cumulus_sensor_minimum_operating_temperature_celsius") == {labels: 5.0}
    assert values(records, "cumulus_sensor_maximum_operating_temperature_celsius") == {labels: 80.0}
    assert values(records, "cumulus_sensor_fan_speed_rpm") == {}


def test_sensor_ok_fan() -> None:
    records = parse_sensors(SENSORS[1:2])
    labels = ("fan1", "fan tray 1")

    assert values(records, "cumulus_sensor_fan_speed_rpm") == {labels: 6000.0}
    assert values(records, "cumulus_sensor_minimum_operating_fan_speed_rpm") == {labels: 2500.0}
    assert values(records, "cumulus_sensor_maximum_operating_fan_speed_rpm") == {labels: 29000.0}


def test_sensor_absent_and_bad_have_only_state() -> None:
    records = parse_sensors(SENSORS[2:])

    assert values(records, "cumulus_sensor_state") == {
        ("fan2", "fan tray 2"): 2.0,
        ("psu1", "power supply"): 0.0,
    }
    assert len(records) == 2


@pytest.mark.parametrize(
    "entry, expected",
    [
        ({"input": 40, "min": None, "max": None}, (40.0, 0.0, 0.0)),
        ({"input": None, "min": 5, "max": 80}, (0.0, 5.0, 80.0)),
        ({}, (0.0, 0.0, 0.0)),
    ],
)
def test_sensor_null_readings_default_to_zero(entry: dict, expected: tuple) -> None:
    psu = {"name": "PSU1", "state": "OK", "type": "temp", **entry}
    records = parse_sensors(SENSORS[:1] + [psu])
    labels = ("psu1", "")

    assert values(records, "cumulus_sensor_temperature_celsius") == {
        ("temp1", "board sensor"): 31.5,
        labels: expected[0],
    }
    assert values(records, "cumulus_sensor_minimum_operating_temperature_celsius")[labels] == expected[1]
    assert values(records, "cumulus_sensor_maximum_operating_temperature_celsius")[labels] == expected[2]


@pytest.mark.parametrize("state", [{"state": None}, {}])
def test_sensor_without_state_is_bad(state: dict) -> None:
    entry = {"name": "Fan3", "description": None, "type": "fan", "input": 100, **state}

    records = parse_sensors([entry])

    assert values(records, "cumulus_sensor_state") == {("fan3", ""): 0.0}
    assert len(records) == 1


@pytest.mark.parametrize(
    "data, message",
    [
        ({"name": "x"}, "expected a list"),
        ([{"name": None, "state": "ok"}], "missing required key 'name'"),
        (["x"], "not an object"),
        ([{"state": "ok"}], "missing required key 'name'"),
        ([{"name": "t", "state": "ok", "type": "temp", "input": "hot"}], "not a number"),
    ],
)
def test_sensor_schema_errors(data, message: str) -> None:
    with pytest.raises(ParseError, match=message):
        parse_sensors(data)


# ============================================================
# Resource
# ============================================================


def test_resource_used_reports_count() -> None:
    records = parse_resources(RESOURCES)

    assert values(records, "cumulus_resource_maximum") == {
        ("host0entries",): 8192.0,
        ("macentries",): 32768.0,
    }
    assert values(records, "cumulus_resource_used") == {
        ("host0entries",): 12.0,
        ("macentries",): 40.0,
    }


@pytest.mark.parametrize(
    "data, message",
    [
        ([], "expected an object"),
        ({"a": 1}, "not an object"),
        ({"a": {"name": "A", "max": 1}}, "missing required key 'count'"),
        ({"a": {"name": "A", "max": True, "count": 1}}, "not a number"),
    ],
)
def test_resource_schema_errors(data, message: str) -> None:
    with pytest.raises(ParseError, match=message):
        parse_resources(data)


# ============================================================
# Version
# ============================================================


def test_parse_lsb_release() -> None:
    info = parse_lsb_release(LSB_RELEASE)

    assert (info.major, info.minor, info.patch, info.release) == ("3", "7", "2", "3.7.2")


@pytest.mark.parametrize(
    "text, message",
    [
        ('DISTRIB_ID="Cumulus Linux"\n', "cannot find DISTRIB_RELEASE"),
        ("DISTRIB_RELEASE=3.7\n", "unexpected semantic version"),
        ("DISTRIB_RELEASE=3.x.2\n", "minor version 'x'"),
        ("garbage\n", "unexpected entry"),
    ],
)
def test_parse_lsb_release_errors(text: str, message: str) -> None:
    with pytest.raises(ParseError, match=message):
        parse_lsb_release(text)


@pytest.mark.asyncio
async def test_version_collector_emits_and_caches(config: Config) -> None:
    path = Path(config.cumulus.lsb_release_path)
    path.write_text(LSB_RELEASE)
    collector = VersionCollector(config)

    sink = MetricSink()
    await collector.collect(sink)
    records = sink.records()

    assert values(records, "cumulus_version_info") == {("3", "7", "2", "3.7.2"): 1.0}
    assert values(records, "cumulus_version_major") == {(): 3.0}
    assert values(records, "cumulus_version_minor") == {(): 7.0}
    assert values(records, "cumulus_version_patch") == {(): 2.0}
    assert collector.cache_state == CacheState.POPULATED

    # Later scrapes reuse the cache even if the file disappears
    path.unlink()
    sink = MetricSink()
    await collector.collect(sink)

    assert len(sink) == 4
    assert collector.cache_state == CacheState.POPULATED
    assert collector.report_errors() == []


@pytest.mark.asyncio
async def test_version_collector_retries_after_failure(config: Config) -> None:
    path = Path(config.cumulus.lsb_release_path)
    path.write_text('DISTRIB_ID="Cumulus Linux"\n')
    collector = VersionCollector(config)
    assert collector.cache_state == CacheState.NOT_ATTEMPTED

    sink = MetricSink()
    await collector.collect(sink)

    assert len(sink) == 0
    assert collector.cache_state == CacheState.FAILED
    errors = collector.report_errors()
    assert len(errors) == 1
    assert "DISTRIB_RELEASE" in str(errors[0])

    path.write_text(LSB_RELEASE)
    await collector.collect(sink)

    assert len(sink) == 4
    assert collector.cache_state == CacheState.POPULATED
    assert collector.report_error_count() == 1


# ============================================================
# Collectors with external commands
# ============================================================


@pytest.mark.asyncio
async def test_sensor_collector_runs_smonctl(config: Config, make_executable) -> None:
    make_executable("smonctl", json.dumps(SENSORS))
    collector = SensorCollector(config)
    collector.validate()

    sink = MetricSink()
    await collector.collect(sink)

    assert len(sink.find("cumulus_sensor_state")) == 4
    assert collector.report_errors() == []


@pytest.mark.asyncio
async def test_resource_collector_runs_query(config: Config, make_executable) -> None:
    make_executable("cl-resource-query", json.dumps(RESOURCES))
    collector = ResourceCollector(config)

    sink = MetricSink()
    await collector.collect(sink)

    assert len(sink) == 4


@pytest.mark.asyncio
async def test_malformed_output_emits_nothing(config: Config, make_executable) -> None:
    broken = SENSORS[:2] + [{"name": "Temp9", "state": "ok", "type": "temp", "input": "n/a"}]
    make_executable("smonctl", json.dumps(broken))
    collector = SensorCollector(config)

    sink = MetricSink()
    cycle_errors = await collector.collect(sink)

    assert len(sink) == 0
    assert len(cycle_errors) == 1
    assert isinstance(cycle_errors[0], ParseError)
    assert collector.report_errors() == cycle_errors
    second = await collector.collect(MetricSink())
    assert collector.report_errors() == second


@pytest.mark.asyncio
async def test_invalid_json_is_error(config: Config, make_executable) -> None:
    make_executable("cl-resource-query", "not json")
    collector = ResourceCollector(config)

    await collector.collect(MetricSink())

    assert "cannot decode resource json" in str(collector.report_errors()[0])


@pytest.mark.asyncio
async def test_report_errors_drains_but_count_grows(config: Config, make_executable) -> None:
    make_executable("smonctl", "", exit_code=1, stderr="no sensors")
    collector = SensorCollector(config)

    await collector.collect(MetricSink())

    first = collector.report_errors()
    assert len(first) == 1
    assert "no sensors" in str(first[0])
    assert collector.report_errors() == []

    counts = []
    for _ in range(3):
        await collector.collect(MetricSink())
        collector.report_errors()
        counts.append(collector.report_error_count())

    assert counts == [2, 3, 4]


def test_validate_missing_executable(config: Config) -> None:
    with pytest.raises(ConfigError, match="smonctl"):
        SensorCollector(config).validate()
    with pytest.raises(ConfigError, match="cl-resource-query"):
        ResourceCollector(config).validate()


def test_describe_is_idempotent(config: Config) -> None:
    for cls in (SensorCollector, ResourceCollector, VersionCollector):
        collector = cls(config)
        first = list(collector.describe())

        assert first
        assert first == list(collector.describe())
