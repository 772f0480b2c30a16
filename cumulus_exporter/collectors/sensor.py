"""
Hardware sensor collector.

Runs `smonctl -j`, which prints a JSON list of sensors:

    [
        {"name": "Temp1", "description": "Board Sensor", "state": "OK",
         "type": "temp", "input": 31.5, "min": 5, "max": 80},
        {"name": "Fan1", "description": "Fan Tray 1", "state": "ABSENT",
         "type": "fan"},
        ...
    ]

State is mapped to 1 (ok), 2 (absent) or 0 (anything else). Readings and
operating limits are exported only for sensors in the ok state.
"""

from collections.abc import Iterator
from typing import Any

from ..config.loader import ConfigError
from ..config.schema import Config
from ..models.metric import MetricDescriptor, MetricRecord
from ..utils.command import check_executable, run_command
from ..utils.parsing import get_number, get_string, load_json
from .base import Collector, ParseError, descriptor
from .registry import register_collector

SUBSYSTEM = "sensor"

LABELS = ("sensor", "description")

STATE_BAD = 0.0
STATE_OK = 1.0
STATE_ABSENT = 2.0

SENSOR_DESC = {
    "state": descriptor(
        SUBSYSTEM, "state", "State of Sensor (0 = Bad, 1 = Ok, 2 = Absent).", LABELS
    ),
    "temp": descriptor(SUBSYSTEM, "temperature_celsius", "Temperature in Celsius.", LABELS),
    "fan_speed": descriptor(SUBSYSTEM, "fan_speed_rpm", "Fan Speed RPM.", LABELS),
    "min_temp": descriptor(
        SUBSYSTEM,
        "minimum_operating_temperature_celsius",
        "Minimum Operating Temperature in Celsius.",
        LABELS,
    ),
    "max_temp": descriptor(
        SUBSYSTEM,
        "maximum_operating_temperature_celsius",
        "Maximum Operating Temperature in Celsius.",
        LABELS,
    ),
    "min_fan_speed": descriptor(
        SUBSYSTEM, "minimum_operating_fan_speed_rpm", "Minimum Operating Fan Speed RPM.", LABELS
    ),
    "max_fan_speed": descriptor(
        SUBSYSTEM, "maximum_operating_fan_speed_rpm", "Maximum Operating Fan Speed RPM.", LABELS
    ),
}

# Sensor type -> (reading, minimum, maximum) descriptor keys
READINGS = {
    "temp": ("temp", "min_temp", "max_temp"),
    "fan": ("fan_speed", "min_fan_speed", "max_fan_speed"),
}


def sensor_state(state: str) -> float:
    """Map a sensor state string to its gauge value."""
    state = state.lower()
    if state == "ok":
        return STATE_OK
    if state == "absent":
        return STATE_ABSENT
    return STATE_BAD


def parse_sensors(data: Any) -> list[MetricRecord]:
    """
    Convert decoded smonctl output into records.

    Raises:
        ParseError: If data does not match the expected schema
    """
    if not isinstance(data, list):
        raise ParseError(f"expected a list of sensors, got {type(data).__name__}")

    records: list[MetricRecord] = []

    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ParseError(f"sensor #{index} is not an object")

        try:
            name = get_string(entry, "name")
            labels = (name.lower(), get_string(entry, "description", "").lower())
            state = sensor_state(get_string(entry, "state", ""))
            sensor_type = get_string(entry, "type", "")

            records.append(MetricRecord.gauge(SENSOR_DESC["state"], state, *labels))

            if state != STATE_OK or sensor_type not in READINGS:
                continue

            reading, minimum, maximum = READINGS[sensor_type]
            records.append(
                MetricRecord.gauge(SENSOR_DESC[reading], get_number(entry, "input", 0), *labels)
            )
            records.append(
                MetricRecord.gauge(SENSOR_DESC[minimum], get_number(entry, "min", 0), *labels)
            )
            records.append(
                MetricRecord.gauge(SENSOR_DESC[maximum], get_number(entry, "max", 0), *labels)
            )
        except ParseError as e:
            raise ParseError(f"sensor #{index}: {e}") from None

    return records


@register_collector(SUBSYSTEM, enabled_by_default=True)
class SensorCollector(Collector):
    """Collector for temperature and fan sensors reported by smonctl."""

    NAME = SUBSYSTEM
    HELP = "Collect hardware sensor states, temperatures and fan speeds from smonctl"

    def __init__(self, config: Config):
        super().__init__()
        self.path = config.cumulus.smonctl_path
        self.timeout = config.cumulus.command_timeout

    def validate(self) -> None:
        if not check_executable(self.path):
            raise ConfigError(f"smonctl not found or not executable: {self.path}")

    def describe(self) -> Iterator[MetricDescriptor]:
        yield from SENSOR_DESC.values()

    async def gather(self) -> list[MetricRecord]:
        output = await run_command(self.path, "-j", timeout=self.timeout)
        try:
            return parse_sensors(load_json(output, "sensor"))
        except ParseError as e:
            raise ParseError(f"cannot parse sensors: {e}") from None
