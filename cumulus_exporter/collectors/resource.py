"""
Hardware resource utilization collector.

Runs `cl-resource-query -j`, which prints a JSON object keyed by resource:

    {
        "host_0_entries": {"count": 12, "max": 8192, "name": "Host0Entries"},
        "mac_entries": {"count": 40, "max": 32768, "name": "MacEntries"},
        ...
    }
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

SUBSYSTEM = "resource"

LABELS = ("resource",)

RESOURCE_DESC = {
    "max": descriptor(SUBSYSTEM, "maximum", "Resource Maximum.", LABELS),
    "used": descriptor(SUBSYSTEM, "used", "Resource Used.", LABELS),
}


def parse_resources(data: Any) -> list[MetricRecord]:
    """
    Convert decoded cl-resource-query output into records.

    Raises:
        ParseError: If data does not match the expected schema
    """
    if not isinstance(data, dict):
        raise ParseError(f"expected an object of resources, got {type(data).__name__}")

    records: list[MetricRecord] = []

    for key, entry in data.items():
        if not isinstance(entry, dict):
            raise ParseError(f"resource {key!r} is not an object")

        try:
            label = get_string(entry, "name").lower()
            maximum = get_number(entry, "max")
            used = get_number(entry, "count")
        except ParseError as e:
            raise ParseError(f"resource {key!r}: {e}") from None

        records.append(MetricRecord.gauge(RESOURCE_DESC["max"], maximum, label))
        records.append(MetricRecord.gauge(RESOURCE_DESC["used"], used, label))

    return records


@register_collector(SUBSYSTEM, enabled_by_default=True)
class ResourceCollector(Collector):
    """Collector for forwarding table and ACL resource usage."""

    NAME = SUBSYSTEM
    HELP = "Collect hardware resource utilization from cl-resource-query"

    def __init__(self, config: Config):
        super().__init__()
        self.path = config.cumulus.resource_query_path
        self.timeout = config.cumulus.command_timeout

    def validate(self) -> None:
        if not check_executable(self.path):
            raise ConfigError(f"cl-resource-query not found or not executable: {self.path}")

    def describe(self) -> Iterator[MetricDescriptor]:
        yield from RESOURCE_DESC.values()

    async def gather(self) -> list[MetricRecord]:
        output = await run_command(self.path, "-j", timeout=self.timeout)
        try:
            return parse_resources(load_json(output, "resource"))
        except ParseError as e:
            raise ParseError(f"cannot parse resources: {e}") from None
