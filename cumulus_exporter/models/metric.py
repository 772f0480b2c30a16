"""
Metric model shared by collectors and the exporter.

A MetricDescriptor is created once per metric kind when a collector module
is imported and is never mutated. Collectors turn readings into
MetricRecord instances and hand them to a MetricSink, which the exporter
later renders through prometheus_client.
"""

import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric


class MetricKind(Enum):
    """Prometheus value type of a record."""
    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass(frozen=True)
class MetricDescriptor:
    """
    Static metadata of a metric: name, help text and label shape.

    Examples:
        MetricDescriptor("cumulus", "sensor", "state", "...", ("sensor", "description"))
            -> cumulus_sensor_state{sensor="...", description="..."}
        MetricDescriptor("cumulus", "", "scrapes_total", "...")
            -> cumulus_scrapes_total
    """
    namespace: str
    subsystem: str
    name: str
    help: str
    labels: tuple[str, ...] = ()

    @property
    def fq_name(self) -> str:
        """Fully qualified metric name."""
        return "_".join(part for part in (self.namespace, self.subsystem, self.name) if part)

    def __repr__(self) -> str:
        return f"MetricDescriptor({self.fq_name}, labels={list(self.labels)})"


@dataclass(frozen=True)
class MetricRecord:
    """One emitted value for a descriptor."""
    descriptor: MetricDescriptor
    kind: MetricKind
    value: float
    label_values: tuple[str, ...] = ()

    def __post_init__(self):
        if len(self.label_values) != len(self.descriptor.labels):
            raise ValueError(
                f"{self.descriptor.fq_name}: expected {len(self.descriptor.labels)} "
                f"label values, got {len(self.label_values)}"
            )
        object.__setattr__(self, "value", float(self.value))

    @classmethod
    def gauge(cls, descriptor: MetricDescriptor, value: float, *labels: str) -> "MetricRecord":
        return cls(descriptor, MetricKind.GAUGE, value, tuple(labels))

    @classmethod
    def counter(cls, descriptor: MetricDescriptor, value: float, *labels: str) -> "MetricRecord":
        return cls(descriptor, MetricKind.COUNTER, value, tuple(labels))


@dataclass
class MetricSink:
    """
    Append-only output channel for metric records.

    Safe for concurrent writers: the exporter and every collector task of
    a scrape session write into the same sink. No ordering is kept between
    writers.
    """
    _records: list[MetricRecord] = field(default_factory=list, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add(self, record: MetricRecord) -> None:
        """Append a single record."""
        with self._lock:
            self._records.append(record)

    def extend(self, records: Iterable[MetricRecord]) -> None:
        """Append several records at once."""
        records = list(records)
        with self._lock:
            self._records.extend(records)

    def gauge(self, descriptor: MetricDescriptor, value: float, *labels: str) -> None:
        self.add(MetricRecord.gauge(descriptor, value, *labels))

    def counter(self, descriptor: MetricDescriptor, value: float, *labels: str) -> None:
        self.add(MetricRecord.counter(descriptor, value, *labels))

    def records(self) -> list[MetricRecord]:
        """Get a snapshot copy of all records written so far."""
        with self._lock:
            return list(self._records)

    def find(self, fq_name: str) -> list[MetricRecord]:
        """Get all records of a metric by its fully qualified name."""
        return [r for r in self.records() if r.descriptor.fq_name == fq_name]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


def _new_family(descriptor: MetricDescriptor, kind: MetricKind) -> Metric:
    labels = list(descriptor.labels)
    if kind == MetricKind.COUNTER:
        return CounterMetricFamily(descriptor.fq_name, descriptor.help, labels=labels)
    return GaugeMetricFamily(descriptor.fq_name, descriptor.help, labels=labels)


def to_metric_families(records: Iterable[MetricRecord]) -> Iterator[Metric]:
    """
    Group records by descriptor into prometheus_client metric families.

    Families are yielded in the order their descriptor was first seen.
    """
    families: dict[MetricDescriptor, Metric] = {}

    for record in records:
        family = families.get(record.descriptor)
        if family is None:
            family = _new_family(record.descriptor, record.kind)
            families[record.descriptor] = family
        family.add_metric(list(record.label_values), record.value)

    yield from families.values()


def describe_families(descriptors: Iterable[MetricDescriptor]) -> Iterator[Metric]:
    """Yield empty gauge families for descriptors (used for registration)."""
    for descriptor in descriptors:
        yield _new_family(descriptor, MetricKind.GAUGE)
