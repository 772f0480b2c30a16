"""
Tests for the metric model and sink.
"""

import threading

import pytest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

from cumulus_exporter.models.metric import (
    MetricDescriptor,
    MetricKind,
    MetricRecord,
    MetricSink,
    to_metric_families,
)

STATE = MetricDescriptor("cumulus", "sensor", "state", "State.", ("sensor", "description"))
SCRAPES = MetricDescriptor("cumulus", "", "scrapes_total", "Scrapes.")


def test_fq_name_skips_empty_parts() -> None:
    assert STATE.fq_name == "cumulus_sensor_state"
    assert SCRAPES.fq_name == "cumulus_scrapes_total"


def test_record_label_count_must_match() -> None:
    with pytest.raises(ValueError, match="expected 2 label values, got 1"):
        MetricRecord.gauge(STATE, 1, "temp1")


def test_record_value_is_float() -> None:
    record = MetricRecord.counter(SCRAPES, 3)

    assert record.kind == MetricKind.COUNTER
    assert isinstance(record.value, float)


def test_sink_concurrent_writers() -> None:
    sink = MetricSink()

    def writer(n: int) -> None:
        for _ in range(200):
            sink.gauge(STATE, n, f"s{n}", "board")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(sink) == 2000
    assert len(sink.find("cumulus_sensor_state")) == 2000


def test_records_returns_copy() -> None:
    sink = MetricSink()
    sink.counter(SCRAPES, 1)

    snapshot = sink.records()
    sink.counter(SCRAPES, 2)

    assert len(snapshot) == 1
    assert len(sink) == 2


def test_to_metric_families_groups_by_descriptor() -> None:
    records = [
        MetricRecord.gauge(STATE, 1, "temp1", "board"),
        MetricRecord.counter(SCRAPES, 5),
        MetricRecord.gauge(STATE, 2, "fan1", "tray"),
    ]

    families = list(to_metric_families(records))

    assert len(families) == 2
    state, scrapes = families
    assert isinstance(state, GaugeMetricFamily)
    assert [s.labels for s in state.samples] == [
        {"sensor": "temp1", "description": "board"},
        {"sensor": "fan1", "description": "tray"},
    ]
    assert isinstance(scrapes, CounterMetricFamily)
    assert scrapes.samples[0].name == "cumulus_scrapes_total"
    assert scrapes.samples[0].value == 5.0
