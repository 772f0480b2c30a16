"""
Scrape orchestration.

One call of Exporter.scrape() is one scrape session: the global scrape
counter is bumped once, every enabled collector runs concurrently, and
each collector's duration, error count and up flag are written next to its
records. The session returns only after every collector has finished.
"""

import asyncio
import threading
import time
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

from prometheus_client.core import Metric

from .collectors.base import Collector, CollectorError, descriptor
from .const import DEFAULT_SCRAPE_TIMEOUT
from .logging import get_logger
from .models.metric import (
    MetricDescriptor,
    MetricRecord,
    MetricSink,
    describe_families,
    to_metric_families,
)

logger = get_logger("exporter")

COLLECTOR_LABELS = ("collector",)

EXPORTER_DESC = {
    "scrapes_total": descriptor(
        "", "scrapes_total", "Total number of times cumulus_exporter has been scraped."
    ),
    "scrape_errors_total": descriptor(
        "", "scrape_errors_total", "Total number of errors from a collector.", COLLECTOR_LABELS
    ),
    "scrape_duration": descriptor(
        "",
        "scrape_duration_seconds",
        "Time it took for a collector's scrape to complete.",
        COLLECTOR_LABELS,
    ),
    "collector_up": descriptor(
        "",
        "collector_up",
        "Whether the collector's last scrape was successful (1 = successful, 0 = unsuccessful).",
        COLLECTOR_LABELS,
    ),
}


class ExporterState:
    """
    Process-wide exporter state.

    Created once at startup and shared by every scrape session.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._scrapes = 0

    def increment_scrapes(self) -> int:
        """Count a new scrape session and return the new total."""
        with self._lock:
            self._scrapes += 1
            return self._scrapes

    @property
    def scrapes(self) -> int:
        with self._lock:
            return self._scrapes


@dataclass(frozen=True)
class ScrapeOutcome:
    """Bookkeeping of one collector in one scrape session."""
    collector: str
    duration: float
    error_count: int
    up: bool

    def records(self) -> list[MetricRecord]:
        return [
            MetricRecord.gauge(EXPORTER_DESC["scrape_duration"], self.duration, self.collector),
            MetricRecord.gauge(
                EXPORTER_DESC["scrape_errors_total"], self.error_count, self.collector
            ),
            MetricRecord.gauge(EXPORTER_DESC["collector_up"], 1 if self.up else 0, self.collector),
        ]


class Exporter:
    """
    Runs scrape sessions over a fixed set of collectors.

    The collectors are created once and live as long as the exporter, so
    their error counts and caches persist across sessions.
    """

    def __init__(
        self,
        collectors: Mapping[str, Collector],
        state: ExporterState | None = None,
        timeout: float = DEFAULT_SCRAPE_TIMEOUT,
    ):
        """
        Initialize exporter.

        Args:
            collectors: Enabled collectors keyed by registry name
            state: Shared process state (a new one if not provided)
            timeout: Seconds a single collector may take per scrape
        """
        self.collectors = dict(collectors)
        self.state = state or ExporterState()
        self.timeout = timeout

    def describe(self) -> Iterator[MetricDescriptor]:
        """Yield the bookkeeping descriptors and those of every collector."""
        yield from EXPORTER_DESC.values()
        for collector in self.collectors.values():
            yield from collector.describe()

    async def scrape(self, sink: MetricSink) -> list[ScrapeOutcome]:
        """
        Run one scrape session.

        Args:
            sink: Destination of every record of the session

        Returns:
            One outcome per collector
        """
        scrapes = self.state.increment_scrapes()
        sink.counter(EXPORTER_DESC["scrapes_total"], scrapes)

        return list(
            await asyncio.gather(
                *(
                    self._run_collector(name, collector, sink)
                    for name, collector in self.collectors.items()
                )
            )
        )

    async def _run_collector(self, name: str, collector: Collector, sink: MetricSink) -> ScrapeOutcome:
        """Run one collector and write its bookkeeping records."""
        start = time.perf_counter()

        try:
            errors = await asyncio.wait_for(collector.collect(sink), timeout=self.timeout)
        except TimeoutError:
            error = CollectorError(f"scrape timed out after {self.timeout}s")
            collector.record_error(error)
            errors = [error]

        duration = time.perf_counter() - start

        # Another session may drain this session's errors first, so the
        # outcome uses the cycle's own errors. Draining keeps the list bounded.
        collector.report_errors()
        outcome = ScrapeOutcome(
            collector=name,
            duration=duration,
            error_count=collector.report_error_count(),
            up=not errors,
        )

        for error in errors:
            logger.error(f"collector {name!r} scrape failed: {error}")

        sink.extend(outcome.records())
        return outcome


class SessionCollector:
    """
    Presents one finished scrape session to prometheus_client.

    Implements the custom collector protocol (collect/describe) so the
    session can be registered on a CollectorRegistry and rendered with
    generate_latest().
    """

    def __init__(self, records: Iterable[MetricRecord], descriptors: Iterable[MetricDescriptor]):
        self._records = list(records)
        self._descriptors = list(descriptors)

    def collect(self) -> Iterator[Metric]:
        return to_metric_families(self._records)

    def describe(self) -> Iterator[Metric]:
        return describe_families(self._descriptors)
