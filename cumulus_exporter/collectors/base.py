"""
Base collector interface for metric collection.

All collectors inherit from the abstract Collector class and implement
describe() and gather(). The base class owns the error bookkeeping the
exporter reads after each collection cycle.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator

from ..const import NAMESPACE
from ..errors import CollectorError, InvocationError, ParseError
from ..logging import get_logger
from ..models.metric import MetricDescriptor, MetricRecord, MetricSink

__all__ = ["Collector", "CollectorError", "InvocationError", "ParseError", "descriptor"]


def descriptor(
    subsystem: str, name: str, help: str, labels: tuple[str, ...] = ()
) -> MetricDescriptor:
    """Create a descriptor under the exporter namespace."""
    return MetricDescriptor(NAMESPACE, subsystem, name, help, labels)


class Collector(ABC):
    """
    Abstract base class for metric collectors.

    Each collector is responsible for:
    1. Describing every metric it can ever produce (describe)
    2. Gathering records from its data source (gather)
    3. Accounting for its own errors (report_errors, report_error_count)

    Errors are drained by the exporter once per scrape, while the error
    count keeps growing for the life of the collector.
    """

    # Registry name of the collector (override in subclasses)
    NAME: str = "unknown"

    # Help text for the enable/disable toggle
    HELP: str = ""

    def __init__(self):
        self.logger = get_logger(f"collectors.{self.NAME}")

        # Error bookkeeping
        self._lock = threading.Lock()
        self._errors: list[CollectorError] = []
        self._error_count = 0

    @property
    def name(self) -> str:
        return self.NAME

    @abstractmethod
    def describe(self) -> Iterator[MetricDescriptor]:
        """
        Yield every descriptor this collector can produce.

        Must not depend on data availability and must be idempotent.
        """
        pass

    @abstractmethod
    async def gather(self) -> list[MetricRecord]:
        """
        Read and parse the data source.

        Returns:
            All records for this cycle

        Raises:
            CollectorError: If the source cannot be read or parsed
        """
        pass

    def validate(self) -> None:
        """
        Check the collector's static configuration.

        Called once at startup for enabled collectors. Override to raise
        ConfigError on an unusable configuration.
        """
        pass

    async def collect(self, sink: MetricSink) -> list[CollectorError]:
        """
        Run one gather-and-parse cycle, writing records to the sink.

        Records are written only when the whole cycle succeeds, a failed
        cycle writes nothing and is recorded as an error instead.

        Returns:
            Errors of this cycle only. They are also added to the pending
            list drained by report_errors(), which concurrent sessions share.
        """
        try:
            records = await self.gather()
        except CollectorError as e:
            error = e
        except Exception as e:
            self.logger.exception(f"Unexpected error in {self.NAME} collector")
            error = CollectorError(f"unexpected error: {e}")
        else:
            sink.extend(records)
            return []

        self.record_error(error)
        return [error]

    def record_error(self, error: CollectorError) -> None:
        """Append an error for the current cycle and bump the lifetime count."""
        with self._lock:
            self._errors.append(error)
            self._error_count += 1

    def report_errors(self) -> list[CollectorError]:
        """Return and clear the errors accumulated since the last call."""
        with self._lock:
            errors, self._errors = self._errors, []
        return errors

    def report_error_count(self) -> int:
        """Get the number of errors since the collector was created."""
        with self._lock:
            return self._error_count

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.NAME!r}, errors={self._error_count})"
