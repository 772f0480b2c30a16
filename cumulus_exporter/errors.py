"""
Errors raised by collectors while reading their data sources.

Collectors never let these escape: they are recorded on the collector and
reported by the exporter as a down collector.
"""


class CollectorError(Exception):
    """Error obtaining or parsing a collector's data source."""

    pass


class InvocationError(CollectorError):
    """External executable missing, not executable, timed out or failed."""

    pass


class ParseError(CollectorError):
    """Output of a data source does not match the expected schema."""

    pass
