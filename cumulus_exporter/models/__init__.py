"""
Data models for metric descriptors and emitted records.
"""

from .metric import MetricDescriptor, MetricKind, MetricRecord, MetricSink, to_metric_families

__all__ = [
    "MetricDescriptor",
    "MetricKind",
    "MetricRecord",
    "MetricSink",
    "to_metric_families",
]
