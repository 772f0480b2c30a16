"""
Metric collectors for Cumulus Linux switches.

Importing this package registers every collector on the process-wide
registry.
"""

from .base import Collector, CollectorError, InvocationError, ParseError
from .registry import CollectorRegistration, CollectorRegistry, register_collector, registry
from .resource import ResourceCollector
from .sensor import SensorCollector
from .version import VersionCollector

__all__ = [
    "Collector",
    "CollectorError",
    "InvocationError",
    "ParseError",
    "CollectorRegistration",
    "CollectorRegistry",
    "register_collector",
    "registry",
    "SensorCollector",
    "ResourceCollector",
    "VersionCollector",
]
