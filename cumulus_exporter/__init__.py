"""
Cumulus Exporter - Prometheus exporter for Cumulus Linux switches.
"""

from .const import APP_VERSION

__version__ = APP_VERSION
