"""
Application constants and metadata.
"""

# Application info
APP_NAME = "Cumulus Exporter"
APP_VERSION = "0.1.0"
APP_URL = "https://github.com/tynany/cumulus_exporter"

# Prefix of every exported metric
NAMESPACE = "cumulus"

# Default values
DEFAULT_CONFIG_PATH = "/etc/cumulus-exporter/config.conf"
DEFAULT_LISTEN_ADDRESS = ":9365"
DEFAULT_TELEMETRY_PATH = "/metrics"
DEFAULT_SMONCTL_PATH = "/usr/sbin/smonctl"
DEFAULT_RESOURCE_QUERY_PATH = "/usr/cumulus/bin/cl-resource-query"
DEFAULT_LSB_RELEASE_PATH = "/etc/lsb-release"
DEFAULT_COMMAND_TIMEOUT = 10.0
DEFAULT_SCRAPE_TIMEOUT = 30.0
