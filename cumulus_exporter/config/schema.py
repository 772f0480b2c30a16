"""
Configuration schema with dataclasses for validation and type safety.

Defines all configuration sections, their fields and defaults.
"""

from dataclasses import dataclass, field

from ..const import (
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_LSB_RELEASE_PATH,
    DEFAULT_RESOURCE_QUERY_PATH,
    DEFAULT_SCRAPE_TIMEOUT,
    DEFAULT_SMONCTL_PATH,
    DEFAULT_TELEMETRY_PATH,
)
from .parser import Block, ConfigDocument


def parse_listen_address(address: str) -> tuple[str | None, int]:
    """
    Split a listen address into host and port.

    Examples:
        ":9365"          -> (None, 9365)
        "127.0.0.1:9365" -> ("127.0.0.1", 9365)
        "[::1]:9365"     -> ("::1", 9365)

    Raises:
        ValueError: If the address has no valid port
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"Invalid listen address {address!r}, expected [host]:port")

    host = host.strip("[]")
    return host or None, int(port)


@dataclass
class WebConfig:
    """HTTP endpoint configuration."""
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    telemetry_path: str = DEFAULT_TELEMETRY_PATH

    @classmethod
    def from_block(cls, block: Block | None) -> "WebConfig":
        """Create WebConfig from a parsed 'web' block."""
        if block is None:
            return cls()

        return cls(
            listen_address=str(block.get_value("listen_address", DEFAULT_LISTEN_ADDRESS)),
            telemetry_path=str(block.get_value("telemetry_path", DEFAULT_TELEMETRY_PATH)),
        )

    @property
    def host(self) -> str | None:
        return parse_listen_address(self.listen_address)[0]

    @property
    def port(self) -> int:
        return parse_listen_address(self.listen_address)[1]


@dataclass
class CumulusConfig:
    """Paths of the data sources and their time limits."""
    smonctl_path: str = DEFAULT_SMONCTL_PATH
    resource_query_path: str = DEFAULT_RESOURCE_QUERY_PATH
    lsb_release_path: str = DEFAULT_LSB_RELEASE_PATH
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT  # Per external command
    scrape_timeout: float = DEFAULT_SCRAPE_TIMEOUT    # Per collector and scrape

    @classmethod
    def from_block(cls, block: Block | None) -> "CumulusConfig":
        """Create CumulusConfig from a parsed 'cumulus' block."""
        if block is None:
            return cls()

        return cls(
            smonctl_path=str(block.get_value("smonctl_path", DEFAULT_SMONCTL_PATH)),
            resource_query_path=str(
                block.get_value("resource_query_path", DEFAULT_RESOURCE_QUERY_PATH)
            ),
            lsb_release_path=str(block.get_value("lsb_release_path", DEFAULT_LSB_RELEASE_PATH)),
            command_timeout=float(block.get_value("command_timeout", DEFAULT_COMMAND_TIMEOUT)),
            scrape_timeout=float(block.get_value("scrape_timeout", DEFAULT_SCRAPE_TIMEOUT)),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "info"  # debug, info, warning, error
    file: str | None = None  # Log file path
    file_level: str = "debug"  # File log level
    file_max_size: int = 10  # Max file size in MB
    file_keep: int = 5  # Number of backup files to keep
    colors: bool = True  # Colored console output
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    @classmethod
    def from_block(cls, block: Block | None) -> "LoggingConfig":
        """Create LoggingConfig from a parsed 'logging' block."""
        if block is None:
            return cls()

        return cls(
            level=str(block.get_value("level", "info")),
            file=block.get_value("file"),
            file_level=str(block.get_value("file_level", "debug")),
            file_max_size=int(block.get_value("file_max_size", 10)),
            file_keep=int(block.get_value("file_keep", 5)),
            colors=bool(block.get_value("colors", True)),
            format=block.get_value("format", "%(asctime)s [%(levelname)s] %(name)s: %(message)s"),
        )


def toggles_from_block(block: Block | None) -> dict[str, bool]:
    """
    Read collector toggles from a 'collectors' block.

    Example:
        collectors {
            sensor on;
            version off;
        }
    """
    if block is None:
        return {}

    toggles: dict[str, bool] = {}
    for directive in block.directives:
        if not isinstance(directive.value, bool):
            raise ValueError(
                f"Collector toggle '{directive.name}' (line {directive.line}) must be on or off"
            )
        toggles[directive.name] = directive.value
    return toggles


@dataclass
class Config:
    """Complete exporter configuration."""
    web: WebConfig = field(default_factory=WebConfig)
    cumulus: CumulusConfig = field(default_factory=CumulusConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Collector name -> enabled, only names present in the config file
    collectors: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def from_document(cls, doc: ConfigDocument) -> "Config":
        """Create Config from a parsed document."""
        return cls(
            web=WebConfig.from_block(doc.get_block("web")),
            cumulus=CumulusConfig.from_block(doc.get_block("cumulus")),
            logging=LoggingConfig.from_block(doc.get_block("logging")),
            collectors=toggles_from_block(doc.get_block("collectors")),
        )
