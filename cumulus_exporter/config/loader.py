"""
Configuration loader with file reading and validation.
"""

from pathlib import Path

from .lexer import LexerError
from .parser import ConfigDocument, ParseError, parse_config, parse_config_file
from .schema import Config, parse_listen_address


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


class ConfigLoader:
    """
    Loads and validates configuration from files or strings.

    Usage:
        loader = ConfigLoader()
        config = loader.load_file("/etc/cumulus-exporter/config.conf")
        # or
        config = loader.load_string(config_text)
    """

    # Known directives for each block type
    KNOWN_DIRECTIVES = {
        "web": {"listen_address", "telemetry_path"},
        "cumulus": {
            "smonctl_path",
            "resource_query_path",
            "lsb_release_path",
            "command_timeout",
            "scrape_timeout",
        },
        "logging": {
            "level",
            "file",
            "file_level",
            "file_max_size",
            "file_keep",
            "colors",
            "format",
        },
    }

    # Blocks whose directive names are not fixed
    OPEN_BLOCKS = {"collectors"}

    def __init__(self):
        self.last_document: ConfigDocument | None = None

    def load_file(self, path: str | Path) -> Config:
        """
        Load configuration from a file.

        Args:
            path: Path to the configuration file

        Returns:
            Config object

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.is_file():
            raise ConfigError(f"Not a file: {path}")

        try:
            document = parse_config_file(path)
        except OSError as e:
            raise ConfigError(f"Failed to read configuration: {e}") from e
        except (LexerError, ParseError) as e:
            raise ConfigError(f"Failed to parse configuration: {e}") from e

        return self._build(document)

    def load(self, path: str | Path) -> Config:
        """Alias for load_file."""
        return self.load_file(path)

    def load_string(self, source: str, filename: str = "<string>") -> Config:
        """
        Load configuration from a string.

        Raises:
            ConfigError: If configuration cannot be parsed
        """
        try:
            document = parse_config(source, filename)
        except (LexerError, ParseError) as e:
            raise ConfigError(f"Failed to parse configuration: {e}") from e

        return self._build(document)

    def _build(self, document: ConfigDocument) -> Config:
        self.last_document = document
        try:
            config = Config.from_document(document)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        self.check(config)
        return config

    @staticmethod
    def check(config: Config) -> None:
        """
        Check values that would make the exporter unable to start.

        Raises:
            ConfigError: On the first invalid value
        """
        try:
            parse_listen_address(config.web.listen_address)
        except ValueError as e:
            raise ConfigError(str(e)) from e

        if not config.web.telemetry_path.startswith("/"):
            raise ConfigError(
                f"Telemetry path must start with '/': {config.web.telemetry_path!r}"
            )

        if config.cumulus.command_timeout <= 0:
            raise ConfigError("command_timeout must be positive")
        if config.cumulus.scrape_timeout <= 0:
            raise ConfigError("scrape_timeout must be positive")

    def validate(self, config: Config) -> list[str]:
        """
        Validate configuration and return list of warnings.

        Args:
            config: Configuration to validate

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []

        if self.last_document:
            warnings.extend(self._check_unknown_directives(self.last_document))

        if config.cumulus.scrape_timeout < config.cumulus.command_timeout:
            warnings.append(
                f"scrape_timeout ({config.cumulus.scrape_timeout}s) is shorter than "
                f"command_timeout ({config.cumulus.command_timeout}s)"
            )

        return warnings

    def _check_unknown_directives(self, document: ConfigDocument) -> list[str]:
        """Check for unknown blocks and directives in parsed document."""
        warnings = []

        for block in document.blocks:
            if block.type in self.OPEN_BLOCKS:
                continue

            known = self.KNOWN_DIRECTIVES.get(block.type)
            if known is None:
                warnings.append(f"Unknown block '{block.type}' (line {block.line})")
                continue

            for directive in block.directives:
                if directive.name not in known:
                    warnings.append(
                        f"Unknown directive '{directive.name}' in {block.type} block "
                        f"(line {directive.line})"
                    )
            for nested in block.blocks:
                warnings.append(
                    f"Unexpected block '{nested.type}' in {block.type} block (line {nested.line})"
                )

        for directive in document.directives:
            warnings.append(
                f"Unknown top-level directive '{directive.name}' (line {directive.line})"
            )

        return warnings


def load_config(path: str | Path) -> Config:
    """
    Convenience function to load configuration from a file.

    Args:
        path: Path to the configuration file

    Returns:
        Config object
    """
    return ConfigLoader().load_file(path)
