"""
Entry point for Cumulus Exporter.

Usage:
    python -m cumulus_exporter [/path/to/config.conf]
    python -m cumulus_exporter --collector.version --no-collector.resource
    python -m cumulus_exporter --help
"""

import argparse
import asyncio
import sys
from pathlib import Path

from . import __version__
from .app import run_app
from .collectors import registry as default_registry
from .collectors.registry import CollectorRegistry
from .config.loader import ConfigError, ConfigLoader
from .config.schema import Config
from .const import DEFAULT_CONFIG_PATH
from .logging import LogConfig, get_logger, setup_logging

logger = get_logger("main")

# CLI flag destination -> (config section, field)
PATH_OVERRIDES = {
    "web_listen_address": ("web", "listen_address"),
    "web_telemetry_path": ("web", "telemetry_path"),
    "smonctl_path": ("cumulus", "smonctl_path"),
    "resource_query_path": ("cumulus", "resource_query_path"),
    "lsb_release_path": ("cumulus", "lsb_release_path"),
}


def build_parser(registry: CollectorRegistry = default_registry) -> argparse.ArgumentParser:
    """Create the argument parser, including one toggle per registered collector."""
    parser = argparse.ArgumentParser(
        prog="cumulus-exporter",
        description="Prometheus exporter for Cumulus Linux switches",
    )

    parser.add_argument(
        "config",
        nargs="?",
        default=None,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging (INFO level)")
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging (DEBUG level)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Quiet mode (only errors)")
    parser.add_argument("--log-file", metavar="PATH", help="Write logs to file")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--validate", action="store_true", help="Validate configuration and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    web = parser.add_argument_group("web")
    web.add_argument(
        "--web.listen-address",
        dest="web_listen_address",
        metavar="ADDRESS",
        help="Address on which to expose metrics and web interface.",
    )
    web.add_argument(
        "--web.telemetry-path",
        dest="web_telemetry_path",
        metavar="PATH",
        help="Path under which to expose metrics.",
    )

    cumulus = parser.add_argument_group("cumulus")
    cumulus.add_argument("--cumulus.smonctl.path", dest="smonctl_path", metavar="PATH", help="Path of smonctl.")
    cumulus.add_argument(
        "--cumulus.cl-resource-query.path",
        dest="resource_query_path",
        metavar="PATH",
        help="Path of cl-resource-query.",
    )
    cumulus.add_argument(
        "--cumulus.lsb-release.path",
        dest="lsb_release_path",
        metavar="PATH",
        help="Path of the lsb-release file.",
    )

    registry.add_arguments(parser)
    return parser


def log_config_from_args(args: argparse.Namespace) -> LogConfig:
    """Build the initial logging settings from command line args."""
    log_config = LogConfig()

    if args.debug:
        log_config.console_level = "debug"
    elif args.verbose:
        log_config.console_level = "info"
    elif args.quiet:
        log_config.console_level = "error"
    else:
        log_config.console_level = "warning"

    if args.no_color:
        log_config.console_colors = False

    if args.log_file:
        log_config.file_enabled = True
        log_config.file_path = args.log_file

    return log_config


def has_logging_flags(args: argparse.Namespace) -> bool:
    """Check whether any command line flag overrides the logging settings."""
    return any((args.debug, args.verbose, args.quiet, args.no_color, args.log_file))


def load_configuration(
    args: argparse.Namespace,
    registry: CollectorRegistry = default_registry,
) -> tuple[Config, list[str]]:
    """
    Resolve the final configuration and freeze the collector toggles.

    Order: built-in defaults, config file, command line flags.

    Returns:
        Tuple of (config, warnings)

    Raises:
        ConfigError: If the configuration is invalid
    """
    loader = ConfigLoader()
    warnings: list[str] = []

    if args.config is not None:
        config = loader.load_file(args.config)
        warnings = loader.validate(config)
    elif Path(DEFAULT_CONFIG_PATH).is_file():
        config = loader.load_file(DEFAULT_CONFIG_PATH)
        warnings = loader.validate(config)
    else:
        config = Config()

    for dest, (section, field_name) in PATH_OVERRIDES.items():
        value = getattr(args, dest, None)
        if value is not None:
            setattr(getattr(config, section), field_name, value)

    ConfigLoader.check(config)

    registry.apply_toggles(config.collectors)
    registry.apply_args(args)
    registry.finalize()

    return config, warnings


def print_summary(config: Config, registry: CollectorRegistry, warnings: list[str]) -> None:
    """Print the resolved configuration for --validate."""
    if warnings:
        print(f"Configuration warnings ({len(warnings)}):")
        for warning in warnings:
            print(f"  - {warning}")

    enabled = registry.enabled_collectors()
    disabled = [name for name in registry.names() if name not in enabled]

    print("\nConfiguration summary:")
    print(f"  Listen address: {config.web.listen_address}")
    print(f"  Telemetry path: {config.web.telemetry_path}")
    print(f"  smonctl: {config.cumulus.smonctl_path}")
    print(f"  cl-resource-query: {config.cumulus.resource_query_path}")
    print(f"  lsb-release: {config.cumulus.lsb_release_path}")
    print(f"  Enabled collectors: {', '.join(enabled) or 'none'}")
    print(f"  Disabled collectors: {', '.join(disabled) or 'none'}")
    print("\nConfiguration is valid!")


def main(argv: list[str] | None = None, registry: CollectorRegistry = default_registry) -> int:
    """Main entry point."""
    args = build_parser(registry).parse_args(argv)

    # Reconfigured from the config file once it is loaded
    log_config = log_config_from_args(args)
    setup_logging(log_config)

    try:
        config, warnings = load_configuration(args, registry)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if args.validate:
        print_summary(config, registry, warnings)
        return 0

    for warning in warnings:
        logger.warning(f"Config warning: {warning}")

    try:
        asyncio.run(
            run_app(config, registry, cli_log_config=log_config if has_logging_flags(args) else None)
        )
        return 0
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
