"""
Main application orchestrator.

Handles:
- Collector creation from the registry
- HTTP endpoint lifecycle
- Graceful shutdown
"""

import asyncio
import signal

from aiohttp import web

from .collectors import registry as default_registry
from .collectors.base import Collector
from .collectors.registry import CollectorRegistry
from .config.schema import Config
from .exporter import Exporter, ExporterState
from .logging import LogConfig, get_logger, setup_logging
from .web import create_web_app

logger = get_logger("app")


def log_config_from(config: Config, cli_log_config: LogConfig | None = None) -> LogConfig:
    """
    Build logging settings from the config file.

    CLI settings win, file settings fill in a log file the CLI did not set.
    """
    if cli_log_config is None:
        return LogConfig(
            console_level=config.logging.level,
            console_colors=config.logging.colors,
            file_enabled=config.logging.file is not None,
            file_path=config.logging.file or LogConfig.file_path,
            file_level=config.logging.file_level,
            file_max_bytes=config.logging.file_max_size * 1024 * 1024,
            file_backup_count=config.logging.file_keep,
            format=config.logging.format,
        )

    if not cli_log_config.file_enabled and config.logging.file:
        cli_log_config.file_enabled = True
        cli_log_config.file_path = config.logging.file
        cli_log_config.file_level = config.logging.file_level
        cli_log_config.file_max_bytes = config.logging.file_max_size * 1024 * 1024
        cli_log_config.file_backup_count = config.logging.file_keep
    return cli_log_config


class Application:
    """
    Main application class.

    Creates the enabled collectors once and serves scrape sessions over
    HTTP until a shutdown signal arrives.
    """

    def __init__(self, config: Config, registry: CollectorRegistry = default_registry):
        """
        Initialize application.

        Args:
            config: Application configuration
            registry: Collector registry with finalized toggles
        """
        self.config = config
        self.registry = registry

        self.state = ExporterState()
        self.collectors: dict[str, Collector] = {}
        self.exporter: Exporter | None = None

        self._runner: web.AppRunner | None = None
        self._shutdown_event = asyncio.Event()

    def _create_collectors(self) -> dict[str, Collector]:
        """
        Create and validate all enabled collectors.

        Raises:
            ConfigError: If an enabled collector is misconfigured
        """
        collectors = self.registry.create_collectors(self.config)
        for name, collector in collectors.items():
            collector.validate()
            logger.info(f"Enabled collector: {name}")
        return collectors

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._signal_handler)

    def _signal_handler(self) -> None:
        """Handle shutdown signals."""
        logger.info("Received shutdown signal")
        self._shutdown_event.set()

    async def start(self) -> None:
        """Create collectors and start serving."""
        web_config = self.config.web
        logger.info(f"Starting Cumulus Exporter on {web_config.listen_address}")

        self.collectors = self._create_collectors()
        self.exporter = Exporter(
            self.collectors,
            state=self.state,
            timeout=self.config.cumulus.scrape_timeout,
        )

        app = create_web_app(self.exporter, web_config.telemetry_path)
        self._runner = web.AppRunner(app)
        await self._runner.setup()

        site = web.TCPSite(self._runner, host=web_config.host, port=web_config.port)
        await site.start()

        logger.info(f"Serving metrics on {web_config.listen_address}{web_config.telemetry_path}")

    async def stop(self) -> None:
        """Stop serving."""
        logger.info("Stopping Cumulus Exporter")

        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

        logger.info("Cumulus Exporter stopped")

    async def run(self) -> None:
        """Run the application until shutdown."""
        await self.start()
        self._setup_signal_handlers()

        try:
            await self._shutdown_event.wait()
        finally:
            await self.stop()


async def run_app(
    config: Config,
    registry: CollectorRegistry = default_registry,
    cli_log_config: LogConfig | None = None,
) -> None:
    """
    Configure logging and run the application.

    Args:
        config: Loaded configuration
        registry: Collector registry with finalized toggles
        cli_log_config: Logging config from CLI args (overrides file config)
    """
    setup_logging(log_config_from(config, cli_log_config))

    app = Application(config, registry)
    await app.run()
