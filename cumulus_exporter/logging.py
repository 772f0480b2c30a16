"""
Logging configuration for Cumulus Exporter.

All loggers live under the "cumulus_exporter" hierarchy. Console output goes
to stderr so it never mixes with --validate output, optionally colored by
level and component. A rotating log file can be added next to it.
"""

import copy
import logging
import logging.handlers
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

ROOT_LOGGER = "cumulus_exporter"

RESET = "\033[0m"

# Log level -> ANSI color
LEVEL_COLORS = {
    logging.DEBUG: "\033[2;36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;91m",
}

# First component of the logger name below the root -> ANSI color
COMPONENT_COLORS = {
    "config": "\033[35m",
    "web": "\033[34m",
    "collectors": "\033[36m",
    "exporter": "\033[94m",
    "app": "\033[32m",
    "main": "\033[32m",
}

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def _component(logger_name: str) -> str:
    """cumulus_exporter.collectors.sensor -> collectors"""
    parts = logger_name.split(".")
    return parts[1] if len(parts) > 1 and parts[0] == ROOT_LOGGER else ""


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level, the logger name and problem messages."""

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        # Other handlers see the same record, format a copy
        record = copy.copy(record)
        record.levelname = f"{record.levelname:8}"
        if not self.use_colors:
            return super().format(record)

        record.levelname = f"{LEVEL_COLORS.get(record.levelno, '')}{record.levelname}{RESET}"

        color = COMPONENT_COLORS.get(_component(record.name))
        if color:
            record.name = f"{color}{record.name}{RESET}"

        if record.levelno >= logging.WARNING:
            record.msg = f"{LEVEL_COLORS[min(record.levelno, logging.ERROR)]}{record.msg}{RESET}"

        return super().format(record)


class PlainFormatter(logging.Formatter):
    """Formatter for the log file, levels padded to line up with the console."""

    def format(self, record: logging.LogRecord) -> str:
        record = copy.copy(record)
        record.levelname = f"{record.levelname:8}"
        return super().format(record)


@dataclass
class LogConfig:
    """Logging configuration."""

    # Console settings
    console_level: str = "warning"
    console_colors: bool = True

    # File settings
    file_enabled: bool = False
    file_path: str = "/var/log/cumulus-exporter/cumulus-exporter.log"
    file_level: str = "debug"
    file_max_bytes: int = 10 * 1024 * 1024
    file_backup_count: int = 5

    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    # Logger name below cumulus_exporter -> level
    module_levels: dict[str, str] | None = None


def get_log_level(level_str: str) -> int:
    """Convert a level name to its logging constant, INFO when unknown."""
    return LEVELS.get(level_str.lower(), logging.INFO)


def setup_logging(config: LogConfig | None = None, stream: TextIO | None = None) -> None:
    """
    (Re)configure the cumulus_exporter logger hierarchy.

    Safe to call more than once: handlers from a previous call are replaced.

    Args:
        config: Logging configuration (uses defaults if None)
        stream: Console stream (stderr if None)
    """
    config = config or LogConfig()
    stream = stream or sys.stderr

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    use_colors = config.console_colors and stream.isatty()
    console = logging.StreamHandler(stream)
    console.setLevel(get_log_level(config.console_level))
    console.setFormatter(ColoredFormatter(config.format, config.date_format, use_colors))
    root.addHandler(console)

    if config.file_enabled:
        Path(config.file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            config.file_path,
            maxBytes=config.file_max_bytes,
            backupCount=config.file_backup_count,
        )
        file_handler.setLevel(get_log_level(config.file_level))
        file_handler.setFormatter(PlainFormatter(config.format, config.date_format))
        root.addHandler(file_handler)

    for module_name, level_str in (config.module_levels or {}).items():
        get_logger(module_name).setLevel(get_log_level(level_str))

    # aiohttp logs every request at INFO
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger below cumulus_exporter ("web" -> "cumulus_exporter.web")."""
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
