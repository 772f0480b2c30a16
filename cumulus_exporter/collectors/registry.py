"""
Registry of available collectors and their enable/disable toggles.

Collector modules register themselves on import:

    @register_collector("sensor", enabled_by_default=True)
    class SensorCollector(Collector):
        ...

Toggles are resolved at startup in this order: registration default,
'collectors' block of the config file, --collector.<name> flags. Once
finalize() is called the toggles are frozen and scrapes may begin.
"""

import argparse
from collections.abc import Callable
from dataclasses import dataclass

from ..config.loader import ConfigError
from ..config.schema import Config
from ..logging import get_logger
from .base import Collector

logger = get_logger("collectors.registry")

CollectorFactory = Callable[[Config], Collector]


@dataclass
class CollectorRegistration:
    """A registered collector."""
    name: str
    enabled_by_default: bool
    factory: CollectorFactory
    help: str = ""
    enabled: bool = False

    def __post_init__(self):
        self.enabled = self.enabled_by_default

    @property
    def dest(self) -> str:
        """argparse destination of the toggle flag."""
        return f"collector_{self.name}"

    @property
    def default_state(self) -> str:
        return "enabled" if self.enabled_by_default else "disabled"


class CollectorRegistry:
    """
    Name-keyed table of collector factories.

    Populated at startup, single-threaded, and read-only afterwards.
    """

    def __init__(self):
        self._entries: dict[str, CollectorRegistration] = {}
        self._finalized = False

    def register(
        self,
        name: str,
        enabled_by_default: bool,
        factory: CollectorFactory,
        help: str = "",
    ) -> CollectorRegistration:
        """
        Add a collector.

        Raises:
            ValueError: If name is already registered or the registry is final
        """
        if self._finalized:
            raise ValueError(f"Cannot register collector {name!r}: registry is finalized")
        if name in self._entries:
            raise ValueError(f"Collector {name!r} is already registered")

        entry = CollectorRegistration(name, enabled_by_default, factory, help)
        self._entries[name] = entry
        return entry

    def names(self) -> list[str]:
        """Get all registered names, sorted."""
        return sorted(self._entries)

    def get(self, name: str) -> CollectorRegistration:
        return self._entries[name]

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _set_enabled(self, name: str, enabled: bool) -> None:
        if self._finalized:
            raise RuntimeError("Collector toggles are frozen after finalize()")
        self._entries[name].enabled = enabled

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        """Add --collector.<name> / --no-collector.<name> flags to a parser."""
        group = parser.add_argument_group("collectors")
        for entry in self._entries.values():
            help_text = entry.help or f"Enable the {entry.name} collector"
            group.add_argument(
                f"--collector.{entry.name}",
                dest=entry.dest,
                action=argparse.BooleanOptionalAction,
                default=None,
                help=f"{help_text} (default: {entry.default_state}).",
            )

    def apply_toggles(self, toggles: dict[str, bool]) -> None:
        """
        Apply toggles from the configuration file.

        Raises:
            ConfigError: If a toggle names an unknown collector
        """
        for name, enabled in toggles.items():
            if name not in self._entries:
                known = ", ".join(self.names())
                raise ConfigError(f"Unknown collector {name!r} (known: {known})")
            self._set_enabled(name, enabled)

    def apply_args(self, args: argparse.Namespace) -> None:
        """Apply toggles given on the command line (unset flags are ignored)."""
        for entry in self._entries.values():
            value = getattr(args, entry.dest, None)
            if value is not None:
                self._set_enabled(entry.name, value)

    def finalize(self) -> None:
        """Freeze the toggles."""
        self._finalized = True
        for entry in self._entries.values():
            logger.debug(f"Collector {entry.name}: {'enabled' if entry.enabled else 'disabled'}")

    @property
    def finalized(self) -> bool:
        return self._finalized

    def enabled_collectors(self) -> list[str]:
        """
        Get the names of enabled collectors.

        Raises:
            RuntimeError: If toggles are not finalized yet
        """
        if not self._finalized:
            raise RuntimeError("enabled_collectors() called before finalize()")
        return [name for name in self.names() if self._entries[name].enabled]

    def create_collectors(self, config: Config) -> dict[str, Collector]:
        """Instantiate every enabled collector."""
        return {name: self._entries[name].factory(config) for name in self.enabled_collectors()}


# Process-wide registry populated by the collector modules
registry = CollectorRegistry()


def register_collector(name: str, enabled_by_default: bool = True, help: str = ""):
    """
    Class decorator registering a collector on the process-wide registry.

    The decorated class is used as the factory, so its constructor must
    accept a Config.
    """

    def decorator(cls: type[Collector]) -> type[Collector]:
        registry.register(name, enabled_by_default, cls, help or cls.HELP)
        return cls

    return decorator
