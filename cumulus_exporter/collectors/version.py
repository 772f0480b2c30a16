"""
Cumulus Linux release collector.

Reads DISTRIB_RELEASE from /etc/lsb-release. The release cannot change
while the host is up, so the file is parsed once and the result is reused
by every later scrape. A failed read is not cached and is retried on the
next scrape.
"""

import asyncio
import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..config.schema import Config
from ..models.metric import MetricDescriptor, MetricRecord
from .base import Collector, CollectorError, ParseError, descriptor
from .registry import register_collector

SUBSYSTEM = "version"

INFO_LABELS = ("major", "minor", "patch", "release")

VERSION_DESC = {
    "info": descriptor(SUBSYSTEM, "info", "Cumulus version info.", INFO_LABELS),
    "major": descriptor(SUBSYSTEM, "major", "Cumulus major release."),
    "minor": descriptor(SUBSYSTEM, "minor", "Cumulus minor release."),
    "patch": descriptor(SUBSYSTEM, "patch", "Cumulus patch release."),
}

# key=val or key="val"
LSB_ENTRY = re.compile(r'^([^=]+)="?([^"]+)"?$')


@dataclass(frozen=True)
class VersionInfo:
    """Parsed DISTRIB_RELEASE."""
    release: str
    major: str
    minor: str
    patch: str

    def records(self) -> list[MetricRecord]:
        return [
            MetricRecord.gauge(
                VERSION_DESC["info"], 1, self.major, self.minor, self.patch, self.release
            ),
            MetricRecord.gauge(VERSION_DESC["major"], float(self.major)),
            MetricRecord.gauge(VERSION_DESC["minor"], float(self.minor)),
            MetricRecord.gauge(VERSION_DESC["patch"], float(self.patch)),
        ]


def parse_release(release: str) -> VersionInfo:
    """
    Split a major.minor.patch release string.

    Raises:
        ParseError: If release is not three numeric components
    """
    parts = release.split(".")
    if len(parts) != 3:
        raise ParseError(f"unexpected semantic version from DISTRIB_RELEASE: {release}")

    for part_name, part in zip(("major", "minor", "patch"), parts):
        if not part.isdigit():
            raise ParseError(f"{part_name} version {part!r} of {release!r} is not a number")

    return VersionInfo(release, *parts)


def parse_lsb_release(text: str, source: str = "/etc/lsb-release") -> VersionInfo:
    """
    Parse the contents of an lsb-release file.

    Raises:
        ParseError: On a malformed line or a missing/invalid DISTRIB_RELEASE
    """
    entries: dict[str, str] = {}

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        match = LSB_ENTRY.match(line)
        if match is None:
            raise ParseError(f"unexpected entry in {source}: {line}")
        entries[match.group(1).strip().upper()] = match.group(2)

    if "DISTRIB_RELEASE" not in entries:
        raise ParseError(f"cannot find DISTRIB_RELEASE in {source}")

    return parse_release(entries["DISTRIB_RELEASE"])


class CacheState(Enum):
    """Lifecycle of the cached version info."""
    NOT_ATTEMPTED = "not_attempted"
    FAILED = "failed"
    POPULATED = "populated"


@register_collector(SUBSYSTEM, enabled_by_default=True)
class VersionCollector(Collector):
    """Collector for the installed Cumulus Linux release."""

    NAME = SUBSYSTEM
    HELP = "Collect the Cumulus Linux release from lsb-release"

    def __init__(self, config: Config):
        super().__init__()
        self.path = Path(config.cumulus.lsb_release_path)

        self._cache_lock = asyncio.Lock()
        self._cache_state = CacheState.NOT_ATTEMPTED
        self._info: VersionInfo | None = None

    @property
    def cache_state(self) -> CacheState:
        return self._cache_state

    def describe(self) -> Iterator[MetricDescriptor]:
        yield from VERSION_DESC.values()

    async def _load(self) -> VersionInfo:
        """Get the version info, reading the file only until it succeeds once."""
        async with self._cache_lock:
            if self._info is not None:
                return self._info

            try:
                text = await asyncio.to_thread(self.path.read_text)
                info = parse_lsb_release(text, str(self.path))
            except OSError as e:
                self._cache_state = CacheState.FAILED
                raise CollectorError(f"cannot read {self.path}: {e}") from None
            except ParseError:
                self._cache_state = CacheState.FAILED
                raise

            self._info = info
            self._cache_state = CacheState.POPULATED
            self.logger.info(f"Cumulus Linux release {info.release}")
            return info

    async def gather(self) -> list[MetricRecord]:
        return (await self._load()).records()
