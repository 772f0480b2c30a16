"""
Pytest configuration and fixtures.
"""

import asyncio
import random
import stat
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from cumulus_exporter.collectors.base import Collector, CollectorError, descriptor
from cumulus_exporter.config.schema import Config
from cumulus_exporter.models.metric import MetricDescriptor, MetricRecord

FAKE_DESC = descriptor("fake", "value", "Fake value.", ("source",))


class FakeCollector(Collector):
    """Collector with scripted results for exporter tests."""

    NAME = "fake"

    def __init__(
        self,
        name: str = "fake",
        fail: bool = False,
        delay: float = 0.0,
        failure_rate: float = 0.0,
    ):
        self.NAME = name
        super().__init__()
        self.fail = fail
        self.delay = delay
        self.failure_rate = failure_rate
        self.calls = 0
        self.injected_failures = 0

    def describe(self) -> Iterator[MetricDescriptor]:
        yield FAKE_DESC

    async def gather(self) -> list[MetricRecord]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(random.uniform(0, self.delay))

        if self.fail or (self.failure_rate and random.random() < self.failure_rate):
            self.injected_failures += 1
            raise CollectorError(f"{self.NAME} failed")

        return [MetricRecord.gauge(FAKE_DESC, 42, self.NAME)]


@pytest.fixture
def make_executable(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a shell script that prints stdout and exits with code."""

    def factory(name: str, stdout: str = "", exit_code: int = 0, stderr: str = "") -> Path:
        script = tmp_path / name
        script.write_text(
            "#!/bin/sh\n"
            "cat <<'__OUT__'\n"
            f"{stdout}\n"
            "__OUT__\n"
            f"echo '{stderr}' >&2\n"
            f"exit {exit_code}\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return factory


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config pointing every data source into tmp_path."""
    config = Config()
    config.cumulus.smonctl_path = str(tmp_path / "smonctl")
    config.cumulus.resource_query_path = str(tmp_path / "cl-resource-query")
    config.cumulus.lsb_release_path = str(tmp_path / "lsb-release")
    config.cumulus.command_timeout = 5.0
    return config
