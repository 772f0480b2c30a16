"""
Tests for the HTTP endpoint.
"""

import pytest
from aiohttp.test_utils import TestClient, TestServer
from prometheus_client import CollectorRegistry, Gauge

from cumulus_exporter.exporter import Exporter
from cumulus_exporter.models.metric import MetricSink
from cumulus_exporter.web import MetricsHandler, create_web_app

from .conftest import FakeCollector


def make_exporter() -> Exporter:
    return Exporter({"good": FakeCollector("good"), "bad": FakeCollector("bad", fail=True)})


@pytest.mark.asyncio
async def test_metrics_endpoint() -> None:
    app = create_web_app(make_exporter(), "/metrics", default_registry=None)

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/metrics")
        assert resp.status == 200
        assert resp.headers["Content-Type"].startswith("text/plain")
        text = await resp.text()

        assert "# TYPE cumulus_scrapes_total counter" in text
        assert "cumulus_scrapes_total 1.0" in text
        assert 'cumulus_collector_up{collector="good"} 1.0' in text
        assert 'cumulus_collector_up{collector="bad"} 0.0' in text
        assert 'cumulus_scrape_errors_total{collector="bad"} 1.0' in text
        assert 'cumulus_fake_value{source="good"} 42.0' in text
        assert 'cumulus_fake_value{source="bad"}' not in text
        assert "cumulus_exporter_build_info{" in text

        resp = await client.get("/metrics")
        assert "cumulus_scrapes_total 2.0" in await resp.text()


@pytest.mark.asyncio
async def test_custom_telemetry_path() -> None:
    app = create_web_app(make_exporter(), "/probe", default_registry=None)

    async with TestClient(TestServer(app)) as client:
        assert (await client.get("/probe")).status == 200
        assert (await client.get("/metrics")).status == 404


@pytest.mark.asyncio
async def test_landing_page() -> None:
    app = create_web_app(make_exporter(), "/metrics", default_registry=None)

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/")
        assert resp.status == 200
        assert resp.content_type == "text/html"
        assert 'href="/metrics"' in await resp.text()


@pytest.mark.asyncio
async def test_default_registry_rendered_first() -> None:
    default = CollectorRegistry()
    Gauge("process_test_value", "Test value.", registry=default).set(7)
    handler = MetricsHandler(make_exporter(), default_registry=default)

    sink = MetricSink()
    await handler.exporter.scrape(sink)
    text = handler.render(sink).decode()

    assert text.index("process_test_value 7.0") < text.index("cumulus_scrapes_total")


def test_failing_registry_is_skipped(caplog: pytest.LogCaptureFixture) -> None:
    class Broken:
        def collect(self):
            raise RuntimeError("boom")

    default = CollectorRegistry()
    default.register(Broken())
    handler = MetricsHandler(make_exporter(), default_registry=default)

    with caplog.at_level("ERROR", logger="cumulus_exporter"):
        text = handler.render(MetricSink()).decode()

    assert "Error rendering metrics: boom" in caplog.text
    assert "cumulus_exporter_build_info" in text
