"""
HTTP endpoint serving the exporter's metrics.

GET <telemetry_path> runs one scrape session and renders it together with
prometheus_client's default process metrics. GET / serves a landing page.
"""

import platform

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Info, generate_latest

from .const import APP_NAME, APP_VERSION
from .exporter import Exporter, SessionCollector
from .logging import get_logger
from .models.metric import MetricSink

logger = get_logger("web")

LANDING_PAGE = """<html>
<head><title>{name}</title></head>
<body>
<h1>{name}</h1>
<p><a href="{path}">Metrics</a></p>
</body>
</html>
"""


class MetricsHandler:
    """Request handlers bound to one exporter."""

    def __init__(
        self,
        exporter: Exporter,
        telemetry_path: str = "/metrics",
        default_registry: CollectorRegistry | None = REGISTRY,
    ):
        """
        Initialize handlers.

        Args:
            exporter: Exporter running the scrape sessions
            telemetry_path: Path of the metrics endpoint (for the landing page)
            default_registry: Registry with process-wide metrics rendered
                before every session, None to skip
        """
        self.exporter = exporter
        self.telemetry_path = telemetry_path
        self.default_registry = default_registry

    def _session_registry(self, sink: MetricSink) -> CollectorRegistry:
        registry = CollectorRegistry(auto_describe=False)
        Info(
            "cumulus_exporter_build",
            "Build information of cumulus_exporter.",
            registry=registry,
        ).info({"version": APP_VERSION, "python": platform.python_version()})
        registry.register(SessionCollector(sink.records(), self.exporter.describe()))
        return registry

    def render(self, sink: MetricSink) -> bytes:
        """
        Render default metrics and a finished session in text format.

        A registry that fails to render is logged and left out.
        """
        registries = [self.default_registry] if self.default_registry is not None else []
        output = []

        try:
            registries.append(self._session_registry(sink))
        except ValueError as e:
            logger.error(f"Cannot register scrape session: {e}")

        for registry in registries:
            try:
                output.append(generate_latest(registry))
            except Exception as e:
                logger.error(f"Error rendering metrics: {e}")

        return b"".join(output)

    async def metrics(self, request: web.Request) -> web.Response:
        """GET <telemetry_path>"""
        sink = MetricSink()

        try:
            await self.exporter.scrape(sink)
        except Exception as e:
            logger.error(f"Error collecting metrics: {e}")

        return web.Response(body=self.render(sink), headers={"Content-Type": CONTENT_TYPE_LATEST})

    async def index(self, request: web.Request) -> web.Response:
        """GET /"""
        return web.Response(
            text=LANDING_PAGE.format(name=APP_NAME, path=self.telemetry_path),
            content_type="text/html",
        )


def create_web_app(
    exporter: Exporter,
    telemetry_path: str = "/metrics",
    default_registry: CollectorRegistry | None = REGISTRY,
) -> web.Application:
    """
    Create the aiohttp application.

    Returns an aiohttp Application with all routes configured.
    """
    handler = MetricsHandler(exporter, telemetry_path, default_registry)

    app = web.Application()
    app.router.add_get(telemetry_path, handler.metrics)
    if telemetry_path != "/":
        app.router.add_get("/", handler.index)

    return app
