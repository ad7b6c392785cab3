"""Prometheus exposition – registry assembly and the /metrics HTTP server."""

from __future__ import annotations

import logging
import platform
import threading
from typing import Any

from prometheus_client import (
    CollectorRegistry,
    GCCollector,
    Info,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
    start_http_server,
)

from .. import __version__
from ..collector.query import QueryCollector
from ..config import ExporterConfig

logger = logging.getLogger(__name__)


def parse_bind(bind: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6addr]:port``) into address and port.

    An empty host means all interfaces.
    """
    host, sep, port = bind.strip().rpartition(":")
    if not sep:
        raise ValueError(f"bind address must be host:port, got {bind!r}")
    try:
        port_num = int(port)
    except ValueError:
        raise ValueError(f"invalid port in bind address {bind!r}") from None
    host = host.strip("[]") or "0.0.0.0"
    return host, port_num


def build_registry(config: ExporterConfig, process_metrics: bool = True) -> CollectorRegistry:
    """Create a registry holding the query collector and exporter metadata.

    Registering :class:`QueryCollector` triggers its ``describe`` phase, so
    every descriptor is known before the first scrape.
    """
    registry = CollectorRegistry()
    info = Info(
        "build",
        "A metric with a constant '1' value labeled by the version of the exporter "
        "and the Python runtime it runs on.",
        namespace=config.namespace,
        registry=registry,
    )
    info.info({"version": __version__, "python_version": platform.python_version()})

    if process_metrics:
        ProcessCollector(registry=registry)
        PlatformCollector(registry=registry)
        GCCollector(registry=registry)

    logger.info("Register query collector - %s", config.namespace)
    registry.register(QueryCollector(config))
    return registry


def render(registry: CollectorRegistry) -> str:
    """Run one scrape and return the text exposition."""
    return generate_latest(registry).decode("utf-8")


class MetricsServer:
    """Serves a registry over HTTP on the configured bind address.

    Scrapes are handled on the server's request threads; each one drives a
    full ``collect`` of the registry.
    """

    def __init__(self, registry: CollectorRegistry, bind: str) -> None:
        self._registry = registry
        self._addr, self._port = parse_bind(bind)
        self._server: Any = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        """Bound port (useful when started on port 0)."""
        if self._server is not None:
            return self._server.server_address[1]
        return self._port

    def start(self) -> None:
        if self._server is not None:
            return
        self._server, self._thread = start_http_server(
            self._port, addr=self._addr, registry=self._registry,
        )
        logger.info("Starting http server - %s:%d", self._addr, self.port)

    def shutdown(self) -> None:
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("HTTP server stopped")
