"""Prometheus metrics for bnsgateway with standalone HTTP server.

This module defines and exposes all Prometheus metrics used by bnsgateway.
Metrics are served on a separate port using prometheus_client's built-in HTTP server.

Multi-process support:
When running with multiple Granian workers, each process has its own memory space.
Prometheus client supports multi-process mode via files in PROMETHEUS_MULTIPROC_DIR.
This module detects multi-process mode and configures the registry accordingly.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from litestar import Controller, get
from litestar.response import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
    start_http_server,
)
from prometheus_client.multiprocess import MultiProcessCollector

from . import __version__
from .config import WORKERS_ENV

if TYPE_CHECKING:
    from http.server import ThreadingHTTPServer
    from wsgiref.simple_server import WSGIServer

logger = logging.getLogger(__name__)


def setup_multiproc_dir() -> Path | None:
    """Set up Prometheus multi-process directory if needed.

    Returns:
        Path to the multi-process directory, or None if not needed.
    """
    if "PROMETHEUS_MULTIPROC_DIR" in os.environ:
        multiproc_dir = Path(os.environ["PROMETHEUS_MULTIPROC_DIR"])
        logger.debug(f"Using existing PROMETHEUS_MULTIPROC_DIR: {multiproc_dir}")
        return multiproc_dir

    workers = int(os.environ.get(WORKERS_ENV, "1"))
    if workers <= 1:
        logger.debug("Single worker mode, no multi-process metrics needed")
        return None

    multiproc_dir = Path(tempfile.gettempdir()) / "bnsgateway_metrics"
    multiproc_dir.mkdir(parents=True, exist_ok=True)
    os.environ["PROMETHEUS_MULTIPROC_DIR"] = str(multiproc_dir)

    logger.info(
        f"Multi-process mode detected ({workers} workers). "
        f"Using PROMETHEUS_MULTIPROC_DIR: {multiproc_dir}"
    )
    return multiproc_dir


def cleanup_multiproc_dir(multiproc_dir: Path | None = None) -> None:
    """Remove metrics files left behind by a previous run."""
    if multiproc_dir is None:
        multiproc_dir = _MULTIPROC_DIR
    if multiproc_dir is None or not multiproc_dir.exists():
        return

    for file_path in multiproc_dir.glob("*.db"):
        try:
            file_path.unlink()
            logger.debug(f"Cleaned up stale metrics file: {file_path}")
        except OSError:
            pass


_MULTIPROC_DIR = setup_multiproc_dir()
if _MULTIPROC_DIR is not None:
    cleanup_multiproc_dir(_MULTIPROC_DIR)


# Metrics are defined on METRICS_REGISTRY; REGISTRY is what gets exposed.
# In multi-process mode the exposed registry only aggregates the worker files.
METRICS_REGISTRY = CollectorRegistry()
if _MULTIPROC_DIR is not None:
    REGISTRY = CollectorRegistry()
    MultiProcessCollector(REGISTRY, path=str(_MULTIPROC_DIR))  # type: ignore[no-untyped-call]
    logger.debug("Using MultiProcessCollector for multi-process metrics")
else:
    REGISTRY = METRICS_REGISTRY


# Application info
APP_INFO = Info(
    "bnsgateway_build_info",
    "Build information about bnsgateway",
    registry=METRICS_REGISTRY,
)
APP_INFO.info({"version": __version__, "name": "bnsgateway"})

# Lookup metrics, labelled by kind ("forward" or "reverse")
LOOKUP_REQUESTS_TOTAL = Counter(
    "lookup_requests_total",
    "Total number of lookups",
    ["kind"],
    registry=METRICS_REGISTRY,
)

LOOKUP_MISSES_TOTAL = Counter(
    "lookup_misses_total",
    "Total number of lookups that resolved to nothing",
    ["kind"],
    registry=METRICS_REGISTRY,
)

LOOKUP_DURATION_SECONDS = Histogram(
    "lookup_duration_seconds",
    "Time spent resolving a single lookup",
    ["kind"],
    buckets=[0.00001, 0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
    registry=METRICS_REGISTRY,
)

BACKEND_ERRORS_TOTAL = Counter(
    "backend_errors_total",
    "Total number of forward lookup backend failures",
    registry=METRICS_REGISTRY,
)

DOMAINS_LOADED = Gauge(
    "domains_loaded",
    "Number of domains in the loaded record map",
    registry=METRICS_REGISTRY,
    multiprocess_mode="livemax",  # Every worker loads the same file
)


def get_metrics_output() -> bytes:
    """Generate Prometheus-formatted metrics output."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST


class MetricsController(Controller):  # type: ignore[misc]
    """Prometheus metrics HTTP endpoints.

    In production, metrics are served on a separate port via the
    standalone metrics server. This controller serves the same registry
    from inside a Litestar app, which is what the tests use.
    """

    path = "/"

    @get("/metrics")  # type: ignore[untyped-decorator]
    async def metrics(self) -> Response:
        """Handler for the /metrics endpoint."""
        return Response(
            content=get_metrics_output(),
            headers={"Content-Type": get_metrics_content_type()},
        )

    @get("/health")  # type: ignore[untyped-decorator]
    async def health(self) -> dict[str, str]:
        """Health check for metrics server."""
        return {"status": "healthy"}


class MetricsServer:
    """Standalone Prometheus metrics HTTP server using prometheus_client.start_http_server.

    This runs the metrics endpoint on a separate port from the main API,
    allowing metrics to be scraped independently.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 8081) -> None:
        self._host = host
        self._port = port
        self._httpd: WSGIServer | ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the metrics server in a background thread."""
        self._thread = threading.Thread(
            target=self._run_server,
            daemon=True,
        )
        self._thread.start()
        logger.info(
            f"Metrics server started at http://{self._host}:{self._port}/metrics",
        )

    def _run_server(self) -> None:
        """Run the HTTP server (called in background thread)."""
        try:
            server, _ = start_http_server(
                port=self._port,
                addr=self._host,
                registry=REGISTRY,
            )
            self._httpd = server
        except Exception:
            logger.exception("Failed to start metrics server")
            raise

    def stop(self) -> None:
        """Stop the metrics server."""
        if self._httpd is not None:
            try:
                self._httpd.shutdown()
                self._httpd.server_close()
            except Exception:
                logger.exception("Error stopping metrics server")
            finally:
                self._httpd = None

        if self._thread is not None:
            self._thread.join(timeout=2)
            self._thread = None

        logger.info("Metrics server stopped")
