"""Litestar server setup with Granian ASGI server."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from granian import Granian
from granian.constants import Interfaces
from litestar import Litestar
from litestar.datastructures import State
from litestar.di import Provide
from litestar.openapi import OpenAPIConfig
from litestar.openapi.spec import License, Server

from . import __version__
from .backend import JsonRecordBackend
from .config import WORKERS_ENV, Config
from .handlers import get_routers
from .service import LookupService
from .store import RecordStore, ReverseIndex

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from .backend import ForwardLookupAdapter

logger = logging.getLogger(__name__)


# Dependency providers for Litestar DI


def provide_records(state: State) -> RecordStore:
    """Provide the RecordStore from application state."""
    result: RecordStore = state["records"]
    return result


def provide_service(state: State) -> LookupService:
    """Provide the LookupService from application state.

    Handlers receive the service via dependency injection instead of
    accessing request.app.state directly.
    """
    result: LookupService = state["service"]
    return result


def build_service(
    config: Config,
    store: RecordStore,
    backend: ForwardLookupAdapter | None = None,
) -> LookupService:
    """Wire a LookupService around a loaded store.

    The JSON record backend is used for forward lookups unless another
    backend is given.
    """
    index = ReverseIndex(store, coin_type=config.coin_type, namespace=config.namespace)
    logger.info(f"Reverse index holds {len(index)} of {len(store)} domains")
    return LookupService(
        backend if backend is not None else JsonRecordBackend(store),
        index,
        namespace=config.namespace,
        coin_type=config.coin_type,
        address_prefix=config.address_prefix,
    )


def _openapi_config() -> OpenAPIConfig:
    return OpenAPIConfig(
        title="BNS API",
        version=__version__,
        description="BNS (Banano Name Service) API",
        license=License(
            name="MIT",
            url="https://raw.githubusercontent.com/wrap-that-potassium/bns-gateway/main/LICENSE",
        ),
        servers=[
            Server(url="https://bns.banano-testing.cc"),
            Server(url="https://bns.banano.cc"),
            Server(url="http://localhost:8080"),
        ],
    )


def create_app(
    config: Config | None = None,
    store: RecordStore | None = None,
    service: LookupService | None = None,
    backend: ForwardLookupAdapter | None = None,
) -> Litestar:
    """Create and configure the Litestar application."""
    if config is None:
        config = Config()

    if store is None:
        if config.records_path is not None:
            logger.info(f"Using Json database from {config.records_path}")
            store = RecordStore.from_file(config.records_path)
        else:
            logger.warning("No record file configured, serving an empty record map")
            store = RecordStore()

    if service is None:
        service = build_service(config, store, backend)

    @asynccontextmanager
    async def lifespan(_app: Litestar) -> AsyncGenerator[None]:
        """Lifespan context manager for startup/shutdown."""
        logger.info("Starting BNS gateway")
        yield
        logger.info("Stopping BNS gateway")

    return Litestar(
        route_handlers=get_routers(),
        lifespan=[lifespan],
        debug=False,
        openapi_config=_openapi_config(),
        state=State(
            {
                "records": store,
                "service": service,
            },
        ),
        dependencies={
            "records": Provide(provide_records, sync_to_thread=False),
            "service": Provide(provide_service, sync_to_thread=False),
        },
    )


def run_server(config: Config) -> None:
    """Run the Litestar app with Granian.

    The record file is loaded once here so a broken file stops startup
    before any worker is spawned; each worker then loads its own copy.
    """
    os.environ[WORKERS_ENV] = str(config.workers)

    if config.records_path is not None:
        RecordStore.from_file(config.records_path)

    from . import asgi
    from .metrics import MetricsServer, cleanup_multiproc_dir

    asgi.store_config_in_env(config)

    logger.info(f"Starting BNS gateway on {config.host}:{config.port} ({config.workers} workers)")

    server = Granian(
        target="bnsgateway.asgi:app",
        address=config.host,
        port=config.port,
        interface=Interfaces.ASGI,
        workers=config.workers,
        log_level=config.log_level.lower(),
    )

    # Stale files from a previous run would skew the aggregated values
    cleanup_multiproc_dir()

    metrics_server = MetricsServer(host=config.metrics_host, port=config.metrics_port)
    metrics_server.start()

    try:
        server.serve()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        metrics_server.stop()
