"""ASGI entry point for Granian multi-worker support.

This module provides the ASGI application for Granian.
Configuration is loaded from an environment variable set by the main process.
"""

import logging
import os
from typing import TYPE_CHECKING, Any

from .config import CONFIG_ENV, WORKERS_ENV, Config, config_from_json, config_to_json

if TYPE_CHECKING:
    from collections.abc import Callable

    from litestar import Litestar
    from litestar.types import LifeSpanScope, Scope

logger = logging.getLogger(__name__)


def load_config_from_env() -> Config | None:
    """Load configuration from environment variable."""
    config_json = os.environ.get(CONFIG_ENV)
    if not config_json:
        return None

    try:
        return config_from_json(config_json)
    except ValueError as e:
        logger.error(f"Failed to load config from environment: {e}")
        return None


def store_config_in_env(config: Config) -> None:
    """Store configuration in environment variable for worker processes."""
    os.environ[CONFIG_ENV] = config_to_json(config)
    os.environ[WORKERS_ENV] = str(config.workers)


# Global app instance (created once per worker)
_app_instance: "Litestar | None" = None


def get_app() -> "Litestar":
    """Get or create the Litestar app instance."""
    global _app_instance
    if _app_instance is None:
        config = load_config_from_env()
        if config is None:
            raise RuntimeError(
                "Configuration not found. Use 'python -m bnsgateway' to start the server properly.",
            )

        logging.basicConfig(
            level=getattr(logging, config.normalized_log_level),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

        # Imported here so the metrics registry sees the worker count first
        from .server import create_app

        _app_instance = create_app(config)

    return _app_instance


async def app(
    scope: "Scope | LifeSpanScope",
    receive: "Callable[..., Any]",
    send: "Callable[..., Any]",
) -> None:
    """ASGI application entry point."""
    litestar_app = get_app()
    await litestar_app(scope, receive, send)
