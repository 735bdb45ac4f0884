"""HTTP route handlers for the BNS API with Litestar.

This package provides controller modules for different API endpoints:
- health: Health check endpoints
- lookup: Forward and reverse BNS lookups
"""

from litestar import Router

from .health import HealthController
from .lookup import LookupController


def get_routers() -> list[Router]:
    """Get all routers for the application."""
    return [
        Router(path="/", route_handlers=[HealthController]),
        Router(path="/", route_handlers=[LookupController]),
    ]


__all__ = [
    "HealthController",
    "LookupController",
    "get_routers",
]
