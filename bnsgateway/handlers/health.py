"""Health check endpoints."""

from __future__ import annotations

from litestar import Controller, get

from bnsgateway.store import RecordStore  # noqa: TC001

from .base import HealthResponse


class HealthController(Controller):  # type: ignore[misc]
    """Health check endpoints."""

    path = "/"

    @get("/health")  # type: ignore[untyped-decorator]
    async def health(self, records: RecordStore) -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy", domains_loaded=len(records))
