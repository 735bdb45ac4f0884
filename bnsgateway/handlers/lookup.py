"""BNS lookup endpoints."""

from __future__ import annotations

import logging
from typing import Any

from litestar import Controller, get, post
from litestar.exceptions import NotFoundException, ServiceUnavailableException
from litestar.status_codes import HTTP_200_OK

from bnsgateway.backend import BackendError
from bnsgateway.service import LookupService  # noqa: TC001

from .base import LookupResponse, ReverseLookupResponse, validate_batch_request

logger = logging.getLogger(__name__)


class LookupController(Controller):  # type: ignore[misc]
    """Forward and reverse lookups, single and batched."""

    path = "/bns"

    @get("/lookup/{domain:str}", tags=["lookup"])  # type: ignore[untyped-decorator]
    async def lookup(self, domain: str, service: LookupService) -> LookupResponse:
        """GET /bns/lookup/:domain - Lookup Banano address of a BNS domain."""
        logger.info(f"Searching for Banano address of {domain}")
        try:
            banano_address = await service.forward(domain)
        except BackendError as e:
            logger.error(f"Backend error resolving {domain}: {e}")
            raise ServiceUnavailableException(detail=f"Could not resolve domain = {domain}") from e

        if banano_address is None:
            raise NotFoundException(detail=f"domain = {domain}")
        return LookupResponse(banano_address=banano_address)

    @get("/reverse-lookup/{banano_address:str}", tags=["lookup"])  # type: ignore[untyped-decorator]
    async def reverse_lookup(
        self,
        banano_address: str,
        service: LookupService,
    ) -> ReverseLookupResponse:
        """GET /bns/reverse-lookup/:banano_address - Reverse lookup of a BNS domain."""
        logger.info(f"Searching for domain of {banano_address}")
        domain = service.reverse(banano_address)
        if domain is None:
            raise NotFoundException(detail=f"banano = {banano_address}")
        return ReverseLookupResponse(domain=domain)

    @post("/lookup", status_code=HTTP_200_OK, tags=["batch-lookup"])  # type: ignore[untyped-decorator]
    async def batch_lookup(self, data: Any, service: LookupService) -> dict[str, str]:
        """POST /bns/lookup - Lookup Banano addresses of multiple BNS domains.

        Domains that cannot be resolved map to an empty string.
        """
        domains = validate_batch_request(data, "BNS domains")
        logger.info(f"Searching for {len(domains)} Banano addresses")
        return await service.batch_forward(domains)

    @post("/reverse-lookup", status_code=HTTP_200_OK, tags=["batch-lookup"])  # type: ignore[untyped-decorator]
    async def batch_reverse_lookup(self, data: Any, service: LookupService) -> dict[str, str]:
        """POST /bns/reverse-lookup - Lookup BNS domains of multiple Banano addresses.

        Addresses that cannot be resolved map to an empty string.
        """
        addresses = validate_batch_request(data, "Banano addresses")
        logger.info(f"Searching for {len(addresses)} BNS domains")
        return service.batch_reverse(addresses)
