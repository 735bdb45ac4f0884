"""Forward and reverse lookup orchestration."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from .backend import BackendError
from .codec import DEFAULT_PREFIX, encode_address
from .config import BANANO_COIN_TYPE_SLIP44, DEFAULT_NAMESPACE
from .metrics import (
    BACKEND_ERRORS_TOTAL,
    LOOKUP_DURATION_SECONDS,
    LOOKUP_MISSES_TOTAL,
    LOOKUP_REQUESTS_TOTAL,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .backend import ForwardLookupAdapter
    from .store import ReverseIndex
    from .types import BananoAddress, DomainName

logger = logging.getLogger(__name__)


class LookupService:
    """Resolves BNS domains to Banano addresses and back.

    Absence is reported as None by the single lookups and as an empty
    string in the batch results; malformed input is treated as absence.
    """

    def __init__(
        self,
        backend: ForwardLookupAdapter,
        index: ReverseIndex,
        namespace: str = DEFAULT_NAMESPACE,
        coin_type: int = BANANO_COIN_TYPE_SLIP44,
        address_prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self._backend = backend
        self._index = index
        self._namespace = namespace
        self._coin_type = coin_type
        self._address_prefix = address_prefix

    async def forward(self, domain: str) -> BananoAddress | None:
        """Return the Banano address registered for ``domain``.

        Raises:
            BackendError: If the forward lookup backend fails

        """
        LOOKUP_REQUESTS_TOTAL.labels(kind="forward").inc()
        start_time = time.perf_counter()
        try:
            record = await self._backend.addr_coin_type(
                f"{domain}.{self._namespace}",
                self._coin_type,
            )
        except BackendError:
            BACKEND_ERRORS_TOTAL.inc()
            raise
        finally:
            LOOKUP_DURATION_SECONDS.labels(kind="forward").observe(
                time.perf_counter() - start_time
            )

        if record is None:
            LOOKUP_MISSES_TOTAL.labels(kind="forward").inc()
            logger.debug(f"No Banano address for {domain}")
            return None

        address = encode_address(record.addr, self._address_prefix)
        logger.info(f"Resolved {domain} to {address}")
        return address

    async def batch_forward(self, domains: Iterable[str]) -> dict[str, str]:
        """Resolve every domain; unresolved ones map to an empty string."""
        mapping: dict[str, str] = {}
        for domain in domains:
            try:
                address = await self.forward(domain)
            except BackendError as e:
                logger.warning(f"Backend error resolving {domain}: {e}")
                address = None
            mapping[domain] = address or ""
        return mapping

    def reverse(self, address: str) -> DomainName | None:
        """Return the domain owning ``address``, without the namespace suffix."""
        LOOKUP_REQUESTS_TOTAL.labels(kind="reverse").inc()
        with LOOKUP_DURATION_SECONDS.labels(kind="reverse").time():
            domain = self._index.domain_with_address(address)

        if domain is None:
            LOOKUP_MISSES_TOTAL.labels(kind="reverse").inc()
            logger.debug(f"No domain for {address}")
            return None

        logger.info(f"Resolved {address} to {domain}")
        return domain

    def batch_reverse(self, addresses: Iterable[str]) -> dict[str, str]:
        """Reverse-resolve every address; unresolved ones map to an empty string."""
        return {address: self.reverse(address) or "" for address in addresses}
