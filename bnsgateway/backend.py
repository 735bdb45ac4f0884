"""Forward lookup backends (fully qualified name + coin type -> address bytes)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from .codec import PUBLIC_KEY_LENGTH
from .models import AddressBytesRecord
from .store import strip_hex_prefix

if TYPE_CHECKING:
    from .store import RecordStore

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """The forward lookup backend could not answer."""


class ForwardLookupAdapter(Protocol):
    """Resolves the address stored in one coin-type slot of a name record."""

    async def addr_coin_type(self, name: str, coin_type: int) -> AddressBytesRecord | None:
        """Return the record for ``name`` in slot ``coin_type``, or None if absent.

        Raises:
            BackendError: If the backend is unavailable or its data is unusable

        """
        ...


class JsonRecordBackend:
    """Forward lookups served from an in-memory :class:`RecordStore`."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def addr_coin_type(self, name: str, coin_type: int) -> AddressBytesRecord | None:
        value = self._store.coin_address(name, coin_type)
        if value is None:
            logger.debug(f"No coin type {coin_type} record for {name}")
            return None
        try:
            addr = bytes.fromhex(strip_hex_prefix(value))
        except ValueError as e:
            raise BackendError(f"Invalid address hex for {name} (coin type {coin_type})") from e
        if len(addr) != PUBLIC_KEY_LENGTH:
            raise BackendError(
                f"Address for {name} (coin type {coin_type}) is {len(addr)} bytes, "
                f"expected {PUBLIC_KEY_LENGTH}"
            )
        return AddressBytesRecord(addr=addr)
