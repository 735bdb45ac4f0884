"""Read-only name record storage and the reverse (address -> domain) index."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import msgspec

from .codec import decode_address
from .metrics import DOMAINS_LOADED
from .types import DomainName

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)

ADDRESSES_KEY = "addresses"


class RecordStoreError(Exception):
    """The record file could not be loaded."""


class RecordStore:
    """Name -> record map, loaded once and never mutated.

    Records follow the JSON database layout::

        {"wtp.banano-testing.cc": {"addresses": {"198": "0x53e2..."}}}

    Iteration follows the insertion order of the source mapping.
    """

    def __init__(self, records: Mapping[str, Any] | None = None) -> None:
        self._records: Mapping[str, Any] = MappingProxyType(dict(records or {}))
        DOMAINS_LOADED.set(len(self._records))

    @classmethod
    def from_file(cls, path: Path) -> RecordStore:
        """Load records from a JSON file.

        Raises:
            RecordStoreError: If the file cannot be read or is not a JSON object

        """
        try:
            data = msgspec.json.decode(path.read_bytes())
        except OSError as e:
            raise RecordStoreError(f"Can't open record file {path}: {e}") from e
        except msgspec.DecodeError as e:
            raise RecordStoreError(f"Can't parse record file {path}: {e}") from e

        if not isinstance(data, dict):
            raise RecordStoreError(
                f"Record file {path} must contain a JSON object, got {type(data).__name__}"
            )

        logger.info(f"Loaded {len(data)} name records from {path}")
        return cls(data)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def coin_address(self, name: str, coin_type: int) -> str | None:
        """Return the hex string stored in a record's coin-type slot, if any."""
        return _coin_slot(self._records.get(name), coin_type)

    def items(self) -> Iterator[tuple[str, Any]]:
        return iter(self._records.items())


def strip_hex_prefix(value: str) -> str:
    """Remove a leading ``0x`` or ``0X`` from a stored key."""
    return value[2:] if value[:2].lower() == "0x" else value


def _coin_slot(record: Any, coin_type: int) -> str | None:
    if not isinstance(record, dict):
        return None
    addresses = record.get(ADDRESSES_KEY)
    if not isinstance(addresses, dict):
        return None
    value = addresses.get(str(coin_type))
    return value if isinstance(value, str) else None


class ReverseIndex:
    """Finds the domain whose coin-type slot holds a given address.

    The index maps lowercase hex keys to short domain names. Stored values
    match with or without a ``0x`` prefix and in any letter case. It is built
    once from the store; when several domains carry the same key, the first
    one in store order wins.
    """

    def __init__(self, store: RecordStore, coin_type: int, namespace: str) -> None:
        self._suffix = f".{namespace}"
        self._index: dict[str, DomainName] = {}

        for name, record in store.items():
            slot = _coin_slot(record, coin_type)
            if slot is None:
                continue
            if not name.endswith(self._suffix):
                logger.debug(f"Skipping {name}: outside namespace {namespace}")
                continue
            domain = DomainName(name.removesuffix(self._suffix))
            existing = self._index.setdefault(strip_hex_prefix(slot).lower(), domain)
            if existing != domain:
                logger.warning(
                    f"Address {slot} registered for both {existing} and {domain}, "
                    f"reverse lookups resolve to {existing}"
                )

    def __len__(self) -> int:
        return len(self._index)

    def domain_with_address(self, address: str) -> DomainName | None:
        """Return the short domain owning ``address``, or None.

        Malformed addresses never match anything.
        """
        pub_key = decode_address(address)
        if pub_key is None:
            return None
        return self._index.get(pub_key.hex())
