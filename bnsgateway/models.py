"""Data classes for bnsgateway.

This module contains dataclasses and structured types used across the codebase.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AddressBytesRecord:
    """Address record returned by a forward lookup backend.

    Attributes:
        addr: The raw address bytes stored in the coin-type slot

    """

    addr: bytes
