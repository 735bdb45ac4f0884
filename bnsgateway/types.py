"""Type definitions for bnsgateway.

This module contains type aliases and NewType definitions for domain-specific
types to improve type safety and code readability.
"""

from typing import NewType

BananoAddress = NewType("BananoAddress", str)
"""Checksummed Banano address (``ban_`` + 52 body symbols + 8 checksum symbols)."""

PublicKeyHex = NewType("PublicKeyHex", str)
"""Hex-encoded public key (64 characters, without 0x prefix)."""

DomainName = NewType("DomainName", str)
"""Short BNS domain name, without the namespace suffix."""
