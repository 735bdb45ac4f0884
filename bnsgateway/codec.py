"""Banano address codec.

Converts between a 32-byte public key and its checksummed textual address::

    ban_ + body (52 symbols) + checksum (8 symbols)

The body is the key left-padded with 3 zero bytes and base32-encoded with the
Nano/Banano alphabet; the first 4 symbols only cover the padding and are
dropped. The checksum is a 5-byte BLAKE2b digest of the key, byte-reversed.
"""

import base64
import binascii
import hashlib

from .types import BananoAddress, PublicKeyHex

ALPHABET = "13456789abcdefghijkmnopqrstuwxyz"
"""Banano base32 alphabet (no ``0``, ``2``, ``l`` or ``v``)."""

_STANDARD_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

# Python's base32 uses RFC 4648 symbols, so translate to and from the Banano ones
_TO_BANANO = str.maketrans(_STANDARD_ALPHABET, ALPHABET)
_FROM_BANANO = str.maketrans(ALPHABET, _STANDARD_ALPHABET)
_ALPHABET_SET = frozenset(ALPHABET)

PUBLIC_KEY_LENGTH = 32
CHECKSUM_LENGTH = 5
BODY_LENGTH = 52
CHECKSUM_SYMBOLS = 8
SEPARATOR = "_"
DEFAULT_PREFIX = "ban_"

_PADDING = bytes(3)
_PADDING_SYMBOLS = ALPHABET[0] * 4


def _b32encode(data: bytes) -> str:
    return base64.b32encode(data).decode("ascii").translate(_TO_BANANO)


def _b32decode(symbols: str) -> bytes | None:
    if not _ALPHABET_SET.issuperset(symbols):
        return None
    try:
        return base64.b32decode(symbols.translate(_FROM_BANANO))
    except binascii.Error:
        return None


def compute_checksum(pub_key_bytes: bytes) -> bytes:
    """Return the 5-byte address checksum of a public key (already reversed)."""
    digest = hashlib.blake2b(pub_key_bytes, digest_size=CHECKSUM_LENGTH).digest()
    return digest[::-1]


def encode_address(pub_key_bytes: bytes, prefix: str | None = DEFAULT_PREFIX) -> BananoAddress:
    """Encode a public key as a Banano address.

    Only prefixes that end in ``SEPARATOR`` and contain no other separator
    (or no prefix at all) produce addresses :func:`decode_address` accepts.

    Args:
        pub_key_bytes: The raw 32-byte public key
        prefix: Literal prefix prepended to the address, or None for a bare
            body + checksum string

    Returns:
        The address string

    """
    body = _b32encode(_PADDING + bytes(pub_key_bytes))[len(_PADDING_SYMBOLS) :]
    checksum = _b32encode(compute_checksum(bytes(pub_key_bytes)))
    return BananoAddress(f"{prefix or ''}{body}{checksum}")


def _split_body(address: str) -> tuple[str, str] | None:
    """Return ``(body, checksum)`` or None if the address has the wrong shape.

    Without a separator the whole string must be body + checksum. After a
    separator the checksum may be missing.
    """
    _, sep, rest = address.partition(SEPARATOR)
    if not sep:
        if len(address) != BODY_LENGTH + CHECKSUM_SYMBOLS:
            return None
        rest = address
    else:
        # Only the segment up to a second separator belongs to the address
        rest = rest.split(SEPARATOR, 1)[0]
        if len(rest) not in (BODY_LENGTH, BODY_LENGTH + CHECKSUM_SYMBOLS):
            return None
    return rest[:BODY_LENGTH], rest[BODY_LENGTH:]


def decode_address(address: str) -> bytes | None:
    """Recover the public key bytes encoded in an address.

    Malformed input (wrong length, symbols outside the alphabet, a body
    whose first symbol sets bits above the 256-bit key) yields None.
    The checksum suffix is not verified; see :func:`verify_checksum`.
    """
    parts = _split_body(address)
    if parts is None:
        return None
    decoded = _b32decode(_PADDING_SYMBOLS + parts[0])
    if decoded is None or not decoded.startswith(_PADDING):
        return None
    return decoded[len(_PADDING) :]


def decode_address_hex(address: str) -> PublicKeyHex | None:
    """Like :func:`decode_address` but returns lowercase hex without ``0x``."""
    pub_key = decode_address(address)
    return PublicKeyHex(pub_key.hex()) if pub_key is not None else None


def verify_checksum(address: str) -> bool:
    """Check that the 8 symbols after the body match the key's checksum."""
    parts = _split_body(address)
    if parts is None:
        return False
    pub_key = decode_address(address)
    if pub_key is None:
        return False
    return parts[1][:CHECKSUM_SYMBOLS] == _b32encode(compute_checksum(pub_key))
