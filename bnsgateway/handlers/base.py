"""Base types, structs and validation helpers for handlers."""

import logging
from typing import Any

import msgspec
from litestar.exceptions import ValidationException

logger = logging.getLogger(__name__)


# Response structs


class LookupResponse(msgspec.Struct, rename="camel"):
    """Response from a forward lookup."""

    banano_address: str


class ReverseLookupResponse(msgspec.Struct):
    """Response from a reverse lookup."""

    domain: str


class HealthResponse(msgspec.Struct):
    """Health check response."""

    status: str
    domains_loaded: int


# Validation helpers


def validate_batch_request(data: Any, what: str) -> list[str]:
    """Validate a batch request body (a JSON list of strings).

    Args:
        data: Raw request data
        what: Name of the items, used in error messages

    Returns:
        The list of requested items

    Raises:
        ValidationException: If validation fails

    """
    try:
        return msgspec.convert(data, list[str])
    except msgspec.ValidationError as e:
        raise ValidationException(detail=f"Expected a list of {what}: {e}") from e
