"""Shared type definitions for pool and routing models."""

import hashlib
from typing import Annotated

from pydantic import BeforeValidator, Field

# Ethereum-style address (40 hex chars after 0x prefix), stored lowercase
Address = Annotated[
    str,
    BeforeValidator(lambda v: normalize_address(v) if isinstance(v, str) else v),
    Field(pattern=r"^0x[a-f0-9]{40}$"),
]


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an address to lowercase with 0x prefix.

    Args:
        address: An address (with or without 0x prefix)
        validate: If True, raises ValueError for invalid addresses

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and address is not a valid address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a valid 20-byte hex address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def derive_address(*parts: str) -> str:
    """Derive a deterministic 20-byte address from string parts.

    Parts are joined with ':' and hashed with sha256; the address is the
    first 20 bytes of the digest.
    """
    digest = hashlib.sha256(":".join(parts).encode()).hexdigest()
    return "0x" + digest[:40]
