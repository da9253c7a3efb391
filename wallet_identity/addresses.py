"""
Wallet Identity — Addresses
=============================

Algorand addresses are the base32 text form of a 32-byte Ed25519 public
key followed by a 4-byte checksum (58 characters, upper case). The
canonical form is the upper-case string; lookups and comparisons accept
any letter case.
"""

from __future__ import annotations

from typing import Any

from algosdk import encoding

from proof_engine.errors import InvalidAddressError

ZERO_ADDRESS = encoding.encode_address(bytes(32))


def is_valid_address(address: Any) -> bool:
    """Syntactic check: length, base32 charset and checksum."""
    if not isinstance(address, str):
        return False
    return encoding.is_valid_address(address.upper())


def normalize_address(address: Any) -> str:
    """Return the canonical checksummed form of *address*.

    Raises
    ------
    InvalidAddressError
        If *address* is not a well-formed Algorand address.
    """
    if not isinstance(address, str):
        raise InvalidAddressError(f"Address must be a string, got {type(address).__name__}")

    candidate = address.strip().upper()
    if not encoding.is_valid_address(candidate):
        raise InvalidAddressError(f"Invalid address: {address!r}")
    return candidate


def address_public_key(address: str) -> bytes:
    """Raw 32-byte public key behind *address*."""
    return encoding.decode_address(normalize_address(address))
