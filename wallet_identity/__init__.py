"""Wallet Identity — address and signature helpers."""

from wallet_identity.addresses import (
    ZERO_ADDRESS,
    address_public_key,
    is_valid_address,
    normalize_address,
)
from wallet_identity.signatures import challenge_for, sign_challenge, verify_signature

__all__ = [
    "ZERO_ADDRESS",
    "address_public_key",
    "is_valid_address",
    "normalize_address",
    "challenge_for",
    "sign_challenge",
    "verify_signature",
]
