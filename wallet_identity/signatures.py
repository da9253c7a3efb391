"""
Wallet Identity — Signed Challenges
=====================================

Wallet-connection handshake: the wallet signs a challenge string with the
standard Algorand personal-message scheme (Ed25519 over ``"MX" + message``)
and the backend checks the signature against the claimed address.
"""

from __future__ import annotations

import base64
import logging
from typing import Optional

from algosdk import util

from proof_engine.errors import InvalidAddressError
from wallet_identity.addresses import normalize_address

logger = logging.getLogger("wallet_identity")

CHALLENGE_TEMPLATE = "Reputation proof wallet connection\nWallet: {address}"


def challenge_for(address: str) -> str:
    """Canonical challenge text for *address* (deterministic)."""
    return CHALLENGE_TEMPLATE.format(address=normalize_address(address))


def sign_challenge(private_key: str, message: str) -> str:
    """Sign *message* the way a wallet does; returns a base64 signature."""
    return util.sign_bytes(message.encode("utf-8"), private_key)


def verify_signature(
    address: str,
    signature: str | bytes,
    message: Optional[str] = None,
) -> bool:
    """Return True iff *signature* over *message* was made by *address*.

    When *message* is omitted the canonical challenge for *address* is
    used. Malformed addresses or signatures verify as False.
    """
    try:
        claimed = normalize_address(address)
    except InvalidAddressError:
        logger.info("Signature check rejected malformed address %r", address)
        return False

    if not signature:
        return False
    if isinstance(signature, bytes):
        signature = base64.b64encode(signature).decode("ascii")

    if message is None:
        message = challenge_for(claimed)

    valid = util.verify_bytes(message.encode("utf-8"), signature, claimed)
    logger.info("Signature check for %s…: %s", claimed[:12], "valid" if valid else "invalid")
    return valid
