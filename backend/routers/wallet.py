"""
Backend Router — Wallet
=========================

GET  /wallet/challenge/{address} — Canonical challenge to sign
POST /wallet/connect             — Verify a signed challenge
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from wallet_identity.addresses import normalize_address
from wallet_identity.signatures import challenge_for, verify_signature

logger = logging.getLogger("backend.wallet")
router = APIRouter(prefix="/wallet", tags=["Wallet"])


class ChallengeResponse(BaseModel):
    address: str
    challenge: str


class ConnectRequest(BaseModel):
    address: str = Field(..., description="Algorand address of the wallet")
    signature: str = Field(..., description="Base64 signature of the challenge")
    message: Optional[str] = Field(default=None, description="Signed text (defaults to the canonical challenge)")


class ConnectResponse(BaseModel):
    address: str
    connected: bool
    message: str


@router.get("/challenge/{address}", response_model=ChallengeResponse)
def get_challenge(address: str):
    """Return the challenge text the wallet must sign."""
    canonical = normalize_address(address)
    return ChallengeResponse(address=canonical, challenge=challenge_for(canonical))


@router.post("/connect", response_model=ConnectResponse)
def connect_wallet(req: ConnectRequest):
    """Check that the wallet signed the challenge."""
    if not verify_signature(req.address, req.signature, req.message):
        raise HTTPException(status_code=401, detail="Invalid signature")

    return ConnectResponse(
        address=normalize_address(req.address),
        connected=True,
        message="Wallet connected successfully",
    )
