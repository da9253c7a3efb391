"""
Backend Router — Blockchain
=============================

POST /blockchain/publish          — Publish a proof to the oracle
GET  /blockchain/score/{wallet}   — Read the stored score
GET  /blockchain/minimum/{wallet} — Minimum-score gate
GET  /blockchain/events           — ScorePublished history
GET  /blockchain/network          — Network information
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from backend.config import get_ledger, get_pipeline
from ledger_client.client import DEFAULT_CONFIRMATION_TIMEOUT, LedgerClient
from proof_engine.models import ProofPackage, PublishedRecord, PublishEvent, PublishResult
from proof_engine.pipeline import ProofPipeline

logger = logging.getLogger("backend.blockchain")
router = APIRouter(prefix="/blockchain", tags=["Blockchain"])


class PublishRequest(BaseModel):
    package: ProofPackage
    timeout: float = Field(default=DEFAULT_CONFIRMATION_TIMEOUT, gt=0, le=600)


class MinimumScoreResponse(BaseModel):
    wallet: str
    threshold: int
    meets_minimum: bool


class EventsResponse(BaseModel):
    wallet: Optional[str] = None
    from_block: int
    events: list[PublishEvent]


@router.post("/publish", response_model=PublishResult)
def publish_score(
    req: PublishRequest,
    ledger: LedgerClient = Depends(get_ledger),
    pipeline: ProofPipeline = Depends(get_pipeline),
):
    """Re-run local checks on the submitted package, then publish it."""
    package = pipeline.pre_verify(req.package.model_copy(update={"verified": False}))
    return ledger.publish(package, timeout=req.timeout)


@router.get("/score/{wallet}", response_model=PublishedRecord)
def get_score(wallet: str, ledger: LedgerClient = Depends(get_ledger)):
    """Stored on-chain record for a wallet."""
    record = ledger.query(wallet)
    if record is None:
        raise HTTPException(status_code=404, detail="No score found for this wallet")
    return record


@router.get("/minimum/{wallet}", response_model=MinimumScoreResponse)
def check_minimum(
    wallet: str,
    threshold: int = Query(..., ge=0, le=100),
    ledger: LedgerClient = Depends(get_ledger),
):
    return MinimumScoreResponse(
        wallet=wallet,
        threshold=threshold,
        meets_minimum=ledger.check_minimum_score(wallet, threshold),
    )


@router.get("/events", response_model=EventsResponse)
def list_events(
    wallet: Optional[str] = None,
    from_block: int = Query(default=0, ge=0),
    ledger: LedgerClient = Depends(get_ledger),
):
    """ScorePublished events, oldest first."""
    events = list(ledger.list_publish_events(wallet, from_block))
    return EventsResponse(wallet=wallet, from_block=from_block, events=events)


@router.get("/network")
def network(ledger: LedgerClient = Depends(get_ledger)):
    return ledger.network_info()
