"""
Backend Router — Proof
========================

POST /proof/compose — Build and pre-verify a proof for a known score.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ai_scoring.models import VerificationOutcome, attestations_from
from backend.config import get_pipeline
from proof_engine.models import ProofPackage, ScoreBreakdown
from proof_engine.pipeline import ProofPipeline

logger = logging.getLogger("backend.proof")
router = APIRouter(prefix="/proof", tags=["Proof"])


class ComposeRequest(BaseModel):
    wallet: str
    score: int
    breakdown: ScoreBreakdown
    verifications: dict[str, VerificationOutcome] = Field(default_factory=dict)
    timestamp: Optional[int] = None


@router.post("/compose", response_model=ProofPackage)
def compose_proof(req: ComposeRequest, pipeline: ProofPipeline = Depends(get_pipeline)):
    """Run compose → package → pre-verify; 422 with the failing rule otherwise."""
    return pipeline.run(
        identity=req.wallet,
        score=req.score,
        breakdown=req.breakdown,
        verifications=attestations_from(req.verifications),
        timestamp=req.timestamp,
    )
