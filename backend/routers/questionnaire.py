"""
Backend Router — Questionnaire
================================

POST /questionnaire/submit — Score answers and build a verified proof.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ai_scoring.client import ScoringClient
from ai_scoring.models import ScoringRequest, VerificationOutcome, attestations_from
from backend.config import get_pipeline, get_scoring
from proof_engine.models import ProofPackage, ScoreBreakdown
from proof_engine.pipeline import ProofPipeline
from wallet_identity.addresses import normalize_address

logger = logging.getLogger("backend.questionnaire")
router = APIRouter(prefix="/questionnaire", tags=["Questionnaire"])


class QuestionnaireRequest(ScoringRequest):
    verifications: dict[str, VerificationOutcome] = Field(default_factory=dict)


class QuestionnaireResponse(BaseModel):
    wallet: str
    score: int
    breakdown: ScoreBreakdown
    credibility_level: str
    package: ProofPackage


@router.post("/submit", response_model=QuestionnaireResponse)
def submit_questionnaire(
    req: QuestionnaireRequest,
    scoring: ScoringClient = Depends(get_scoring),
    pipeline: ProofPipeline = Depends(get_pipeline),
):
    """Score the answers, then compose and pre-verify the proof."""
    wallet = normalize_address(req.wallet)
    result = scoring.analyze(req.answers, wallet)

    package = pipeline.run(
        identity=wallet,
        score=result.overall_score,
        breakdown=result.breakdown,
        verifications=attestations_from(req.verifications),
    )
    logger.info("Questionnaire for %s… → proof %s", wallet[:12], package.proof_id)

    return QuestionnaireResponse(
        wallet=wallet,
        score=result.overall_score,
        breakdown=result.breakdown,
        credibility_level=result.credibility_level,
        package=package,
    )
