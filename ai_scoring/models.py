"""
AI Scoring — Collaborator Models
==================================

Payloads exchanged with the external AI scoring service and with the
third-party verification providers (twitter, google, …).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from proof_engine.models import ScoreBreakdown, VerificationAttestation


# ─────────────────────────────────────────────────────────────────────────────
# Scoring service
# ─────────────────────────────────────────────────────────────────────────────
class ScoringRequest(BaseModel):
    """Questionnaire answers sent for scoring."""
    wallet: str
    answers: dict = Field(default_factory=dict)


class ScoringResult(BaseModel):
    """What the scoring service returns: overall score plus breakdown."""

    model_config = ConfigDict(populate_by_name=True)

    overall_score: int = Field(ge=0, le=100, alias="overallScore")
    breakdown: ScoreBreakdown

    @property
    def credibility_level(self) -> str:
        if self.overall_score >= 90:
            return "exceptional"
        if self.overall_score >= 70:
            return "strong"
        if self.overall_score >= 50:
            return "moderate"
        if self.overall_score >= 30:
            return "developing"
        return "minimal"


# ─────────────────────────────────────────────────────────────────────────────
# Verification providers
# ─────────────────────────────────────────────────────────────────────────────
class VerificationOutcome(BaseModel):
    """Result of a third-party identity verification."""

    model_config = ConfigDict(populate_by_name=True)

    verified: bool
    sub_score: float = Field(default=0, alias="subScore")
    attestation: bytes = b""
    error: Optional[str] = None

    def to_attestation(self) -> Optional[VerificationAttestation]:
        """Record entry for a successful verification; None otherwise."""
        if not self.verified:
            return None
        return VerificationAttestation(
            verified=True,
            sub_score=self.sub_score,
            attestation=self.attestation,
        )


def attestations_from(outcomes: dict[str, VerificationOutcome]) -> dict[str, VerificationAttestation]:
    """Keep only the verified outcomes, keyed by source name."""
    result: dict[str, VerificationAttestation] = {}
    for source, outcome in outcomes.items():
        attestation = outcome.to_attestation()
        if attestation is not None:
            result[source] = attestation
    return result
