"""AI Scoring — Package."""

from ai_scoring.client import ScoringClient
from ai_scoring.models import (
    ScoringRequest,
    ScoringResult,
    VerificationOutcome,
    attestations_from,
)

__all__ = [
    "ScoringClient",
    "ScoringRequest",
    "ScoringResult",
    "VerificationOutcome",
    "attestations_from",
]
