"""Proof Engine — Package."""

from proof_engine.errors import (
    DecodeError,
    PipelineError,
    PrecompositionError,
    ReputationProofError,
    ValidationError,
)
from proof_engine.models import (
    ProofPackage,
    PublishedRecord,
    PublishEvent,
    PublishResult,
    ReputationRecord,
    ScoreBreakdown,
    VerificationAttestation,
)

__all__ = [
    "DecodeError",
    "PipelineError",
    "PrecompositionError",
    "ReputationProofError",
    "ValidationError",
    "ProofPackage",
    "PublishedRecord",
    "PublishEvent",
    "PublishResult",
    "ReputationRecord",
    "ScoreBreakdown",
    "VerificationAttestation",
]
