"""
Proof Engine — Data Models
============================

Pydantic models shared by the codec, validator, pipeline and ledger client.

    ReputationRecord  → the semantic record a questionnaire produces
    ProofPackage      → the transportable, hash-committed artifact
    PublishedRecord   → what the oracle contract stores per wallet
    PublishEvent      → one ScorePublished log read from the indexer
    PublishResult     → outcome of a publish call
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────────────────────────────────────
# Record
# ─────────────────────────────────────────────────────────────────────────────
BREAKDOWN_CATEGORIES = ("trustworthiness", "security", "experience", "behavior")


class ScoreBreakdown(BaseModel):
    """Per-category scores returned by the scoring service."""

    model_config = ConfigDict(frozen=True)

    trustworthiness: int = Field(ge=0, le=100)
    security: int = Field(ge=0, le=100)
    experience: int = Field(ge=0, le=100)
    behavior: int = Field(ge=0, le=100)


class VerificationAttestation(BaseModel):
    """Result of a third-party identity verification (twitter, google, …)."""

    model_config = ConfigDict(frozen=True)

    verified: bool
    sub_score: float = 0
    attestation: bytes = b""


class ReputationRecord(BaseModel):
    """Unpublished reputation record, built once per questionnaire submission.

    ``score`` is unbounded here: the 0–100 range is checked by
    the local validator so an out-of-range score ends the pipeline in its
    failed state with ``score_out_of_range``.
    """

    model_config = ConfigDict(frozen=True)

    identity: str
    score: int
    breakdown: ScoreBreakdown
    verifications: dict[str, VerificationAttestation] = Field(default_factory=dict)
    timestamp: int


# ─────────────────────────────────────────────────────────────────────────────
# Package
# ─────────────────────────────────────────────────────────────────────────────
class ProofPackage(BaseModel):
    """Hash-committed proof ready for submission.

    ``verified`` only means the local checks passed. The oracle contract
    runs its own checks and is the authority.
    """

    model_config = ConfigDict(frozen=True)

    commitment: str
    public_inputs: str
    proof_id: str
    verified: bool = False
    compressed: bool = False


# ─────────────────────────────────────────────────────────────────────────────
# Ledger
# ─────────────────────────────────────────────────────────────────────────────
class PublishedRecord(BaseModel):
    """Record stored by the oracle contract for one wallet."""

    score: int
    timestamp: int
    verified: bool
    commitment: str


class PublishEvent(BaseModel):
    identity: str
    score: int
    timestamp: int
    commitment: str
    block_number: int
    transaction_id: str


class PublishResult(BaseModel):
    """Outcome of ``LedgerClient.publish``.

    ``synthetic`` results come from a client without ledger configuration;
    their ``transaction_id`` also starts with ``SYNTHETIC-``.
    """

    transaction_id: str
    confirmed_round: Optional[int] = None
    fee: int = 0
    synthetic: bool = False


class CostEstimate(BaseModel):
    """Fee computation for one publish call (fees in microAlgos)."""

    budget_consumed: int = 0
    inner_transactions: int = 0
    raw_units: int
    fee: int
    fallback: bool = False
