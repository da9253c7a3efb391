"""
Proof Engine — Proof Pipeline
===============================

Compose → Package → PreVerify, producing a ProofPackage ready for the
ledger. Every stage is local and pure, so nothing is retried: a failure
surfaces to the caller, who fixes the inputs and runs the pipeline again.

    COMPOSE     build the ReputationRecord, commit it, encode public inputs
    PACKAGE     wrap both in a ProofPackage with a fresh proof_id
    PRE_VERIFY  run the LocalValidator; only here does verified become True

Terminal states are COMPLETED (a verified package is returned) and FAILED
(PipelineError is raised and no package escapes).
"""

from __future__ import annotations

import itertools
import logging
import secrets
import time
from enum import Enum
from typing import Callable, Mapping, Optional

from pydantic import ValidationError as ModelValidationError

from proof_engine import codec
from proof_engine.errors import CodecError, InvalidAddressError, PipelineError, ValidationError
from proof_engine.models import (
    ProofPackage,
    ReputationRecord,
    ScoreBreakdown,
    VerificationAttestation,
)
from proof_engine.validator import MIN_SCORE, LocalValidator
from wallet_identity.addresses import normalize_address

logger = logging.getLogger("proof_engine.pipeline")

_proof_counter = itertools.count(1)


class PipelineStage(str, Enum):
    COMPOSE = "compose"
    PACKAGE = "package"
    PRE_VERIFY = "pre_verify"
    COMPLETED = "completed"
    FAILED = "failed"


def new_proof_id() -> str:
    """``proof_<millis>_<seq><random>``; the sequence keeps ids unique per process."""
    millis = int(time.time() * 1000)
    return f"proof_{millis}_{next(_proof_counter)}{secrets.token_hex(4)}"


class ProofPipeline:
    """Three-stage proof state machine.

    Usage:
        pipeline = ProofPipeline()
        package = pipeline.run(
            identity="ALGO…",
            score=87,
            breakdown={"trustworthiness": 90, "security": 80,
                       "experience": 85, "behavior": 92},
        )
    """

    def __init__(
        self,
        validator: Optional[LocalValidator] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self.validator = validator or LocalValidator(clock=clock)

    # ── Stages ────────────────────────────────────────────────────────
    def compose(
        self,
        identity: str,
        score: int,
        breakdown: ScoreBreakdown | Mapping[str, int],
        verifications: Optional[Mapping[str, VerificationAttestation | Mapping]] = None,
        timestamp: Optional[int] = None,
    ) -> tuple[ReputationRecord, bytes, bytes]:
        """Build the record and return ``(record, commitment, public_inputs)``."""
        try:
            canonical_identity = normalize_address(identity)
        except InvalidAddressError as exc:
            raise self._fail(PipelineStage.COMPOSE, "invalid_identity", exc)

        # Negative scores cannot be encoded, so the range rule is reported here.
        if isinstance(score, int) and score < MIN_SCORE:
            raise self._fail(
                PipelineStage.COMPOSE,
                "score_out_of_range",
                ValidationError("score_out_of_range", f"score {score} below {MIN_SCORE}"),
            )

        try:
            record = ReputationRecord(
                identity=canonical_identity,
                score=score,
                breakdown=breakdown,
                verifications=dict(verifications or {}),
                timestamp=int(self._clock()) if timestamp is None else timestamp,
            )
        except ModelValidationError as exc:
            raise self._fail(PipelineStage.COMPOSE, "invalid_record", exc)

        try:
            public_inputs = codec.encode_public_inputs(record.identity, record.score, record.timestamp)
        except CodecError as exc:
            raise self._fail(PipelineStage.COMPOSE, "encode_failed", exc)

        commitment = codec.commit(record)
        logger.info(
            "Composed record for %s… — score %d — commitment %s…",
            record.identity[:12], record.score, commitment.hex()[:16],
        )
        return record, commitment, public_inputs

    def package(self, commitment: bytes, public_inputs: bytes) -> ProofPackage:
        package = ProofPackage(
            commitment=codec.to_hex(commitment),
            public_inputs=codec.to_hex(public_inputs),
            proof_id=new_proof_id(),
        )
        logger.info("Packaged proof %s", package.proof_id)
        return package

    def pre_verify(self, package: ProofPackage) -> ProofPackage:
        """Validate locally; return a copy with ``verified=True``."""
        try:
            self.validator.validate(package)
        except ValidationError as exc:
            raise self._fail(PipelineStage.PRE_VERIFY, exc.reason, exc, package.proof_id)

        logger.info("✅ Proof %s passed local pre-verification", package.proof_id)
        return package.model_copy(update={"verified": True})

    # ── Full run ──────────────────────────────────────────────────────
    def run(
        self,
        identity: str,
        score: int,
        breakdown: ScoreBreakdown | Mapping[str, int],
        verifications: Optional[Mapping[str, VerificationAttestation | Mapping]] = None,
        timestamp: Optional[int] = None,
    ) -> ProofPackage:
        """Run all three stages; raises PipelineError on the first failure."""
        _, commitment, public_inputs = self.compose(
            identity, score, breakdown, verifications, timestamp
        )
        package = self.package(commitment, public_inputs)
        return self.pre_verify(package)

    @staticmethod
    def _fail(
        stage: PipelineStage,
        reason: str,
        cause: Exception,
        proof_id: Optional[str] = None,
    ) -> PipelineError:
        logger.warning(
            "❌ Pipeline %s at %s: %s (%s)",
            PipelineStage.FAILED.value, stage.value, reason, proof_id or "no package",
        )
        return PipelineError(reason, stage.value, cause)
