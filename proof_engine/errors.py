"""
Proof Engine — Error Taxonomy
===============================

Every failure raised by the codec, the local validator, the pipeline,
the identity helpers and the ledger client derives from
``ReputationProofError``. Ledger errors carry the machine-readable code
reported by the node so callers can diagnose them.
"""

from __future__ import annotations

from typing import Any, Optional


class ReputationProofError(Exception):
    """Base class for all reputation-proof failures."""

    def to_dict(self) -> dict[str, Any]:
        return {"error_type": type(self).__name__, "message": str(self)}


# ─────────────────────────────────────────────────────────────────────────────
# Codec
# ─────────────────────────────────────────────────────────────────────────────
class CodecError(ReputationProofError):
    """Public inputs could not be converted to or from their binary layout."""


class EncodeError(CodecError):
    """A value does not fit the fixed public-input layout."""


class DecodeError(CodecError):
    """Bytes do not match the fixed public-input layout."""


# ─────────────────────────────────────────────────────────────────────────────
# Local validation & pipeline
# ─────────────────────────────────────────────────────────────────────────────
VALIDATION_REASONS = (
    "invalid_format",
    "decode_failed",
    "invalid_identity",
    "score_out_of_range",
    "future_timestamp",
)


class ValidationError(ReputationProofError):
    """A proof package failed one of the local pre-verification checks."""

    def __init__(self, reason: str, detail: str = "") -> None:
        if reason not in VALIDATION_REASONS:
            raise ValueError(f"Unknown validation reason '{reason}'")
        super().__init__(f"{reason}: {detail}" if detail else reason)
        self.reason = reason
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "reason": self.reason}


class PipelineError(ReputationProofError):
    """The proof pipeline stopped in its ``FAILED`` state."""

    def __init__(self, reason: str, stage: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"pipeline failed at {stage}: {reason}")
        self.reason = reason
        self.stage = stage
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "reason": self.reason, "stage": self.stage}


class PrecompositionError(ReputationProofError):
    """Publish attempted with a package that never passed pre-verification."""


class InvalidAddressError(ReputationProofError, ValueError):
    """Malformed wallet address."""


# ─────────────────────────────────────────────────────────────────────────────
# Ledger
# ─────────────────────────────────────────────────────────────────────────────
class LedgerError(ReputationProofError):
    """Failure reported by the ledger node or contract."""

    def __init__(self, reason: str, code: Optional[str | int] = None) -> None:
        super().__init__(f"[{code}] {reason}" if code is not None else reason)
        self.reason = reason
        self.code = code

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "code": self.code, "reason": self.reason}


class NetworkError(LedgerError):
    """Transport or RPC failure talking to the node or indexer."""


class ContractRevertError(LedgerError):
    """The contract rejected the call."""


class ConfirmationTimeoutError(LedgerError, TimeoutError):
    """The confirmation wait ran out of time.

    The transaction may still be included later; ``query`` resolves it.
    """

    def __init__(self, transaction_id: str, waited: float) -> None:
        super().__init__(
            f"transaction {transaction_id} not confirmed after {waited:.1f}s",
            code="confirmation_timeout",
        )
        self.transaction_id = transaction_id
        self.waited = waited


# ─────────────────────────────────────────────────────────────────────────────
# Collaborators
# ─────────────────────────────────────────────────────────────────────────────
class ScoringServiceError(ReputationProofError):
    """The external AI scoring service failed or answered malformed data."""
