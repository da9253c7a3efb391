"""
Proof Engine — Local Validator
================================

Pre-verification of a ProofPackage before it is sent on-chain. The oracle
contract repeats the semantic checks; running them locally first means a
defective proof never costs a transaction fee.

Checks (in order, first failure wins):
    1. invalid_format      — commitment / public inputs are non-empty hex
    2. decode_failed       — public inputs decode to (address,uint256,uint256)
    3. invalid_identity    — decoded identity is a usable wallet address
    4. score_out_of_range  — 0 ≤ score ≤ 100
    5. future_timestamp    — timestamp ≤ now + clock skew
"""

from __future__ import annotations

import logging
import time
from typing import Callable, NamedTuple

from proof_engine import codec
from proof_engine.errors import DecodeError, ValidationError
from proof_engine.models import ProofPackage
from wallet_identity.addresses import ZERO_ADDRESS, is_valid_address

logger = logging.getLogger("proof_engine.validator")

MIN_SCORE = 0
MAX_SCORE = 100


class PublicInputs(NamedTuple):
    identity: str
    score: int
    timestamp: int


class LocalValidator:
    """Stateless predicate pipeline over a ProofPackage."""

    def __init__(
        self,
        clock_skew_seconds: int = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if clock_skew_seconds < 0:
            raise ValueError("clock_skew_seconds must be >= 0")
        self.clock_skew_seconds = clock_skew_seconds
        self._clock = clock

    def validate(self, package: ProofPackage) -> PublicInputs:
        """Run every check; return the decoded public inputs.

        Raises
        ------
        ValidationError
            With ``reason`` set to the first check that failed.
        """
        # 1. Format
        if not codec.is_hex(package.commitment) or not codec.is_hex(package.public_inputs):
            raise ValidationError("invalid_format", "commitment and public inputs must be hex")

        # 2. Decode
        try:
            identity, score, timestamp = codec.decode_public_inputs(
                codec.from_hex(package.public_inputs)
            )
        except DecodeError as exc:
            raise ValidationError("decode_failed", str(exc)) from exc

        # 3. Identity
        if not is_valid_address(identity) or identity == ZERO_ADDRESS:
            raise ValidationError("invalid_identity", f"unusable address {identity}")

        # 4. Range
        if not MIN_SCORE <= score <= MAX_SCORE:
            raise ValidationError("score_out_of_range", f"score {score} not in [{MIN_SCORE}, {MAX_SCORE}]")

        # 5. Freshness
        now = int(self._clock())
        if timestamp > now + self.clock_skew_seconds:
            raise ValidationError("future_timestamp", f"timestamp {timestamp} is after {now}")

        logger.debug("Package %s passed local checks", package.proof_id)
        return PublicInputs(identity, score, timestamp)
