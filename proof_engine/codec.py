"""
Proof Engine — Codec
======================

Two representations of a ReputationRecord:

    public inputs → ARC-4 ``(address,uint256,uint256)`` tuple of
                    (identity, score, timestamp), 96 bytes, the layout the
                    oracle contract decodes on-chain.
    commitment    → SHA-256 over a canonical text form of the whole record
                    (breakdown and verification attestations included).

Canonical form:
    The record is flattened into ``(path, value)`` pairs, sorted by path and
    serialized as compact JSON. Integers are written as decimal text,
    integral floats collapse to integers, bytes become lowercase hex and
    booleans/None use their JSON spelling. Two records with the same field
    values therefore commit to the same digest whatever order their
    mappings were built in.
"""

from __future__ import annotations

import hashlib
import json
import re
from decimal import Decimal
from typing import Any

from algosdk import abi

from proof_engine.errors import DecodeError, EncodeError
from proof_engine.models import ReputationRecord

# ─────────────────────────────────────────────────────────────────────────────
# Layout
# ─────────────────────────────────────────────────────────────────────────────
PUBLIC_INPUTS_SIGNATURE = "(address,uint256,uint256)"
PUBLIC_INPUTS_TYPE = abi.ABIType.from_string(PUBLIC_INPUTS_SIGNATURE)
PUBLIC_INPUTS_LENGTH = PUBLIC_INPUTS_TYPE.byte_len()  # 32 + 32 + 32
COMMITMENT_LENGTH = 32

_HEX_RE = re.compile(r"(0x)?([0-9a-fA-F]{2})+")


# ─────────────────────────────────────────────────────────────────────────────
# Hex helpers
# ─────────────────────────────────────────────────────────────────────────────
def to_hex(data: bytes) -> str:
    return data.hex()


def is_hex(text: Any) -> bool:
    """True for a non-empty, even-length hex string (optional ``0x``)."""
    return isinstance(text, str) and bool(_HEX_RE.fullmatch(text))


def from_hex(text: str) -> bytes:
    if not is_hex(text):
        raise DecodeError(f"Not a hex byte string: {text!r:.40}")
    return bytes.fromhex(text[2:] if text.startswith("0x") else text)


# ─────────────────────────────────────────────────────────────────────────────
# Public inputs
# ─────────────────────────────────────────────────────────────────────────────
def encode_public_inputs(identity: str, score: int, timestamp: int) -> bytes:
    """Encode (identity, score, timestamp) into the 96-byte contract layout."""
    try:
        return PUBLIC_INPUTS_TYPE.encode([identity, score, timestamp])
    except Exception as exc:
        raise EncodeError(f"Cannot encode public inputs: {exc}") from exc


def decode_public_inputs(data: bytes) -> tuple[str, int, int]:
    """Inverse of :func:`encode_public_inputs`.

    Raises
    ------
    DecodeError
        If *data* is not exactly one encoded ``(address,uint256,uint256)``.
    """
    if not isinstance(data, (bytes, bytearray)):
        raise DecodeError(f"Expected bytes, got {type(data).__name__}")
    if len(data) != PUBLIC_INPUTS_LENGTH:
        raise DecodeError(
            f"Public inputs must be {PUBLIC_INPUTS_LENGTH} bytes, got {len(data)}"
        )

    try:
        fields = PUBLIC_INPUTS_TYPE.decode(bytes(data))
    except Exception as exc:
        raise DecodeError(f"Cannot decode public inputs: {exc}") from exc

    if len(fields) != 3:
        raise DecodeError(f"Expected 3 fields, got {len(fields)}")

    identity, score, timestamp = fields
    return identity, int(score), int(timestamp)


# ─────────────────────────────────────────────────────────────────────────────
# Commitment
# ─────────────────────────────────────────────────────────────────────────────
def _scalar_text(value: Any) -> Any:
    """Render a leaf value the same way for every equal input."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)).normalize(), "f")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return str(value)


def _flatten(value: Any, path: tuple[str, ...], out: list[tuple[list[str], Any]]) -> None:
    if isinstance(value, dict):
        for key in value:
            _flatten(value[key], path + (str(key),), out)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten(item, path + (str(index),), out)
    else:
        out.append((list(path), _scalar_text(value)))


def canonicalize(record: ReputationRecord) -> bytes:
    """Deterministic byte form of the whole record."""
    pairs: list[tuple[list[str], Any]] = []
    _flatten(record.model_dump(), (), pairs)
    pairs.sort(key=lambda pair: pair[0])
    return json.dumps(pairs, separators=(",", ":"), ensure_ascii=True).encode("ascii")


def commit(record: ReputationRecord) -> bytes:
    """32-byte SHA-256 commitment over the canonical record."""
    return hashlib.sha256(canonicalize(record)).digest()
