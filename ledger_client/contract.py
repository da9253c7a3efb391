"""
Ledger Client — Oracle Contract Interface
===========================================

ARC-4 method and ARC-28 event signatures of the reputation oracle
application. The oracle keeps one Box per wallet, keyed by the wallet's
raw 32-byte public key, and calls the verifier application (an inner
transaction) before storing a score.

ABI Methods
-----------
publish_score(byte[] proof, byte[] public_inputs) void
    Verify the proof and store (score, timestamp, verified, proof hash)
    for the identity found in ``public_inputs``. Emits ScorePublished.
get_score(address) (uint256,uint256,bool,byte[32])
    Read the stored record; fails the call when the wallet has none.
has_minimum_score(address, uint256) bool
    True when the stored, verified score is at least the threshold.

Event
-----
ScorePublished(address,uint256,uint256,byte[32])
    Logged as ``selector ‖ ARC-4 tuple``.
"""

from __future__ import annotations

from algosdk import abi, encoding

PUBLISH_METHOD = abi.Method.from_signature("publish_score(byte[],byte[])void")
GET_SCORE_METHOD = abi.Method.from_signature("get_score(address)(uint256,uint256,bool,byte[32])")
HAS_MINIMUM_METHOD = abi.Method.from_signature("has_minimum_score(address,uint256)bool")

SCORE_PUBLISHED_SIGNATURE = "ScorePublished(address,uint256,uint256,byte[32])"
SCORE_PUBLISHED_SELECTOR = encoding.checksum(SCORE_PUBLISHED_SIGNATURE.encode("utf-8"))[:4]
SCORE_PUBLISHED_TYPE = abi.ABIType.from_string("(address,uint256,uint256,byte[32])")

# ARC-4 return values are logged as RETURN_PREFIX ‖ encoded value.
RETURN_PREFIX = bytes.fromhex("151f7c75")


def method_args(method: abi.Method, *values) -> list[bytes]:
    """ARC-4 application args: selector followed by each encoded argument."""
    if len(values) != len(method.args):
        raise ValueError(f"{method.name} takes {len(method.args)} args, got {len(values)}")
    return [method.get_selector()] + [
        arg.type.encode(value) for arg, value in zip(method.args, values)
    ]


def decode_score_published(log: bytes) -> tuple[str, int, int, bytes] | None:
    """Decode a ScorePublished log line, or None for any other log."""
    if log[:4] != SCORE_PUBLISHED_SELECTOR:
        return None
    identity, score, timestamp, commitment = SCORE_PUBLISHED_TYPE.decode(log[4:])
    return identity, int(score), int(timestamp), bytes(commitment)


def decode_return(method: abi.Method, log: bytes):
    if log[:4] != RETURN_PREFIX:
        raise ValueError("log is not an ARC-4 return value")
    return method.returns.type.decode(log[4:])
