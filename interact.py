"""
Reputation Proof — Interaction Script
=======================================

CLI for building reputation proofs and talking to the deployed oracle
application.

Usage:
    python interact.py compose <wallet> <score> --breakdown 90 80 85 92 --output proof.json
    python interact.py publish proof.json
    python interact.py query <wallet>
    python interact.py events [--wallet <wallet>] [--from-block <round>]
    python interact.py ping

Environment:
    Reads .env for ALGOD_*, INDEXER_*, ORACLE_APP_ID, VERIFIER_APP_ID and
    DEPLOYER_MNEMONIC. Missing values put the ledger client in degraded mode.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from ledger_client import LedgerClient, LedgerProfile
from ledger_client.client import DEFAULT_CONFIRMATION_TIMEOUT
from proof_engine.errors import ReputationProofError
from proof_engine.models import BREAKDOWN_CATEGORIES, ProofPackage
from proof_engine.pipeline import ProofPipeline

# ─────────────────────────────────────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("reputation_proof")

ENV_FILE = Path(__file__).parent / ".env"


# ─────────────────────────────────────────────────────────────────────────────
# Bootstrap
# ─────────────────────────────────────────────────────────────────────────────
def _ledger() -> LedgerClient:
    profile = LedgerProfile.from_environment(env_file=ENV_FILE)
    client = LedgerClient.from_profile(profile)
    logger.info("Ledger mode      : %s", client.mode.value)
    return client


# ─────────────────────────────────────────────────────────────────────────────
# Core actions
# ─────────────────────────────────────────────────────────────────────────────
def compose_proof(wallet: str, score: int, breakdown: list[int], output: str | None = None) -> ProofPackage:
    """Compose and pre-verify a proof, optionally writing it to *output*."""
    package = ProofPipeline().run(
        identity=wallet,
        score=score,
        breakdown=dict(zip(BREAKDOWN_CATEGORIES, breakdown)),
    )

    logger.info("─" * 60)
    logger.info("✅ PROOF COMPOSED")
    logger.info("─" * 60)
    logger.info("  Proof ID        : %s", package.proof_id)
    logger.info("  Commitment      : %s", package.commitment)
    logger.info("  Public inputs   : %s…", package.public_inputs[:32])

    if output:
        Path(output).write_text(package.model_dump_json(indent=2), encoding="utf-8")
        logger.info("  Written to      : %s", output)
    else:
        print(package.model_dump_json(indent=2))
    return package


def publish_proof(package_path: str, timeout: float = DEFAULT_CONFIRMATION_TIMEOUT) -> None:
    """Re-check a stored proof locally, then publish it."""
    raw = json.loads(Path(package_path).read_text(encoding="utf-8"))
    package = ProofPackage.model_validate({**raw, "verified": False})
    package = ProofPipeline().pre_verify(package)

    result = _ledger().publish(package, timeout=timeout)

    logger.info("─" * 60)
    if result.synthetic:
        logger.warning("⚠️  SYNTHETIC PUBLISH (ledger not configured)")
    else:
        logger.info("✅ SCORE PUBLISHED")
    logger.info("─" * 60)
    logger.info("  Transaction ID  : %s", result.transaction_id)
    logger.info("  Confirmed round : %s", result.confirmed_round or "N/A")
    logger.info("  Fee (µAlgo)     : %d", result.fee)
    logger.info("─" * 60)


def query_score(wallet: str) -> None:
    record = _ledger().query(wallet)

    logger.info("─" * 60)
    if record is None:
        logger.info("ℹ️  No verified score found for %s", wallet)
    else:
        logger.info("📋 SCORE FOR %s", wallet)
        logger.info("  Score           : %d", record.score)
        logger.info("  Timestamp       : %d", record.timestamp)
        logger.info("  Commitment      : %s", record.commitment)
    logger.info("─" * 60)


def list_events(wallet: str | None, from_block: int) -> None:
    count = 0
    for event in _ledger().list_publish_events(wallet, from_block):
        count += 1
        logger.info(
            "  #%d  round %d  %s  score %d  tx %s",
            count, event.block_number, event.identity, event.score, event.transaction_id,
        )
    logger.info("%d ScorePublished event(s)", count)


def ping() -> bool:
    client = _ledger()
    if not client.test_connection():
        return False
    logger.info("Network          : %s", client.network_info())
    return True


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="interact",
        description="Reputation Proof — Algorand Interaction CLI",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ── compose ──────────────────────────────────────────────────────
    compose_parser = subparsers.add_parser("compose", help="Compose and pre-verify a proof")
    compose_parser.add_argument("wallet", type=str, help="Algorand address being scored")
    compose_parser.add_argument("score", type=int, help="Overall score (0–100)")
    compose_parser.add_argument(
        "--breakdown",
        type=int,
        nargs=len(BREAKDOWN_CATEGORIES),
        required=True,
        metavar=tuple(c.upper() for c in BREAKDOWN_CATEGORIES),
        help="Category scores in order: " + ", ".join(BREAKDOWN_CATEGORIES),
    )
    compose_parser.add_argument("--output", type=str, default=None, help="Write the package JSON here")

    # ── publish ──────────────────────────────────────────────────────
    publish_parser = subparsers.add_parser("publish", help="Publish a composed proof on-chain")
    publish_parser.add_argument("package", type=str, help="Path to a package JSON from `compose`")
    publish_parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_CONFIRMATION_TIMEOUT,
        help="Seconds to wait for confirmation",
    )

    # ── query ────────────────────────────────────────────────────────
    query_parser = subparsers.add_parser("query", help="Read the stored score for a wallet")
    query_parser.add_argument("wallet", type=str)

    # ── events ───────────────────────────────────────────────────────
    events_parser = subparsers.add_parser("events", help="List ScorePublished events")
    events_parser.add_argument("--wallet", type=str, default=None)
    events_parser.add_argument("--from-block", type=int, default=0)

    # ── ping ─────────────────────────────────────────────────────────
    subparsers.add_parser("ping", help="Check the algod connection")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        if args.command == "compose":
            compose_proof(args.wallet, args.score, args.breakdown, args.output)
        elif args.command == "publish":
            publish_proof(args.package, args.timeout)
        elif args.command == "query":
            query_score(args.wallet)
        elif args.command == "events":
            list_events(args.wallet, args.from_block)
        elif args.command == "ping":
            return 0 if ping() else 1

    except KeyboardInterrupt:
        logger.info("\nInterrupted by user.")
        return 130
    except ReputationProofError as exc:
        logger.error("❌ %s", exc)
        return 1
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
