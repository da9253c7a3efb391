"""
Backend — Shared Configuration
================================

Builds the long-lived collaborators once per application and hands them to
request handlers through FastAPI dependencies.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Request

from ai_scoring.client import ScoringClient
from ledger_client.client import LedgerClient
from ledger_client.config import LedgerProfile
from proof_engine.pipeline import ProofPipeline
from proof_engine.validator import LocalValidator

logger = logging.getLogger("backend.config")

ENV_FILE = Path(__file__).resolve().parent.parent / ".env"


@dataclass(frozen=True)
class Services:
    ledger: LedgerClient
    pipeline: ProofPipeline
    scoring: ScoringClient


def build_services() -> Services:
    """Read .env / environment and construct every collaborator."""
    load_dotenv(ENV_FILE)

    skew = int(os.environ.get("PROOF_CLOCK_SKEW_SECONDS") or 0)
    validator = LocalValidator(clock_skew_seconds=skew)
    ledger = LedgerClient.from_profile(LedgerProfile.from_environment(env_file=None), validator=validator)
    pipeline = ProofPipeline(validator=validator)
    scoring = ScoringClient.from_environment()

    logger.info("Services ready — ledger mode: %s, clock skew: %ds", ledger.mode.value, skew)
    return Services(ledger=ledger, pipeline=pipeline, scoring=scoring)


# ─────────────────────────────────────────────────────────────────────────────
# Dependencies
# ─────────────────────────────────────────────────────────────────────────────
def get_services(request: Request) -> Services:
    return request.app.state.services


def get_ledger(request: Request) -> LedgerClient:
    return get_services(request).ledger


def get_pipeline(request: Request) -> ProofPipeline:
    return get_services(request).pipeline


def get_scoring(request: Request) -> ScoringClient:
    return get_services(request).scoring
