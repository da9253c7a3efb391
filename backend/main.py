"""
Reputation Proof — FastAPI Backend
====================================

REST API over the proof pipeline and the reputation oracle.

Endpoints:
    GET  /health                        — liveness + ledger mode
    GET  /wallet/challenge/{address}    — challenge text to sign
    POST /wallet/connect                — verify a signed challenge
    POST /questionnaire/submit          — score answers, build a proof
    POST /proof/compose                 — build a proof from a known score
    POST /blockchain/publish            — publish a verified proof
    GET  /blockchain/score/{wallet}     — read the stored score
    GET  /blockchain/minimum/{wallet}   — minimum-score gate
    GET  /blockchain/events             — ScorePublished history
    GET  /blockchain/network            — network information

Run:
    uvicorn backend.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.config import Services, build_services
from backend.routers import blockchain, proof, questionnaire, wallet
from proof_engine.errors import (
    ConfirmationTimeoutError,
    ContractRevertError,
    InvalidAddressError,
    PipelineError,
    PrecompositionError,
    ReputationProofError,
    ValidationError,
)

logger = logging.getLogger("backend")


def _status_for(exc: ReputationProofError) -> int:
    if isinstance(exc, (ValidationError, PipelineError, InvalidAddressError)):
        return 422
    if isinstance(exc, PrecompositionError):
        return 409
    if isinstance(exc, ContractRevertError):
        return 400
    if isinstance(exc, ConfirmationTimeoutError):
        return 504
    return 502


async def _proof_error_handler(request: Request, exc: ReputationProofError) -> JSONResponse:
    status = _status_for(exc)
    log = logger.warning if status < 500 else logger.error
    log("%s %s → %d %s", request.method, request.url.path, status, exc)
    return JSONResponse(status_code=status, content={"detail": exc.to_dict()})


def create_app(services: Optional[Services] = None) -> FastAPI:
    app = FastAPI(
        title="Reputation Proof API",
        description="Compose, pre-verify and publish wallet reputation proofs on Algorand",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.services = services or build_services()
    app.add_exception_handler(ReputationProofError, _proof_error_handler)

    app.include_router(wallet.router)
    app.include_router(questionnaire.router)
    app.include_router(proof.router)
    app.include_router(blockchain.router)

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "ledger_mode": app.state.services.ledger.mode.value,
        }

    return app


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
app = create_app()
