"""
AI Scoring — Scoring Service Client
=====================================

Thin synchronous client for the external AI scoring microservice:
send the questionnaire answers and wallet, get back an overall score and
its four-category breakdown. No retries; failures surface to the caller.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Optional

import httpx
from pydantic import ValidationError as ModelValidationError

from ai_scoring.models import ScoringResult
from proof_engine.errors import ScoringServiceError

logger = logging.getLogger("ai_scoring.client")

DEFAULT_SERVICE_URL = "http://localhost:8001"
DEFAULT_TIMEOUT = 30.0


class ScoringClient:
    """Calls ``POST {base_url}/analyze`` on the scoring service.

    Usage:
        client = ScoringClient.from_environment()
        result = client.analyze({"q1": "yes"}, wallet="ALGO…")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SERVICE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_environment(cls) -> "ScoringClient":
        return cls(os.environ.get("AI_SERVICE_URL") or DEFAULT_SERVICE_URL)

    def analyze(self, answers: dict[str, Any] | str, wallet: str) -> ScoringResult:
        """Score *answers* for *wallet*.

        Raises
        ------
        ScoringServiceError
            Transport failure, non-2xx status or a malformed response.
        """
        text = answers if isinstance(answers, str) else json.dumps(answers, sort_keys=True)
        logger.info("Scoring questionnaire for %s…", wallet[:12])

        try:
            response = self._http.post("/analyze", json={"text": text, "wallet": wallet})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise ScoringServiceError(
                f"scoring service answered {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ScoringServiceError(f"scoring service unreachable: {exc}") from exc

        try:
            result = ScoringResult.model_validate(payload)
        except ModelValidationError as exc:
            raise ScoringServiceError(f"malformed scoring response: {exc}") from exc

        logger.info("Score for %s…: %d/100 (%s)", wallet[:12], result.overall_score, result.credibility_level)
        return result

    def close(self) -> None:
        self._http.close()
