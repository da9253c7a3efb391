"""
Tests for the AI scoring service client and verification outcome models.
"""

import json

import httpx
import pytest

from ai_scoring import ScoringClient, ScoringResult, VerificationOutcome, attestations_from
from proof_engine.errors import ScoringServiceError

from conftest import BREAKDOWN


def client_with(handler):
    return ScoringClient("http://scoring.test", transport=httpx.MockTransport(handler))


class TestAnalyze:
    """Tests for ScoringClient.analyze."""

    def test_returns_score_and_breakdown(self, scoring, wallet):
        result = scoring.analyze({"q1": "yes"}, wallet)
        assert result.overall_score == 87
        assert result.breakdown.security == BREAKDOWN["security"]
        assert result.credibility_level == "strong"

    def test_sends_sorted_answers_and_wallet(self, scoring, wallet):
        scoring.analyze({"b": 2, "a": 1}, wallet)
        request = scoring.requests[0]
        assert request.url.path == "/analyze"
        body = json.loads(request.content)
        assert body == {"text": '{"a": 1, "b": 2}', "wallet": wallet}

    def test_plain_text_answers_pass_through(self, scoring, wallet):
        scoring.analyze("free text", wallet)
        assert json.loads(scoring.requests[0].content)["text"] == "free text"

    def test_server_error_is_scoring_error(self, wallet):
        client = client_with(lambda request: httpx.Response(500, json={"detail": "boom"}))
        with pytest.raises(ScoringServiceError, match="500"):
            client.analyze({}, wallet)

    def test_unreachable_service_is_scoring_error(self, wallet):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ScoringServiceError):
            client_with(handler).analyze({}, wallet)

    def test_non_json_is_scoring_error(self, wallet):
        client = client_with(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ScoringServiceError):
            client.analyze({}, wallet)

    def test_out_of_range_score_is_scoring_error(self, wallet):
        payload = {"overallScore": 140, "breakdown": BREAKDOWN}
        client = client_with(lambda request: httpx.Response(200, json=payload))
        with pytest.raises(ScoringServiceError):
            client.analyze({}, wallet)

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("AI_SERVICE_URL", "http://ai.internal:9000/")
        client = ScoringClient.from_environment()
        assert client.base_url == "http://ai.internal:9000"
        client.close()


class TestModels:
    """Tests for scoring and verification payloads."""

    @pytest.mark.parametrize("score,level", [
        (95, "exceptional"), (70, "strong"), (50, "moderate"), (30, "developing"), (5, "minimal"),
    ])
    def test_credibility_levels(self, score, level):
        result = ScoringResult(overall_score=score, breakdown=BREAKDOWN)
        assert result.credibility_level == level

    def test_only_verified_outcomes_become_attestations(self):
        outcomes = {
            "twitter": VerificationOutcome(verified=True, subScore=12.5),
            "google": VerificationOutcome(verified=False, error="token expired"),
        }
        attestations = attestations_from(outcomes)
        assert list(attestations) == ["twitter"]
        assert attestations["twitter"].sub_score == 12.5
