"""
End-to-end test: questionnaire score → proof → publish → query.
"""

from ai_scoring import attestations_from, VerificationOutcome
from proof_engine import codec

from conftest import NOW


class TestReputationFlow:

    def test_score_survives_the_round_trip(self, scoring, pipeline, ledger, wallet):
        result = scoring.analyze({"experience": "5 years"}, wallet)
        package = pipeline.run(
            identity=wallet,
            score=result.overall_score,
            breakdown=result.breakdown,
            verifications=attestations_from({"google": VerificationOutcome(verified=True, subScore=5)}),
        )

        published = ledger.publish(package)
        record = ledger.query(wallet)

        assert published.synthetic is False
        assert record.score == 87
        assert record.verified is True
        assert record.timestamp == NOW
        assert record.commitment == package.commitment
        assert ledger.check_minimum_score(wallet, 87) is True

        events = list(ledger.list_publish_events(wallet))
        assert len(events) == 1
        assert events[0].transaction_id == published.transaction_id

    def test_republish_overwrites_score(self, pipeline, ledger, wallet):
        ledger.publish(pipeline.run(identity=wallet, score=40, breakdown=_breakdown(40), timestamp=NOW - 10))
        ledger.publish(pipeline.run(identity=wallet, score=75, breakdown=_breakdown(75)))

        assert ledger.query(wallet).score == 75
        assert [e.score for e in ledger.list_publish_events(wallet)] == [40, 75]

    def test_public_inputs_match_published_record(self, pipeline, ledger, wallet):
        package = pipeline.run(identity=wallet, score=63, breakdown=_breakdown(63))
        ledger.publish(package)
        identity, score, timestamp = codec.decode_public_inputs(codec.from_hex(package.public_inputs))
        record = ledger.query(identity)
        assert (record.score, record.timestamp) == (score, timestamp)


def _breakdown(value):
    return {"trustworthiness": value, "security": value, "experience": value, "behavior": value}
