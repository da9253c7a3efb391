"""
Pytest configuration and shared fixtures for the reputation proof tests.

Provides:
- Freshly generated Algorand accounts
- In-memory fakes of the algod and indexer clients that behave like a
  deployed oracle application
- A deterministic clock for confirmation waits
- Ledger clients in configured and degraded mode
"""

import base64

import httpx
import pytest
from algosdk import account, mnemonic, transaction
from pydantic import SecretStr

from ai_scoring.client import ScoringClient
from ledger_client import contract
from ledger_client.client import LedgerClient
from ledger_client.config import LedgerProfile
from proof_engine import codec
from proof_engine.pipeline import ProofPipeline
from proof_engine.validator import LocalValidator

ORACLE_APP_ID = 1001
VERIFIER_APP_ID = 1002
CONFIRMED_ROUND = 42
HEAD_ROUND = 50
GENESIS_ID = "testnet-v1.0"
GENESIS_HASH = base64.b64encode(bytes(range(32))).decode("ascii")
NOW = 1_700_000_000

BREAKDOWN = {"trustworthiness": 90, "security": 80, "experience": 85, "behavior": 92}


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def encode_score_published(identity, score, timestamp, commitment) -> bytes:
    """Log line the oracle emits for a publish."""
    return contract.SCORE_PUBLISHED_SELECTOR + contract.SCORE_PUBLISHED_TYPE.encode(
        [identity, score, timestamp, commitment]
    )


def encode_return(method, value) -> bytes:
    """ARC-4 return log for *method*."""
    return contract.RETURN_PREFIX + method.returns.type.encode(value)


class FakeClock:
    """Monotonic clock whose sleep just advances time."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeIndexer:
    """Serves stored application transactions with next-token pagination."""

    def __init__(self):
        self.transactions = []
        self.calls = []

    def search_transactions(self, application_id=None, min_round=None, max_round=None,
                            next_page=None, limit=None, **kwargs):
        self.calls.append({
            "application_id": application_id,
            "min_round": min_round,
            "max_round": max_round,
            "next_page": next_page,
            "limit": limit,
        })
        matching = [
            txn for txn in self.transactions
            if (min_round is None or txn["confirmed-round"] >= min_round)
            and (max_round is None or txn["confirmed-round"] <= max_round)
        ]
        start = int(next_page or 0)
        end = start + (limit or len(matching))
        page = {"transactions": matching[start:end], "current-round": HEAD_ROUND}
        if end < len(matching):
            page["next-token"] = str(end)
        return page

    def add_publish(self, tx_id, identity, score, timestamp, commitment, confirmed_round=CONFIRMED_ROUND):
        log = encode_score_published(identity, score, timestamp, commitment)
        self.transactions.append({
            "id": tx_id,
            "confirmed-round": confirmed_round,
            "application-transaction": {"application-id": ORACLE_APP_ID},
            "logs": [_b64(log)],
        })


class FakeAlgod:
    """In-memory algod that plays the oracle application.

    Publishes sent through ``send_transaction`` are stored per wallet and
    mirrored into the attached indexer; readonly calls are answered from
    that store through ``simulate_transactions``.
    """

    def __init__(self, indexer=None):
        self.indexer = indexer
        self.records = {}
        self.sent = []
        self.simulations = 0
        self.budget = 0
        self.inner_transactions = 0
        self.simulate_failure = None
        self.readonly_failure = None
        self.send_error = None
        self.status_error = None
        self.confirm = True
        self.pool_error = ""

    # ── node endpoints ────────────────────────────────────────────────
    def suggested_params(self):
        return transaction.SuggestedParams(
            fee=0,
            first=1,
            last=1001,
            gh=GENESIS_HASH,
            gen=GENESIS_ID,
            flat_fee=True,
            min_fee=1000,
        )

    def status(self):
        if self.status_error is not None:
            raise self.status_error
        return {"last-round": HEAD_ROUND}

    def simulate_transactions(self, request):
        self.simulations += 1
        signed = request.txn_groups[0].txns[0]
        args = signed.transaction.app_args
        selector = args[0]

        if selector == contract.PUBLISH_METHOD.get_selector():
            if self.simulate_failure:
                return {"txn-groups": [{"failure-message": self.simulate_failure}]}
            return {"txn-groups": [{
                "app-budget-consumed": self.budget,
                "txn-results": [{"txn-result": {"inner-txns": [{}] * self.inner_transactions}}],
            }]}

        if self.readonly_failure:
            return {"txn-groups": [{"failure-message": self.readonly_failure}]}

        wallet = contract.GET_SCORE_METHOD.args[0].type.decode(args[1])
        record = self.records.get(wallet)
        if record is None:
            return {"txn-groups": [{"failure-message": "logic eval error: assert failed pc=120"}]}

        if selector == contract.GET_SCORE_METHOD.get_selector():
            value = [record["score"], record["timestamp"], record["verified"], record["commitment"]]
            log = encode_return(contract.GET_SCORE_METHOD, value)
        else:
            threshold = contract.HAS_MINIMUM_METHOD.args[1].type.decode(args[2])
            met = record["verified"] and record["score"] >= threshold
            log = encode_return(contract.HAS_MINIMUM_METHOD, met)
        return {"txn-groups": [{"txn-results": [{"txn-result": {"logs": [_b64(log)]}}]}]}

    def send_transaction(self, signed):
        if self.send_error is not None:
            raise self.send_error
        tx_id = signed.get_txid()
        args = signed.transaction.app_args
        commitment = bytes(contract.PUBLISH_METHOD.args[0].type.decode(args[1]))
        inputs = bytes(contract.PUBLISH_METHOD.args[1].type.decode(args[2]))
        identity, score, timestamp = codec.decode_public_inputs(inputs)

        self.sent.append(signed)
        self.records[identity] = {
            "score": score,
            "timestamp": timestamp,
            "verified": True,
            "commitment": commitment,
        }
        if self.indexer is not None:
            self.indexer.add_publish(tx_id, identity, score, timestamp, commitment)
        return tx_id

    def pending_transaction_info(self, tx_id):
        if self.confirm:
            return {"confirmed-round": CONFIRMED_ROUND, "pool-error": ""}
        return {"confirmed-round": 0, "pool-error": self.pool_error}


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture
def signer():
    """(private_key, address) of a fresh account."""
    return account.generate_account()


@pytest.fixture
def wallet():
    """Address of a fresh account that gets scored."""
    return account.generate_account()[1]


@pytest.fixture
def profile(signer):
    private_key, _ = signer
    return LedgerProfile(
        algod_server="http://localhost:4001",
        indexer_server="http://localhost:8980",
        chain_id=GENESIS_ID,
        verifier_app_id=VERIFIER_APP_ID,
        oracle_app_id=ORACLE_APP_ID,
        signer_mnemonic=SecretStr(mnemonic.from_private_key(private_key)),
    )


@pytest.fixture
def indexer():
    return FakeIndexer()


@pytest.fixture
def algod(indexer):
    return FakeAlgod(indexer)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger(profile, algod, indexer, clock):
    return LedgerClient(profile, algod=algod, indexer=indexer, sleep=clock.sleep, clock=clock)


@pytest.fixture
def degraded_ledger():
    return LedgerClient(LedgerProfile())


@pytest.fixture
def pipeline():
    return ProofPipeline(validator=LocalValidator(clock=lambda: NOW), clock=lambda: NOW)


@pytest.fixture
def verified_package(pipeline, wallet):
    return pipeline.run(identity=wallet, score=87, breakdown=BREAKDOWN)


@pytest.fixture
def scoring_payload():
    """Response body the mocked scoring service returns."""
    return {"overallScore": 87, "breakdown": dict(BREAKDOWN)}


@pytest.fixture
def scoring(scoring_payload):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=scoring_payload)

    client = ScoringClient("http://scoring.test", transport=httpx.MockTransport(handler))
    client.requests = requests
    yield client
    client.close()
