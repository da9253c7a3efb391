"""
Ledger Client — Reputation Oracle Client
==========================================

Publishes verified ProofPackages to the reputation oracle application and
reads back what the ledger stores.

Modes (decided once, at construction):
    CONFIGURED  signer mnemonic, both application ids and an algod node are
                present; every operation talks to the network.
    DEGRADED    anything missing; ``publish`` returns a SYNTHETIC- result
                without network I/O, reads report "not found" / False and
                no events are listed. Never entered because of an error.

Cost estimation:
    The signed publish call is simulated to learn the opcode budget it
    consumes and how many inner transactions it issues. The larger of
    (1 + inner transactions) and (budget / 700) fee units, times a 1.2
    safety margin, becomes the flat fee. A failed simulation falls back to
    FALLBACK_COST_UNITS fee units instead of aborting the publish.

Submission is serialized per client (one signer) with a lock and is never
retried: a resubmitted transaction could land twice. Callers build a fresh
proof to retry.
"""

from __future__ import annotations

import base64
import copy
import logging
import math
import secrets
import threading
import time
from enum import Enum
from typing import Any, Callable, Iterator, Optional
from urllib.error import URLError

from algosdk import account, constants, error, mnemonic, transaction
from algosdk.atomic_transaction_composer import AccountTransactionSigner
from algosdk.v2client.algod import AlgodClient
from algosdk.v2client.indexer import IndexerClient
from algosdk.v2client.models import SimulateRequest, SimulateRequestTransactionGroup

from ledger_client import contract
from ledger_client.config import LedgerProfile
from proof_engine import codec
from proof_engine.errors import (
    ConfirmationTimeoutError,
    ContractRevertError,
    LedgerError,
    NetworkError,
    PrecompositionError,
    ValidationError,
)
from proof_engine.models import CostEstimate, ProofPackage, PublishedRecord, PublishEvent, PublishResult
from proof_engine.validator import LocalValidator
from wallet_identity.addresses import address_public_key, normalize_address

logger = logging.getLogger("ledger_client")

# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────
APP_CALL_BUDGET = 700            # opcode budget granted per app call
COST_SAFETY_MARGIN = 1.2         # multiplier over the simulated cost
FALLBACK_COST_UNITS = 8          # fee units used when simulation fails
DEFAULT_CONFIRMATION_TIMEOUT = 60.0  # seconds
POLL_INTERVAL = 2.0              # seconds between pending-txn polls
EVENT_PAGE_SIZE = 100
SYNTHETIC_PREFIX = "SYNTHETIC-"

_REVERT_MARKERS = ("logic eval error", "rejected by logic", "assert failed", "err opcode")
_TRANSPORT_ERRORS = (error.AlgodHTTPError, error.IndexerHTTPError, URLError, ConnectionError, TimeoutError)


class LedgerMode(str, Enum):
    CONFIGURED = "configured"
    DEGRADED = "degraded"


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────
def _is_revert(message: str) -> bool:
    msg = message.lower()
    return any(marker in msg for marker in _REVERT_MARKERS)


def _ledger_error(exc: Exception) -> LedgerError:
    """Classify a transport-level exception, keeping the node's code."""
    message = str(exc)
    code = getattr(exc, "code", None)
    if _is_revert(message):
        return ContractRevertError(message, code=code or "logic_rejected")
    return NetworkError(message, code=code)


def synthetic_transaction_id() -> str:
    """Random id shaped like a real one, tagged so it cannot be mistaken for it."""
    body = base64.b32encode(secrets.token_bytes(32)).decode("ascii").rstrip("=")
    return SYNTHETIC_PREFIX + body


class LedgerClient:
    """Client for the reputation oracle application.

    Usage:
        client = LedgerClient.from_profile(LedgerProfile.from_environment())
        result = client.publish(package)
        record = client.query(identity)
    """

    def __init__(
        self,
        profile: LedgerProfile,
        algod: Optional[AlgodClient] = None,
        indexer: Optional[IndexerClient] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        validator: Optional[LocalValidator] = None,
    ) -> None:
        self.profile = profile
        self.validator = validator or LocalValidator()
        self._algod = algod
        self._indexer = indexer
        self._sleep = sleep
        self._clock = clock
        self._submit_lock = threading.Lock()
        self._signer: Optional[AccountTransactionSigner] = None
        self.signer_address: Optional[str] = None

        if profile.is_configured and algod is not None:
            self.mode = LedgerMode.CONFIGURED
            private_key = mnemonic.to_private_key(
                profile.signer_mnemonic.get_secret_value()  # type: ignore[union-attr]
            )
            self._signer = AccountTransactionSigner(private_key)
            self.signer_address = account.address_from_private_key(private_key)
            logger.info(
                "Ledger client configured — oracle app %d, verifier app %d, signer %s",
                profile.oracle_app_id, profile.verifier_app_id, self.signer_address,
            )
        else:
            self.mode = LedgerMode.DEGRADED
            logger.warning("⚠️  Ledger client running DEGRADED — publish results will be synthetic")

    @classmethod
    def from_profile(
        cls,
        profile: LedgerProfile,
        validator: Optional[LocalValidator] = None,
    ) -> "LedgerClient":
        """Build algod/indexer clients for *profile* and wrap them."""
        import algokit_utils

        if not profile.algod_server:
            return cls(profile, validator=validator)

        indexer_config = None
        if profile.indexer_server:
            indexer_config = algokit_utils.AlgoClientNetworkConfig(
                server=profile.indexer_server, token=profile.indexer_token
            )
        algorand = algokit_utils.AlgorandClient.from_config(
            algod_config=algokit_utils.AlgoClientNetworkConfig(
                server=profile.algod_server, token=profile.algod_token
            ),
            indexer_config=indexer_config,
        )
        indexer = algorand.client.indexer if indexer_config else None
        return cls(profile, algod=algorand.client.algod, indexer=indexer, validator=validator)

    @property
    def configured(self) -> bool:
        return self.mode is LedgerMode.CONFIGURED

    # ── Write ─────────────────────────────────────────────────────────
    def publish(
        self,
        package: ProofPackage,
        timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
    ) -> PublishResult:
        """Submit *package* to the oracle and wait for inclusion.

        Raises
        ------
        PrecompositionError
            The package never passed local pre-verification.
        ValidationError
            The package claims to be verified but fails the local checks.
        ContractRevertError / NetworkError
            The node or contract rejected the call; ``code`` is preserved.
        ConfirmationTimeoutError
            Not confirmed within *timeout*. The transaction may still land;
            ``query`` is the way to find out.
        """
        if not package.verified:
            raise PrecompositionError(f"Proof {package.proof_id} has not passed pre-verification")
        try:
            self.validator.validate(package)
        except ValidationError as exc:
            logger.error("❌ Proof %s marked verified but fails local checks: %s", package.proof_id, exc.reason)
            raise

        if not self.configured:
            tx_id = synthetic_transaction_id()
            logger.warning("⚠️  No ledger configuration — synthetic transaction %s", tx_id)
            return PublishResult(transaction_id=tx_id, synthetic=True)

        identity, score, _ = codec.decode_public_inputs(codec.from_hex(package.public_inputs))

        with self._submit_lock:
            sp = self._suggested_params()
            estimate = self.estimate_cost(package, sp)
            signed = self._publish_txn(package, identity, sp, estimate.fee)
            tx_id = self._send(signed)

        logger.info("⏳ Publish sent: %s (proof %s, score %d, fee %d)", tx_id, package.proof_id, score, estimate.fee)
        confirmed_round = self.wait_for_confirmation(tx_id, timeout)
        logger.info("✅ Score published — round %d — tx %s", confirmed_round, tx_id)

        return PublishResult(
            transaction_id=tx_id,
            confirmed_round=confirmed_round,
            fee=estimate.fee,
        )

    def estimate_cost(
        self,
        package: ProofPackage,
        sp: Optional[transaction.SuggestedParams] = None,
    ) -> CostEstimate:
        """Simulate the publish call and derive a flat fee with safety margin."""
        if not self.configured:
            raise LedgerError("cost estimation needs a configured ledger client", code="degraded")

        sp = sp or self._suggested_params()
        min_fee = sp.min_fee or constants.MIN_TXN_FEE
        identity, _, _ = codec.decode_public_inputs(codec.from_hex(package.public_inputs))

        try:
            probe = self._publish_txn(package, identity, sp, min_fee)
            group = self._simulate(probe)
            failure = group.get("failure-message")
            if failure:
                raise ContractRevertError(failure, code="simulation_failed")
            budget = int(group.get("app-budget-consumed", 0))
            results = group.get("txn-results") or [{}]
            inner = self._count_inner(results[0].get("txn-result", {}))
        except LedgerError as exc:
            logger.warning("⚠️  Cost estimation failed (%s) — using %d-unit ceiling", exc, FALLBACK_COST_UNITS)
            return CostEstimate(
                raw_units=FALLBACK_COST_UNITS,
                fee=FALLBACK_COST_UNITS * min_fee,
                fallback=True,
            )

        raw_units = max(1 + inner, math.ceil(budget / APP_CALL_BUDGET))
        fee = math.ceil(raw_units * min_fee * COST_SAFETY_MARGIN)
        logger.info("Cost estimate: budget %d, inner txns %d → %d units, fee %d", budget, inner, raw_units, fee)
        return CostEstimate(
            budget_consumed=budget,
            inner_transactions=inner,
            raw_units=raw_units,
            fee=fee,
        )

    def wait_for_confirmation(self, tx_id: str, timeout: float = DEFAULT_CONFIRMATION_TIMEOUT) -> int:
        """Poll until *tx_id* is confirmed; return the confirmed round.

        Giving up only abandons the local wait; the transaction is untouched.
        """
        if self._algod is None:
            raise LedgerError("confirmation needs an algod node", code="degraded")

        started = self._clock()
        deadline = started + timeout

        while True:
            try:
                info = self._algod.pending_transaction_info(tx_id)  # type: ignore[union-attr]
            except _TRANSPORT_ERRORS as exc:
                raise _ledger_error(exc) from exc

            confirmed = info.get("confirmed-round") or 0
            if confirmed > 0:
                return int(confirmed)

            pool_error = info.get("pool-error")
            if pool_error:
                if _is_revert(pool_error):
                    raise ContractRevertError(pool_error, code="pool_error")
                raise LedgerError(pool_error, code="pool_error")

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise ConfirmationTimeoutError(tx_id, self._clock() - started)
            self._sleep(min(POLL_INTERVAL, remaining))

    # ── Read ──────────────────────────────────────────────────────────
    def query(self, identity: str) -> Optional[PublishedRecord]:
        """Stored record for *identity*, or None when there is none."""
        if not self.configured:
            logger.info("No ledger configuration — query for %s reports not found", identity)
            return None

        wallet = normalize_address(identity)
        try:
            score, timestamp, verified, commitment = self._call_readonly(
                contract.GET_SCORE_METHOD, wallet
            )
        except ContractRevertError as exc:
            logger.info("ℹ️  No score found for %s (%s)", wallet, exc.reason)
            return None

        if not verified:
            logger.info("ℹ️  Score for %s found but not verified", wallet)
            return None

        return PublishedRecord(
            score=int(score),
            timestamp=int(timestamp),
            verified=bool(verified),
            commitment=bytes(commitment).hex(),
        )

    def check_minimum_score(self, identity: str, threshold: int) -> bool:
        """Gating predicate; any failure answers False."""
        if not self.configured:
            return False
        try:
            wallet = normalize_address(identity)
            result = bool(self._call_readonly(contract.HAS_MINIMUM_METHOD, wallet, threshold))
        except Exception as exc:
            logger.error("❌ Minimum-score check failed for %s: %s", identity, exc)
            return False

        logger.info("Address %s has minimum score %d: %s", wallet, threshold, result)
        return result

    def list_publish_events(
        self,
        identity: Optional[str] = None,
        from_block: int = 0,
    ) -> Iterator[PublishEvent]:
        """Lazy, finite iterator over ScorePublished events.

        Covers rounds ``from_block`` up to the head observed on the first
        step, in ascending round / log order, optionally only for
        *identity*. The iterator cannot be restarted.
        """
        wallet = normalize_address(identity) if identity else None
        if not self.configured or self._indexer is None:
            logger.info("No indexer configured — no publish events to list")
            return iter(())
        return self._iter_events(wallet, max(0, from_block))

    def test_connection(self) -> bool:
        """Single status round trip."""
        if self._algod is None:
            return False
        try:
            status = self._algod.status()
        except Exception as exc:
            logger.error("❌ Failed to reach algod: %s", exc)
            return False
        logger.info("✅ Connected — last round %s", status.get("last-round"))
        return True

    def network_info(self) -> dict[str, Any]:
        """Genesis id, head round and minimum fee of the connected network."""
        if self._algod is None:
            raise NetworkError("no algod node configured", code="unconfigured")
        try:
            status = self._algod.status()
        except _TRANSPORT_ERRORS as exc:
            raise _ledger_error(exc) from exc
        sp = self._suggested_params()
        info = {
            "chain_id": sp.gen,
            "last_round": int(status.get("last-round", 0)),
            "min_fee": sp.min_fee or constants.MIN_TXN_FEE,
            "mode": self.mode.value,
        }
        if self.profile.chain_id and sp.gen != self.profile.chain_id:
            logger.warning("Connected to %s but profile expects %s", sp.gen, self.profile.chain_id)
        return info

    # ── Internals ─────────────────────────────────────────────────────
    def _suggested_params(self) -> transaction.SuggestedParams:
        try:
            return self._algod.suggested_params()  # type: ignore[union-attr]
        except _TRANSPORT_ERRORS as exc:
            raise _ledger_error(exc) from exc

    def _publish_txn(
        self,
        package: ProofPackage,
        identity: str,
        sp: transaction.SuggestedParams,
        fee: int,
    ) -> transaction.SignedTransaction:
        foreign_apps = []
        if self.profile.verifier_app_id != self.profile.oracle_app_id:
            foreign_apps.append(self.profile.verifier_app_id)

        txn = transaction.ApplicationNoOpTxn(
            sender=self.signer_address,
            sp=self._with_fee(sp, fee),
            index=self.profile.oracle_app_id,
            app_args=contract.method_args(
                contract.PUBLISH_METHOD,
                codec.from_hex(package.commitment),
                codec.from_hex(package.public_inputs),
            ),
            foreign_apps=foreign_apps or None,
            boxes=[(0, address_public_key(identity))],
        )
        return self._sign(txn)

    def _call_readonly(self, method, wallet: str, *extra):
        """Simulate a readonly ABI call and decode its return value."""
        sp = self._suggested_params()
        txn = transaction.ApplicationNoOpTxn(
            sender=self.signer_address,
            sp=self._with_fee(sp, sp.min_fee or constants.MIN_TXN_FEE),
            index=self.profile.oracle_app_id,
            app_args=contract.method_args(method, wallet, *extra),
            boxes=[(0, address_public_key(wallet))],
        )
        group = self._simulate(self._sign(txn))

        failure = group.get("failure-message")
        if failure:
            if _is_revert(failure):
                raise ContractRevertError(failure, code="logic_rejected")
            raise LedgerError(failure, code="simulation_failed")

        results = group.get("txn-results") or [{}]
        logs = results[0].get("txn-result", {}).get("logs") or []
        if not logs:
            raise LedgerError(f"{method.name} returned no value", code="missing_return")
        try:
            return contract.decode_return(method, base64.b64decode(logs[-1]))
        except Exception as exc:
            raise LedgerError(f"{method.name} returned malformed value: {exc}", code="bad_return") from exc

    def _sign(self, txn: transaction.Transaction) -> transaction.SignedTransaction:
        return self._signer.sign_transactions([txn], [0])[0]  # type: ignore[union-attr]

    def _simulate(self, signed: transaction.SignedTransaction) -> dict[str, Any]:
        request = SimulateRequest(
            txn_groups=[SimulateRequestTransactionGroup(txns=[signed])],
            allow_unnamed_resources=True,
        )
        try:
            response = self._algod.simulate_transactions(request)  # type: ignore[union-attr]
        except _TRANSPORT_ERRORS as exc:
            raise _ledger_error(exc) from exc
        groups = response.get("txn-groups") or []
        if not groups:
            raise LedgerError("simulation returned no transaction groups", code="bad_simulation")
        return groups[0]

    def _send(self, signed: transaction.SignedTransaction) -> str:
        try:
            return self._algod.send_transaction(signed)  # type: ignore[union-attr]
        except _TRANSPORT_ERRORS as exc:
            err = _ledger_error(exc)
            logger.error("❌ Publish rejected: %s", err)
            raise err from exc

    def _iter_events(self, wallet: Optional[str], from_block: int) -> Iterator[PublishEvent]:
        try:
            head = int(self._algod.status()["last-round"])  # type: ignore[union-attr]
        except _TRANSPORT_ERRORS as exc:
            raise _ledger_error(exc) from exc

        next_token: Optional[str] = None
        while True:
            try:
                page = self._indexer.search_transactions(  # type: ignore[union-attr]
                    application_id=self.profile.oracle_app_id,
                    min_round=from_block,
                    max_round=head,
                    next_page=next_token,
                    limit=EVENT_PAGE_SIZE,
                )
            except _TRANSPORT_ERRORS as exc:
                raise _ledger_error(exc) from exc

            transactions = page.get("transactions") or []
            for txn in transactions:
                for event in self._events_in(txn, txn["id"], int(txn.get("confirmed-round", 0))):
                    if wallet is None or event.identity == wallet:
                        yield event

            next_token = page.get("next-token")
            if not transactions or not next_token:
                return

    def _events_in(self, txn: dict, tx_id: str, block: int) -> Iterator[PublishEvent]:
        app_call = txn.get("application-transaction") or {}
        if app_call.get("application-id") == self.profile.oracle_app_id:
            for line in txn.get("logs") or []:
                decoded = contract.decode_score_published(base64.b64decode(line))
                if decoded is None:
                    continue
                identity, score, timestamp, commitment = decoded
                yield PublishEvent(
                    identity=identity,
                    score=score,
                    timestamp=timestamp,
                    commitment=commitment.hex(),
                    block_number=block,
                    transaction_id=tx_id,
                )
        for inner in txn.get("inner-txns") or []:
            yield from self._events_in(inner, tx_id, block)

    @staticmethod
    def _with_fee(sp: transaction.SuggestedParams, fee: int) -> transaction.SuggestedParams:
        params = copy.copy(sp)
        params.flat_fee = True
        params.fee = fee
        return params

    @classmethod
    def _count_inner(cls, txn_result: dict) -> int:
        inner = txn_result.get("inner-txns") or []
        return len(inner) + sum(cls._count_inner(i) for i in inner)
