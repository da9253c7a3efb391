"""
Tests for loading the ledger connection profile.
"""

from algosdk import account, mnemonic

from ledger_client.config import LedgerProfile


def full_env(**overrides):
    private_key, _ = account.generate_account()
    env = {
        "ALGOD_SERVER": "https://testnet-api.algonode.cloud",
        "ALGOD_TOKEN": "",
        "INDEXER_SERVER": "https://testnet-idx.algonode.cloud",
        "LEDGER_CHAIN_ID": "testnet-v1.0",
        "VERIFIER_APP_ID": "1002",
        "ORACLE_APP_ID": "1001",
        "DEPLOYER_MNEMONIC": mnemonic.from_private_key(private_key),
    }
    env.update(overrides)
    return env


class TestLedgerProfile:
    """Tests for LedgerProfile.from_environment."""

    def test_full_environment_is_configured(self):
        profile = LedgerProfile.from_environment(full_env())
        assert profile.is_configured
        assert profile.oracle_app_id == 1001
        assert profile.verifier_app_id == 1002
        assert profile.chain_id == "testnet-v1.0"

    def test_empty_environment_is_not_configured(self):
        assert not LedgerProfile.from_environment({}).is_configured

    def test_missing_mnemonic_is_not_configured(self):
        env = full_env()
        del env["DEPLOYER_MNEMONIC"]
        assert not LedgerProfile.from_environment(env).is_configured

    def test_missing_verifier_is_not_configured(self):
        assert not LedgerProfile.from_environment(full_env(VERIFIER_APP_ID="")).is_configured

    def test_missing_node_is_not_configured(self):
        assert not LedgerProfile.from_environment(full_env(ALGOD_SERVER="")).is_configured

    def test_placeholders_count_as_missing(self):
        profile = LedgerProfile.from_environment(full_env(ORACLE_APP_ID="0", DEPLOYER_MNEMONIC="..."))
        assert profile.oracle_app_id is None
        assert profile.signer_mnemonic is None

    def test_non_numeric_app_id_is_ignored(self):
        profile = LedgerProfile.from_environment(full_env(ORACLE_APP_ID="abc"))
        assert profile.oracle_app_id is None
        assert not profile.is_configured

    def test_port_is_appended(self):
        profile = LedgerProfile.from_environment(
            full_env(ALGOD_SERVER="http://localhost/", ALGOD_PORT="4001")
        )
        assert profile.algod_server == "http://localhost:4001"

    def test_mnemonic_is_not_shown_in_repr(self):
        env = full_env()
        profile = LedgerProfile.from_environment(env)
        assert env["DEPLOYER_MNEMONIC"] not in repr(profile)
