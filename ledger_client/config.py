"""
Ledger Client — Connection Profile
====================================

Loads the ledger connection profile from the process environment (and a
``.env`` file next to the project when present).

Environment:
    ALGOD_SERVER, ALGOD_PORT, ALGOD_TOKEN          algod node
    INDEXER_SERVER, INDEXER_PORT, INDEXER_TOKEN    indexer (events)
    LEDGER_CHAIN_ID                                expected genesis id
    VERIFIER_APP_ID, ORACLE_APP_ID                 application ids
    DEPLOYER_MNEMONIC                              25-word signing mnemonic
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, SecretStr

logger = logging.getLogger("ledger_client.config")

DEFAULT_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"

# Values shipped in example .env files, treated as "not configured".
_PLACEHOLDERS = {"", "...", "0", "0x...", "changeme"}


def _value(env: Mapping[str, str], name: str) -> Optional[str]:
    raw = env.get(name)
    if raw is None:
        return None
    raw = raw.strip()
    return None if raw.lower() in _PLACEHOLDERS else raw


def _server(env: Mapping[str, str], prefix: str) -> Optional[str]:
    server = _value(env, f"{prefix}_SERVER")
    port = _value(env, f"{prefix}_PORT")
    if server and port:
        return f"{server.rstrip('/')}:{port}"
    return server


def _app_id(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = _value(env, name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return None


class LedgerProfile(BaseModel):
    """Immutable connection profile for a LedgerClient."""

    model_config = ConfigDict(frozen=True)

    algod_server: Optional[str] = None
    algod_token: str = ""
    indexer_server: Optional[str] = None
    indexer_token: str = ""
    chain_id: Optional[str] = None
    verifier_app_id: Optional[int] = None
    oracle_app_id: Optional[int] = None
    signer_mnemonic: Optional[SecretStr] = None

    @property
    def is_configured(self) -> bool:
        """A signer, both applications and a node are all present."""
        return bool(
            self.signer_mnemonic
            and self.signer_mnemonic.get_secret_value()
            and self.oracle_app_id
            and self.verifier_app_id
            and self.algod_server
        )

    @classmethod
    def from_environment(
        cls,
        env: Optional[Mapping[str, str]] = None,
        env_file: Optional[Path] = DEFAULT_ENV_FILE,
    ) -> "LedgerProfile":
        if env is None:
            if env_file is not None:
                load_dotenv(env_file)
            env = os.environ

        mnemonic = _value(env, "DEPLOYER_MNEMONIC")
        return cls(
            algod_server=_server(env, "ALGOD"),
            algod_token=_value(env, "ALGOD_TOKEN") or "",
            indexer_server=_server(env, "INDEXER"),
            indexer_token=_value(env, "INDEXER_TOKEN") or "",
            chain_id=_value(env, "LEDGER_CHAIN_ID"),
            verifier_app_id=_app_id(env, "VERIFIER_APP_ID"),
            oracle_app_id=_app_id(env, "ORACLE_APP_ID"),
            signer_mnemonic=SecretStr(mnemonic) if mnemonic else None,
        )
