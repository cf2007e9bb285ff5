"""Tests for configuration and environment variable helpers."""

import pytest

from blob_indexer.data.blobs.models import DecodeScheme
from blob_indexer.helpers.config import (
    get_blob_tx_type,
    get_chain_name,
    get_database_url,
    get_decode_scheme,
    get_eth_rpc_url,
    get_optional_env,
    get_required_env,
)


ENV_KEYS = (
    "TEST_KEY",
    "ETH_RPC_URL",
    "DATABASE_URL",
    "POSTGRE_HOST",
    "POSTGRE_PORT",
    "POSTGRE_USER",
    "POSTGRE_PASSWORD",
    "POSTGRE_DB",
    "CHAIN_NAME",
    "BLOB_TX_TYPE",
    "BLOB_DECODE_SCHEME",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear the variables these helpers read."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestEnvHelpers:
    """Tests for get_required_env and get_optional_env."""

    def test_required_env_present(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TEST_KEY", "value")

        assert get_required_env("TEST_KEY") == "value"

    def test_required_env_missing(self) -> None:
        with pytest.raises(ValueError, match="TEST_KEY environment variable is not set"):
            get_required_env("TEST_KEY")

    def test_optional_env_default(self) -> None:
        assert get_optional_env("TEST_KEY", "fallback") == "fallback"
        assert get_optional_env("TEST_KEY") is None


class TestGetEthRpcUrl:
    """Tests for get_eth_rpc_url."""

    def test_explicit_url_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ETH_RPC_URL", "https://env.rpc")

        assert get_eth_rpc_url("https://arg.rpc") == "https://arg.rpc"

    def test_env_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ETH_RPC_URL", "https://env.rpc")

        assert get_eth_rpc_url() == "https://env.rpc"

    def test_missing(self) -> None:
        with pytest.raises(ValueError, match="ETH_RPC_URL"):
            get_eth_rpc_url()


class TestGetDatabaseUrl:
    """Tests for get_database_url."""

    def test_explicit_url(self) -> None:
        assert get_database_url("sqlite+aiosqlite:///x.db") == "sqlite+aiosqlite:///x.db"

    def test_database_url_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///env.db")

        assert get_database_url() == "sqlite+aiosqlite:///env.db"

    def test_postgres_parts(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POSTGRE_HOST", "db")
        monkeypatch.setenv("POSTGRE_USER", "indexer")
        monkeypatch.setenv("POSTGRE_PASSWORD", "secret")
        monkeypatch.setenv("POSTGRE_DB", "blobs")

        assert get_database_url() == "postgresql+psycopg://indexer:secret@db:5432/blobs"

    def test_incomplete_postgres_parts(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POSTGRE_HOST", "db")

        with pytest.raises(ValueError, match="POSTGRE_USER"):
            get_database_url()


class TestBlobPolicySettings:
    """Tests for chain, discriminant and decode scheme settings."""

    def test_chain_default(self) -> None:
        assert get_chain_name() == "mainnet"

    def test_chain_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAIN_NAME", "holesky")

        assert get_chain_name() == "holesky"
        assert get_chain_name("sepolia") == "sepolia"

    def test_blob_tx_type_default(self) -> None:
        assert get_blob_tx_type() == 3

    def test_blob_tx_type_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BLOB_TX_TYPE", "0x1")

        assert get_blob_tx_type() == 1
        assert get_blob_tx_type(3) == 3

    def test_blob_tx_type_invalid(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BLOB_TX_TYPE", "blob")

        with pytest.raises(ValueError, match="BLOB_TX_TYPE must be an integer"):
            get_blob_tx_type()

    def test_decode_scheme_is_required(self) -> None:
        """Test there is no default decode scheme."""
        with pytest.raises(ValueError, match="BLOB_DECODE_SCHEME"):
            get_decode_scheme()

    def test_decode_scheme_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert get_decode_scheme("structured") is DecodeScheme.STRUCTURED

        monkeypatch.setenv("BLOB_DECODE_SCHEME", "HEX_TAIL")
        assert get_decode_scheme() is DecodeScheme.HEX_TAIL

    def test_decode_scheme_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown decode scheme"):
            get_decode_scheme("rlp")
