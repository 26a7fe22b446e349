"""Tests for environment-driven configuration."""

import pytest

from pair_amm.config import (
    BASE_SEPOLIA_CHAIN_ID,
    DEFAULT_POLL_INTERVAL,
    MOCK_LATENCY,
    resolve_mock_latency,
    resolve_remote_settings,
)

REMOTE_ENV = ("AMM_RPC_URL", "AMM_CONTRACT_ADDRESS", "AMM_LP_TOKEN_ADDRESS", "AMM_CHAIN_ID", "AMM_POLL_INTERVAL")


@pytest.fixture
def clean_env(monkeypatch):
    for key in REMOTE_ENV + ("AMM_MOCK_LATENCY_SCALE",):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestRemoteSettings:
    def test_defaults(self, clean_env):
        clean_env.setenv("AMM_RPC_URL", "http://node.test")
        clean_env.setenv("AMM_CONTRACT_ADDRESS", "0x" + "11" * 20)
        clean_env.setenv("AMM_LP_TOKEN_ADDRESS", "0x" + "22" * 20)

        settings = resolve_remote_settings()

        assert settings.rpc_url == "http://node.test"
        assert settings.chain_id == BASE_SEPOLIA_CHAIN_ID
        assert settings.poll_interval == DEFAULT_POLL_INTERVAL

    def test_overrides(self, clean_env):
        clean_env.setenv("AMM_CONTRACT_ADDRESS", "0x" + "11" * 20)
        clean_env.setenv("AMM_LP_TOKEN_ADDRESS", "0x" + "22" * 20)
        clean_env.setenv("AMM_CHAIN_ID", "31337")
        clean_env.setenv("AMM_POLL_INTERVAL", "0.5")

        settings = resolve_remote_settings(rpc_url="http://localhost:8545")

        assert settings.rpc_url == "http://localhost:8545"
        assert settings.chain_id == 31337
        assert settings.poll_interval == 0.5

    def test_missing_contract_address(self, clean_env):
        clean_env.setenv("AMM_RPC_URL", "http://node.test")
        with pytest.raises(ValueError, match="AMM_CONTRACT_ADDRESS"):
            resolve_remote_settings()


class TestMockLatency:
    def test_default(self, clean_env):
        assert resolve_mock_latency() == MOCK_LATENCY

    def test_scaled(self, clean_env):
        clean_env.setenv("AMM_MOCK_LATENCY_SCALE", "0")
        latency = resolve_mock_latency()
        assert latency.swap == 0
        assert latency.liquidity == 0

    def test_negative_scale_rejected(self, clean_env):
        clean_env.setenv("AMM_MOCK_LATENCY_SCALE", "-1")
        with pytest.raises(ValueError):
            resolve_mock_latency()
