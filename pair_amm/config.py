"""Shared configuration for the pair, the simulated genesis and the remote pool."""

from dataclasses import dataclass
from decimal import Decimal
import os
from typing import Optional


@dataclass(frozen=True)
class TokenSpec:
    symbol: str
    address: str
    decimals: int


@dataclass(frozen=True)
class TokenPair:
    token0: TokenSpec
    token1: TokenSpec
    lp: TokenSpec


DEFAULT_PAIR = TokenPair(
    token0=TokenSpec(symbol="WETH", address="0x4200000000000000000000000000000000000006", decimals=18),
    token1=TokenSpec(symbol="USDC", address="0x036CbD53842c5426634e7929541eC2318f3dCF7e", decimals=6),
    lp=TokenSpec(symbol="LP", address="", decimals=18),
)


@dataclass(frozen=True)
class GenesisSettings:
    """Seed of the simulated pool, in human units.

    The simulated user owns every genesis share plus free balances for
    rehearsing swaps and deposits.
    """
    reserve0: Decimal
    reserve1: Decimal
    balance0: Decimal
    balance1: Decimal


GENESIS_SETTINGS = GenesisSettings(
    reserve0=Decimal("1000"),
    reserve1=Decimal("2500000"),
    balance0=Decimal("10.5"),
    balance1=Decimal("25000"),
)


@dataclass(frozen=True)
class MockLatency:
    """Artificial transaction latency of the simulated pool, in seconds."""
    swap: float
    liquidity: float


MOCK_LATENCY = MockLatency(swap=1.0, liquidity=1.5)


@dataclass(frozen=True)
class RemoteSettings:
    rpc_url: str
    contract_address: str
    lp_token_address: str
    chain_id: int
    poll_interval: float


BASE_SEPOLIA_CHAIN_ID = 84532
DEFAULT_POLL_INTERVAL = 5.0


def _require_env(key: str) -> str:
    value = os.environ.get(key)
    if not value:
        raise ValueError(f"Missing required environment variable: {key}")
    return value


def resolve_remote_settings(rpc_url: Optional[str] = None) -> RemoteSettings:
    """Resolve remote pool settings from arguments and the environment.

    Reads AMM_RPC_URL, AMM_CONTRACT_ADDRESS, AMM_LP_TOKEN_ADDRESS,
    AMM_CHAIN_ID and AMM_POLL_INTERVAL.

    Raises:
        ValueError: If a required variable is missing
    """
    return RemoteSettings(
        rpc_url=rpc_url or _require_env("AMM_RPC_URL"),
        contract_address=_require_env("AMM_CONTRACT_ADDRESS"),
        lp_token_address=_require_env("AMM_LP_TOKEN_ADDRESS"),
        chain_id=int(os.environ.get("AMM_CHAIN_ID", str(BASE_SEPOLIA_CHAIN_ID))),
        poll_interval=float(os.environ.get("AMM_POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL))),
    )


def resolve_mock_latency() -> MockLatency:
    """Simulated latency scaled by AMM_MOCK_LATENCY_SCALE (0 disables it)."""
    scale = float(os.environ.get("AMM_MOCK_LATENCY_SCALE", "1"))
    if scale < 0:
        raise ValueError(f"AMM_MOCK_LATENCY_SCALE must be >= 0, got {scale}")
    return MockLatency(swap=MOCK_LATENCY.swap * scale, liquidity=MOCK_LATENCY.liquidity * scale)
