"""Test fixtures for pool engine, store and facade tests."""

from tests.fixtures.pool_fixtures import (
    ACCOUNT,
    LP,
    NO_LATENCY,
    USDC,
    WETH,
    FakeRemotePool,
    funded_position,
    genesis_state,
    seeded_state,
)

__all__ = [
    "ACCOUNT",
    "LP",
    "NO_LATENCY",
    "USDC",
    "WETH",
    "FakeRemotePool",
    "funded_position",
    "genesis_state",
    "seeded_state",
]
