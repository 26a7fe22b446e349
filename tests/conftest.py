"""Pytest configuration and shared fixtures for pool tests.

This module provides:
- Pytest markers for test categorization
- Engine states and positions in base units
- Simulated and remote facades with latency disabled
"""

import asyncio

import pytest

from pair_amm.core.pool import PoolState, UserPosition
from pair_amm.facade import AMMFacade, Mode
from pair_amm.simulation.store import PoolStore
from tests.fixtures.pool_fixtures import (
    ACCOUNT,
    NO_LATENCY,
    FakeRemotePool,
    funded_position,
    genesis_state,
)


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "economic: Pool invariant tests (k growth, no drain, monotonic output)"
    )
    config.addinivalue_line(
        "markers", "edge_case: Edge case tests with empty pools and extreme inputs"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests spanning facade, store and remote pool"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location and name."""
    for item in items:
        if "edge_case" in item.nodeid or "drain" in item.name:
            item.add_marker(pytest.mark.edge_case)
        if "test_facade" in item.nodeid:
            item.add_marker(pytest.mark.integration)


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def pool() -> PoolState:
    """Genesis pool in base units.

    Returns:
        1000 WETH / 2,500,000 USDC with isqrt(k) LP shares
    """
    return genesis_state()


@pytest.fixture
def trader() -> UserPosition:
    """A position that can fund any trade used in the tests.

    Returns:
        UserPosition with large balances and no LP shares
    """
    return funded_position()


# ============================================================================
# Store and Facade Fixtures
# ============================================================================


@pytest.fixture
def store() -> PoolStore:
    """Fresh simulated store at the default genesis."""
    return PoolStore()


@pytest.fixture
def facade(store: PoolStore) -> AMMFacade:
    """Simulated facade without artificial latency."""
    return AMMFacade(store=store, latency=NO_LATENCY)


@pytest.fixture
def fake_remote() -> FakeRemotePool:
    """Scripted remote pool at 500 WETH / 1,000,000 USDC."""
    return FakeRemotePool()


@pytest.fixture
def remote_facade(fake_remote: FakeRemotePool) -> AMMFacade:
    """Remote-mode facade with a connected account and a fresh snapshot.

    Returns:
        AMMFacade in REMOTE mode, already refreshed from fake_remote
    """
    facade = AMMFacade(remote=fake_remote, account=ACCOUNT, mode=Mode.REMOTE, latency=NO_LATENCY)
    asyncio.run(facade.refresh())
    return facade
