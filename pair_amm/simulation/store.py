"""In-memory pool used by simulated mode."""

from dataclasses import dataclass
import threading
from typing import Optional

from pair_amm.config import DEFAULT_PAIR, GENESIS_SETTINGS, GenesisSettings, TokenPair
from pair_amm.core import engine
from pair_amm.core.errors import ReentrantCall
from pair_amm.core.fixed_point import isqrt, to_units
from pair_amm.core.pool import OperationResult, PoolState, UserPosition


@dataclass(frozen=True)
class Genesis:
    """Pool state and user position the store starts from and resets to."""
    state: PoolState
    position: UserPosition


def build_genesis(
    settings: GenesisSettings = GENESIS_SETTINGS,
    pair: TokenPair = DEFAULT_PAIR,
) -> Genesis:
    """Seed the pool from human amounts.

    LP supply is isqrt(reserve0 * reserve1) in base units, exactly what the
    contract mints for the first deposit, and the user owns all of it.
    """
    reserve0 = to_units(settings.reserve0, pair.token0.decimals)
    reserve1 = to_units(settings.reserve1, pair.token1.decimals)
    total_shares = isqrt(reserve0 * reserve1)
    return Genesis(
        state=PoolState(reserve0=reserve0, reserve1=reserve1, total_shares=total_shares),
        position=UserPosition(
            balance0=to_units(settings.balance0, pair.token0.decimals),
            balance1=to_units(settings.balance1, pair.token1.decimals),
            lp_shares=total_shares,
        ),
    )


class PoolStore:
    """Owns the simulated pool state and the single implicit user.

    Only apply() and reset() write state. Snapshots are immutable values,
    so callers cannot reach into the store by reference.
    """

    def __init__(self, genesis: Optional[Genesis] = None):
        self._genesis = genesis if genesis is not None else build_genesis()
        self._lock = threading.Lock()
        self._state = self._genesis.state
        self._position = self._genesis.position

    @property
    def genesis(self) -> Genesis:
        return self._genesis

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def position(self) -> UserPosition:
        return self._position

    def get_snapshot(self) -> tuple[PoolState, UserPosition]:
        return self._state, self._position

    def apply(self, request: engine.Request) -> OperationResult:
        """Run an operation and commit its result.

        On failure the engine's error propagates and nothing changes.

        Raises:
            ReentrantCall: Another apply() is still running
        """
        if not self._lock.acquire(blocking=False):
            raise ReentrantCall()
        try:
            result = engine.apply_operation(self._state, self._position, request)
            self._state, self._position = result.state, result.position
            return result
        finally:
            self._lock.release()

    def reset(self) -> None:
        """Restore the genesis state and position."""
        with self._lock:
            self._state = self._genesis.state
            self._position = self._genesis.position
