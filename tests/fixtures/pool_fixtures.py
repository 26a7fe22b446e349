"""Pool builders and a scripted remote pool for tests.

Amounts are raw base units unless noted:
- WETH: 18 decimals
- USDC: 6 decimals
- LP: 18 decimals

Standard pools:
- Genesis: 1000 WETH / 2,500,000 USDC (price 2500)
- Remote: 500 WETH / 1,000,000 USDC (price 2000), deliberately different
  from genesis so mode isolation is observable
"""

from typing import Callable, Optional

from pair_amm.config import DEFAULT_PAIR, MockLatency, TokenPair
from pair_amm.core import engine
from pair_amm.core.fixed_point import isqrt
from pair_amm.core.interfaces import RemotePool, RemotePoolState, TransactionReceipt
from pair_amm.core.pool import Asset, OperationResult, PoolState, UserPosition

WETH = 10**18
USDC = 10**6
LP = 10**18

ACCOUNT = "0x00000000000000000000000000000000000000Aa"
NO_LATENCY = MockLatency(swap=0.0, liquidity=0.0)


def seeded_state(reserve0: int, reserve1: int) -> PoolState:
    """Pool seeded by a single first deposit of (reserve0, reserve1)."""
    return PoolState(reserve0=reserve0, reserve1=reserve1, total_shares=isqrt(reserve0 * reserve1))


def genesis_state() -> PoolState:
    return seeded_state(1000 * WETH, 2_500_000 * USDC)


def funded_position(balance0: int = 10**6 * WETH, balance1: int = 10**10 * USDC, lp_shares: int = 0) -> UserPosition:
    """A position large enough that balance checks never interfere."""
    return UserPosition(balance0=balance0, balance1=balance1, lp_shares=lp_shares)


class FakeRemotePool(RemotePool):
    """In-process stand-in for the pool contract.

    Submitted transactions are queued and mined when the facade waits for
    their receipt, using the same engine functions the contract mirrors.
    """

    def __init__(
        self,
        state: Optional[PoolState] = None,
        position: Optional[UserPosition] = None,
        pair: TokenPair = DEFAULT_PAIR,
    ):
        self.state = state if state is not None else seeded_state(500 * WETH, 1_000_000 * USDC)
        self.default_position = position or UserPosition(balance0=10 * WETH, balance1=50_000 * USDC, lp_shares=0)
        self.pair = pair
        self.positions: dict[str, UserPosition] = {}
        self.allowance_amount = 2**256 - 1
        self.connected = True
        self.revert = False
        self.submit_error: Optional[Exception] = None
        self.on_wait: Optional[Callable[[], object]] = None
        self.submitted: list[tuple] = []
        self.pool_state_reads = 0
        self._queued: dict[str, Callable[[], OperationResult]] = {}
        self._accounts: dict[str, str] = {}
        self._block = 100

    def position_of(self, account: str) -> UserPosition:
        return self.positions.get(account, self.default_position)

    def _asset(self, token_address: str) -> Asset:
        if token_address.lower() == self.pair.token0.address.lower():
            return Asset.TOKEN0
        if token_address.lower() == self.pair.token1.address.lower():
            return Asset.TOKEN1
        raise ValueError(f"Unknown token {token_address}")

    def _queue(self, account: str, entry: tuple, op: Callable[[], OperationResult]) -> str:
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append(entry)
        tx_hash = "0x" + f"{len(self.submitted):064x}"
        self._queued[tx_hash] = op
        self._accounts[tx_hash] = account
        return tx_hash

    def get_pool_state(self) -> RemotePoolState:
        self.pool_state_reads += 1
        rate0, rate1 = 0, 0
        if self.state.reserve0 and self.state.reserve1:
            rate0 = self.state.reserve1 * 10**18 // self.state.reserve0
            rate1 = self.state.reserve0 * 10**18 // self.state.reserve1
        return RemotePoolState(
            token0=self.pair.token0.address,
            token1=self.pair.token1.address,
            reserve0=self.state.reserve0,
            reserve1=self.state.reserve1,
            ratio=rate0,
            total_lp_supply=self.state.total_shares,
            token0_exchange_rate=rate0,
            token1_exchange_rate=rate1,
        )

    def get_balances(self, account: str) -> tuple[int, int, int]:
        position = self.position_of(account)
        return position.balance0, position.balance1, position.lp_shares

    def get_swap_estimate(self, token_in_address: str, amount_in: int) -> int:
        return engine.get_swap_estimate(self.state, self._asset(token_in_address), amount_in)

    def allowance(self, token_address: str, owner: str) -> int:
        return self.allowance_amount

    def submit_swap(self, account: str, token_in_address: str, amount_in: int) -> str:
        asset = self._asset(token_in_address)
        return self._queue(
            account,
            ("swap", token_in_address, amount_in),
            lambda: engine.swap(self.state, self.position_of(account), asset, amount_in),
        )

    def submit_add_liquidity(self, account: str, amount0: int, amount1: int) -> str:
        return self._queue(
            account,
            ("addLiquidity", amount0, amount1),
            lambda: engine.add_liquidity(self.state, self.position_of(account), amount0, amount1),
        )

    def submit_remove_liquidity(self, account: str, shares: int) -> str:
        return self._queue(
            account,
            ("removeLiquidity", shares),
            lambda: engine.remove_liquidity(self.state, self.position_of(account), shares),
        )

    def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        if self.on_wait is not None:
            self.on_wait()
        op = self._queued.pop(tx_hash)
        account = self._accounts.pop(tx_hash)
        self._block += 1
        if self.revert:
            return TransactionReceipt(tx_hash=tx_hash, success=False, block_number=self._block)
        result = op()
        self.state = result.state
        self.positions[account] = result.position
        return TransactionReceipt(tx_hash=tx_hash, success=True, block_number=self._block)

    def is_connected(self) -> bool:
        return self.connected
