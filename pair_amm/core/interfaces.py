"""Interface to the authoritative on-chain pool."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from pair_amm.core.pool import PoolState


@dataclass(frozen=True)
class RemotePoolState:
    """Decoded getPoolState() return values, raw contract integers."""
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    ratio: int
    total_lp_supply: int
    token0_exchange_rate: int
    token1_exchange_rate: int

    def to_pool_state(self) -> PoolState:
        return PoolState(
            reserve0=self.reserve0,
            reserve1=self.reserve1,
            total_shares=self.total_lp_supply,
        )


@dataclass(frozen=True)
class TransactionReceipt:
    tx_hash: str
    success: bool
    block_number: int


class RemotePool(ABC):
    """The pool contract plus the wallet that signs for the user.

    Implementations perform blocking I/O; the facade calls them from a
    worker thread. Amounts are raw base-unit integers throughout.
    """

    @abstractmethod
    def get_pool_state(self) -> RemotePoolState:
        """Read reserves, supply and token addresses from the contract."""
        pass

    @abstractmethod
    def get_balances(self, account: str) -> tuple[int, int, int]:
        """Return (token0, token1, lp) balances of account."""
        pass

    @abstractmethod
    def get_swap_estimate(self, token_in_address: str, amount_in: int) -> int:
        """Contract-side getSwapEstimate, for quotes newer than the last snapshot."""
        pass

    @abstractmethod
    def allowance(self, token_address: str, owner: str) -> int:
        """Amount of token the pool contract may pull from owner."""
        pass

    @abstractmethod
    def submit_swap(self, account: str, token_in_address: str, amount_in: int) -> str:
        """Broadcast a swap and return its transaction hash."""
        pass

    @abstractmethod
    def submit_add_liquidity(self, account: str, amount0: int, amount1: int) -> str:
        pass

    @abstractmethod
    def submit_remove_liquidity(self, account: str, shares: int) -> str:
        pass

    @abstractmethod
    def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Block until the transaction is mined. No timeout is applied."""
        pass

    def is_connected(self) -> bool:
        """Whether the wallet/network is ready to submit transactions."""
        return True
