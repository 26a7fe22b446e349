"""Pool state, user positions and operation data classes."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class Asset(Enum):
    """One of the two pooled tokens."""
    TOKEN0 = 0  # Base asset (e.g. WETH)
    TOKEN1 = 1  # Quote asset (e.g. USDC)

    @property
    def other(self) -> "Asset":
        return Asset.TOKEN1 if self is Asset.TOKEN0 else Asset.TOKEN0


class OperationKind(Enum):
    SWAP = "swap"
    ADD_LIQUIDITY = "addLiquidity"
    REMOVE_LIQUIDITY = "removeLiquidity"


@dataclass(frozen=True)
class PoolState:
    """Reserves and LP supply of the pool, in token base units.

    A new instance replaces the old one on every committed operation, so
    reserves and supply always change together.
    """
    reserve0: int
    reserve1: int
    total_shares: int

    def __post_init__(self) -> None:
        for name in ("reserve0", "reserve1", "total_shares"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    @classmethod
    def empty(cls) -> "PoolState":
        return cls(reserve0=0, reserve1=0, total_shares=0)

    @property
    def k(self) -> int:
        """The constant product invariant."""
        return self.reserve0 * self.reserve1

    @property
    def price(self) -> Decimal:
        """Raw reserve1 per reserve0, 0 for an empty pool."""
        if self.reserve0 == 0:
            return Decimal("0")
        return Decimal(self.reserve1) / Decimal(self.reserve0)

    @property
    def is_initialized(self) -> bool:
        return self.total_shares > 0

    def reserve_of(self, asset: Asset) -> int:
        return self.reserve0 if asset is Asset.TOKEN0 else self.reserve1


@dataclass(frozen=True)
class UserPosition:
    """Wallet-equivalent holdings of the simulated user, in base units."""
    balance0: int
    balance1: int
    lp_shares: int

    def __post_init__(self) -> None:
        for name in ("balance0", "balance1", "lp_shares"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    def balance_of(self, asset: Asset) -> int:
        return self.balance0 if asset is Asset.TOKEN0 else self.balance1


@dataclass(frozen=True)
class SwapRequest:
    token_in: Asset
    amount_in: int


@dataclass(frozen=True)
class AddLiquidityRequest:
    amount0: int
    amount1: int


@dataclass(frozen=True)
class RemoveLiquidityRequest:
    shares: int


@dataclass(frozen=True)
class OperationResult:
    """Outcome of an engine operation.

    Carries the next pool state and position; the store swaps them in as a
    unit. Amount fields that do not apply to the operation stay 0.
    """
    kind: OperationKind
    state: PoolState
    position: UserPosition
    amount_out: int = 0  # Swap output
    shares: int = 0      # LP shares minted or burned
    amount0: int = 0     # Token0 deposited or withdrawn
    amount1: int = 0     # Token1 deposited or withdrawn
