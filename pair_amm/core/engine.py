"""Constant product pool accounting engine.

Pure functions over an immutable PoolState. All amounts are integers in
token base units and every division truncates, reproducing the pool
contract's arithmetic:

- Swap uses fee-on-input: out = R_out * γΔx / (R_in + γΔx), γ = 997/1000
- The whole input (fee included) is added to reserves, so k never decreases
- First deposit mints sqrt(a0 * a1) shares; later deposits mint pro rata
  and must match the pool ratio within 1%
"""

from decimal import Decimal
from typing import Optional, Union

from pair_amm.core.errors import (
    InsufficientBalance,
    InsufficientShares,
    InvalidAmount,
    InvalidAmountOut,
    InvalidRatio,
    InvalidReserves,
    InvalidReserveValues,
    InvalidShares,
)
from pair_amm.core.fixed_point import isqrt, min_of
from pair_amm.core.pool import (
    AddLiquidityRequest,
    Asset,
    OperationKind,
    OperationResult,
    PoolState,
    RemoveLiquidityRequest,
    SwapRequest,
    UserPosition,
)

# 0.3% fee taken on input
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000

# Deposits may deviate from the pool ratio by at most 100 / 10000 = 1%
RATIO_TOLERANCE_NUMERATOR = 100
RATIO_TOLERANCE_DENOMINATOR = 10000

DEFAULT_SLIPPAGE_PERCENT = Decimal("0.5")

Request = Union[SwapRequest, AddLiquidityRequest, RemoveLiquidityRequest]


def _oriented_reserves(state: PoolState, token_in: Asset) -> tuple[int, int]:
    if token_in is Asset.TOKEN0:
        return state.reserve0, state.reserve1
    return state.reserve1, state.reserve0


def _with_reserves(state: PoolState, token_in: Asset, reserve_in: int, reserve_out: int) -> PoolState:
    if token_in is Asset.TOKEN0:
        return PoolState(reserve0=reserve_in, reserve1=reserve_out, total_shares=state.total_shares)
    return PoolState(reserve0=reserve_out, reserve1=reserve_in, total_shares=state.total_shares)


def apply_fee(amount_in: int) -> int:
    """Input amount net of the 0.3% fee (truncating)."""
    return amount_in * FEE_NUMERATOR // FEE_DENOMINATOR


def get_swap_estimate(state: PoolState, token_in: Asset, amount_in: int) -> int:
    """Output amount for swapping amount_in of token_in.

    Args:
        state: Current pool state
        token_in: Asset being sold to the pool
        amount_in: Exact input amount in base units

    Returns:
        Amount of the other asset paid out, 0 for non-positive input or an
        unseeded pool. Always strictly below the output reserve.
    """
    if amount_in <= 0:
        return 0
    reserve_in, reserve_out = _oriented_reserves(state, token_in)
    if reserve_in == 0 or reserve_out == 0:
        return 0
    amount_in_with_fee = apply_fee(amount_in)
    return reserve_out * amount_in_with_fee // (reserve_in + amount_in_with_fee)


def get_price_impact(state: PoolState, token_in: Asset, amount_in: int) -> Decimal:
    """Percentage difference between execution rate and spot rate.

    Negative for every executable trade since both the fee and the
    curvature of x * y = k worsen the rate. Returns 0 when nothing would
    be paid out.
    """
    amount_out = get_swap_estimate(state, token_in, amount_in)
    if amount_out == 0:
        return Decimal("0")
    reserve_in, reserve_out = _oriented_reserves(state, token_in)
    spot_rate = Decimal(reserve_out) / Decimal(reserve_in)
    execution_rate = Decimal(amount_out) / Decimal(amount_in)
    return (execution_rate - spot_rate) / spot_rate * 100


def min_amount_out(amount_out: int, slippage_percent: Decimal = DEFAULT_SLIPPAGE_PERCENT) -> int:
    """Smallest output a trader should accept under a slippage tolerance."""
    if not (Decimal("0") <= slippage_percent <= Decimal("100")):
        raise ValueError(f"slippage_percent must be in [0, 100], got {slippage_percent}")
    numerator, denominator = (100 - slippage_percent).as_integer_ratio()
    return amount_out * numerator // (denominator * 100)


def swap(state: PoolState, position: UserPosition, token_in: Asset, amount_in: int) -> OperationResult:
    """Swap amount_in of token_in for the other asset.

    The full input, fee included, stays in the pool. LP supply is unchanged.

    Raises:
        InvalidAmount: amount_in is not positive
        InsufficientBalance: the position holds less than amount_in
        InvalidAmountOut: the pool would pay out nothing
    """
    if amount_in <= 0:
        raise InvalidAmount()
    if position.balance_of(token_in) < amount_in:
        raise InsufficientBalance(
            f"AMM: Insufficient balance. Required: {amount_in}, "
            f"Available: {position.balance_of(token_in)}"
        )

    amount_out = get_swap_estimate(state, token_in, amount_in)
    if amount_out <= 0:
        raise InvalidAmountOut()

    reserve_in, reserve_out = _oriented_reserves(state, token_in)
    new_state = _with_reserves(state, token_in, reserve_in + amount_in, reserve_out - amount_out)

    if token_in is Asset.TOKEN0:
        new_position = UserPosition(
            balance0=position.balance0 - amount_in,
            balance1=position.balance1 + amount_out,
            lp_shares=position.lp_shares,
        )
    else:
        new_position = UserPosition(
            balance0=position.balance0 + amount_out,
            balance1=position.balance1 - amount_in,
            lp_shares=position.lp_shares,
        )

    return OperationResult(
        kind=OperationKind.SWAP,
        state=new_state,
        position=new_position,
        amount_out=amount_out,
    )


def get_required_counter_amount(state: PoolState, input_asset: Asset, input_amount: int) -> Optional[int]:
    """Amount of the other asset that keeps the current pool ratio.

    Returns None for an unseeded pool, where the first depositor picks
    the ratio.
    """
    reserve_self, reserve_other = _oriented_reserves(state, input_asset)
    if reserve_self == 0 or reserve_other == 0:
        return None
    return input_amount * reserve_other // reserve_self


def is_ratio_within_tolerance(state: PoolState, amount0: int, amount1: int) -> bool:
    """Whether a deposit matches the pool ratio within 1%.

    Cross-multiplied so no division is involved:
        left = reserve0 * amount1, right = reserve1 * amount0
        reject when |left - right| * 10000 > left * 100
    """
    left = state.reserve0 * amount1
    right = state.reserve1 * amount0
    diff = abs(left - right)
    return diff * RATIO_TOLERANCE_DENOMINATOR <= left * RATIO_TOLERANCE_NUMERATOR


def calculate_shares(state: PoolState, amount0: int, amount1: int) -> int:
    """Shares a deposit would mint, without ratio or balance checks."""
    if state.total_shares == 0:
        return isqrt(amount0 * amount1)
    return min_of(
        amount0 * state.total_shares // state.reserve0,
        amount1 * state.total_shares // state.reserve1,
    )


def add_liquidity(state: PoolState, position: UserPosition, amount0: int, amount1: int) -> OperationResult:
    """Deposit both assets and mint LP shares.

    The first deposit into an empty pool mints the geometric mean of the
    two amounts and sets the price. Later deposits mint the smaller of the
    two pro-rata share counts.

    Raises:
        InvalidReserveValues: either amount is not positive
        InsufficientBalance: the position cannot fund the deposit
        InvalidRatio: deposit ratio is more than 1% off the pool ratio
        InvalidShares: the deposit would mint no shares
    """
    if amount0 <= 0 or amount1 <= 0:
        raise InvalidReserveValues()
    if position.balance0 < amount0 or position.balance1 < amount1:
        raise InsufficientBalance()

    if state.total_shares > 0 and not is_ratio_within_tolerance(state, amount0, amount1):
        raise InvalidRatio()

    shares = calculate_shares(state, amount0, amount1)
    if shares <= 0:
        raise InvalidShares()

    new_state = PoolState(
        reserve0=state.reserve0 + amount0,
        reserve1=state.reserve1 + amount1,
        total_shares=state.total_shares + shares,
    )
    new_position = UserPosition(
        balance0=position.balance0 - amount0,
        balance1=position.balance1 - amount1,
        lp_shares=position.lp_shares + shares,
    )
    return OperationResult(
        kind=OperationKind.ADD_LIQUIDITY,
        state=new_state,
        position=new_position,
        shares=shares,
        amount0=amount0,
        amount1=amount1,
    )


def calculate_removal_amounts(state: PoolState, shares: int) -> tuple[int, int]:
    """Proportional reserves redeemed by burning shares."""
    if shares <= 0 or state.total_shares <= 0:
        return 0, 0
    amount0 = shares * state.reserve0 // state.total_shares
    amount1 = shares * state.reserve1 // state.total_shares
    return amount0, amount1


def remove_liquidity(state: PoolState, position: UserPosition, shares: int) -> OperationResult:
    """Burn LP shares and withdraw the proportional reserves.

    Burning the entire supply drains the pool back to (0, 0, 0).

    Raises:
        InvalidShares: shares is not positive
        InsufficientShares: the position holds fewer shares
        InvalidReserves: a withdrawal amount rounds down to nothing
    """
    if shares <= 0:
        raise InvalidShares()
    if position.lp_shares < shares:
        raise InsufficientShares()

    amount0, amount1 = calculate_removal_amounts(state, shares)
    if amount0 <= 0 or amount1 <= 0:
        raise InvalidReserves()

    new_state = PoolState(
        reserve0=state.reserve0 - amount0,
        reserve1=state.reserve1 - amount1,
        total_shares=state.total_shares - shares,
    )
    new_position = UserPosition(
        balance0=position.balance0 + amount0,
        balance1=position.balance1 + amount1,
        lp_shares=position.lp_shares - shares,
    )
    return OperationResult(
        kind=OperationKind.REMOVE_LIQUIDITY,
        state=new_state,
        position=new_position,
        shares=shares,
        amount0=amount0,
        amount1=amount1,
    )


def pool_share_percent(state: PoolState, shares: int) -> Decimal:
    """Percentage of the LP supply represented by shares."""
    if state.total_shares <= 0 or shares <= 0:
        return Decimal("0")
    return Decimal(shares) * 100 / Decimal(state.total_shares)


def exchange_rates(state: PoolState) -> tuple[Decimal, Decimal]:
    """(token1 per token0, token0 per token1) in raw units."""
    if state.reserve0 == 0 or state.reserve1 == 0:
        return Decimal("0"), Decimal("0")
    rate0 = Decimal(state.reserve1) / Decimal(state.reserve0)
    rate1 = Decimal(state.reserve0) / Decimal(state.reserve1)
    return rate0, rate1


def apply_operation(state: PoolState, position: UserPosition, request: Request) -> OperationResult:
    """Run the engine function matching a request object."""
    if isinstance(request, SwapRequest):
        return swap(state, position, request.token_in, request.amount_in)
    if isinstance(request, AddLiquidityRequest):
        return add_liquidity(state, position, request.amount0, request.amount1)
    if isinstance(request, RemoveLiquidityRequest):
        return remove_liquidity(state, position, request.shares)
    raise TypeError(f"Unsupported request: {request!r}")
