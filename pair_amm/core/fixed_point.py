"""Fixed-point helpers shared by the engine and the remote codec.

Amounts are integers scaled by the token's decimals (base units), the same
representation the pool contract uses. Conversion to human readable Decimal
values only happens at the edges.
"""

from decimal import ROUND_DOWN, Decimal, localcontext

# Enough digits for uint256 values without context rounding
_PRECISION = 80


def isqrt(x: int) -> int:
    """Floor square root using the contract's Newton iteration.

    Seeded at x // 2 + 1 and iterated with truncating division until the
    estimate stops decreasing. Inputs 1..3 take the contract's short branch.
    """
    if x < 0:
        raise ValueError(f"isqrt of negative value: {x}")
    if x == 0:
        return 0
    if x <= 3:
        return 1
    z = x
    y = x // 2 + 1
    while y < z:
        z = y
        y = (x // y + y) // 2
    return z


def min_of(a: int, b: int) -> int:
    return a if a < b else b


def to_units(amount: Decimal, decimals: int) -> int:
    """Convert a human amount to base units, truncating extra precision.

    Args:
        amount: Token amount (e.g. Decimal("1.5") WETH)
        decimals: Token decimals (e.g. 18)

    Returns:
        Integer amount in base units
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = Decimal(amount).scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_units(raw: int, decimals: int) -> Decimal:
    """Convert base units back to a human Decimal amount."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(raw).scaleb(-decimals)
