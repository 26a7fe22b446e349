"""Retail swap flow with Poisson arrivals, replayed against a simulated pool."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import numpy as np

from pair_amm.config import DEFAULT_PAIR, TokenPair
from pair_amm.core.errors import AMMError
from pair_amm.core.fixed_point import to_units
from pair_amm.core.pool import Asset, PoolState, SwapRequest
from pair_amm.simulation.store import PoolStore


class RetailTrader:
    """Generates swap requests for uninformed retail flow.

    Traders arrive according to a Poisson process and sell either asset
    with random lognormal size. Sizes are drawn in token0 terms and
    converted at the current pool price for token1-in orders.
    """

    def __init__(
        self,
        arrival_rate: float = 1.0,
        mean_size: float = 0.5,
        size_sigma: float = 1.2,
        sell_token0_prob: float = 0.5,
        seed: Optional[int] = None,
        pair: TokenPair = DEFAULT_PAIR,
    ):
        """
        Args:
            arrival_rate: Expected number of swaps per step (lambda)
            mean_size: Mean swap size in token0 units
            size_sigma: Lognormal sigma (log-space)
            sell_token0_prob: Probability a swap sells token0
            seed: Random seed for reproducibility
            pair: Token decimals used to scale sizes
        """
        self.arrival_rate = arrival_rate
        self.mean_size = mean_size
        self.size_sigma = size_sigma
        self.sell_token0_prob = sell_token0_prob
        self.pair = pair
        self._rng = np.random.default_rng(seed)

    def reset(self, seed: Optional[int] = None) -> None:
        """Reset the random state."""
        if seed is not None:
            self._rng = np.random.default_rng(seed)

    def generate_orders(self, state: PoolState) -> list[SwapRequest]:
        """Generate swap requests for one step at the given pool state."""
        n_arrivals = self._rng.poisson(self.arrival_rate)
        if n_arrivals == 0:
            return []

        sigma = max(self.size_sigma, 0.01)
        mean = max(self.mean_size, 0.01)
        mu = float(np.log(mean) - 0.5 * sigma * sigma)

        orders = []
        for _ in range(n_arrivals):
            size0 = Decimal(str(self._rng.lognormal(mu, sigma)))
            if self._rng.random() < self.sell_token0_prob:
                amount = to_units(size0, self.pair.token0.decimals)
                orders.append(SwapRequest(token_in=Asset.TOKEN0, amount_in=amount))
            else:
                # token1 raw = token0 raw * raw price
                amount = int(to_units(size0, self.pair.token0.decimals) * state.price)
                orders.append(SwapRequest(token_in=Asset.TOKEN1, amount_in=amount))
        return orders


@dataclass(frozen=True)
class FlowReport:
    steps: int
    executed: int
    rejected: int
    k_before: int
    k_after: int
    price_before: Decimal
    price_after: Decimal

    @property
    def k_growth(self) -> Decimal:
        """Relative growth of k from retained fees."""
        if self.k_before == 0:
            return Decimal("0")
        return Decimal(self.k_after - self.k_before) / Decimal(self.k_before)


def run_retail_flow(store: PoolStore, trader: RetailTrader, n_steps: int) -> FlowReport:
    """Apply n_steps of retail flow to the store.

    Swaps the simulated user cannot fund are counted as rejected and
    leave the pool untouched.
    """
    start = store.state
    executed = 0
    rejected = 0
    for _ in range(n_steps):
        for order in trader.generate_orders(store.state):
            try:
                store.apply(order)
            except AMMError:
                rejected += 1
            else:
                executed += 1
    end = store.state
    return FlowReport(
        steps=n_steps,
        executed=executed,
        rejected=rejected,
        k_before=start.k,
        k_after=end.k,
        price_before=start.price,
        price_after=end.price,
    )
