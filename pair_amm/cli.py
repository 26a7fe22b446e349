"""Command-line interface for inspecting and rehearsing the pool."""

import argparse
import asyncio
from decimal import Decimal, InvalidOperation
import sys
from typing import Optional

from pair_amm.config import DEFAULT_PAIR, GENESIS_SETTINGS, resolve_remote_settings
from pair_amm.core.errors import AMMError
from pair_amm.core.fixed_point import to_units
from pair_amm.core.pool import Asset, UserPosition
from pair_amm.facade import AMMFacade, Mode
from pair_amm.remote.rpc import JsonRpcPool
from pair_amm.simulation.retail import RetailTrader, run_retail_flow
from pair_amm.simulation.store import Genesis, PoolStore, build_genesis


def _parse_asset(symbol: str) -> Asset:
    symbol = symbol.upper()
    if symbol in (DEFAULT_PAIR.token0.symbol, "TOKEN0", "A"):
        return Asset.TOKEN0
    if symbol in (DEFAULT_PAIR.token1.symbol, "TOKEN1", "B"):
        return Asset.TOKEN1
    raise argparse.ArgumentTypeError(f"Unknown token: {symbol}")


def _parse_decimal(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Invalid amount: {value}")
    if not amount.is_finite():
        raise argparse.ArgumentTypeError(f"Invalid amount: {value}")
    return amount


def _build_facade(args: argparse.Namespace) -> AMMFacade:
    """Simulated facade at genesis, or a remote facade refreshed from the node."""
    if not getattr(args, "remote", False):
        return AMMFacade()
    settings = resolve_remote_settings(rpc_url=args.rpc_url)
    facade = AMMFacade(remote=JsonRpcPool.from_settings(settings), mode=Mode.REMOTE)
    asyncio.run(facade.refresh())
    return facade


def pool_command(args: argparse.Namespace) -> int:
    """Print pool reserves, supply, k and price."""
    try:
        facade = _build_facade(args)
    except (AMMError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    view = facade.pool_state
    token0, token1 = DEFAULT_PAIR.token0.symbol, DEFAULT_PAIR.token1.symbol
    print(f"Mode: {facade.mode.value}")
    print(f"Reserve {token0}: {view.reserve0}")
    print(f"Reserve {token1}: {view.reserve1}")
    print(f"LP supply: {view.total_shares}")
    print(f"k: {facade.k}")
    print(f"Price: {facade.price:.6f} {token1} per {token0}")
    return 0


def quote_command(args: argparse.Namespace) -> int:
    """Quote a swap: output, price impact and minimum received."""
    try:
        facade = _build_facade(args)
    except (AMMError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    token_in = args.token
    amount_in = args.amount
    if amount_in <= 0:
        print("Error: amount must be positive")
        return 1

    symbol_in = DEFAULT_PAIR.token0.symbol if token_in is Asset.TOKEN0 else DEFAULT_PAIR.token1.symbol
    symbol_out = DEFAULT_PAIR.token1.symbol if token_in is Asset.TOKEN0 else DEFAULT_PAIR.token0.symbol
    try:
        amount_out = asyncio.run(facade.fetch_swap_estimate(token_in, amount_in))
    except AMMError as e:
        print(f"Error: {e}")
        return 1
    impact = facade.get_price_impact(token_in, amount_in)
    minimum = facade.get_minimum_received(token_in, amount_in, args.slippage)

    print(f"Swap {amount_in} {symbol_in} -> {amount_out} {symbol_out}")
    print(f"Price impact: {impact:.2f}%")
    print(f"Minimum received ({args.slippage}% slippage): {minimum} {symbol_out}")
    return 0


def simulate_command(args: argparse.Namespace) -> int:
    """Replay random retail swaps against a fresh genesis pool."""
    genesis = build_genesis()
    genesis_price = GENESIS_SETTINGS.reserve1 / GENESIS_SETTINGS.reserve0
    # Fund the trader generously so flow is limited by the pool, not the wallet
    funded = Genesis(
        state=genesis.state,
        position=UserPosition(
            balance0=to_units(args.trader_balance, DEFAULT_PAIR.token0.decimals),
            balance1=to_units(args.trader_balance * genesis_price, DEFAULT_PAIR.token1.decimals),
            lp_shares=genesis.position.lp_shares,
        ),
    )
    store = PoolStore(genesis=funded)
    trader = RetailTrader(
        arrival_rate=args.arrival_rate,
        mean_size=args.mean_size,
        seed=args.seed,
    )

    print(f"Running {args.steps} steps of retail flow...")
    report = run_retail_flow(store, trader, args.steps)

    print(f"Executed swaps: {report.executed}")
    print(f"Rejected swaps: {report.rejected}")
    print(f"k growth: {report.k_growth * 100:.6f}%")
    print(f"Raw price: {report.price_before} -> {report.price_after}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Constant product pair pool - inspect, quote and rehearse",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  amm-pair pool
  amm-pair quote WETH 1.5 --slippage 1
  amm-pair quote USDC 5000 --remote
  amm-pair simulate --steps 1000 --seed 7
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_remote_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--remote",
            action="store_true",
            help="Read the deployed pool (AMM_CONTRACT_ADDRESS, AMM_LP_TOKEN_ADDRESS) instead of the simulation",
        )
        sub.add_argument(
            "--rpc-url",
            default=None,
            help="JSON-RPC endpoint (defaults to AMM_RPC_URL)",
        )

    pool_parser = subparsers.add_parser("pool", help="Show pool state")
    add_remote_args(pool_parser)
    pool_parser.set_defaults(func=pool_command)

    quote_parser = subparsers.add_parser("quote", help="Quote a swap")
    quote_parser.add_argument("token", type=_parse_asset, help="Token sold to the pool (WETH or USDC)")
    quote_parser.add_argument("amount", type=_parse_decimal, help="Amount sold")
    quote_parser.add_argument(
        "--slippage",
        type=_parse_decimal,
        default=Decimal("0.5"),
        help="Slippage tolerance in percent (default: 0.5)",
    )
    add_remote_args(quote_parser)
    quote_parser.set_defaults(func=quote_command)

    simulate_parser = subparsers.add_parser("simulate", help="Replay random retail swaps on the simulated pool")
    simulate_parser.add_argument("--steps", type=int, default=1000, help="Number of steps (default: 1000)")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    simulate_parser.add_argument(
        "--arrival-rate",
        type=float,
        default=1.0,
        help="Expected swaps per step (default: 1.0)",
    )
    simulate_parser.add_argument(
        "--mean-size",
        type=float,
        default=0.5,
        help="Mean swap size in WETH (default: 0.5)",
    )
    simulate_parser.add_argument(
        "--trader-balance",
        type=_parse_decimal,
        default=Decimal("1000000"),
        help="Trader's starting WETH balance, matched in USDC at the genesis price",
    )
    simulate_parser.set_defaults(func=simulate_command)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
