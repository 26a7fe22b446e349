"""Simulated pool components."""

from pair_amm.simulation.retail import FlowReport, RetailTrader, run_retail_flow
from pair_amm.simulation.store import Genesis, PoolStore, build_genesis

__all__ = [
    "FlowReport",
    "Genesis",
    "PoolStore",
    "RetailTrader",
    "build_genesis",
    "run_retail_flow",
]
