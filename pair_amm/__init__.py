"""Constant product pair pool: simulated rehearsal and live contract facade."""

from pair_amm.core.errors import AMMError
from pair_amm.core.pool import Asset, PoolState, UserPosition
from pair_amm.facade import AMMFacade, Mode, TxPhase
from pair_amm.simulation.store import PoolStore

__all__ = [
    "AMMError",
    "AMMFacade",
    "Asset",
    "Mode",
    "PoolState",
    "PoolStore",
    "TxPhase",
    "UserPosition",
]
