"""Core pool components."""

from pair_amm.core.errors import AMMError
from pair_amm.core.interfaces import RemotePool, RemotePoolState, TransactionReceipt
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

__all__ = [
    "AMMError",
    "AddLiquidityRequest",
    "Asset",
    "OperationKind",
    "OperationResult",
    "PoolState",
    "RemotePool",
    "RemotePoolState",
    "RemoveLiquidityRequest",
    "SwapRequest",
    "TransactionReceipt",
    "UserPosition",
]
