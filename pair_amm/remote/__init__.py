"""Remote pool access.

This module provides:
- JsonRpcPool: Reads and submits to the pool contract over JSON-RPC
- codec: Word-level ABI encoding for the calls JsonRpcPool makes
"""

from pair_amm.remote.rpc import JsonRpcPool

__all__ = [
    "JsonRpcPool",
]
