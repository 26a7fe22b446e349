"""Minimal ABI encoding for the pool and ERC-20 calls.

Every argument and return value used here is a single 32-byte word
(uint256 or address), so calldata is built by hand instead of through a
full ABI codec.
"""

from typing import Union

from eth_utils import function_signature_to_4byte_selector, to_checksum_address

WORD = 32
_UINT256_MAX = 2**256 - 1

# Pool contract
GET_POOL_STATE = "getPoolState()"
GET_SWAP_ESTIMATE = "getSwapEstimate(address,uint256)"
SWAP = "swap(address,uint256)"
ADD_LIQUIDITY = "addLiquidity(uint256,uint256)"
REMOVE_LIQUIDITY = "removeLiquidity(uint256)"

# ERC-20
BALANCE_OF = "balanceOf(address)"
ALLOWANCE = "allowance(address,address)"


def selector(signature: str) -> bytes:
    """First 4 bytes of keccak256 of the function signature."""
    return function_signature_to_4byte_selector(signature)


def encode_uint256(value: int) -> bytes:
    """Encode a uint256 value as 32 bytes."""
    if not (0 <= value <= _UINT256_MAX):
        raise ValueError(f"uint256 out of range: {value}")
    return value.to_bytes(WORD, byteorder="big")


def encode_address(address: str) -> bytes:
    """Encode a 20-byte hex address left-padded to 32 bytes."""
    raw = bytes.fromhex(address[2:] if address.startswith("0x") else address)
    if len(raw) != 20:
        raise ValueError(f"Invalid address: {address}")
    return raw.rjust(WORD, b"\x00")


def decode_uint256(data: bytes, offset: int = 0) -> int:
    """Decode a uint256 from bytes."""
    return int.from_bytes(data[offset : offset + WORD], byteorder="big")


def decode_address(data: bytes, offset: int = 0) -> str:
    return to_checksum_address("0x" + data[offset + 12 : offset + WORD].hex())


def encode_call(signature: str, *args: Union[int, str]) -> bytes:
    """Selector followed by one word per argument (str means address)."""
    words = [encode_address(arg) if isinstance(arg, str) else encode_uint256(arg) for arg in args]
    return selector(signature) + b"".join(words)


def to_hex(data: bytes) -> str:
    return "0x" + data.hex()


def from_hex(value: str) -> bytes:
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)
