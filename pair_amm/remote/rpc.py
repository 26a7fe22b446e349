"""JSON-RPC client for the deployed pool contract."""

import logging
import time
from typing import Any, Optional

import requests

from pair_amm.config import DEFAULT_PAIR, RemoteSettings, TokenPair
from pair_amm.core.errors import RemoteUnavailable
from pair_amm.core.interfaces import RemotePool, RemotePoolState, TransactionReceipt
from pair_amm.remote import codec

logger = logging.getLogger(__name__)


class JsonRpcPool(RemotePool):
    """Reads and writes the pool contract through an Ethereum JSON-RPC node.

    Transactions go out with eth_sendTransaction, so the node (or the wallet
    behind it) holds the key and signs for the account. Any transport
    failure, RPC error or chain mismatch surfaces as RemoteUnavailable.
    """

    POOL_STATE_WORDS = 8

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        lp_token_address: str,
        pair: TokenPair = DEFAULT_PAIR,
        chain_id: Optional[int] = None,
        poll_interval: float = 5.0,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            rpc_url: HTTP endpoint of the node
            contract_address: Pool contract address
            lp_token_address: LP share token address
            pair: Token addresses of the pooled assets
            chain_id: Expected chain id, None skips the network check
            poll_interval: Seconds between receipt polls
            timeout: Per-request HTTP timeout in seconds
            session: Optional requests session to reuse
        """
        self.rpc_url = rpc_url
        self.contract_address = contract_address
        self.lp_token_address = lp_token_address
        self.pair = pair
        self.chain_id = chain_id
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._session = session or requests.Session()
        self._request_id = 0
        # Replaced by the contract's own token0/token1 on every pool state read
        self._token_addresses = (pair.token0.address, pair.token1.address)

    @classmethod
    def from_settings(cls, settings: RemoteSettings, pair: TokenPair = DEFAULT_PAIR) -> "JsonRpcPool":
        return cls(
            rpc_url=settings.rpc_url,
            contract_address=settings.contract_address,
            lp_token_address=settings.lp_token_address,
            pair=pair,
            chain_id=settings.chain_id,
            poll_interval=settings.poll_interval,
        )

    def _rpc(self, method: str, params: list) -> Any:
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}
        try:
            response = self._session.post(self.rpc_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise RemoteUnavailable(f"AMM: RPC request {method} failed: {e}") from e

        error = body.get("error")
        if error:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise RemoteUnavailable(f"AMM: RPC error from {method}: {message}")
        return body.get("result")

    def _call(self, to: str, data: bytes) -> bytes:
        result = self._rpc("eth_call", [{"to": to, "data": codec.to_hex(data)}, "latest"])
        return codec.from_hex(result or "0x")

    def _call_uint(self, to: str, data: bytes) -> int:
        result = self._call(to, data)
        if len(result) < codec.WORD:
            raise RemoteUnavailable(f"AMM: Invalid return data length: {len(result)}")
        return codec.decode_uint256(result)

    def _send(self, account: str, data: bytes) -> str:
        self.check_network()
        tx = {"from": account, "to": self.contract_address, "data": codec.to_hex(data)}
        tx_hash = self._rpc("eth_sendTransaction", [tx])
        logger.info("Broadcast transaction %s from %s", tx_hash, account)
        return tx_hash

    def check_network(self) -> None:
        """Raise RemoteUnavailable when the node is on the wrong chain."""
        if self.chain_id is None:
            return
        actual = int(self._rpc("eth_chainId", []), 16)
        if actual != self.chain_id:
            raise RemoteUnavailable(
                f"AMM: Network mismatch, expected chain {self.chain_id}, got {actual}"
            )

    def is_connected(self) -> bool:
        try:
            self.check_network()
        except RemoteUnavailable as e:
            logger.warning("Remote pool not reachable: %s", e)
            return False
        return True

    def get_pool_state(self) -> RemotePoolState:
        data = self._call(self.contract_address, codec.encode_call(codec.GET_POOL_STATE))
        if len(data) < self.POOL_STATE_WORDS * codec.WORD:
            raise RemoteUnavailable(f"AMM: Invalid return data length: {len(data)}")
        words = [codec.decode_uint256(data, i * codec.WORD) for i in range(2, self.POOL_STATE_WORDS)]
        state = RemotePoolState(
            token0=codec.decode_address(data, 0),
            token1=codec.decode_address(data, codec.WORD),
            reserve0=words[0],
            reserve1=words[1],
            ratio=words[2],
            total_lp_supply=words[3],
            token0_exchange_rate=words[4],
            token1_exchange_rate=words[5],
        )
        self._token_addresses = (state.token0, state.token1)
        logger.debug("Fetched pool state %s", state)
        return state

    def get_balances(self, account: str) -> tuple[int, int, int]:
        """Balances of the tokens named by the last getPoolState() read."""
        token0, token1 = self._token_addresses
        call = codec.encode_call(codec.BALANCE_OF, account)
        return (
            self._call_uint(token0, call),
            self._call_uint(token1, call),
            self._call_uint(self.lp_token_address, call),
        )

    def get_swap_estimate(self, token_in_address: str, amount_in: int) -> int:
        call = codec.encode_call(codec.GET_SWAP_ESTIMATE, token_in_address, amount_in)
        return self._call_uint(self.contract_address, call)

    def allowance(self, token_address: str, owner: str) -> int:
        call = codec.encode_call(codec.ALLOWANCE, owner, self.contract_address)
        return self._call_uint(token_address, call)

    def submit_swap(self, account: str, token_in_address: str, amount_in: int) -> str:
        return self._send(account, codec.encode_call(codec.SWAP, token_in_address, amount_in))

    def submit_add_liquidity(self, account: str, amount0: int, amount1: int) -> str:
        return self._send(account, codec.encode_call(codec.ADD_LIQUIDITY, amount0, amount1))

    def submit_remove_liquidity(self, account: str, shares: int) -> str:
        return self._send(account, codec.encode_call(codec.REMOVE_LIQUIDITY, shares))

    def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Poll until the transaction is mined; there is no timeout."""
        while True:
            receipt = self._rpc("eth_getTransactionReceipt", [tx_hash])
            if receipt is not None:
                success = receipt.get("status") == "0x1"
                block_number = int(receipt.get("blockNumber") or "0x0", 16)
                logger.info("Transaction %s mined in block %d (success=%s)", tx_hash, block_number, success)
                return TransactionReceipt(tx_hash=tx_hash, success=success, block_number=block_number)
            time.sleep(self.poll_interval)
