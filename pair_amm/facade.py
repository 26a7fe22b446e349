"""Mode-aware access to the pool.

AMMFacade gives consumers one surface over two independent worlds: the
in-memory PoolStore (simulated mode) and the deployed contract behind a
RemotePool (remote mode). Amounts cross this boundary as human Decimal
values and are converted to base units for the engine and the contract.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
import logging
from typing import AsyncIterator, Callable, Optional

from pair_amm.config import DEFAULT_PAIR, DEFAULT_POLL_INTERVAL, MockLatency, TokenPair, resolve_mock_latency
from pair_amm.core import engine
from pair_amm.core.errors import (
    AMMError,
    ApprovalRequired,
    InvalidAmount,
    InvalidReserveValues,
    InvalidShares,
    OperationInFlight,
    RemoteUnavailable,
)
from pair_amm.core.fixed_point import from_units, to_units
from pair_amm.core.interfaces import RemotePool
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
from pair_amm.simulation.store import PoolStore

logger = logging.getLogger(__name__)


class Mode(Enum):
    SIMULATED = "simulated"
    REMOTE = "remote"


class TxPhase(Enum):
    """Lifecycle of a remote transaction."""
    SUBMITTED = "submitted"  # Claimed and handed to the wallet, not yet broadcast
    PENDING = "pending"      # Broadcast, awaiting confirmation
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class TransactionStatus:
    kind: OperationKind
    phase: TxPhase
    tx_hash: str = ""
    error: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.phase in (TxPhase.SUBMITTED, TxPhase.PENDING)

    @property
    def is_confirmed(self) -> bool:
        return self.phase is TxPhase.CONFIRMED


@dataclass(frozen=True)
class PoolView:
    """Pool state in human units."""
    token0_address: str
    token1_address: str
    reserve0: Decimal
    reserve1: Decimal
    total_shares: Decimal
    ratio: Decimal
    token0_exchange_rate: Decimal  # token1 per token0
    token1_exchange_rate: Decimal  # token0 per token1


@dataclass(frozen=True)
class Balances:
    token0: Decimal
    token1: Decimal
    lp_shares: Decimal


_EMPTY_POSITION = UserPosition(balance0=0, balance1=0, lp_shares=0)


class AMMFacade:
    """Uniform pool interface over the simulated store and the remote pool.

    Simulated mutations validate, wait out an artificial latency and commit
    through the store. Remote mutations are submitted to the contract; the
    facade only tracks their TransactionStatus and re-reads ground truth
    once they confirm. Switching modes clears the last error and pending
    status but never moves balances between the two worlds.
    """

    def __init__(
        self,
        store: Optional[PoolStore] = None,
        remote: Optional[RemotePool] = None,
        account: Optional[str] = None,
        pair: TokenPair = DEFAULT_PAIR,
        mode: Mode = Mode.SIMULATED,
        latency: Optional[MockLatency] = None,
    ):
        """
        Args:
            store: Simulated pool, a fresh genesis store by default
            remote: Remote pool collaborator, required for remote mode
            account: Connected wallet address used in remote mode
            pair: Token metadata used for unit conversion
            mode: Initial mode
            latency: Simulated transaction latency, from the environment by default
        """
        self._store = store if store is not None else PoolStore()
        self._remote = remote
        self._account = account
        self.pair = pair
        self._mode = mode
        self._latency = latency if latency is not None else resolve_mock_latency()

        self._remote_state: Optional[PoolState] = None
        self._remote_position: Optional[UserPosition] = None
        self._remote_tokens = (pair.token0.address, pair.token1.address)

        self._error: Optional[str] = None
        self._pending: Optional[TransactionStatus] = None
        self._active_operations = 0

    # ------------------------------------------------------------------
    # Mode
    # ------------------------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def is_simulated(self) -> bool:
        return self._mode is Mode.SIMULATED

    @property
    def is_remote(self) -> bool:
        return self._mode is Mode.REMOTE

    def set_mode(self, mode: Mode) -> None:
        self._mode = mode
        self._error = None
        self._pending = None
        logger.info("Switched to %s mode", mode.value)

    def toggle_mode(self) -> Mode:
        self.set_mode(Mode.REMOTE if self._mode is Mode.SIMULATED else Mode.SIMULATED)
        return self._mode

    def connect(self, account: Optional[str]) -> None:
        """Set (or clear, with None) the wallet account used in remote mode."""
        self._account = account
        self._remote_position = None

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def error(self) -> Optional[str]:
        """Message of the most recent failure, None after a success."""
        return self._error

    @property
    def pending_transaction(self) -> Optional[TransactionStatus]:
        return replace(self._pending) if self._pending is not None else None

    @property
    def is_loading(self) -> bool:
        return self._active_operations > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _raw_state(self) -> PoolState:
        if self._mode is Mode.SIMULATED:
            return self._store.state
        return self._remote_state if self._remote_state is not None else PoolState.empty()

    def _raw_position(self) -> UserPosition:
        if self._mode is Mode.SIMULATED:
            return self._store.position
        if self._account is None or self._remote_position is None:
            return _EMPTY_POSITION
        return self._remote_position

    def _decimals(self, asset: Asset) -> int:
        return self.pair.token0.decimals if asset is Asset.TOKEN0 else self.pair.token1.decimals

    def _to_raw(self, asset: Asset, amount: Decimal) -> int:
        return to_units(amount, self._decimals(asset))

    def _from_raw(self, asset: Asset, raw: int) -> Decimal:
        return from_units(raw, self._decimals(asset))

    def _token_addresses(self) -> tuple[str, str]:
        if self._mode is Mode.REMOTE:
            return self._remote_tokens
        return self.pair.token0.address, self.pair.token1.address

    @property
    def pool_state(self) -> PoolView:
        state = self._raw_state()
        reserve0 = self._from_raw(Asset.TOKEN0, state.reserve0)
        reserve1 = self._from_raw(Asset.TOKEN1, state.reserve1)
        if reserve0 > 0 and reserve1 > 0:
            rate0, rate1 = reserve1 / reserve0, reserve0 / reserve1
        else:
            rate0 = rate1 = Decimal("0")
        token0_address, token1_address = self._token_addresses()
        return PoolView(
            token0_address=token0_address,
            token1_address=token1_address,
            reserve0=reserve0,
            reserve1=reserve1,
            total_shares=from_units(state.total_shares, self.pair.lp.decimals),
            ratio=rate0,
            token0_exchange_rate=rate0,
            token1_exchange_rate=rate1,
        )

    @property
    def user_balances(self) -> Balances:
        position = self._raw_position()
        return Balances(
            token0=self._from_raw(Asset.TOKEN0, position.balance0),
            token1=self._from_raw(Asset.TOKEN1, position.balance1),
            lp_shares=from_units(position.lp_shares, self.pair.lp.decimals),
        )

    @property
    def k(self) -> Decimal:
        view = self.pool_state
        return view.reserve0 * view.reserve1

    @property
    def price(self) -> Decimal:
        """Token1 per token0, 0 for an empty pool."""
        return self.pool_state.token0_exchange_rate

    def get_swap_estimate(self, token_in: Asset, amount_in: Decimal) -> Decimal:
        amount_out = engine.get_swap_estimate(self._raw_state(), token_in, self._to_raw(token_in, amount_in))
        return self._from_raw(token_in.other, amount_out)

    async def fetch_swap_estimate(self, token_in: Asset, amount_in: Decimal) -> Decimal:
        """Quote a swap from the source of truth of the current mode.

        Remote mode asks the contract's getSwapEstimate instead of the
        cached snapshot, so the quote reflects trades made since the last
        refresh.
        """
        if self._mode is Mode.SIMULATED:
            return self.get_swap_estimate(token_in, amount_in)
        if self._remote is None:
            raise RemoteUnavailable("AMM: Remote pool not configured")
        raw_in = self._to_raw(token_in, amount_in)
        if raw_in <= 0:
            return self._from_raw(token_in.other, 0)
        token_address = self._token_addresses()[token_in.value]
        amount_out = await asyncio.to_thread(self._remote.get_swap_estimate, token_address, raw_in)
        return self._from_raw(token_in.other, amount_out)

    def get_price_impact(self, token_in: Asset, amount_in: Decimal) -> Decimal:
        return engine.get_price_impact(self._raw_state(), token_in, self._to_raw(token_in, amount_in))

    def get_minimum_received(
        self,
        token_in: Asset,
        amount_in: Decimal,
        slippage_percent: Decimal = engine.DEFAULT_SLIPPAGE_PERCENT,
    ) -> Decimal:
        amount_out = engine.get_swap_estimate(self._raw_state(), token_in, self._to_raw(token_in, amount_in))
        return self._from_raw(token_in.other, engine.min_amount_out(amount_out, slippage_percent))

    def get_required_counter_amount(self, input_asset: Asset, amount: Decimal) -> Optional[Decimal]:
        counter = engine.get_required_counter_amount(
            self._raw_state(), input_asset, self._to_raw(input_asset, amount)
        )
        if counter is None:
            return None
        return self._from_raw(input_asset.other, counter)

    def calculate_removal_amounts(self, shares: Decimal) -> tuple[Decimal, Decimal]:
        amount0, amount1 = engine.calculate_removal_amounts(
            self._raw_state(), to_units(shares, self.pair.lp.decimals)
        )
        return self._from_raw(Asset.TOKEN0, amount0), self._from_raw(Asset.TOKEN1, amount1)

    @property
    def pool_share(self) -> Decimal:
        """The user's percentage of the LP supply."""
        return engine.pool_share_percent(self._raw_state(), self._raw_position().lp_shares)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _operation(self) -> AsyncIterator[None]:
        # Errors are only recorded against the mode the operation started in
        mode = self._mode
        self._error = None
        self._active_operations += 1
        try:
            yield
        except AMMError as e:
            if self._mode is mode:
                self._error = str(e)
            logger.warning("%s operation failed: %s", mode.value, e)
            raise
        finally:
            self._active_operations -= 1

    async def _commit(self, request: engine.Request, delay: float) -> OperationResult:
        # Fail before the latency wait, then re-run against the live store
        state, position = self._store.get_snapshot()
        engine.apply_operation(state, position, request)
        if delay > 0:
            await asyncio.sleep(delay)
        result = self._store.apply(request)
        logger.info("Committed simulated %s: %s", result.kind.value, result)
        return result

    def _claim(self, kind: OperationKind) -> tuple[RemotePool, str, TransactionStatus]:
        if self._remote is None:
            raise RemoteUnavailable("AMM: Remote pool not configured")
        if self._account is None:
            raise RemoteUnavailable("Please connect your wallet")
        if self._pending is not None and self._pending.is_pending:
            raise OperationInFlight()
        status = TransactionStatus(kind=kind, phase=TxPhase.SUBMITTED)
        self._pending = status
        return self._remote, self._account, status

    @asynccontextmanager
    async def _remote_transaction(
        self, kind: OperationKind
    ) -> AsyncIterator[tuple[RemotePool, str, TransactionStatus]]:
        """Hold the single in-flight slot for one remote operation.

        The slot is claimed before the first await, so an overlapping call
        is refused with OperationInFlight instead of broadcasting twice. A
        refusal before broadcast (network or approval) marks the status
        FAILED and frees the slot.
        """
        remote, account, status = self._claim(kind)
        try:
            if not await asyncio.to_thread(remote.is_connected):
                raise RemoteUnavailable("AMM: Wallet or network not ready")
            yield remote, account, status
        except Exception as e:
            if status.is_pending:
                status.phase = TxPhase.FAILED
                status.error = str(e)
            raise

    async def _require_allowance(self, remote: RemotePool, account: str, asset: Asset, amount: int) -> None:
        token_address = self._token_addresses()[asset.value]
        allowance = await asyncio.to_thread(remote.allowance, token_address, account)
        if allowance < amount:
            symbol = self.pair.token0.symbol if asset is Asset.TOKEN0 else self.pair.token1.symbol
            raise ApprovalRequired(f"AMM: Approval required for {symbol}")

    async def _submit(
        self,
        status: TransactionStatus,
        remote: RemotePool,
        account: str,
        send: Callable[[RemotePool, str], str],
    ) -> TransactionStatus:
        """Broadcast a claimed transaction and wait for it to confirm."""
        kind = status.kind
        try:
            status.tx_hash = await asyncio.to_thread(send, remote, account)
            status.phase = TxPhase.PENDING
            logger.info("Submitted %s transaction %s", kind.value, status.tx_hash)
            receipt = await asyncio.to_thread(remote.wait_for_receipt, status.tx_hash)
        except RemoteUnavailable as e:
            status.phase = TxPhase.FAILED
            status.error = str(e)
            raise
        except Exception as e:
            status.phase = TxPhase.FAILED
            status.error = f"AMM: Transaction failed: {e}"
            raise RemoteUnavailable(status.error) from e

        if not receipt.success:
            status.phase = TxPhase.FAILED
            status.error = f"AMM: Transaction {status.tx_hash} reverted"
            raise RemoteUnavailable(status.error)

        status.phase = TxPhase.CONFIRMED
        logger.info("Confirmed %s transaction %s", kind.value, status.tx_hash)
        # Skip the refresh if the user switched modes while waiting
        if self._mode is Mode.REMOTE and self._pending is status:
            await self.refresh()
        return status

    async def swap(self, token_in: Asset, amount_in: Decimal) -> Decimal:
        """Swap amount_in of token_in and return the amount received.

        In remote mode the return value is the estimate taken from the last
        remote snapshot before submission.
        """
        raw_in = self._to_raw(token_in, amount_in)
        async with self._operation():
            if self._mode is Mode.SIMULATED:
                result = await self._commit(SwapRequest(token_in=token_in, amount_in=raw_in), self._latency.swap)
                return self._from_raw(token_in.other, result.amount_out)

            if raw_in <= 0:
                raise InvalidAmount()
            async with self._remote_transaction(OperationKind.SWAP) as (remote, account, status):
                await self._require_allowance(remote, account, token_in, raw_in)
                amount_out = engine.get_swap_estimate(self._raw_state(), token_in, raw_in)
                token_address = self._token_addresses()[token_in.value]
                await self._submit(
                    status,
                    remote,
                    account,
                    lambda r, a: r.submit_swap(a, token_address, raw_in),
                )
            return self._from_raw(token_in.other, amount_out)

    async def add_liquidity(self, amount0: Decimal, amount1: Decimal) -> Decimal:
        """Deposit both assets and return the LP shares minted."""
        raw0 = self._to_raw(Asset.TOKEN0, amount0)
        raw1 = self._to_raw(Asset.TOKEN1, amount1)
        async with self._operation():
            if self._mode is Mode.SIMULATED:
                result = await self._commit(AddLiquidityRequest(amount0=raw0, amount1=raw1), self._latency.liquidity)
                return from_units(result.shares, self.pair.lp.decimals)

            if raw0 <= 0 or raw1 <= 0:
                raise InvalidReserveValues()
            async with self._remote_transaction(OperationKind.ADD_LIQUIDITY) as (remote, account, status):
                await self._require_allowance(remote, account, Asset.TOKEN0, raw0)
                await self._require_allowance(remote, account, Asset.TOKEN1, raw1)
                shares = engine.calculate_shares(self._raw_state(), raw0, raw1)
                await self._submit(
                    status,
                    remote,
                    account,
                    lambda r, a: r.submit_add_liquidity(a, raw0, raw1),
                )
            return from_units(shares, self.pair.lp.decimals)

    async def remove_liquidity(self, shares: Decimal) -> tuple[Decimal, Decimal]:
        """Burn LP shares and return the (token0, token1) amounts withdrawn."""
        raw_shares = to_units(shares, self.pair.lp.decimals)
        async with self._operation():
            if self._mode is Mode.SIMULATED:
                result = await self._commit(RemoveLiquidityRequest(shares=raw_shares), self._latency.liquidity)
                amount0, amount1 = result.amount0, result.amount1
            else:
                if raw_shares <= 0:
                    raise InvalidShares()
                async with self._remote_transaction(OperationKind.REMOVE_LIQUIDITY) as (remote, account, status):
                    amount0, amount1 = engine.calculate_removal_amounts(self._raw_state(), raw_shares)
                    await self._submit(
                        status,
                        remote,
                        account,
                        lambda r, a: r.submit_remove_liquidity(a, raw_shares),
                    )
            return self._from_raw(Asset.TOKEN0, amount0), self._from_raw(Asset.TOKEN1, amount1)

    def reset_pool(self) -> None:
        """Restore the simulated genesis pool and clear status."""
        if self._mode is Mode.SIMULATED:
            self._store.reset()
        self._error = None
        self._pending = None

    # ------------------------------------------------------------------
    # Remote reads
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        """Re-read pool state and the account's balances from the remote pool."""
        if self._remote is None:
            raise RemoteUnavailable("AMM: Remote pool not configured")
        remote_state = await asyncio.to_thread(self._remote.get_pool_state)
        self._remote_state = remote_state.to_pool_state()
        self._remote_tokens = (remote_state.token0, remote_state.token1)
        if self._account is not None:
            balance0, balance1, lp_shares = await asyncio.to_thread(self._remote.get_balances, self._account)
            self._remote_position = UserPosition(balance0=balance0, balance1=balance1, lp_shares=lp_shares)
        logger.debug("Refreshed remote pool state: %s", self._remote_state)

    async def poll(self, interval: float = DEFAULT_POLL_INTERVAL, stop: Optional[asyncio.Event] = None) -> None:
        """Refresh remote state every interval seconds until stop is set.

        Does nothing while in simulated mode. Failures are recorded as the
        current error and polling continues.
        """
        while stop is None or not stop.is_set():
            if self._mode is Mode.REMOTE:
                try:
                    await self.refresh()
                except RemoteUnavailable as e:
                    self._error = str(e)
                    logger.warning("Remote refresh failed: %s", e)
            if stop is None:
                await asyncio.sleep(interval)
            else:
                try:
                    await asyncio.wait_for(stop.wait(), timeout=interval)
                except asyncio.TimeoutError:
                    pass
