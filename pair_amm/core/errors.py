"""Error kinds raised by the engine, the store and the facade.

Messages mirror the pool contract's revert strings so simulated and remote
failures read the same to a consumer.
"""


class AMMError(Exception):
    """Base class for all recoverable pool errors."""

    default_message = "AMM: Operation failed"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)


class InvalidAmount(AMMError):
    default_message = "AMM: Invalid amount"


class InvalidReserveValues(InvalidAmount):
    """A liquidity deposit amount is not positive."""

    default_message = "AMM: Invalid reserve values"


class InsufficientBalance(AMMError):
    default_message = "AMM: Insufficient balance"


class InvalidAmountOut(AMMError):
    default_message = "AMM: Invalid amount out"


class InvalidRatio(AMMError):
    default_message = "AMM: Invalid ratio"


class InvalidShares(AMMError):
    default_message = "AMM: Invalid shares"


class InsufficientShares(AMMError):
    default_message = "AMM: Insufficient shares"


class InvalidReserves(AMMError):
    default_message = "AMM: Invalid reserves"


class ReentrantCall(AMMError):
    default_message = "AMM: Reentrant call"


class RemoteUnavailable(AMMError):
    """Wallet disconnected, wrong network, or the transaction did not confirm."""

    default_message = "AMM: Remote pool unavailable"


class ApprovalRequired(RemoteUnavailable):
    default_message = "AMM: Token approval required"


class OperationInFlight(RemoteUnavailable):
    default_message = "AMM: A transaction is already pending"
