"""
Exceptions for the txsubmitter package.
"""
from datetime import timedelta
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Receipt


class TxSubmitterError(Exception):
    """Base exception for all txsubmitter errors."""
    pass


class NodeError(TxSubmitterError):
    """Raised when a read request to the node fails."""
    pass


class NodeTimeoutError(NodeError):
    """Raised when the node did not answer a read within its request timeout."""
    pass


class ChainMismatchError(TxSubmitterError):
    """Raised when a request targets a different chain than the node serves."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Chain ID mismatch: request is for chain {expected}, node reports {actual}"
        )


class SigningError(TxSubmitterError):
    """Raised when the signer fails to sign a transaction."""
    pass


class SubmissionError(TxSubmitterError):
    """
    Raised when a signed transaction could not be handed to the node.

    ``maybe_sent`` is False when the node answered with a rejection. It is
    True when the transport failed after the request may have reached the
    node (lost response, read timeout, 5xx from a proxy); the transaction may
    then be in the mempool under ``tx_id`` and can still be confirmed.
    """

    def __init__(self, message: str, maybe_sent: bool = False, tx_id: Optional[str] = None):
        self.maybe_sent = maybe_sent
        self.tx_id = tx_id
        super().__init__(message)


class TransactionRevertedError(TxSubmitterError):
    """
    Raised when a transaction was mined but failed on-chain.

    The outcome is definite: the receipt is attached so the caller can
    inspect it and decide whether the failure is fatal.
    """

    def __init__(self, receipt: "Receipt"):
        self.receipt = receipt
        super().__init__(f"Transaction {receipt.transaction_id} reverted")


class ConfirmationTimeoutError(TxSubmitterError):
    """
    Raised when no receipt was found before the deadline or cancellation.

    The outcome is unknown: the transaction may still be mined later.
    """

    def __init__(self, tx_id: str, deadline: Optional[timedelta] = None, cancelled: bool = False):
        self.tx_id = tx_id
        self.deadline = deadline
        self.cancelled = cancelled
        if cancelled:
            message = f"Waiting for receipt of {tx_id} was cancelled"
        else:
            message = f"No receipt for {tx_id} within {deadline}"
        super().__init__(message)


class ArtifactError(TxSubmitterError):
    """Raised when a contract artifact cannot be read or is malformed."""
    pass


class ConfigError(TxSubmitterError):
    """Raised when required configuration is missing or invalid."""
    pass
