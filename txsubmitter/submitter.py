"""
Transaction submission and confirmation.

The workflow is: check chain ID, build, sign, broadcast, then poll the node
for a receipt until it appears or the deadline passes::

    Built -> Signed -> Submitted -> Confirmed(success) | Confirmed(failed) | TimedOut

``TimedOut`` only ends this confirmation attempt; the transaction itself may
still be mined later and can be confirmed again with :func:`confirm`.
"""
import logging
import threading
import time
from datetime import timedelta
from typing import Any, Dict, Optional, Union

from ._rate_limited_log import rate_limited_log
from .exceptions import (
    ChainMismatchError,
    ConfirmationTimeoutError,
    NodeError,
    NodeTimeoutError,
    SigningError,
    TransactionRevertedError,
)
from .models import DEFAULT_DEADLINE, Receipt, SubmittedTransaction, TransactionRequest
from .node import NodeClient
from .signer import Signer

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_GAS_LIMIT = 300_000
DEFAULT_CREATION_GAS_LIMIT = 3_000_000
GAS_BUFFER = 1.1
WAITING_LOG_INTERVAL = 10
# Per-poll RPC timeout bounds in seconds; each poll is also capped by the time left
POLL_REQUEST_TIMEOUT = 5.0
MIN_POLL_REQUEST_TIMEOUT = 0.05

Deadline = Union[timedelta, float, int]


def _as_timedelta(deadline: Deadline) -> timedelta:
    if isinstance(deadline, timedelta):
        return deadline
    return timedelta(seconds=deadline)


def build_transaction(
    client: NodeClient,
    signer: Signer,
    request: TransactionRequest,
    logger_instance: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """
    Turn a request into an unsigned transaction dict.

    Missing nonce and gas limit are filled from the node. A failed gas
    estimate falls back to a default limit rather than aborting.
    """
    log = logger_instance or logger
    from_address = signer.public_address()

    nonce = request.nonce
    if nonce is None:
        nonce = client.nonce_for(from_address)

    tx: Dict[str, Any] = {
        "from": from_address,
        "nonce": nonce,
        "gasPrice": request.gas_price,
        "value": request.value,
        "data": request.payload,
        "chainId": request.chain_id,
    }
    if request.target_address is not None:
        tx["to"] = request.target_address

    gas = request.gas
    if gas is None:
        try:
            gas = int(client.estimate_gas(dict(tx)) * GAS_BUFFER)
            log.debug(f"Estimated gas: {gas}")
        except NodeError as e:
            gas = DEFAULT_CREATION_GAS_LIMIT if request.is_creation else DEFAULT_GAS_LIMIT
            log.warning(f"Gas estimation failed, using default: {gas}. Error: {e}")
    tx["gas"] = gas

    # the signer derives the sender from the key
    del tx["from"]
    return tx


def submit(
    client: NodeClient,
    signer: Signer,
    request: TransactionRequest,
    logger_instance: Optional[logging.Logger] = None,
) -> SubmittedTransaction:
    """
    Sign a request and broadcast it.

    Args:
        client: Node to send to
        signer: Signer holding the sender key
        request: What to send

    Returns:
        The submitted transaction, identified by its hash

    Raises:
        ChainMismatchError: If the node serves a different chain (nothing is sent)
        SigningError: If the signer fails
        SubmissionError: If the node rejects the transaction
        NodeError: If a read needed to build the transaction fails
    """
    log = logger_instance or logger

    actual_chain_id = client.chain_id()
    if request.chain_id != actual_chain_id:
        log.error(f"Chain ID mismatch: request={request.chain_id}, node={actual_chain_id}")
        raise ChainMismatchError(request.chain_id, actual_chain_id)

    unsigned = build_transaction(client, signer, request, logger_instance=log)
    log.debug(
        f"Built {'creation' if request.is_creation else 'call'} transaction: "
        f"nonce={unsigned['nonce']} gas={unsigned['gas']} payload={len(request.payload)} bytes"
    )

    try:
        raw_tx = signer.sign(unsigned, request.chain_id)
    except Exception as e:
        log.error(f"Transaction signing failed: {e}")
        raise SigningError(f"Failed to sign transaction: {e}") from e

    tx_id = client.broadcast(raw_tx)
    return SubmittedTransaction(id=tx_id, request=request)


def confirm(
    client: NodeClient,
    submitted: SubmittedTransaction,
    deadline: Optional[Deadline] = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    cancel: Optional[threading.Event] = None,
    logger_instance: Optional[logging.Logger] = None,
) -> Receipt:
    """
    Wait for the receipt of a submitted transaction.

    Polls at a fixed interval. Both the wait between polls and each receipt
    lookup are capped by the time left, so the call returns shortly after the
    deadline even when the node stops answering, or as soon as ``cancel`` is set.

    Args:
        client: Node to poll
        submitted: Result of :func:`submit`
        deadline: How long to wait (defaults to the request's deadline)
        poll_interval: Seconds between polls
        cancel: Event that aborts the wait when set

    Returns:
        Receipt of a successful transaction

    Raises:
        TransactionRevertedError: If the transaction was mined but failed
        ConfirmationTimeoutError: If no receipt arrived in time or the wait was cancelled
    """
    log = logger_instance or logger
    if poll_interval <= 0:
        raise ValueError("poll_interval must be positive")

    wait_for = _as_timedelta(deadline) if deadline is not None else submitted.request.deadline
    cancel = cancel or threading.Event()
    expires_at = time.monotonic() + wait_for.total_seconds()

    while True:
        if cancel.is_set():
            log.warning(f"Stopped waiting for {submitted.id}: cancelled")
            raise ConfirmationTimeoutError(submitted.id, wait_for, cancelled=True)

        request_timeout = max(MIN_POLL_REQUEST_TIMEOUT, min(POLL_REQUEST_TIMEOUT, expires_at - time.monotonic()))
        try:
            receipt = client.receipt_for(submitted.id, timeout=request_timeout)
        except NodeTimeoutError as e:
            log.warning(f"Receipt poll for {submitted.id} timed out: {e}")
            receipt = None
        if receipt is not None:
            if not receipt.succeeded:
                log.error(f"Transaction {receipt.transaction_id} reverted in block {receipt.block_reference.number}")
                raise TransactionRevertedError(receipt)
            log.info(f"Transaction {receipt.transaction_id} confirmed in block {receipt.block_reference.number}")
            return receipt

        remaining = expires_at - time.monotonic()
        if remaining <= 0:
            log.warning(f"No receipt for {submitted.id} within {wait_for}")
            raise ConfirmationTimeoutError(submitted.id, wait_for)

        rate_limited_log(
            f"Waiting for receipt of {submitted.id}",
            level="info",
            interval=WAITING_LOG_INTERVAL,
            logger_instance=log,
        )
        cancel.wait(min(poll_interval, remaining))


def submit_and_confirm(
    client: NodeClient,
    signer: Signer,
    request: TransactionRequest,
    deadline: Optional[Deadline] = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    cancel: Optional[threading.Event] = None,
    logger_instance: Optional[logging.Logger] = None,
) -> Receipt:
    """Submit a request and wait for its receipt; the first error is raised as is."""
    submitted = submit(client, signer, request, logger_instance=logger_instance)
    return confirm(
        client,
        submitted,
        deadline=deadline,
        poll_interval=poll_interval,
        cancel=cancel,
        logger_instance=logger_instance,
    )


class TransactionSubmitter:
    """
    Submits transactions through one node connection with one signer.

    Terminal receipts are remembered, so confirming the same transaction
    again answers immediately instead of polling. Not thread-safe; callers
    running submitters in parallel must hand out distinct nonces.
    """

    def __init__(
        self,
        client: NodeClient,
        signer: Signer,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        default_deadline: timedelta = DEFAULT_DEADLINE,
        logger: Optional[logging.Logger] = None,
    ):
        self.client = client
        self.signer = signer
        self.poll_interval = poll_interval
        self.default_deadline = default_deadline
        self.logger = logger or logging.getLogger(__name__)
        self._receipts: Dict[str, Receipt] = {}

    @property
    def address(self) -> str:
        return self.signer.public_address()

    def new_request(
        self,
        payload: bytes,
        target_address: Optional[str] = None,
        value: int = 0,
        gas: Optional[int] = None,
        nonce: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> TransactionRequest:
        """Build a request for the connected chain at the current gas price."""
        return TransactionRequest(
            target_address=target_address,
            payload=payload,
            gas_price=self.client.suggest_gas_price(),
            chain_id=self.client.chain_id(),
            deadline=_as_timedelta(deadline) if deadline is not None else self.default_deadline,
            value=value,
            gas=gas,
            nonce=nonce,
        )

    def submit(self, request: TransactionRequest) -> SubmittedTransaction:
        return submit(self.client, self.signer, request, logger_instance=self.logger)

    def confirm(
        self,
        submitted: SubmittedTransaction,
        deadline: Optional[Deadline] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        cached = self._receipts.get(submitted.id)
        if cached is not None:
            if not cached.succeeded:
                raise TransactionRevertedError(cached)
            return cached

        try:
            receipt = confirm(
                self.client,
                submitted,
                deadline=deadline,
                poll_interval=self.poll_interval,
                cancel=cancel,
                logger_instance=self.logger,
            )
        except TransactionRevertedError as e:
            self._receipts[submitted.id] = e.receipt
            raise
        self._receipts[submitted.id] = receipt
        return receipt

    def submit_and_confirm(
        self,
        request: TransactionRequest,
        deadline: Optional[Deadline] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        submitted = self.submit(request)
        return self.confirm(submitted, deadline=deadline, cancel=cancel)

    def balance(self) -> int:
        """Balance of the signer's account in wei."""
        return self.client.balance_of(self.address)
