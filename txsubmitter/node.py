"""
Node client layer.

This module defines the interface the submitter needs from a blockchain
node and a web3.py implementation speaking JSON-RPC over HTTP.
"""
import logging
import urllib.parse
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from web3 import Web3
from web3.exceptions import TransactionNotFound, Web3Exception
from web3.providers.rpc.utils import REQUEST_RETRY_ALLOWLIST, ExceptionRetryConfiguration

from .exceptions import NodeError, NodeTimeoutError, SubmissionError
from .models import BlockReference, Receipt, ReceiptStatus

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "http://127.0.0.1:8545"

# Messages nodes use when a broadcast duplicates a transaction they hold
_ALREADY_KNOWN = ("already known", "known transaction", "already imported")

# Methods web3 may resend after a transport error. Broadcasts are never resent;
# receipt polls are repeated by the confirmation loop under its own deadline.
READ_RETRY_ALLOWLIST = [
    method for method in REQUEST_RETRY_ALLOWLIST
    if method not in ("eth_sendRawTransaction", "eth_getTransactionReceipt")
]


class NodeClient(ABC):
    """
    Abstract interface to a blockchain node.

    Implementations raise :class:`NodeError` for failed reads and
    :class:`SubmissionError` when a broadcast is rejected.
    """

    @abstractmethod
    def chain_id(self) -> int:
        """Chain ID reported by the node."""
        pass

    @abstractmethod
    def suggest_gas_price(self) -> int:
        """Current gas price suggestion in wei."""
        pass

    @abstractmethod
    def balance_of(self, address: str) -> int:
        """Balance of ``address`` in wei at the latest block."""
        pass

    @abstractmethod
    def nonce_for(self, address: str) -> int:
        """Next nonce for ``address``, counting pending transactions."""
        pass

    @abstractmethod
    def estimate_gas(self, tx: Mapping[str, Any]) -> int:
        """Gas the node expects ``tx`` to consume."""
        pass

    @abstractmethod
    def broadcast(self, raw_tx: bytes) -> str:
        """
        Send a signed transaction.

        Returns:
            Transaction hash as 0x-prefixed hex

        Raises:
            SubmissionError: If the node rejects the transaction
        """
        pass

    @abstractmethod
    def receipt_for(self, tx_id: str, timeout: Optional[float] = None) -> Optional[Receipt]:
        """
        Receipt for ``tx_id``, or None if it has not been mined yet.

        Raises:
            NodeTimeoutError: If the node did not answer within ``timeout`` seconds
        """
        pass

    @abstractmethod
    def call(self, tx: Mapping[str, Any]) -> bytes:
        """Execute a read-only call against the latest block."""
        pass

    def close(self) -> None:
        """Close any open connections or resources."""
        pass


def validate_rpc_url(rpc_url: str) -> str:
    """
    Require https for remote nodes.

    Plain http is accepted for localhost and 127.0.0.1 so local development
    nodes (Anvil, Hardhat) work without TLS.

    Raises:
        ValueError: If a remote URL does not use https
    """
    parsed = urllib.parse.urlparse(rpc_url)
    host = parsed.hostname or ""
    is_local = host in ("localhost", "127.0.0.1")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"rpc_url is not a valid http(s) URL: {rpc_url}")
    if parsed.scheme != "https" and not is_local:
        raise ValueError(f"rpc_url must use https:// for security (got: {parsed.scheme}://)")
    return rpc_url


def _rpc_tx(tx: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy a transaction dict with byte values hex-encoded for JSON-RPC."""
    return {k: Web3.to_hex(v) if isinstance(v, (bytes, bytearray)) else v for k, v in tx.items()}


def _is_already_known(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _ALREADY_KNOWN)


def receipt_from_web3(web3_receipt: Mapping[str, Any]) -> Receipt:
    """
    Convert a web3 receipt to our Receipt model

    Args:
        web3_receipt: The receipt returned by ``eth_getTransactionReceipt``

    Returns:
        Our Receipt model
    """
    status = ReceiptStatus.SUCCESS if web3_receipt.get("status") == 1 else ReceiptStatus.FAILED
    block_hash = web3_receipt.get("blockHash")
    return Receipt(
        transaction_id=Web3.to_hex(web3_receipt["transactionHash"]),
        status=status,
        contract_address=web3_receipt.get("contractAddress"),
        block_reference=BlockReference(
            number=web3_receipt.get("blockNumber") or 0,
            hash=Web3.to_hex(block_hash) if block_hash is not None else "0x",
        ),
        gas_used=web3_receipt.get("gasUsed") or 0,
    )


class Web3NodeClient(NodeClient):
    """
    NodeClient backed by web3.py over HTTP JSON-RPC.

    The HTTP session only retries failed connection attempts, which never
    reached the node. Reads are also retried by web3 after timeouts and 5xx
    answers, but broadcasts that may have been delivered are never resent.
    """

    def __init__(
        self,
        rpc_url: str = DEFAULT_RPC_URL,
        retry_count: int = 3,
        timeout: int = 30,
        w3: Optional[Web3] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """
        Initialize the node client

        Args:
            rpc_url: JSON-RPC endpoint (https unless localhost/127.0.0.1)
            retry_count: Number of retries for failed connection attempts
            timeout: Timeout for HTTP requests in seconds
            w3: Preconfigured Web3 instance (skips provider setup)
            logger_instance: Optional logger to use

        Raises:
            ValueError: If the URL is not acceptable
        """
        self.rpc_url = validate_rpc_url(rpc_url)
        self.logger = logger_instance or logger
        self.session: Optional[requests.Session] = None

        if w3 is None:
            self.session = requests.Session()
            retries = Retry(
                total=retry_count,
                connect=retry_count,
                read=0,
                status=0,
                other=0,
                backoff_factor=0.5,
                allowed_methods=["POST"],
            )
            self.session.mount("http://", HTTPAdapter(max_retries=retries))
            self.session.mount("https://", HTTPAdapter(max_retries=retries))
            read_retries = ExceptionRetryConfiguration(
                errors=(requests.ConnectionError, requests.HTTPError, requests.Timeout),
                retries=retry_count + 1,
                backoff_factor=0.5,
                method_allowlist=READ_RETRY_ALLOWLIST,
            )
            w3 = Web3(Web3.HTTPProvider(
                rpc_url,
                request_kwargs={"timeout": timeout},
                session=self.session,
                exception_retry_configuration=read_retries,
            ))
        self.w3 = w3

    def _read(self, what: str, fn, *args):
        try:
            return fn(*args)
        except (Web3Exception, requests.RequestException, ValueError) as e:
            self.logger.error(f"Failed to fetch {what}: {e}")
            raise NodeError(f"Failed to fetch {what}: {e}") from e

    def _bounded_w3(self, timeout: Optional[float]) -> Web3:
        """Web3 on the same session whose requests give up after ``timeout`` seconds."""
        if timeout is None or self.session is None:
            return self.w3
        provider = Web3.HTTPProvider(
            self.rpc_url,
            request_kwargs={"timeout": timeout},
            session=self.session,
            exception_retry_configuration=None,
        )
        return Web3(provider)

    def chain_id(self) -> int:
        return int(self._read("chain ID", lambda: self.w3.eth.chain_id))

    def suggest_gas_price(self) -> int:
        return int(self._read("gas price", lambda: self.w3.eth.gas_price))

    def balance_of(self, address: str) -> int:
        checksum = Web3.to_checksum_address(address)
        return int(self._read("balance", self.w3.eth.get_balance, checksum))

    def nonce_for(self, address: str) -> int:
        checksum = Web3.to_checksum_address(address)
        return int(self._read("nonce", self.w3.eth.get_transaction_count, checksum, "pending"))

    def estimate_gas(self, tx: Mapping[str, Any]) -> int:
        return int(self._read("gas estimate", self.w3.eth.estimate_gas, _rpc_tx(tx)))

    def broadcast(self, raw_tx: bytes) -> str:
        # the hash of a signed transaction is the keccak of its raw bytes
        local_id = Web3.to_hex(Web3.keccak(raw_tx))
        try:
            tx_hash = self.w3.eth.send_raw_transaction(raw_tx)
        except (Web3Exception, ValueError) as e:
            if _is_already_known(e):
                self.logger.warning(f"Node already has transaction {local_id}")
                return local_id
            self.logger.error(f"Failed to send transaction: {e}")
            raise SubmissionError(f"Failed to send transaction: {e}", tx_id=local_id) from e
        except requests.RequestException as e:
            # the node may have accepted it before the response was lost
            maybe_sent = not isinstance(e, requests.ConnectTimeout)
            self.logger.error(f"Failed to send transaction {local_id} (maybe sent: {maybe_sent}): {e}")
            raise SubmissionError(
                f"Failed to send transaction: {e}", maybe_sent=maybe_sent, tx_id=local_id
            ) from e
        tx_id = Web3.to_hex(tx_hash)
        self.logger.info(f"Transaction sent: {tx_id}")
        return tx_id

    def receipt_for(self, tx_id: str, timeout: Optional[float] = None) -> Optional[Receipt]:
        try:
            web3_receipt = self._bounded_w3(timeout).eth.get_transaction_receipt(tx_id)
        except TransactionNotFound:
            return None
        except requests.Timeout as e:
            self.logger.debug(f"Receipt lookup for {tx_id} timed out: {e}")
            raise NodeTimeoutError(f"Receipt lookup for {tx_id} timed out after {timeout}s") from e
        except (Web3Exception, requests.RequestException, ValueError) as e:
            self.logger.error(f"Failed to fetch receipt for {tx_id}: {e}")
            raise NodeError(f"Failed to fetch receipt for {tx_id}: {e}") from e
        if web3_receipt is None:
            return None
        return receipt_from_web3(web3_receipt)

    def call(self, tx: Mapping[str, Any]) -> bytes:
        return bytes(self._read("call result", self.w3.eth.call, _rpc_tx(tx)))

    def close(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None

    def __enter__(self) -> "Web3NodeClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
