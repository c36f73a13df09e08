"""
In-memory private key signer backed by eth-account.
"""
import logging
from typing import Any, Dict, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)


class LocalSigner:
    """
    Signs transactions with a private key held in memory.

    Keys are accepted with or without a ``0x`` prefix; surrounding whitespace
    (as often left in environment variables) is ignored.
    """

    def __init__(self, private_key: str, logger_instance: Optional[logging.Logger] = None):
        if not private_key or not private_key.strip():
            raise ValueError("private_key must not be empty")
        key = private_key.strip()
        if not key.startswith("0x"):
            key = "0x" + key
        self.logger = logger_instance or logger
        self._account: LocalAccount = Account.from_key(key)

    @property
    def address(self) -> str:
        return self._account.address

    def public_address(self) -> str:
        return self._account.address

    def sign(self, unsigned_tx: Dict[str, Any], chain_id: int) -> bytes:
        """
        Sign a transaction for the given chain.

        Args:
            unsigned_tx: Transaction fields (nonce, gas, gasPrice, data, ...)
            chain_id: Chain ID to bind the signature to (EIP-155)

        Returns:
            Raw signed transaction bytes ready for broadcast
        """
        tx = dict(unsigned_tx)
        tx["chainId"] = chain_id
        signed = self._account.sign_transaction(tx)
        self.logger.debug(f"Signed transaction {signed.hash.hex()} for chain {chain_id}")
        return bytes(signed.raw_transaction)

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address})"
