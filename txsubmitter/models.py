"""
Data models for the txsubmitter package.
"""
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from web3 import Web3

DEFAULT_DEADLINE = timedelta(seconds=60)


def _checksum(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not Web3.is_address(value):
        raise ValueError(f"Invalid address: {value}")
    return Web3.to_checksum_address(value)


class ReceiptStatus(str, Enum):
    """On-chain outcome of a mined transaction."""
    SUCCESS = "success"
    FAILED = "failed"


class TransactionRequest(BaseModel):
    """
    Everything needed to build, sign and send one transaction.

    A missing ``target_address`` means contract creation; ``payload`` is then
    the init code. ``gas`` and ``nonce`` are filled from the node when left out.
    """
    model_config = ConfigDict(frozen=True)

    target_address: Optional[str] = None
    payload: bytes = b""
    gas_price: int = Field(..., ge=0)
    chain_id: int = Field(..., ge=0)
    deadline: timedelta = DEFAULT_DEADLINE
    value: int = Field(0, ge=0)
    gas: Optional[int] = Field(None, gt=0)
    nonce: Optional[int] = Field(None, ge=0)

    @field_validator("target_address")
    @classmethod
    def _validate_target(cls, value: Optional[str]) -> Optional[str]:
        return _checksum(value)

    @field_validator("deadline")
    @classmethod
    def _validate_deadline(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("deadline must be positive")
        return value

    @property
    def is_creation(self) -> bool:
        return self.target_address is None


class SubmittedTransaction(BaseModel):
    """A transaction accepted by the node, identified by its hash."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=66, max_length=66, pattern=r"^0x[0-9a-fA-F]{64}$")
    request: TransactionRequest


class BlockReference(BaseModel):
    """Where a transaction was mined."""
    model_config = ConfigDict(frozen=True)

    number: int
    hash: str


class Receipt(BaseModel):
    """Confirmation record for a mined transaction"""
    model_config = ConfigDict(frozen=True)

    transaction_id: str
    status: ReceiptStatus
    contract_address: Optional[str] = None
    block_reference: BlockReference
    gas_used: int = 0

    @field_validator("contract_address")
    @classmethod
    def _validate_contract_address(cls, value: Optional[str]) -> Optional[str]:
        return _checksum(value)

    @property
    def succeeded(self) -> bool:
        return self.status is ReceiptStatus.SUCCESS


class ContractArtifact(BaseModel):
    """ABI and init code of a compiled contract"""
    model_config = ConfigDict(frozen=True)

    name: str
    abi: List[Dict[str, Any]]
    bytecode: bytes = Field(..., min_length=1)
