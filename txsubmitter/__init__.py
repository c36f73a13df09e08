"""
txsubmitter - submit EVM transactions and wait for their receipts.
"""
from .artifact import load_artifact
from .contract import ContractHandle, contract_address_for
from .exceptions import (
    ArtifactError,
    ChainMismatchError,
    ConfigError,
    ConfirmationTimeoutError,
    NodeError,
    NodeTimeoutError,
    SigningError,
    SubmissionError,
    TransactionRevertedError,
    TxSubmitterError,
)
from .models import (
    BlockReference,
    ContractArtifact,
    Receipt,
    ReceiptStatus,
    SubmittedTransaction,
    TransactionRequest,
)
from .node import NodeClient, Web3NodeClient
from .signer import LocalSigner, Signer
from .submitter import TransactionSubmitter, confirm, submit, submit_and_confirm
from .version import __version__

__all__ = [
    "TransactionSubmitter",
    "submit",
    "confirm",
    "submit_and_confirm",
    "TransactionRequest",
    "SubmittedTransaction",
    "Receipt",
    "ReceiptStatus",
    "BlockReference",
    "ContractArtifact",
    "ContractHandle",
    "contract_address_for",
    "load_artifact",
    "NodeClient",
    "Web3NodeClient",
    "Signer",
    "LocalSigner",
    "TxSubmitterError",
    "NodeError",
    "NodeTimeoutError",
    "ChainMismatchError",
    "SigningError",
    "SubmissionError",
    "TransactionRevertedError",
    "ConfirmationTimeoutError",
    "ArtifactError",
    "ConfigError",
    "__version__",
]
