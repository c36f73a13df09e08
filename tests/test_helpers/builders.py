"""
Shared constants and builders for the txsubmitter tests.
"""
from typing import Optional

from txsubmitter.models import BlockReference, Receipt, ReceiptStatus

TEST_RPC_URL = "http://127.0.0.1:8545"
# First default Anvil/Hardhat development account
TEST_PRIV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TEST_CHAIN_ID = 31337
TEST_CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TEST_GAS_PRICE = 1_000_000_000  # 1 gwei

GREETER_ABI = [
    {
        "type": "constructor",
        "inputs": [{"name": "_greeting", "type": "string", "internalType": "string"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "greet",
        "inputs": [],
        "outputs": [{"name": "", "type": "string", "internalType": "string"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "setGreeting",
        "inputs": [{"name": "_greeting", "type": "string", "internalType": "string"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]
# Not real init code; only its bytes matter to the encoder
GREETER_BYTECODE = bytes.fromhex("6080604052348015600f57600080fd5b50")


def tx_hash(n: int) -> str:
    """Deterministic 32-byte transaction hash."""
    return "0x" + format(n, "064x")


def make_receipt(
    tx_id: str,
    status: ReceiptStatus = ReceiptStatus.SUCCESS,
    contract_address: Optional[str] = None,
    block_number: int = 1,
) -> Receipt:
    return Receipt(
        transaction_id=tx_id,
        status=status,
        contract_address=contract_address,
        block_reference=BlockReference(number=block_number, hash=tx_hash(10_000 + block_number)),
        gas_used=21_000,
    )
