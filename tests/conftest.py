"""
Pytest fixtures for the txsubmitter tests.
"""
from unittest.mock import MagicMock

import pytest

from txsubmitter._rate_limited_log import reset_rate_limits
from txsubmitter.models import ContractArtifact, TransactionRequest
from txsubmitter.node import NodeClient
from txsubmitter.signer import LocalSigner
from tests.test_helpers import (
    GREETER_ABI,
    GREETER_BYTECODE,
    TEST_CHAIN_ID,
    TEST_CONTRACT,
    TEST_GAS_PRICE,
    TEST_PRIV_KEY,
    tx_hash,
)


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Each test starts with no suppressed log messages."""
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def mock_node():
    """
    A NodeClient mock behaving like a fresh Anvil node.

    Broadcasts return sequential hashes; no receipt is available until a
    test configures ``receipt_for``.
    """
    node = MagicMock(spec=NodeClient)
    node.chain_id.return_value = TEST_CHAIN_ID
    node.suggest_gas_price.return_value = TEST_GAS_PRICE
    node.balance_of.return_value = 10_000 * 10**18
    node.nonce_for.return_value = 0
    node.estimate_gas.return_value = 100_000

    counter = {"n": 0}

    def broadcast(raw_tx):
        counter["n"] += 1
        return tx_hash(counter["n"])

    node.broadcast.side_effect = broadcast
    node.receipt_for.return_value = None
    return node


@pytest.fixture
def signer():
    return LocalSigner(TEST_PRIV_KEY)


@pytest.fixture
def call_request():
    return TransactionRequest(
        target_address=TEST_CONTRACT,
        payload=b"\xa4\x13\x68\x62",
        gas_price=TEST_GAS_PRICE,
        chain_id=TEST_CHAIN_ID,
    )


@pytest.fixture
def creation_request():
    return TransactionRequest(
        payload=GREETER_BYTECODE,
        gas_price=TEST_GAS_PRICE,
        chain_id=TEST_CHAIN_ID,
    )


@pytest.fixture
def greeter_artifact():
    return ContractArtifact(name="HelloWorld", abi=GREETER_ABI, bytecode=GREETER_BYTECODE)
