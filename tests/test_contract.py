"""
Tests for ABI encoding and read-only contract calls.
"""
from unittest.mock import MagicMock

import pytest
from web3 import Web3

from txsubmitter.contract import ContractHandle, contract_address_for
from txsubmitter.exceptions import NodeError
from txsubmitter.node import NodeClient
from tests.test_helpers import GREETER_ABI, GREETER_BYTECODE, TEST_ADDRESS, TEST_CHAIN_ID, TEST_CONTRACT


def _selector(signature: str) -> bytes:
    return bytes(Web3.keccak(text=signature)[:4])


@pytest.fixture
def greeter(greeter_artifact):
    return ContractHandle.from_artifact(greeter_artifact)


@pytest.fixture
def deployed(greeter):
    return greeter.at(TEST_CONTRACT)


def test_deploy_data_appends_constructor_args(greeter):
    data = greeter.deploy_data("Hello")

    assert data.startswith(GREETER_BYTECODE)
    encoded_args = data[len(GREETER_BYTECODE):]
    assert Web3().codec.decode(["string"], encoded_args) == ("Hello",)


def test_deploy_request(greeter):
    request = greeter.deploy_request("Hello", gas_price=7, chain_id=TEST_CHAIN_ID)

    assert request.is_creation
    assert request.payload == greeter.deploy_data("Hello")
    assert request.gas_price == 7
    assert request.chain_id == TEST_CHAIN_ID


def test_deploy_without_bytecode():
    handle = ContractHandle(GREETER_ABI, address=TEST_CONTRACT)

    with pytest.raises(ValueError, match="no bytecode"):
        handle.deploy_data("Hello")


def test_encode_call(deployed):
    data = deployed.encode_call("setGreeting", "Updated")

    assert data[:4] == _selector("setGreeting(string)")
    assert Web3().codec.decode(["string"], data[4:]) == ("Updated",)


def test_encode_unknown_function(deployed):
    with pytest.raises(ValueError, match="no function missing"):
        deployed.encode_call("missing")


def test_transact_request_targets_contract(deployed):
    request = deployed.transact_request("setGreeting", "Updated", gas_price=1, chain_id=TEST_CHAIN_ID, nonce=3)

    assert request.target_address == TEST_CONTRACT
    assert request.payload[:4] == _selector("setGreeting(string)")
    assert request.nonce == 3


def test_transact_request_requires_address(greeter):
    with pytest.raises(ValueError, match="not deployed"):
        greeter.transact_request("setGreeting", "x", gas_price=1, chain_id=1)


def test_at_checksums_address(greeter):
    assert greeter.at(TEST_CONTRACT.lower()).address == TEST_CONTRACT


def test_call_decodes_string(deployed):
    node = MagicMock(spec=NodeClient)
    node.call.return_value = Web3().codec.encode(["string"], ["Hello from Python+Anvil!"])

    result = deployed.call(node, "greet", from_address=TEST_ADDRESS)

    assert result == "Hello from Python+Anvil!"
    tx = node.call.call_args[0][0]
    assert tx["to"] == TEST_CONTRACT
    assert tx["from"] == TEST_ADDRESS
    assert tx["data"] == _selector("greet()")


def test_call_with_undecodable_result(deployed):
    node = MagicMock(spec=NodeClient)
    node.call.return_value = b""

    with pytest.raises(NodeError, match="Could not decode"):
        deployed.call(node, "greet")


def test_function_without_outputs_returns_none(deployed):
    assert deployed.decode_result("setGreeting", 1, b"") is None


def test_multiple_outputs_are_a_tuple():
    abi = [{
        "type": "function",
        "name": "pair",
        "inputs": [],
        "outputs": [
            {"name": "a", "type": "uint256"},
            {"name": "b", "type": "tuple", "components": [{"name": "x", "type": "address"}, {"name": "y", "type": "bool"}]},
        ],
        "stateMutability": "view",
    }]
    handle = ContractHandle(abi, address=TEST_CONTRACT)
    raw = Web3().codec.encode(["uint256", "(address,bool)"], [5, (TEST_ADDRESS, True)])

    assert handle.decode_result("pair", 0, raw) == (5, (TEST_ADDRESS, True))


def test_address_outputs_are_checksummed():
    abi = [
        {
            "type": "function",
            "name": "owner",
            "inputs": [],
            "outputs": [{"name": "", "type": "address"}],
            "stateMutability": "view",
        },
        {
            "type": "function",
            "name": "members",
            "inputs": [],
            "outputs": [{"name": "", "type": "address[]"}],
            "stateMutability": "view",
        },
    ]
    handle = ContractHandle(abi, address=TEST_CONTRACT)

    owner = handle.decode_result("owner", 0, Web3().codec.encode(["address"], [TEST_ADDRESS]))
    members = handle.decode_result(
        "members", 0, Web3().codec.encode(["address[]"], [[TEST_ADDRESS, TEST_CONTRACT]])
    )

    assert owner == TEST_ADDRESS
    assert members == (TEST_ADDRESS, TEST_CONTRACT)


def test_contract_address_for_first_deployment():
    assert contract_address_for(TEST_ADDRESS, 0) == TEST_CONTRACT
    assert contract_address_for(TEST_ADDRESS.lower(), 0) == TEST_CONTRACT


def test_contract_address_changes_with_nonce():
    assert contract_address_for(TEST_ADDRESS, 1) != contract_address_for(TEST_ADDRESS, 0)
