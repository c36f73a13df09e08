"""
Contract ABI helpers.

Encodes constructor and method calls into TransactionRequests and decodes
the results of read-only calls. Encoding happens offline through web3's
ABI codec; only :meth:`ContractHandle.call` talks to a node.
"""
import logging
from typing import Any, Dict, List, Optional

import rlp
from web3 import Web3

from .exceptions import NodeError
from .models import ContractArtifact, TransactionRequest
from .node import NodeClient

logger = logging.getLogger(__name__)


def _abi_type(param: Dict[str, Any]) -> str:
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(_abi_type(c) for c in param.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def _checksummed(param: Dict[str, Any], value: Any) -> Any:
    """Checksum every address in a decoded value, descending into arrays and tuples."""
    abi_type = param["type"]
    if abi_type.endswith("]"):
        element = dict(param, type=abi_type[: abi_type.rindex("[")])
        return tuple(_checksummed(element, v) for v in value)
    if abi_type == "tuple":
        return tuple(_checksummed(c, v) for c, v in zip(param.get("components", []), value))
    if abi_type == "address":
        return Web3.to_checksum_address(value)
    return value


def contract_address_for(sender: str, nonce: int) -> str:
    """
    Address a contract created by ``sender`` with ``nonce`` will be deployed at.

    The address is the last 20 bytes of keccak256(rlp([sender, nonce])), so it
    is known as soon as the creation transaction is signed.
    """
    sender_bytes = Web3.to_bytes(hexstr=Web3.to_checksum_address(sender))
    return Web3.to_checksum_address(Web3.keccak(rlp.encode([sender_bytes, nonce]))[12:])


class ContractHandle:
    """
    ABI-aware view of one contract, deployed or not.

    Args:
        abi: Contract ABI
        address: Deployed address (None until deployed)
        bytecode: Init code, needed only for deployment
        name: Label used in logs
    """

    def __init__(
        self,
        abi: List[Dict[str, Any]],
        address: Optional[str] = None,
        bytecode: bytes = b"",
        name: str = "contract",
        w3: Optional[Web3] = None,
    ):
        self.abi = abi
        self.name = name
        self.bytecode = bytecode
        self.address = Web3.to_checksum_address(address) if address else None
        self._w3 = w3 or Web3()
        if self.address:
            self._contract = self._w3.eth.contract(address=self.address, abi=abi)
        else:
            self._contract = self._w3.eth.contract(abi=abi, bytecode=bytecode or None)

    @classmethod
    def from_artifact(cls, artifact: ContractArtifact, address: Optional[str] = None) -> "ContractHandle":
        return cls(artifact.abi, address=address, bytecode=artifact.bytecode, name=artifact.name)

    def at(self, address: str) -> "ContractHandle":
        """Handle for the same contract deployed at ``address``."""
        return ContractHandle(self.abi, address=address, bytecode=self.bytecode, name=self.name, w3=self._w3)

    def _function_abi(self, fn_name: str, arg_count: int) -> Dict[str, Any]:
        for entry in self.abi:
            if (
                entry.get("type") == "function"
                and entry.get("name") == fn_name
                and len(entry.get("inputs", [])) == arg_count
            ):
                return entry
        raise ValueError(f"{self.name} has no function {fn_name} taking {arg_count} argument(s)")

    def deploy_data(self, *args: Any) -> bytes:
        """Init code followed by the ABI-encoded constructor arguments."""
        if not self.bytecode:
            raise ValueError(f"{self.name} has no bytecode to deploy")
        data = self._contract.constructor(*args).data_in_transaction
        return Web3.to_bytes(hexstr=data)

    def encode_call(self, fn_name: str, *args: Any) -> bytes:
        """Selector and ABI-encoded arguments for ``fn_name(*args)``."""
        self._function_abi(fn_name, len(args))
        data = self._contract.encode_abi(fn_name, args=list(args))
        return Web3.to_bytes(hexstr=data)

    def decode_result(self, fn_name: str, arg_count: int, raw: bytes) -> Any:
        """Decode return data; a single output is unwrapped and addresses are checksummed."""
        entry = self._function_abi(fn_name, arg_count)
        outputs = entry.get("outputs", [])
        if not outputs:
            return None
        decoded = self._w3.codec.decode([_abi_type(o) for o in outputs], raw)
        values = [_checksummed(o, v) for o, v in zip(outputs, decoded)]
        if len(values) == 1:
            return values[0]
        return tuple(values)

    def deploy_request(
        self,
        *args: Any,
        gas_price: int,
        chain_id: int,
        **request_fields: Any,
    ) -> TransactionRequest:
        """Contract-creation request running the constructor with ``args``."""
        return TransactionRequest(
            target_address=None,
            payload=self.deploy_data(*args),
            gas_price=gas_price,
            chain_id=chain_id,
            **request_fields,
        )

    def transact_request(
        self,
        fn_name: str,
        *args: Any,
        gas_price: int,
        chain_id: int,
        **request_fields: Any,
    ) -> TransactionRequest:
        """State-changing call of ``fn_name(*args)`` on the deployed contract."""
        if not self.address:
            raise ValueError(f"{self.name} is not deployed")
        return TransactionRequest(
            target_address=self.address,
            payload=self.encode_call(fn_name, *args),
            gas_price=gas_price,
            chain_id=chain_id,
            **request_fields,
        )

    def call(self, client: NodeClient, fn_name: str, *args: Any, from_address: Optional[str] = None) -> Any:
        """
        Run a read-only method via ``eth_call`` and decode its result.

        Raises:
            NodeError: If the call fails or returns undecodable data
        """
        if not self.address:
            raise ValueError(f"{self.name} is not deployed")
        tx: Dict[str, Any] = {"to": self.address, "data": self.encode_call(fn_name, *args)}
        if from_address:
            tx["from"] = from_address
        raw = client.call(tx)
        try:
            result = self.decode_result(fn_name, len(args), raw)
        except Exception as e:
            raise NodeError(f"Could not decode result of {fn_name}: {e}") from e
        logger.debug(f"{self.name}.{fn_name}() -> {result!r}")
        return result
