"""
Deploy-and-call demo against a local development node.

Connects to the node, deploys a greeter contract from a compiled artifact,
reads ``greet()``, sends ``setGreeting(...)``, reads ``greet()`` again and
prints the deployer's balance.

Usage::

    PRIVATE_KEY=0x... txsubmitter-demo --artifact out/HelloWorld.sol/HelloWorld.json
"""
import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, List, Optional

from .artifact import load_artifact
from .config import DemoSettings, NetworkConfig
from .contract import ContractHandle, contract_address_for
from .exceptions import ChainMismatchError, TxSubmitterError
from .models import ContractArtifact, Receipt
from .node import NodeClient, Web3NodeClient
from .signer import LocalSigner, Signer
from .submitter import TransactionSubmitter

logger = logging.getLogger(__name__)

DEFAULT_GREETING = "Hello from Python+Anvil!"
DEFAULT_UPDATE = "Updated from Python!"


@dataclass
class DemoResult:
    """What the demo did, for callers that want more than console output."""
    chain_id: int
    contract_address: str
    deploy_receipt: Receipt
    update_receipt: Receipt
    greeting_before: str
    greeting_after: str
    deployer: str
    balance_wei: int


def run_demo(
    client: NodeClient,
    signer: Signer,
    artifact: ContractArtifact,
    greeting: str = DEFAULT_GREETING,
    update: str = DEFAULT_UPDATE,
    deadline: timedelta = timedelta(seconds=60),
    poll_interval: float = 1.0,
    expected_chain_id: Optional[int] = None,
    echo: Callable[[str], None] = print,
) -> DemoResult:
    """
    Run the deploy, read, update, read sequence.

    Raises:
        ChainMismatchError: If ``expected_chain_id`` is set and the node differs
        TxSubmitterError: If any step fails; the deployment reverting is fatal
    """
    chain_id = client.chain_id()
    echo(f"Connected. ChainID: {chain_id}")
    if expected_chain_id is not None and expected_chain_id != chain_id:
        raise ChainMismatchError(expected_chain_id, chain_id)

    submitter = TransactionSubmitter(client, signer, poll_interval=poll_interval, default_deadline=deadline)
    contract = ContractHandle.from_artifact(artifact)

    deployer = signer.public_address()
    nonce = client.nonce_for(deployer)
    # gas price is re-read for every transaction
    deploy = contract.deploy_request(
        greeting,
        gas_price=client.suggest_gas_price(),
        chain_id=chain_id,
        deadline=deadline,
        nonce=nonce,
    )
    submitted = submitter.submit(deploy)
    echo(f"Deploy tx: {submitted.id}")
    echo(f"Contract address (pending): {contract_address_for(deployer, nonce)}")
    deploy_receipt = submitter.confirm(submitted)
    if not deploy_receipt.contract_address:
        raise TxSubmitterError(f"Receipt for {submitted.id} has no contract address")
    echo(f"Contract deployed at: {deploy_receipt.contract_address}")

    deployed = contract.at(deploy_receipt.contract_address)
    greeting_before = deployed.call(client, "greet")
    echo(f"greet(): {greeting_before}")

    set_greeting = deployed.transact_request(
        "setGreeting",
        update,
        gas_price=client.suggest_gas_price(),
        chain_id=chain_id,
        deadline=deadline,
    )
    submitted = submitter.submit(set_greeting)
    echo(f"setGreeting tx: {submitted.id}")
    update_receipt = submitter.confirm(submitted)

    greeting_after = deployed.call(client, "greet")
    echo(f"greet() after update: {greeting_after}")

    balance = client.balance_of(deployer)
    echo(f"Deployer: {deployer}  Balance: {balance} wei")

    return DemoResult(
        chain_id=chain_id,
        contract_address=deploy_receipt.contract_address,
        deploy_receipt=deploy_receipt,
        update_receipt=update_receipt,
        greeting_before=greeting_before,
        greeting_after=greeting_after,
        deployer=deployer,
        balance_wei=balance,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="txsubmitter-demo",
        description="Deploy a greeter contract to a development node and update it",
    )
    parser.add_argument("--rpc-url", help="JSON-RPC endpoint (default: $RPC_URL or http://127.0.0.1:8545)")
    parser.add_argument("--network", help="Named network from the bundled networks.json")
    parser.add_argument("--artifact", help="Compiled contract artifact (default: $ARTIFACT_PATH)")
    parser.add_argument("--greeting", default=DEFAULT_GREETING, help="Constructor greeting")
    parser.add_argument("--update", default=DEFAULT_UPDATE, help="Greeting sent with setGreeting")
    parser.add_argument("--timeout", type=float, help="Seconds to wait for each receipt")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        rpc_url = args.rpc_url
        expected_chain_id = None
        if args.network:
            rpc_url = NetworkConfig.get_rpc_url(args.network, override=args.rpc_url)
            expected_chain_id = NetworkConfig.get_chain_id(args.network)

        settings = DemoSettings.from_env(
            rpc_url=rpc_url,
            artifact_path=args.artifact,
            tx_timeout=timedelta(seconds=args.timeout) if args.timeout is not None else None,
            expected_chain_id=expected_chain_id,
        )
        artifact = load_artifact(settings.artifact_path)
        signer = LocalSigner(settings.private_key)

        with Web3NodeClient(settings.rpc_url) as client:
            run_demo(
                client,
                signer,
                artifact,
                greeting=args.greeting,
                update=args.update,
                deadline=settings.tx_timeout,
                poll_interval=settings.poll_interval,
                expected_chain_id=settings.expected_chain_id,
            )
    except (TxSubmitterError, ValueError) as e:
        logger.error(f"Demo failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
