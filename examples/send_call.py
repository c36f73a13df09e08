#!/usr/bin/env python3
"""
Send a call to an already deployed contract and wait for its receipt.
"""
import os

from txsubmitter import (
    ConfirmationTimeoutError,
    ContractHandle,
    LocalSigner,
    TransactionRevertedError,
    TransactionSubmitter,
    Web3NodeClient,
    load_artifact,
)


def main():
    """
    Demonstrate the submitter on its own:

    1. Connect to the node and load the signing key
    2. Encode ``setGreeting`` for a deployed greeter
    3. Submit it and wait for the receipt
    """
    RPC_URL = os.environ.get("RPC_URL", "http://127.0.0.1:8545")
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    CONTRACT_ADDRESS = os.environ.get("GREETER_ADDRESS")
    ARTIFACT_PATH = os.environ.get("ARTIFACT_PATH", "out/HelloWorld.sol/HelloWorld.json")

    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    if not CONTRACT_ADDRESS:
        print("ERROR: GREETER_ADDRESS environment variable is required")
        return

    greeter = ContractHandle.from_artifact(load_artifact(ARTIFACT_PATH), address=CONTRACT_ADDRESS)

    with Web3NodeClient(RPC_URL) as client:
        submitter = TransactionSubmitter(client, LocalSigner(PRIVATE_KEY), poll_interval=0.5)
        request = submitter.new_request(
            greeter.encode_call("setGreeting", "Hello again"),
            target_address=greeter.address,
            deadline=30,
        )
        submitted = submitter.submit(request)
        print(f"Transaction hash: {submitted.id}")

        try:
            receipt = submitter.confirm(submitted)
        except TransactionRevertedError as e:
            print(f"Reverted in block {e.receipt.block_reference.number}")
            return
        except ConfirmationTimeoutError:
            # Still pending; it may be mined later
            print("No receipt yet, check again later")
            return

        print(f"Block number: {receipt.block_reference.number}")
        print(f"greet(): {greeter.call(client, 'greet')}")


if __name__ == "__main__":
    main()
