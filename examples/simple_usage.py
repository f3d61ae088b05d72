#!/usr/bin/env python3
"""
Simple example of managing a did:ethr identity.
"""
import os
import time

from eth_account import Account

from ethr_did_controller import EthrDidController


def main():
    """
    Demonstrate direct registry writes.

    This example shows how to:
    1. Initialize the controller for an identity
    2. Read the current owner
    3. Add a signing delegate and publish a service endpoint
    """
    RPC_URL = os.environ.get("RPC_URL", "http://localhost:8545")
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")

    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    account = Account.from_key(PRIVATE_KEY)
    controller = EthrDidController(
        account.address,
        signer=account,
        chain_name_or_id="dev",
        rpc_url=RPC_URL,
    )
    print(f"DID: {controller.did}")
    print(f"Owner: {controller.get_owner()}")

    one_day = 86400
    delegate = Account.create()

    try:
        receipt = controller.add_delegate("veriKey", delegate.address, one_day)
        print(f"Delegate added in block {receipt.block_number}: {receipt.tx_hash}")

        receipt = controller.set_attribute(
            "did/svc/HubService", "https://hub.example.com/.identity/", one_day
        )
        print(f"Service published in block {receipt.block_number}: {receipt.tx_hash}")
        print(f"Valid until roughly {time.ctime(time.time() + one_day)}")
    except Exception as e:
        print(f"Error updating identity: {str(e)}")


if __name__ == "__main__":
    main()
