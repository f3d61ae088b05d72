#!/usr/bin/env python3
"""
Example of relaying a signed attribute update through a third party.
"""
import os

from eth_account import Account

from ethr_did_controller import EthrDidController, MetaSignature, NetworkConfig


def main():
    """
    The identity owner signs the registry digest offline, and a relayer
    submits it and pays for gas.
    """
    OWNER_KEY = os.environ.get("OWNER_KEY")
    RELAYER_KEY = os.environ.get("RELAYER_KEY")
    NETWORK = os.environ.get("NETWORK", "sepolia")

    if not OWNER_KEY or not RELAYER_KEY:
        print("ERROR: OWNER_KEY and RELAYER_KEY environment variables are required")
        return

    print("Available networks:")
    for network_name in NetworkConfig.load_networks().keys():
        print(f"  - {network_name}")
    print()

    owner = Account.from_key(OWNER_KEY)
    relayer = Account.from_key(RELAYER_KEY)

    # Owner side: nothing is sent, only the nonce is read
    owner_view = EthrDidController.from_network(owner.address, NETWORK, legacy_nonce=False)
    digest = owner_view.create_set_attribute_hash("did/pub/Ed25519/veriKey/base64", "0x" + "ab" * 32, 86400)
    signed = owner.unsafe_sign_hash(digest)
    signature = MetaSignature(v=signed.v, r=signed.r.to_bytes(32, "big"), s=signed.s.to_bytes(32, "big"))
    print(f"Digest {digest} signed by {owner.address}")

    # Relayer side
    relay = EthrDidController.from_network(owner.address, NETWORK, signer=relayer, legacy_nonce=False)
    receipt = relay.set_attribute_signed(
        "did/pub/Ed25519/veriKey/base64", "0x" + "ab" * 32, 86400, signature
    )
    print(f"Relayed by {relayer.address}: {receipt.tx_hash} (block {receipt.block_number})")


if __name__ == "__main__":
    main()
