"""
Pytest fixtures for the ethr-did-controller tests.
"""
import itertools
import logging
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
from eth_account import Account
from eth_keys import keys
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TimeExhausted

from ethr_did_controller import EthrDidController, MetaSignature

# Constants for testing
TEST_RPC_URL = "https://rpc.example.com"
REGISTRY_ADDRESS = "0xdca7ef03e98e0dc2b855be647c39abe984fcf21b"
IDENTITY_KEY = "0x" + "11" * 32
OWNER_KEY = "0x" + "22" * 32
OTHER_KEY = "0x" + "33" * 32
DELEGATE_ADDRESS = "0x" + "de" * 20
NEW_OWNER_ADDRESS = "0x" + "ab" * 20

MESSAGE_PREFIX = b"\x19\x00"


def sign_digest(digest: bytes, private_key: str) -> MetaSignature:
    """Sign a raw 32-byte digest the way an external wallet would"""
    key = keys.PrivateKey(bytes.fromhex(private_key[2:]))
    return MetaSignature.from_signature(key.sign_msg_hash(digest).to_bytes())


def make_receipt(tx_hash: bytes, status: int = 1, sender: str = NEW_OWNER_ADDRESS) -> Dict[str, Any]:
    return {
        "transactionHash": HexBytes(tx_hash),
        "blockNumber": 12345,
        "blockHash": HexBytes(b"\xab" * 32),
        "status": status,
        "gasUsed": 85000,
        "from": sender,
        "to": Web3.to_checksum_address(REGISTRY_ADDRESS),
        "logs": [],
    }


class Revert(Exception):
    """Contract-level revert inside the fake registry"""


class _FakeCall:
    def __init__(self, registry: "FakeRegistry", name: str, args: Tuple[Any, ...]):
        self.registry = registry
        self.name = name
        self.args = args

    def call(self, block_identifier="latest"):
        return getattr(self.registry, f"_fn_{self.name}")(*self.args)

    def transact(self, tx_params: Dict[str, Any]) -> HexBytes:
        return self.registry.mine(self.name, self.args, tx_params)

    def build_transaction(self, tx_params: Dict[str, Any]) -> Dict[str, Any]:
        tx = {**tx_params, "to": self.registry.address, "data": self.name}
        self.registry.built.append((self, tx))
        return tx


class _FakeFunctions:
    def __init__(self, registry: "FakeRegistry"):
        self._registry = registry

    def __getattr__(self, name):
        if not hasattr(self._registry, f"_fn_{name}"):
            raise AttributeError(name)
        return lambda *args: _FakeCall(self._registry, name, args)


class FakeRegistry:
    """
    In-memory ERC-1056 registry.

    Recomputes the contract-side meta-transaction hash from the submitted
    arguments, recovers the signer and advances nonces, so relayed
    signatures succeed or revert the same way they would on-chain.
    """

    def __init__(self, legacy: bool = True, address: str = REGISTRY_ADDRESS):
        self.address = Web3.to_checksum_address(address)
        self.legacy = legacy
        self.owners: Dict[str, str] = {}
        self.nonces: Dict[str, int] = {}
        self.delegates: Dict[Tuple[str, bytes, str], int] = {}
        self.attributes: List[Tuple[str, bytes, bytes, int]] = []
        self.calls: List[Tuple[str, Tuple[Any, ...], Dict[str, Any]]] = []
        self.built: List[Tuple[_FakeCall, Dict[str, Any]]] = []
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self._counter = itertools.count(1)
        self.functions = _FakeFunctions(self)

        self.w3 = MagicMock()
        self.w3.provider = MagicMock()
        self.w3.eth.default_account = None
        self.w3.eth.accounts = []
        self.w3.eth.wait_for_transaction_receipt.side_effect = self._wait
        self.w3.eth.get_transaction_count.return_value = 7
        self.w3.eth.send_raw_transaction.side_effect = self._send_raw

    # -- chain plumbing ------------------------------------------------

    def mine(self, name: str, args: Tuple[Any, ...], tx_params: Dict[str, Any]) -> HexBytes:
        self.calls.append((name, args, dict(tx_params)))
        sender = Web3.to_checksum_address(tx_params["from"])
        try:
            getattr(self, f"_fn_{name}")(*args, sender=sender)
            status = 1
        except Revert:
            status = 0
        tx_hash = HexBytes(Web3.keccak(text=f"tx-{next(self._counter)}"))
        self.receipts[tx_hash.hex()] = make_receipt(tx_hash, status, sender)
        return tx_hash

    def _send_raw(self, raw_transaction):
        call, tx = self.built.pop()
        return self.mine(call.name, call.args, tx)

    def _wait(self, tx_hash, timeout=120, poll_latency=0.1):
        return self.receipts[HexBytes(tx_hash).hex()]

    # -- contract logic --------------------------------------------------

    def _fn_identityOwner(self, identity, sender=None):
        identity = Web3.to_checksum_address(identity)
        return self.owners.get(identity, identity)

    def _fn_nonce(self, key, sender=None):
        return self.nonces.get(Web3.to_checksum_address(key), 0)

    def _only_owner(self, identity, sender):
        if sender != self._fn_identityOwner(identity):
            raise Revert("bad_actor")

    def _check_signature(self, identity, v, r, s, method, payload, attribute=False):
        identity = Web3.to_checksum_address(identity)
        owner = self._fn_identityOwner(identity)
        nonce_key = identity if (self.legacy and attribute) else owner
        digest = Web3.keccak(
            MESSAGE_PREFIX
            + bytes.fromhex(self.address[2:])
            + self._fn_nonce(nonce_key).to_bytes(32, "big")
            + bytes.fromhex(identity[2:])
            + method.encode("utf-8")
            + payload
        )
        signature = keys.Signature(vrs=(v - 27, int.from_bytes(r, "big"), int.from_bytes(s, "big")))
        signer = signature.recover_public_key_from_msg_hash(bytes(digest)).to_checksum_address()
        if signer != owner:
            raise Revert("bad_signature")
        self.nonces[signer] = self.nonces.get(signer, 0) + 1

    def _fn_changeOwner(self, identity, new_owner, sender):
        self._only_owner(identity, sender)
        self.owners[Web3.to_checksum_address(identity)] = Web3.to_checksum_address(new_owner)

    def _fn_changeOwnerSigned(self, identity, v, r, s, new_owner, sender):
        self._check_signature(identity, v, r, s, "changeOwner", bytes.fromhex(new_owner[2:]))
        self.owners[Web3.to_checksum_address(identity)] = Web3.to_checksum_address(new_owner)

    def _fn_addDelegate(self, identity, delegate_type, delegate, validity, sender):
        self._only_owner(identity, sender)
        self.delegates[(identity, delegate_type, delegate)] = validity

    def _fn_addDelegateSigned(self, identity, v, r, s, delegate_type, delegate, validity, sender):
        payload = delegate_type + bytes.fromhex(delegate[2:]) + validity.to_bytes(32, "big")
        self._check_signature(identity, v, r, s, "addDelegate", payload)
        self.delegates[(identity, delegate_type, delegate)] = validity

    def _fn_revokeDelegate(self, identity, delegate_type, delegate, sender):
        self._only_owner(identity, sender)
        self.delegates[(identity, delegate_type, delegate)] = 0

    def _fn_revokeDelegateSigned(self, identity, v, r, s, delegate_type, delegate, sender):
        payload = delegate_type + bytes.fromhex(delegate[2:])
        self._check_signature(identity, v, r, s, "revokeDelegate", payload)
        self.delegates[(identity, delegate_type, delegate)] = 0

    def _fn_setAttribute(self, identity, name, value, validity, sender):
        self._only_owner(identity, sender)
        self.attributes.append((identity, name, value, validity))

    def _fn_setAttributeSigned(self, identity, v, r, s, name, value, validity, sender):
        payload = name + value + validity.to_bytes(32, "big")
        self._check_signature(identity, v, r, s, "setAttribute", payload, attribute=True)
        self.attributes.append((identity, name, value, validity))

    def _fn_revokeAttribute(self, identity, name, value, sender):
        self._only_owner(identity, sender)
        self.attributes.append((identity, name, value, 0))

    def _fn_revokeAttributeSigned(self, identity, v, r, s, name, value, sender):
        payload = name + value
        self._check_signature(identity, v, r, s, "revokeAttribute", payload, attribute=True)
        self.attributes.append((identity, name, value, 0))


@pytest.fixture
def identity_account():
    return Account.from_key(IDENTITY_KEY)


@pytest.fixture
def owner_account():
    return Account.from_key(OWNER_KEY)


@pytest.fixture
def other_account():
    return Account.from_key(OTHER_KEY)


@pytest.fixture
def fake_registry():
    """Legacy-generation registry (nonce of attribute methods keyed by identity)"""
    return FakeRegistry(legacy=True)


@pytest.fixture
def modern_registry():
    """Registry 1.0.0+ (every nonce keyed by the current owner)"""
    return FakeRegistry(legacy=False)


@pytest.fixture
def controller(identity_account, fake_registry):
    """Controller for the identity account, using node-managed signing"""
    return EthrDidController(identity_account.address, contract=fake_registry)


@pytest.fixture
def mock_contract():
    """
    MagicMock registry binding with scriptable owner and nonce lookups.

    Set ``mock_contract.owner`` and ``mock_contract.nonce_values`` in a test;
    ``mock_contract.nonce_keys`` records every address a nonce was read for.
    """
    contract = MagicMock()
    contract.address = Web3.to_checksum_address(REGISTRY_ADDRESS)
    contract.owner = None
    contract.nonce_values = {}
    contract.nonce_keys = []

    def identity_owner(address):
        fn = MagicMock()
        fn.call.return_value = contract.owner or address
        return fn

    def nonce(address):
        contract.nonce_keys.append(address)
        fn = MagicMock()
        fn.call.return_value = contract.nonce_values.get(address, 0)
        return fn

    contract.functions.identityOwner.side_effect = identity_owner
    contract.functions.nonce.side_effect = nonce

    tx_hash = HexBytes(b"\x01" * 32)
    for method in (
        "changeOwner", "addDelegate", "revokeDelegate", "setAttribute", "revokeAttribute",
        "changeOwnerSigned", "addDelegateSigned", "revokeDelegateSigned",
        "setAttributeSigned", "revokeAttributeSigned",
    ):
        getattr(contract.functions, method).return_value.transact.return_value = tx_hash

    contract.w3.provider = MagicMock()
    contract.w3.eth.default_account = None
    contract.w3.eth.accounts = []
    contract.w3.eth.wait_for_transaction_receipt.return_value = make_receipt(tx_hash)
    return contract


@pytest.fixture
def timeout_error():
    return TimeExhausted("Transaction is not in the chain after 120 seconds")


@pytest.fixture
def quiet_logger():
    logger = logging.getLogger("ethr_did_controller.tests")
    logger.addHandler(logging.NullHandler())
    return logger
