"""
EthrDidController - manage a did:ethr identity through an ERC-1056 registry.
"""
import logging
from typing import Any, Dict, Optional, Union

from hexbytes import HexBytes
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import TimeExhausted, Web3Exception
from web3.types import BlockIdentifier

from .authorization import AuthorizationResolver, Signer
from .config import NetworkConfig
from .context import ContractGeneration, IdentityContext
from .digest import DigestBuilder
from .exceptions import ConfigurationError, ConfirmationTimeoutError, SubmissionError
from .identifier import build_did, interpret_identifier
from .models import MetaSignature, TxReceipt
from .nonce import NonceResolver
from .operations import (
    AddDelegate,
    ChangeOwner,
    Operation,
    RevokeAttribute,
    RevokeDelegate,
    SetAttribute,
)
from .registry import get_registry_contract

DEFAULT_GAS_LIMIT = 123456
DEFAULT_GAS_PRICE = 1000000000  # 1 gwei

SignatureLike = Union[MetaSignature, Dict[str, Any], str, bytes]


class EthrDidController:
    """
    Controller for one did:ethr identity on behalf of its controller key.

    Every write operation comes in two flavours:

    - direct (``change_owner``, ``add_delegate``, ...): the resolved
      controller submits and pays for the transaction;
    - signed (``change_owner_signed``, ...): a relayer submits a signature
      produced over the digest from the matching ``create_*_hash`` method.

    The signature of a signed call is not checked locally. A signature that
    does not match the arguments, or was made against a nonce that has since
    advanced, reverts on-chain and surfaces as SubmissionError.
    """

    def __init__(
        self,
        identifier: str,
        contract: Optional[Contract] = None,
        signer: Optional[Signer] = None,
        chain_name_or_id: Union[str, int] = "mainnet",
        provider: Any = None,
        rpc_url: Optional[str] = None,
        registry: Optional[str] = None,
        legacy_nonce: bool = True,
        confirmation_timeout: float = 120,
        poll_latency: float = 0.1,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the controller

        Args:
            identifier: A did:ethr string, a public key (hex) or an address
            contract: Registry contract binding. One of contract, provider or
                rpc_url is required
            signer: Local signer for the current controller key (optional)
            chain_name_or_id: Network name or chain id, unless the DID names one
            provider: Web3 instance or web3 provider
            rpc_url: JSON-RPC URL
            registry: Registry address, defaults to the network's deployment
            legacy_nonce: Set for registries older than ethr-did-registry 1.0.0
            confirmation_timeout: Seconds to wait for a receipt
            poll_latency: Seconds between receipt polls
            logger: Optional logger instance

        Raises:
            ConfigurationError: If no registry binding can be created or the
                identifier is invalid
        """
        self.logger = logger or logging.getLogger(__name__)
        parsed = interpret_identifier(identifier)
        network = parsed.network or chain_name_or_id

        if contract is None:
            if provider is None and not rpc_url:
                raise ConfigurationError(
                    "either a contract instance or a provider or rpc_url is required to initialize"
                )
            contract = get_registry_contract(
                network=str(network), provider=provider, rpc_url=rpc_url, registry=registry
            )

        self.context = IdentityContext(
            address=parsed.address,
            did=build_did(parsed, str(network) if network is not None else None),
            registry=contract,
            generation=ContractGeneration.from_legacy_flag(legacy_nonce),
        )
        self.authorization = AuthorizationResolver(self.context, signer)
        self.nonces = NonceResolver(self.context, self.authorization)
        self.digests = DigestBuilder(self.context, self.nonces)
        self.confirmation_timeout = confirmation_timeout
        self.poll_latency = poll_latency

    @classmethod
    def from_network(
        cls,
        identifier: str,
        network: str,
        signer: Optional[Signer] = None,
        rpc_url: Optional[str] = None,
        **kwargs: Any,
    ) -> "EthrDidController":
        """
        Create a controller for a network from the bundled network config.

        Args:
            identifier: did:ethr string, public key or address
            network: Network name from ``NetworkConfig``
            signer: Local signer (optional)
            rpc_url: Override for the configured RPC URL
            **kwargs: Passed through to the constructor

        Raises:
            ConfigurationError: If the network is unknown
        """
        try:
            rpc = NetworkConfig.get_rpc_url(network, override=rpc_url)
            registry = kwargs.pop("registry", None) or NetworkConfig.get_registry_address(network)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        return cls(
            identifier,
            signer=signer,
            chain_name_or_id=network,
            rpc_url=rpc,
            registry=registry,
            **kwargs,
        )

    @property
    def address(self) -> str:
        return self.context.address

    @property
    def did(self) -> str:
        return self.context.did

    @property
    def contract(self) -> Contract:
        return self.context.registry

    @property
    def legacy_nonce(self) -> bool:
        return self.context.generation == ContractGeneration.LEGACY

    def get_owner(self, address: Optional[str] = None, block_identifier: BlockIdentifier = "latest") -> str:
        """Current owner of ``address`` (default: this identity)."""
        return self.authorization.get_owner(address or self.address, block_identifier)

    # ------------------------------------------------------------------
    # Digests
    # ------------------------------------------------------------------

    def build_digest(self, op: Operation) -> bytes:
        """32-byte digest to sign for the signed variant of ``op``."""
        return self.digests.build_digest(op)

    def create_change_owner_hash(self, new_owner: str) -> str:
        return Web3.to_hex(self.build_digest(ChangeOwner(new_owner)))

    def create_add_delegate_hash(self, delegate_type: str, delegate_address: str, exp: int) -> str:
        return Web3.to_hex(self.build_digest(AddDelegate(delegate_type, delegate_address, exp)))

    def create_revoke_delegate_hash(self, delegate_type: str, delegate_address: str) -> str:
        return Web3.to_hex(self.build_digest(RevokeDelegate(delegate_type, delegate_address)))

    def create_set_attribute_hash(self, attr_name: str, attr_value: str, exp: int) -> str:
        return Web3.to_hex(self.build_digest(SetAttribute(attr_name, attr_value, exp)))

    def create_revoke_attribute_hash(self, attr_name: str, attr_value: str) -> str:
        return Web3.to_hex(self.build_digest(RevokeAttribute(attr_name, attr_value)))

    # ------------------------------------------------------------------
    # Direct transactions
    # ------------------------------------------------------------------

    def change_owner(self, new_owner: str, overrides: Optional[Dict[str, Any]] = None) -> TxReceipt:
        return self.submit(ChangeOwner(new_owner), overrides)

    def add_delegate(
        self,
        delegate_type: str,
        delegate_address: str,
        exp: int,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TxReceipt:
        return self.submit(AddDelegate(delegate_type, delegate_address, exp), overrides)

    def revoke_delegate(
        self,
        delegate_type: str,
        delegate_address: str,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TxReceipt:
        return self.submit(RevokeDelegate(delegate_type, delegate_address), overrides)

    def set_attribute(
        self,
        attr_name: str,
        attr_value: str,
        exp: int,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TxReceipt:
        return self.submit(SetAttribute(attr_name, attr_value, exp), overrides)

    def revoke_attribute(
        self,
        attr_name: str,
        attr_value: str,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TxReceipt:
        return self.submit(RevokeAttribute(attr_name, attr_value), overrides)

    # ------------------------------------------------------------------
    # Meta-transactions
    # ------------------------------------------------------------------

    def change_owner_signed(
        self,
        new_owner: str,
        signature: SignatureLike,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TxReceipt:
        return self.submit_signed(ChangeOwner(new_owner), signature, overrides)

    def add_delegate_signed(
        self,
        delegate_type: str,
        delegate_address: str,
        exp: int,
        signature: SignatureLike,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TxReceipt:
        return self.submit_signed(AddDelegate(delegate_type, delegate_address, exp), signature, overrides)

    def revoke_delegate_signed(
        self,
        delegate_type: str,
        delegate_address: str,
        signature: SignatureLike,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TxReceipt:
        return self.submit_signed(RevokeDelegate(delegate_type, delegate_address), signature, overrides)

    def set_attribute_signed(
        self,
        attr_name: str,
        attr_value: str,
        exp: int,
        signature: SignatureLike,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TxReceipt:
        return self.submit_signed(SetAttribute(attr_name, attr_value, exp), signature, overrides)

    def revoke_attribute_signed(
        self,
        attr_name: str,
        attr_value: str,
        signature: SignatureLike,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TxReceipt:
        return self.submit_signed(RevokeAttribute(attr_name, attr_value), signature, overrides)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, op: Operation, overrides: Optional[Dict[str, Any]] = None) -> TxReceipt:
        """
        Submit ``op`` as a transaction from the resolved controller.

        Args:
            op: Operation descriptor
            overrides: Transaction params merged over the defaults. ``from``
                names the controller explicitly and is not forwarded.

        Returns:
            Receipt of the mined transaction

        Raises:
            EncodingError: If an argument does not fit its field
            ResolutionError: If the owner cannot be read
            SubmissionError: If the node rejects the transaction or it reverts
            ConfirmationTimeoutError: If no receipt arrives in time
        """
        return self._submit(op, None, overrides)

    def submit_signed(
        self,
        op: Operation,
        signature: SignatureLike,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TxReceipt:
        """
        Relay ``op`` through the registry's ``*Signed`` function.

        ``signature`` must be over ``build_digest(op)`` at the current nonce.
        It may be a MetaSignature, a dict with v/r/s (or sigV/sigR/sigS) or
        a 65-byte signature.
        """
        return self._submit(op, self._coerce_signature(signature), overrides)

    def _submit(
        self,
        op: Operation,
        signature: Optional[MetaSignature],
        options: Optional[Dict[str, Any]],
    ) -> TxReceipt:
        overrides = self._merge_overrides(options)
        submitter = overrides.pop("from", None)
        args = op.call_args()

        handle = self.authorization.resolve(submitter)
        functions = self.contract.functions
        if signature is None:
            method = op.method
            contract_function = getattr(functions, method)(self.address, *args)
        else:
            method = op.signed_method
            contract_function = getattr(functions, method)(
                self.address, signature.v, signature.r_bytes(), signature.s_bytes(), *args
            )

        try:
            tx_hash = handle.send(contract_function, overrides)
        except (Web3Exception, ValueError, OSError) as e:
            self.logger.error(f"{method} for {self.did} rejected: {e}")
            raise SubmissionError(f"{method} transaction failed: {e}") from e

        tx_hash_hex = Web3.to_hex(HexBytes(tx_hash))
        self.logger.info(f"{method} sent for {self.did}: {tx_hash_hex}")
        return self._wait_for_receipt(method, tx_hash_hex)

    def _wait_for_receipt(self, method: str, tx_hash: str) -> TxReceipt:
        try:
            web3_receipt = self.contract.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.confirmation_timeout,
                poll_latency=self.poll_latency,
            )
        except TimeExhausted as e:
            self.logger.error(f"{method} {tx_hash} not mined within {self.confirmation_timeout}s")
            raise ConfirmationTimeoutError(
                f"Transaction {tx_hash} not confirmed within {self.confirmation_timeout}s",
                tx_hash=tx_hash,
            ) from e
        except (Web3Exception, ValueError, OSError) as e:
            self.logger.error(f"Failed waiting for {method} {tx_hash}: {e}")
            raise SubmissionError(f"Failed to confirm {tx_hash}: {e}", tx_hash=tx_hash) from e

        receipt = TxReceipt.from_web3(web3_receipt)
        if not receipt.succeeded:
            self.logger.error(f"{method} {tx_hash} reverted in block {receipt.block_number}")
            raise SubmissionError(f"Transaction {tx_hash} reverted", tx_hash=tx_hash, receipt=receipt)

        self.logger.info(f"{method} {tx_hash} confirmed in block {receipt.block_number}")
        return receipt

    @staticmethod
    def _merge_overrides(options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        options = dict(options or {})
        if "gasLimit" in options:
            options["gas"] = options.pop("gasLimit")

        overrides: Dict[str, Any] = {"gas": DEFAULT_GAS_LIMIT}
        # gasPrice cannot be combined with EIP-1559 fee fields
        if "maxFeePerGas" not in options and "maxPriorityFeePerGas" not in options:
            overrides["gasPrice"] = DEFAULT_GAS_PRICE
        overrides.update(options)
        return overrides

    @staticmethod
    def _coerce_signature(signature: SignatureLike) -> MetaSignature:
        if isinstance(signature, MetaSignature):
            return signature
        if isinstance(signature, dict):
            return MetaSignature.model_validate(signature)
        return MetaSignature.from_signature(signature)
