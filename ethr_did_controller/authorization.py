"""
Resolution of the key entitled to act for an identity.
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional, Protocol

from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.types import BlockIdentifier

from .context import IdentityContext
from .encoding import checksum_address
from .exceptions import ConfigurationError, ResolutionError

logger = logging.getLogger(__name__)


class Signer(Protocol):
    """Protocol for local signers (eth_account accounts satisfy it)"""
    address: str

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        """Sign transaction and return signed tx object"""
        ...


class SignerSource(str, Enum):
    LOCAL = "local"
    NODE = "node"
    DEFAULT = "default"


class SigningHandle:
    """
    A signer bound to one submission.

    Handles are created by ``AuthorizationResolver.resolve`` and are not
    meant to be kept around: ownership may change between submissions.
    """

    def __init__(self, w3: Web3, address: str, source: SignerSource, signer: Optional[Signer] = None):
        self.w3 = w3
        self.address = address
        self.source = source
        self.signer = signer

    def send(self, contract_function: Any, overrides: Dict[str, Any]) -> HexBytes:
        """
        Submit a bound contract function call.

        Args:
            contract_function: web3 ContractFunction with arguments applied
            overrides: Transaction params (gas, gasPrice, ...) without ``from``

        Returns:
            Transaction hash
        """
        if self.source == SignerSource.LOCAL:
            tx_params = {"from": self.address, **overrides}
            if "nonce" not in tx_params:
                tx_params["nonce"] = self.w3.eth.get_transaction_count(self.address)
            tx = contract_function.build_transaction(tx_params)
            signed_tx = self.signer.sign_transaction(tx)
            return self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)

        if self.source == SignerSource.NODE:
            return contract_function.transact({**overrides, "from": self.address})

        # web3 fills in w3.eth.default_account
        return contract_function.transact(dict(overrides))

    def __repr__(self) -> str:
        return f"SigningHandle(address={self.address!r}, source={self.source.value!r})"


class AuthorizationResolver:
    """
    Decides which address may act for an identity and how to sign for it.

    The owner is read from the registry on every call; nothing is cached.
    """

    def __init__(self, context: IdentityContext, signer: Optional[Signer] = None):
        self.context = context
        self.signer = signer

    @property
    def w3(self) -> Web3:
        return self.context.registry.w3

    def get_owner(self, address: Optional[str] = None, block_identifier: BlockIdentifier = "latest") -> str:
        """
        Current owner of an identity according to the registry.

        Args:
            address: Identity address, defaults to the managed identity
            block_identifier: Block to read at

        Returns:
            Checksummed owner address

        Raises:
            ResolutionError: If the call fails or returns a malformed address
        """
        address = address or self.context.address
        try:
            owner = self.context.registry.functions.identityOwner(address).call(
                block_identifier=block_identifier
            )
        except (Web3Exception, ValueError, OSError) as e:
            logger.error(f"identityOwner lookup failed for {address}: {e}")
            raise ResolutionError(f"Failed to resolve owner of {address}: {e}") from e

        if not isinstance(owner, str) or not Web3.is_address(owner):
            raise ResolutionError(f"Registry returned malformed owner for {address}: {owner!r}")
        return Web3.to_checksum_address(owner)

    def resolve(self, submitter: Optional[str] = None) -> SigningHandle:
        """
        Build a signing handle for the next submission.

        Args:
            submitter: Explicit controller address; skips the owner lookup

        Returns:
            SigningHandle bound to, in priority order, the local signer, the
            node-managed account of the controller, or the registry binding's
            default account. The default account is used over the node only
            when the node does not list the controller among its accounts.

        Raises:
            EncodingError: If ``submitter`` is not an address
            ResolutionError: If the owner cannot be read
            ConfigurationError: If no signer is available at all
        """
        if submitter:
            controller = checksum_address(submitter, "from")
        else:
            controller = self.get_owner(self.context.address, "latest")

        default_account = self.w3.eth.default_account
        has_provider = getattr(self.w3, "provider", None) is not None

        if self.signer is not None:
            handle = SigningHandle(self.w3, self.signer.address, SignerSource.LOCAL, self.signer)
        elif has_provider and (submitter or not default_account or self._node_manages(controller)):
            handle = SigningHandle(self.w3, controller, SignerSource.NODE)
        elif default_account:
            handle = SigningHandle(self.w3, default_account, SignerSource.DEFAULT)
        else:
            raise ConfigurationError(
                f"No signer available for {controller}: provide a signer or a connected provider"
            )

        logger.debug(f"Resolved controller {controller} for {self.context.did} using {handle.source.value} signer")
        return handle

    def _node_manages(self, address: str) -> bool:
        try:
            accounts = self.w3.eth.accounts
        except (Web3Exception, ValueError, OSError) as e:
            logger.debug(f"eth_accounts unavailable: {e}")
            return False
        return address in [Web3.to_checksum_address(a) for a in accounts]
