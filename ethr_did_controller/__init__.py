"""
ethr-did-controller: manage did:ethr identities through an ERC-1056 registry.
"""
from .authorization import AuthorizationResolver, Signer, SigningHandle, SignerSource
from .config import DEFAULT_REGISTRY_ADDRESS, NetworkConfig
from .context import ContractGeneration, IdentityContext
from .controller import DEFAULT_GAS_LIMIT, DEFAULT_GAS_PRICE, EthrDidController
from .digest import MESSAGE_PREFIX, DigestBuilder
from .exceptions import (
    ConfigurationError,
    ConfirmationTimeoutError,
    DIDControllerError,
    EncodingError,
    ResolutionError,
    SubmissionError,
)
from .identifier import ParsedIdentifier, build_did, interpret_identifier
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
from .registry import ERC1056_ABI, get_registry_contract
from .version import __version__

__all__ = [
    "EthrDidController",
    "AuthorizationResolver",
    "SigningHandle",
    "SignerSource",
    "Signer",
    "NonceResolver",
    "DigestBuilder",
    "IdentityContext",
    "ContractGeneration",
    "NetworkConfig",
    "Operation",
    "ChangeOwner",
    "AddDelegate",
    "RevokeDelegate",
    "SetAttribute",
    "RevokeAttribute",
    "MetaSignature",
    "TxReceipt",
    "ParsedIdentifier",
    "interpret_identifier",
    "build_did",
    "get_registry_contract",
    "ERC1056_ABI",
    "MESSAGE_PREFIX",
    "DEFAULT_REGISTRY_ADDRESS",
    "DEFAULT_GAS_LIMIT",
    "DEFAULT_GAS_PRICE",
    "DIDControllerError",
    "ConfigurationError",
    "ResolutionError",
    "EncodingError",
    "SubmissionError",
    "ConfirmationTimeoutError",
    "__version__",
]
