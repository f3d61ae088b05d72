"""
ERC-1056 (EthereumDIDRegistry) contract binding.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from web3 import Web3
from web3.contract import Contract

from .config import DEFAULT_REGISTRY_ADDRESS, NetworkConfig
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_SIG_INPUTS = [("uint8", "sigV"), ("bytes32", "sigR"), ("bytes32", "sigS")]


def _function(
    name: str,
    inputs: Sequence[Tuple[str, str]],
    outputs: Sequence[str] = (),
    mutability: str = "nonpayable",
) -> Dict[str, Any]:
    return {
        "inputs": [{"internalType": t, "name": n, "type": t} for t, n in inputs],
        "name": name,
        "outputs": [{"internalType": t, "name": "", "type": t} for t in outputs],
        "stateMutability": mutability,
        "type": "function",
    }


def _signed_pair(name: str, args: List[Tuple[str, str]]) -> List[Dict[str, Any]]:
    identity = [("address", "identity")]
    return [
        _function(name, identity + args),
        _function(f"{name}Signed", identity + _SIG_INPUTS + args),
    ]


ERC1056_ABI: List[Dict[str, Any]] = [
    _function("identityOwner", [("address", "identity")], ["address"], "view"),
    _function("nonce", [("address", "")], ["uint256"], "view"),
    _function("owners", [("address", "")], ["address"], "view"),
    _function("changed", [("address", "")], ["uint256"], "view"),
    _function(
        "delegates",
        [("address", ""), ("bytes32", ""), ("address", "")],
        ["uint256"],
        "view",
    ),
    _function(
        "validDelegate",
        [("address", "identity"), ("bytes32", "delegateType"), ("address", "delegate")],
        ["bool"],
        "view",
    ),
    *_signed_pair("changeOwner", [("address", "newOwner")]),
    *_signed_pair(
        "addDelegate",
        [("bytes32", "delegateType"), ("address", "delegate"), ("uint256", "validity")],
    ),
    *_signed_pair("revokeDelegate", [("bytes32", "delegateType"), ("address", "delegate")]),
    *_signed_pair(
        "setAttribute",
        [("bytes32", "name"), ("bytes", "value"), ("uint256", "validity")],
    ),
    *_signed_pair("revokeAttribute", [("bytes32", "name"), ("bytes", "value")]),
]


def get_registry_contract(
    network: Optional[str] = None,
    provider: Any = None,
    rpc_url: Optional[str] = None,
    registry: Optional[str] = None,
) -> Contract:
    """
    Bind the ERC-1056 ABI to a registry deployment.

    Args:
        network: Network name or chain id, used to look up an RPC URL and
            registry address when they are not given explicitly
        provider: A ``Web3`` instance or a web3 provider
        rpc_url: JSON-RPC endpoint, used when no provider is given
        registry: Registry contract address

    Returns:
        web3 Contract bound to the registry

    Raises:
        ConfigurationError: If no provider can be determined
    """
    if provider is None:
        if not rpc_url and network:
            try:
                rpc_url = NetworkConfig.get_rpc_url(network)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
        if not rpc_url:
            raise ConfigurationError(
                "either a contract instance or a provider or rpc_url is required to initialize"
            )
        w3 = Web3(Web3.HTTPProvider(rpc_url))
    elif isinstance(provider, Web3):
        w3 = provider
    else:
        w3 = Web3(provider)

    if not registry:
        registry = DEFAULT_REGISTRY_ADDRESS
        if network:
            try:
                registry = NetworkConfig.get_registry_address(network)
            except ValueError:
                logger.debug(f"No registry configured for {network}, using default")

    logger.debug(f"Binding ERC-1056 registry at {registry}")
    return w3.eth.contract(address=Web3.to_checksum_address(registry), abi=ERC1056_ABI)
