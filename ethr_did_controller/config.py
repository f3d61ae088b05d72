"""
Network configuration for ERC-1056 registry deployments.
"""
import importlib.resources
import json
import logging
import os
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_ADDRESS = "0xdca7ef03e98e0dc2b855be647c39abe984fcf21b"


class NetworkConfig:
    """
    Lookup of chain ids, RPC endpoints and registry addresses by network.

    Values come from the bundled ``networks.json`` and can be overridden per
    network with environment variables:

    - ``<NAME>_RPC_URL``: RPC endpoint
    - ``<NAME>_DID_REGISTRY``: registry contract address

    where ``<NAME>`` is the upper-cased network name with ``-`` replaced by ``_``.
    """

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """Load (and cache) the bundled network definitions."""
        if cls._networks_cache is None:
            resource = importlib.resources.files("ethr_did_controller").joinpath("networks.json")
            with resource.open("r", encoding="utf-8") as f:
                cls._networks_cache = json.load(f)
            logger.debug(f"Loaded {len(cls._networks_cache)} network definitions")
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: Union[str, int]) -> Dict[str, Any]:
        """
        Get one network definition by name or chain id.

        Args:
            network: Network name ("sepolia"), decimal chain id (11155111 or
                "11155111") or hex chain id ("0xaa36a7")

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if isinstance(network, str) and network in networks:
            return networks[network]

        chain_id = cls._parse_chain_id(network)
        if chain_id is not None:
            for config in networks.values():
                if config.get("chainId") == chain_id:
                    return config

        raise ValueError(
            f"Unknown network: {network}. Available networks: {', '.join(networks.keys())}"
        )

    @classmethod
    def get_network_name(cls, network: Union[str, int]) -> str:
        config = cls.get_network(network)
        for name, candidate in cls.load_networks().items():
            if candidate is config:
                return name
        return str(network)

    @classmethod
    def get_rpc_url(cls, network: Union[str, int], override: Optional[str] = None) -> str:
        """RPC URL for a network: override, then env var, then bundled value."""
        if override:
            return override
        name = cls.get_network_name(network)
        env_url = os.environ.get(f"{cls._env_prefix(name)}_RPC_URL")
        if env_url:
            return env_url
        return cls.get_network(name)["rpc"]

    @classmethod
    def get_chain_id(cls, network: Union[str, int]) -> int:
        return cls.get_network(network)["chainId"]

    @classmethod
    def get_registry_address(cls, network: Union[str, int]) -> str:
        """Registry address for a network: env var, bundled value, or the default."""
        name = cls.get_network_name(network)
        env_address = os.environ.get(f"{cls._env_prefix(name)}_DID_REGISTRY")
        if env_address:
            return env_address
        return cls.get_network(name).get("didRegistry") or DEFAULT_REGISTRY_ADDRESS

    @staticmethod
    def _env_prefix(name: str) -> str:
        return name.upper().replace("-", "_")

    @staticmethod
    def _parse_chain_id(network: Union[str, int]) -> Optional[int]:
        if isinstance(network, int):
            return network
        try:
            if network.lower().startswith("0x"):
                return int(network, 16)
            return int(network)
        except ValueError:
            return None
