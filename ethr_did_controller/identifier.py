"""
Parsing of ``did:ethr`` identifiers, addresses and public keys.
"""
from dataclasses import dataclass
from typing import Optional

from eth_keys import keys
from eth_keys.exceptions import ValidationError as KeyValidationError
from web3 import Web3

from .exceptions import ConfigurationError

DID_PREFIX = "did:ethr"
MAINNET_NETWORKS = ("mainnet", "0x1", "1")


@dataclass(frozen=True)
class ParsedIdentifier:
    """
    Components of an identifier.

    Attributes:
        address: Checksummed Ethereum address controlling records
        public_key: Hex public key when the identifier was a key, else None
        network: Network name or hex chain id embedded in the DID, if any
    """
    address: str
    public_key: Optional[str] = None
    network: Optional[str] = None


def public_key_to_address(public_key: str) -> str:
    """
    Derive the checksummed address of a secp256k1 public key.

    Accepts 33-byte compressed or 65-byte uncompressed keys as hex.
    """
    raw = bytes.fromhex(public_key[2:] if public_key.startswith("0x") else public_key)
    try:
        if len(raw) == 33:
            key = keys.PublicKey.from_compressed_bytes(raw)
        elif len(raw) == 65 and raw[0] == 4:
            key = keys.PublicKey(raw[1:])
        elif len(raw) == 64:
            key = keys.PublicKey(raw)
        else:
            raise ValueError(f"unsupported public key length: {len(raw)}")
    except KeyValidationError as e:
        raise ValueError(f"invalid public key: {e}") from e
    return key.to_checksum_address()


def interpret_identifier(identifier: str) -> ParsedIdentifier:
    """
    Split a ``did:ethr`` string, bare address or public key into its parts.

    Examples:
        did:ethr:0xb9c5...              -> address, no network
        did:ethr:sepolia:0xb9c5...      -> address, network "sepolia"
        did:ethr:0x1:0x02b97c...        -> public key, network "0x1"

    Raises:
        ConfigurationError: If the identifier cannot be interpreted
    """
    id_part = identifier
    network = None
    if identifier.startswith(DID_PREFIX):
        # Drop query/fragment, keep the method-specific id
        id_part = identifier.split("?")[0].split("#")[0]
        components = id_part.split(":")
        id_part = components[-1]
        if len(components) >= 4:
            network = ":".join(components[2:-1])

    try:
        if len(id_part) > 42:
            return ParsedIdentifier(
                address=public_key_to_address(id_part),
                public_key=id_part,
                network=network,
            )
        if not Web3.is_address(id_part):
            raise ValueError(f"not an address: {id_part}")
        return ParsedIdentifier(address=Web3.to_checksum_address(id_part), network=network)
    except ValueError as e:
        raise ConfigurationError(f"Invalid identifier {identifier!r}: {e}") from e


def build_did(parsed: ParsedIdentifier, network: Optional[str] = None) -> str:
    """
    Canonical DID string for a parsed identifier.

    The public key is used when present, otherwise the address; the network
    segment is omitted for mainnet.
    """
    net = parsed.network or network
    network_segment = f"{net}:" if net and str(net) not in MAINNET_NETWORKS else ""
    subject = parsed.public_key if parsed.public_key else parsed.address
    return f"{DID_PREFIX}:{network_segment}{subject}"
