"""
Meta-transaction digests for the registry's ``*Signed`` functions.

The registry recomputes

    keccak256(0x19 0x00 || registry || nonce || identity || method || args)

and recovers the signer from it, so every byte here has to match the
contract's ``abi.encodePacked`` layout.
"""
import logging

from web3 import Web3

from .context import IdentityContext
from .encoding import address_to_bytes
from .nonce import NonceResolver
from .operations import Operation

logger = logging.getLogger(__name__)

# EIP-191 version 0x00: data with intended validator
MESSAGE_PREFIX = b"\x19\x00"


class DigestBuilder:
    """Builds the 32-byte digest a controller key signs for an operation."""

    def __init__(self, context: IdentityContext, nonces: NonceResolver):
        self.context = context
        self.nonces = nonces

    def preimage(self, op: Operation) -> bytes:
        # Encode the payload first so oversized fields fail before any RPC call
        payload = op.digest_payload()
        padded_nonce = self.nonces.resolve_padded_nonce(op.is_attribute)
        return b"".join([
            MESSAGE_PREFIX,
            address_to_bytes(self.context.registry_address, "registry"),
            padded_nonce,
            address_to_bytes(self.context.address, "identity"),
            payload,
        ])

    def build_digest(self, op: Operation) -> bytes:
        """
        Digest to sign for ``op``.

        Raises:
            EncodingError: If an argument does not fit its field
            ResolutionError: If the owner or nonce cannot be read
        """
        digest = bytes(Web3.keccak(self.preimage(op)))
        logger.debug(f"{op.method} digest for {self.context.did}: 0x{digest.hex()}")
        return digest
