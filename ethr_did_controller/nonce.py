"""
Meta-transaction nonce lookup across registry contract generations.
"""
import logging

from web3.exceptions import Web3Exception

from .authorization import AuthorizationResolver
from .context import ContractGeneration, IdentityContext
from .encoding import uint256_to_bytes
from .exceptions import EncodingError, ResolutionError

logger = logging.getLogger(__name__)


class NonceResolver:
    """
    Reads the registry nonce a meta-transaction digest must commit to.

    Legacy registries track the nonce of the attribute ``*Signed`` methods
    per identity address rather than per current owner. Signing against the
    wrong key produces a digest the contract rejects, so the key is chosen
    from the contract generation and the operation category.
    """

    def __init__(self, context: IdentityContext, authorization: AuthorizationResolver):
        self.context = context
        self.authorization = authorization

    def select_nonce_key(self, is_attribute: bool) -> str:
        if self.context.generation == ContractGeneration.LEGACY and is_attribute:
            return self.context.address
        return self.authorization.get_owner(self.context.address)

    def get_nonce(self, is_attribute: bool = False) -> int:
        key = self.select_nonce_key(is_attribute)
        try:
            nonce = self.context.registry.functions.nonce(key).call()
        except (Web3Exception, ValueError, OSError) as e:
            logger.error(f"nonce lookup failed for {key}: {e}")
            raise ResolutionError(f"Failed to read nonce for {key}: {e}") from e
        logger.debug(f"Nonce for {key} is {nonce} (attribute={is_attribute})")
        return nonce

    def resolve_padded_nonce(self, is_attribute: bool = False) -> bytes:
        """
        Nonce as a 32-byte big-endian word.

        Raises:
            ResolutionError: If the nonce or owner lookup fails, or the
                registry returns something that is not a uint256
        """
        nonce = self.get_nonce(is_attribute)
        try:
            return uint256_to_bytes(nonce, "nonce")
        except EncodingError as e:
            raise ResolutionError(f"Registry returned malformed nonce: {nonce!r}") from e
