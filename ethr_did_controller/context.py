"""
Immutable facts about the identity a controller manages.
"""
from dataclasses import dataclass
from enum import Enum

from web3.contract import Contract


class ContractGeneration(str, Enum):
    """
    Registry contract generation, which decides how meta-transaction nonces
    are keyed.

    LEGACY registries (before ethr-did-registry 1.0.0) key the nonce of
    ``setAttributeSigned``/``revokeAttributeSigned`` by the identity
    address; MODERN registries key every nonce by the current owner.
    """
    LEGACY = "legacy"
    MODERN = "modern"

    @classmethod
    def from_legacy_flag(cls, legacy_nonce: bool) -> "ContractGeneration":
        return cls.LEGACY if legacy_nonce else cls.MODERN


@dataclass(frozen=True)
class IdentityContext:
    """
    Identity managed by a controller.

    Attributes:
        address: Checksummed identity address (never changes with ownership)
        did: Canonical DID string
        registry: Registry contract binding (not owned)
        generation: Registry contract generation
    """
    address: str
    did: str
    registry: Contract
    generation: ContractGeneration = ContractGeneration.LEGACY

    @property
    def registry_address(self) -> str:
        return self.registry.address
