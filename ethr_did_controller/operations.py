"""
Operation descriptors for the five registry write operations.

Each descriptor carries exactly the arguments needed to submit the
transaction and to rebuild its meta-transaction digest. The argument
layout of every operation lives in ``layout``; both the digest builder and
the contract call encode from that single table.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Tuple, Union

from .encoding import (
    address_to_bytes,
    attribute_value_to_bytes,
    checksum_address,
    string_to_bytes32,
    uint256_to_bytes,
)


class FieldKind(Enum):
    ADDRESS = "address"
    BYTES32 = "bytes32"
    UINT256 = "uint256"
    BYTES = "bytes"


def _uint256_arg(value: int, field: str) -> int:
    # Validates range, contract call takes the int itself
    uint256_to_bytes(value, field)
    return value


# Encoding of each field kind inside the signed digest
DIGEST_ENCODERS: Dict[FieldKind, Callable[[Any, str], bytes]] = {
    FieldKind.ADDRESS: address_to_bytes,
    FieldKind.BYTES32: string_to_bytes32,
    FieldKind.UINT256: uint256_to_bytes,
    FieldKind.BYTES: attribute_value_to_bytes,
}

# Encoding of each field kind as a contract call argument
CALL_ENCODERS: Dict[FieldKind, Callable[[Any, str], Any]] = {
    FieldKind.ADDRESS: checksum_address,
    FieldKind.BYTES32: string_to_bytes32,
    FieldKind.UINT256: _uint256_arg,
    FieldKind.BYTES: attribute_value_to_bytes,
}


@dataclass(frozen=True)
class Operation:
    """Base class of the operation descriptors."""

    method: ClassVar[str]
    is_attribute: ClassVar[bool] = False
    layout: ClassVar[Tuple[Tuple[str, FieldKind], ...]] = ()

    def digest_payload(self) -> bytes:
        """Method tag followed by the canonical encoding of the arguments."""
        parts = [self.method.encode("utf-8")]
        for name, kind in self.layout:
            parts.append(DIGEST_ENCODERS[kind](getattr(self, name), name))
        return b"".join(parts)

    def call_args(self) -> List[Any]:
        """Arguments that follow ``identity`` (and v, r, s) in the contract call."""
        return [CALL_ENCODERS[kind](getattr(self, name), name) for name, kind in self.layout]

    @property
    def signed_method(self) -> str:
        return f"{self.method}Signed"


@dataclass(frozen=True)
class ChangeOwner(Operation):
    new_owner: str

    method: ClassVar[str] = "changeOwner"
    layout: ClassVar[Tuple[Tuple[str, FieldKind], ...]] = (
        ("new_owner", FieldKind.ADDRESS),
    )


@dataclass(frozen=True)
class AddDelegate(Operation):
    delegate_type: str
    delegate: str
    validity: int

    method: ClassVar[str] = "addDelegate"
    layout: ClassVar[Tuple[Tuple[str, FieldKind], ...]] = (
        ("delegate_type", FieldKind.BYTES32),
        ("delegate", FieldKind.ADDRESS),
        ("validity", FieldKind.UINT256),
    )


@dataclass(frozen=True)
class RevokeDelegate(Operation):
    delegate_type: str
    delegate: str

    method: ClassVar[str] = "revokeDelegate"
    layout: ClassVar[Tuple[Tuple[str, FieldKind], ...]] = (
        ("delegate_type", FieldKind.BYTES32),
        ("delegate", FieldKind.ADDRESS),
    )


@dataclass(frozen=True)
class SetAttribute(Operation):
    name: str
    value: Union[str, bytes]
    validity: int

    method: ClassVar[str] = "setAttribute"
    is_attribute: ClassVar[bool] = True
    layout: ClassVar[Tuple[Tuple[str, FieldKind], ...]] = (
        ("name", FieldKind.BYTES32),
        ("value", FieldKind.BYTES),
        ("validity", FieldKind.UINT256),
    )


@dataclass(frozen=True)
class RevokeAttribute(Operation):
    name: str
    value: Union[str, bytes]

    method: ClassVar[str] = "revokeAttribute"
    is_attribute: ClassVar[bool] = True
    layout: ClassVar[Tuple[Tuple[str, FieldKind], ...]] = (
        ("name", FieldKind.BYTES32),
        ("value", FieldKind.BYTES),
    )

