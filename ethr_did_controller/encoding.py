"""
Fixed-width encoders for registry arguments and digest payloads.

All helpers return raw ``bytes``; they raise EncodingError instead of
truncating or wrapping values that do not fit their field.
"""
from typing import Union

from web3 import Web3

from .exceptions import EncodingError

BYTES32_SIZE = 32
UINT256_MAX = 2 ** 256 - 1


def is_hex_prefixed(value: str) -> bool:
    return value.startswith(("0x", "0X"))


def _decode_hex(value: str, field: str) -> bytes:
    try:
        return bytes.fromhex(value[2:])
    except ValueError as e:
        raise EncodingError(f"{field} is not valid hex: {value!r}") from e


def string_to_bytes32(value: Union[str, bytes], field: str = "value") -> bytes:
    """
    Encode a short string into a bytes32 field.

    The UTF-8 bytes are left-aligned and zero-filled to 32 bytes. A
    ``0x``-prefixed string is treated as an already-encoded bytes32 value
    and returned verbatim.

    Args:
        value: String (or raw bytes) to encode
        field: Field name used in error messages

    Returns:
        32 bytes

    Raises:
        EncodingError: If the value needs more than 32 bytes, or a hex value
            is not exactly 32 bytes long
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif is_hex_prefixed(value):
        raw = _decode_hex(value, field)
        if len(raw) != BYTES32_SIZE:
            raise EncodingError(
                f"{field} hex must be exactly {BYTES32_SIZE} bytes, got {len(raw)}"
            )
        return raw
    else:
        raw = value.encode("utf-8")

    if len(raw) > BYTES32_SIZE:
        raise EncodingError(
            f"{field} is {len(raw)} bytes, does not fit in bytes32: {value!r}"
        )
    return raw.ljust(BYTES32_SIZE, b"\x00")


def uint256_to_bytes(value: int, field: str = "value") -> bytes:
    """Encode an unsigned integer as a 32-byte big-endian word."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{field} must be an integer, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise EncodingError(f"{field} out of uint256 range: {value}")
    return value.to_bytes(BYTES32_SIZE, byteorder="big")


def address_to_bytes(address: str, field: str = "address") -> bytes:
    """Return the raw 20 bytes of an Ethereum address."""
    if not isinstance(address, str) or not Web3.is_address(address):
        raise EncodingError(f"{field} is not a valid address: {address!r}")
    return bytes(Web3.to_bytes(hexstr=address))


def checksum_address(address: str, field: str = "address") -> str:
    if not isinstance(address, str) or not Web3.is_address(address):
        raise EncodingError(f"{field} is not a valid address: {address!r}")
    return Web3.to_checksum_address(address)


def attribute_value_to_bytes(value: Union[str, bytes], field: str = "attribute value") -> bytes:
    """
    Bytes of an attribute value, both as hashed into a meta-transaction
    digest and as submitted to the registry.

    ``0x``-prefixed strings are hex-decoded, other strings are UTF-8 encoded.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if is_hex_prefixed(value):
        return _decode_hex(value, field)
    return value.encode("utf-8")

