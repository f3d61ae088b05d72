"""
Data models for the ethr-did-controller SDK.
"""
from typing import Dict, Any, Optional, List, Union

from pydantic import BaseModel, Field, field_validator
from web3 import Web3


def _to_word_hex(value: Union[str, bytes]) -> str:
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    else:
        raw = bytes.fromhex(value[2:] if value.startswith(("0x", "0X")) else value)
    if len(raw) != 32:
        raise ValueError(f"signature component must be 32 bytes, got {len(raw)}")
    return "0x" + raw.hex()


class MetaSignature(BaseModel):
    """
    ECDSA signature (v, r, s) over a meta-transaction digest.

    Produced outside this package by whoever controls the identity; the
    controller only forwards the fields to the registry's ``*Signed``
    functions.
    """
    v: int = Field(..., alias="sigV")
    r: str = Field(..., alias="sigR")
    s: str = Field(..., alias="sigS")

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("v")
    @classmethod
    def _normalize_v(cls, v: int) -> int:
        # ecrecover in the registry expects 27/28
        if v in (0, 1):
            v += 27
        if v not in (27, 28):
            raise ValueError(f"invalid recovery id: {v}")
        return v

    @field_validator("r", "s", mode="before")
    @classmethod
    def _normalize_word(cls, value: Union[str, bytes]) -> str:
        return _to_word_hex(value)

    @classmethod
    def from_signature(cls, signature: Union[str, bytes]) -> "MetaSignature":
        """
        Split a 65-byte ``r || s || v`` signature into its components.

        Args:
            signature: Signature as bytes or hex string (with or without 0x)

        Returns:
            MetaSignature instance

        Raises:
            ValueError: If the signature is not 65 bytes
        """
        if isinstance(signature, str):
            signature = bytes.fromhex(signature[2:] if signature.startswith("0x") else signature)
        if len(signature) != 65:
            raise ValueError(f"signature must be 65 bytes, got {len(signature)}")
        return cls(v=signature[64], r=signature[:32], s=signature[32:64])

    def r_bytes(self) -> bytes:
        return bytes.fromhex(self.r[2:])

    def s_bytes(self) -> bytes:
        return bytes.fromhex(self.s[2:])


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int
    gas_used: int = Field(..., alias="gasUsed")
    from_address: str = Field(..., alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @classmethod
    def from_web3(cls, web3_receipt: Any) -> "TxReceipt":
        """
        Convert a web3 receipt (AttributeDict with HexBytes values) to TxReceipt.
        """
        receipt_dict = dict(web3_receipt)

        # Convert bytes to hex strings
        for key, value in list(receipt_dict.items()):
            if isinstance(value, (bytes, bytearray)):
                receipt_dict[key] = Web3.to_hex(value)

        receipt_dict["logs"] = [dict(log) for log in receipt_dict.get("logs") or []]
        return cls.model_validate(receipt_dict)
