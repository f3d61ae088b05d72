"""
Exceptions for the ethr-did-controller SDK.
"""
from typing import Any, Optional


class DIDControllerError(Exception):
    """Base exception for all controller errors."""
    pass


class ConfigurationError(DIDControllerError):
    """Raised when no registry binding or signer can be set up."""
    pass


class ResolutionError(DIDControllerError):
    """Raised when an owner or nonce lookup fails or returns malformed data."""
    pass


class EncodingError(DIDControllerError, ValueError):
    """Raised when a value does not fit its fixed-size ABI field."""
    pass


class SubmissionError(DIDControllerError):
    """
    Raised when the node rejects a transaction or it reverts on-chain.

    A meta-transaction whose signature does not match its arguments is
    only detected by the registry, so it surfaces here after the revert.
    """

    def __init__(self, message: str, tx_hash: Optional[str] = None, receipt: Any = None):
        self.tx_hash = tx_hash
        self.receipt = receipt
        super().__init__(message)


class ConfirmationTimeoutError(DIDControllerError):
    """Raised when a sent transaction is not mined within the timeout."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)
