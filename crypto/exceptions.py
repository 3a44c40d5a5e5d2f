"""
Cryptographic Exceptions for batchmint

This module defines custom exceptions for key handling.
"""


class CryptoError(Exception):
    """Base exception for all cryptographic errors."""
    pass


class InvalidKeyError(CryptoError):
    """Raised when a key is invalid or malformed."""
    pass


class KeyFileError(CryptoError):
    """Raised when a key file is missing, unreadable or malformed."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(message)
