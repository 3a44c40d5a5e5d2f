"""
batchmint - Key Handling Module

This module provides the operator key utilities for batchmint:
- Loading and saving the JSON key file
- Converting base58 wallet exports into the key file format

Dependencies:
- solders: ed25519 keypairs
- base58: wallet secret encoding
"""

from .exceptions import (
    CryptoError,
    InvalidKeyError,
    KeyFileError,
)

from .keys import (
    SECRET_KEY_LENGTH,
    keypair_from_base58,
    keypair_from_bytes,
    keypair_to_base58,
    load_keypair,
    save_keypair,
)

__all__ = [
    "CryptoError",
    "InvalidKeyError",
    "KeyFileError",
    "SECRET_KEY_LENGTH",
    "keypair_from_base58",
    "keypair_from_bytes",
    "keypair_to_base58",
    "load_keypair",
    "save_keypair",
]
