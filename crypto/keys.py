"""
Key Management for batchmint

This module handles the operator's ed25519 keypair: loading it from the
on-disk JSON key file, writing that file, and converting base58-encoded
secrets exported by wallets into it.

Key file format: a JSON array of the 64 raw secret-key bytes
(32-byte seed followed by the 32-byte public key), as produced by
`solana-keygen`.
"""

import json
import logging
from pathlib import Path
from typing import List, Union

import base58
from solders.keypair import Keypair

from .exceptions import InvalidKeyError, KeyFileError


SECRET_KEY_LENGTH = 64

logger = logging.getLogger(__name__)


def keypair_from_bytes(secret: bytes) -> Keypair:
    """
    Build a keypair from raw secret-key bytes.

    Args:
        secret: 64-byte ed25519 secret key

    Returns:
        Keypair instance

    Raises:
        InvalidKeyError: If the bytes do not form a valid keypair
    """
    if len(secret) != SECRET_KEY_LENGTH:
        raise InvalidKeyError(
            f"Secret key must be {SECRET_KEY_LENGTH} bytes, got {len(secret)}"
        )

    try:
        return Keypair.from_bytes(secret)
    except ValueError as e:
        raise InvalidKeyError(f"Invalid secret key: {e}") from e


def keypair_from_base58(secret: str) -> Keypair:
    """
    Decode a base58 secret key (the format wallets export) into a keypair.

    Args:
        secret: Base58-encoded 64-byte secret key

    Returns:
        Keypair instance
    """
    secret = secret.strip()
    if not secret:
        raise InvalidKeyError("Secret key is empty")

    try:
        raw = base58.b58decode(secret)
    except ValueError as e:
        raise InvalidKeyError(f"Secret key is not valid base58: {e}") from e

    return keypair_from_bytes(raw)


def keypair_to_base58(keypair: Keypair) -> str:
    """Encode a keypair's secret as base58."""
    return base58.b58encode(bytes(keypair)).decode('ascii')


def _parse_key_array(values: object, path: Path) -> bytes:
    if not isinstance(values, list):
        raise KeyFileError(f"Key file must contain a JSON array: {path}", str(path))

    if len(values) != SECRET_KEY_LENGTH:
        raise KeyFileError(
            f"Key file must contain {SECRET_KEY_LENGTH} bytes, found {len(values)}: {path}",
            str(path)
        )

    for value in values:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise KeyFileError(f"Key file contains a non-byte value {value!r}: {path}", str(path))

    return bytes(values)


def load_keypair(path: Union[str, Path]) -> Keypair:
    """
    Load the operator keypair from a JSON key file.

    Args:
        path: Path to the key file

    Returns:
        Keypair instance

    Raises:
        KeyFileError: If the file is missing, unreadable or malformed
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise KeyFileError(f"Key file not found: {path}", str(path))

    try:
        with open(path, 'r', encoding='utf-8') as f:
            values = json.load(f)
    except OSError as e:
        raise KeyFileError(f"Cannot read key file {path}: {e}", str(path)) from e
    except json.JSONDecodeError as e:
        raise KeyFileError(f"Key file is not valid JSON: {path}", str(path)) from e

    secret = _parse_key_array(values, path)

    try:
        keypair = keypair_from_bytes(secret)
    except InvalidKeyError as e:
        raise KeyFileError(f"Key file holds an invalid key: {e}", str(path)) from e

    logger.debug(f"Loaded keypair {keypair.pubkey()} from {path}")
    return keypair


def save_keypair(keypair: Keypair, path: Union[str, Path]) -> Path:
    """
    Write a keypair to disk in the JSON key file format.

    Args:
        keypair: Keypair to persist
        path: Destination path

    Returns:
        Path that was written
    """
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    values: List[int] = list(bytes(keypair))
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(values, f)

    logger.info(f"Wrote keypair {keypair.pubkey()} to {path}")
    return path
