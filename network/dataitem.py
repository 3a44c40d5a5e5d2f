"""
batchmint - ANS-104 Data Items

This module builds signed ANS-104 data items, the envelope bundlers such as
Turbo accept for Arweave uploads. Items are signed with an ed25519 key
(signature type 2), which is what a Solana wallet provides.

Layout (little-endian):
    signature type (u16) | signature | owner | target flag [+ target]
    | anchor flag [+ anchor] | tag count (u64) | tag bytes length (u64)
    | Avro-encoded tags | data
"""

import base64
import hashlib
import struct
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple, Union

from solders.keypair import Keypair


SIGNATURE_TYPE_ED25519 = 2
ED25519_SIGNATURE_LENGTH = 64
ED25519_OWNER_LENGTH = 32
TARGET_LENGTH = 32
ANCHOR_LENGTH = 32
MAX_TAGS = 128

Tag = Tuple[str, str]


def _sha384(data: bytes) -> bytes:
    return hashlib.sha384(data).digest()


def deep_hash(data: Union[bytes, Sequence]) -> bytes:
    """
    Arweave deep hash: SHA-384 over a tagged tree of blobs and lists.

    Args:
        data: A bytes blob or a (nested) sequence of blobs

    Returns:
        48-byte digest
    """
    if isinstance(data, (bytes, bytearray)):
        tag = b"blob" + str(len(data)).encode()
        return _sha384(_sha384(tag) + _sha384(bytes(data)))

    tag = b"list" + str(len(data)).encode()
    acc = _sha384(tag)
    for chunk in data:
        acc = _sha384(acc + deep_hash(chunk))
    return acc


def _avro_long(value: int) -> bytes:
    """Zig-zag varint encoding used by Avro for longs."""
    zigzag = (value << 1) ^ (value >> 63)
    out = bytearray()
    while zigzag & ~0x7F:
        out.append((zigzag & 0x7F) | 0x80)
        zigzag >>= 7
    out.append(zigzag)
    return bytes(out)


def _avro_bytes(value: bytes) -> bytes:
    return _avro_long(len(value)) + value


def encode_tags(tags: Sequence[Tag]) -> bytes:
    """
    Encode tags as an Avro array of {name: bytes, value: bytes} records.

    An empty tag list encodes to zero bytes.
    """
    if not tags:
        return b""

    if len(tags) > MAX_TAGS:
        raise ValueError(f"Too many tags: {len(tags)} (max {MAX_TAGS})")

    out = bytearray(_avro_long(len(tags)))
    for name, value in tags:
        if not name or not value:
            raise ValueError("Tag names and values must be non-empty")
        out += _avro_bytes(name.encode('utf-8'))
        out += _avro_bytes(value.encode('utf-8'))
    out += _avro_long(0)
    return bytes(out)


def base64url(data: bytes) -> str:
    """Unpadded base64url, the encoding Arweave uses for ids."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode('ascii')


@dataclass
class DataItem:
    """A single ANS-104 data item."""

    data: bytes
    tags: List[Tag] = field(default_factory=list)
    target: bytes = b""
    anchor: bytes = b""
    owner: bytes = b""
    signature: bytes = b""

    def __post_init__(self):
        if self.target and len(self.target) != TARGET_LENGTH:
            raise ValueError(f"Target must be {TARGET_LENGTH} bytes")
        if self.anchor and len(self.anchor) != ANCHOR_LENGTH:
            raise ValueError(f"Anchor must be {ANCHOR_LENGTH} bytes")

    @property
    def is_signed(self) -> bool:
        return len(self.signature) == ED25519_SIGNATURE_LENGTH

    def signature_payload(self) -> bytes:
        """Deep hash of the fields covered by the signature."""
        return deep_hash([
            b"dataitem",
            b"1",
            str(SIGNATURE_TYPE_ED25519).encode(),
            self.owner,
            self.target,
            self.anchor,
            encode_tags(self.tags),
            self.data,
        ])

    def sign(self, signer: Keypair) -> str:
        """
        Sign the item in place.

        Args:
            signer: ed25519 keypair of the uploading account

        Returns:
            The item id
        """
        self.owner = bytes(signer.pubkey())
        self.signature = bytes(signer.sign_message(self.signature_payload()))
        return self.id

    @property
    def id(self) -> str:
        if not self.is_signed:
            raise ValueError("Data item is not signed")
        return base64url(hashlib.sha256(self.signature).digest())

    def to_bytes(self) -> bytes:
        """Serialize the signed item."""
        if not self.is_signed:
            raise ValueError("Data item must be signed before serialization")
        if len(self.owner) != ED25519_OWNER_LENGTH:
            raise ValueError(f"Owner must be {ED25519_OWNER_LENGTH} bytes")

        tag_bytes = encode_tags(self.tags)
        parts = [
            struct.pack("<H", SIGNATURE_TYPE_ED25519),
            self.signature,
            self.owner,
            b"\x01" + self.target if self.target else b"\x00",
            b"\x01" + self.anchor if self.anchor else b"\x00",
            struct.pack("<Q", len(self.tags)),
            struct.pack("<Q", len(tag_bytes)),
            tag_bytes,
            self.data,
        ]
        return b"".join(parts)
