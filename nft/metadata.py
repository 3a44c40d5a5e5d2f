"""
batchmint - NFT Metadata Documents

This module builds the off-chain metadata document that an asset's URI
points at, following the Metaplex token metadata JSON standard.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from .catalog import CatalogEntry


IMAGE_CONTENT_TYPE = "image/jpeg"
METADATA_CONTENT_TYPE = "application/json"


class ContentCategory(str, Enum):
    """Metaplex `properties.category` values."""
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    VR = "vr"
    HTML = "html"


@dataclass
class NFTMetadata:
    """Metadata document for a single asset."""

    name: str
    description: str
    image: str
    image_type: str = IMAGE_CONTENT_TYPE
    attributes: List[Dict[str, Any]] = field(default_factory=list)
    category: ContentCategory = ContentCategory.IMAGE

    @classmethod
    def from_entry(cls, entry: CatalogEntry, image_uri: str,
                   image_type: str = IMAGE_CONTENT_TYPE) -> 'NFTMetadata':
        return cls(
            name=entry.name,
            description=entry.description,
            image=image_uri,
            image_type=image_type,
            attributes=[attribute.to_dict() for attribute in entry.attributes],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON document structure."""
        return {
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "attributes": list(self.attributes),
            "properties": {
                "files": [{"uri": self.image, "type": self.image_type}],
                "category": self.category.value
            }
        }

    def to_bytes(self) -> bytes:
        return serialize_metadata(self.to_dict())


def build_metadata(entry: CatalogEntry, image_uri: str) -> Dict[str, Any]:
    """
    Build the metadata document for a catalog entry.

    Args:
        entry: Catalog entry being minted
        image_uri: Permanent URI of the uploaded image

    Returns:
        Metadata document as a dictionary
    """
    return NFTMetadata.from_entry(entry, image_uri).to_dict()


def serialize_metadata(document: Dict[str, Any]) -> bytes:
    """
    Serialize a metadata document deterministically.

    Keys are sorted so identical documents always produce identical bytes
    and therefore identical content hashes.
    """
    return json.dumps(document, sort_keys=True, indent=2, ensure_ascii=False).encode('utf-8')
