"""
batchmint - Catalog Loading

A catalog is a directory holding one JSON document per asset:

    {
        "name": "Sunrise #1",
        "description": "First light",
        "imagePath": "images/sunrise-1.jpg",
        "attributes": [{"trait_type": "Sky", "value": "Orange"}],
        "royaltyPercentage": 7
    }

Files are processed in filename order; anything not ending in `.json` is
ignored.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from .exceptions import CatalogEntryMalformed, FatalStartupError


CATALOG_EXTENSION = ".json"
IMAGE_PATH_KEYS = ("imagePath", "image_path", "image")
TRAIT_KEYS = ("trait_type", "trait")


@dataclass(frozen=True)
class CatalogAttribute:
    """Single trait of a catalog entry."""

    trait_type: str
    value: Union[str, int, float, bool]

    def to_dict(self):
        return {"trait_type": self.trait_type, "value": self.value}


@dataclass(frozen=True)
class CatalogEntry:
    """One asset to mint, as loaded from its catalog file."""

    name: str
    description: str
    image_path: Path
    source_file: str
    attributes: Tuple[CatalogAttribute, ...] = ()
    royalty_percentage: Optional[float] = None


def list_catalog_files(catalog_dir: Union[str, Path]) -> List[Path]:
    """
    List catalog documents in deterministic (filename) order.

    Args:
        catalog_dir: Catalog directory

    Returns:
        Sorted list of `.json` files

    Raises:
        FatalStartupError: If the directory does not exist
    """
    directory = Path(catalog_dir).expanduser()
    if not directory.is_dir():
        raise FatalStartupError(f"Catalog directory not found: {directory}")

    files = [
        path for path in directory.iterdir()
        if path.is_file() and path.name.endswith(CATALOG_EXTENSION)
    ]
    return sorted(files, key=lambda path: path.name)


def _parse_attributes(raw: Any, source_file: str) -> Tuple[CatalogAttribute, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise CatalogEntryMalformed("'attributes' must be a list", source_file)

    attributes = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise CatalogEntryMalformed(f"Attribute {index} must be an object", source_file)

        trait = next((item[key] for key in TRAIT_KEYS if key in item), None)
        if not isinstance(trait, str) or not trait:
            raise CatalogEntryMalformed(f"Attribute {index} is missing 'trait_type'", source_file)
        if "value" not in item:
            raise CatalogEntryMalformed(f"Attribute {index} ({trait}) is missing 'value'", source_file)

        value = item["value"]
        if not isinstance(value, (str, int, float, bool)):
            raise CatalogEntryMalformed(f"Attribute {trait} has an unsupported value type", source_file)

        attributes.append(CatalogAttribute(trait, value))

    return tuple(attributes)


def _parse_royalty(raw: Any, source_file: str) -> Optional[float]:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise CatalogEntryMalformed("'royaltyPercentage' must be a number", source_file)
    if not 0 <= raw <= 100:
        raise CatalogEntryMalformed(f"'royaltyPercentage' out of range: {raw}", source_file)
    return raw


def _resolve_image(raw: Any, base_dir: Path, source_file: str) -> Path:
    if not isinstance(raw, str) or not raw.strip():
        raise CatalogEntryMalformed("Missing required field 'imagePath'", source_file)

    image_path = Path(raw).expanduser()
    if not image_path.is_absolute():
        image_path = base_dir / image_path

    if not image_path.is_file():
        raise CatalogEntryMalformed(f"Image file not found: {image_path}", source_file)
    if not os.access(image_path, os.R_OK):
        raise CatalogEntryMalformed(f"Image file is not readable: {image_path}", source_file)

    return image_path


def load_catalog_entry(path: Union[str, Path],
                       catalog_dir: Optional[Union[str, Path]] = None) -> CatalogEntry:
    """
    Load and validate one catalog document.

    Args:
        path: Catalog JSON file
        catalog_dir: Directory relative image paths resolve against
            (defaults to the file's directory)

    Returns:
        CatalogEntry

    Raises:
        CatalogEntryMalformed: On unreadable JSON, missing fields or a
            missing/unreadable image
    """
    path = Path(path)
    source_file = path.name
    base_dir = Path(catalog_dir) if catalog_dir is not None else path.parent

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise CatalogEntryMalformed(f"Cannot read catalog entry: {e}", source_file) from e
    except json.JSONDecodeError as e:
        raise CatalogEntryMalformed(f"Invalid JSON: {e}", source_file) from e

    if not isinstance(data, dict):
        raise CatalogEntryMalformed("Catalog entry must be a JSON object", source_file)

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise CatalogEntryMalformed("Missing required field 'name'", source_file)

    description = data.get("description") or ""
    if not isinstance(description, str):
        raise CatalogEntryMalformed("'description' must be a string", source_file)

    raw_image = next((data[key] for key in IMAGE_PATH_KEYS if data.get(key)), None)

    return CatalogEntry(
        name=name,
        description=description,
        image_path=_resolve_image(raw_image, base_dir, source_file),
        source_file=source_file,
        attributes=_parse_attributes(data.get("attributes"), source_file),
        royalty_percentage=_parse_royalty(data.get("royaltyPercentage"), source_file),
    )
