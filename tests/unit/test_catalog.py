"""
Unit tests for catalog loading and metadata documents.
"""

import json

import pytest

from nft.catalog import CatalogEntry, list_catalog_files, load_catalog_entry
from nft.exceptions import CatalogEntryMalformed, FatalStartupError
from nft.metadata import build_metadata, serialize_metadata


def write_entry(directory, filename, data, image="cat.jpg"):
    if image:
        (directory / image).write_bytes(b"\xff\xd8\xff")
    path = directory / filename
    path.write_text(json.dumps(data))
    return path


class TestListCatalogFiles:
    """Test catalog enumeration."""

    def test_sorted_and_filtered(self, catalog_dir):
        """Test only .json files are listed, in filename order."""
        for name in ("b.json", "a.json", "c.json", "notes.txt", "image.jpg"):
            (catalog_dir / name).write_text("{}")
        (catalog_dir / "sub.json").mkdir()

        files = list_catalog_files(catalog_dir)

        assert [f.name for f in files] == ["a.json", "b.json", "c.json"]

    def test_missing_directory(self, tmp_path):
        """Test a missing catalog directory is fatal."""
        with pytest.raises(FatalStartupError, match="Catalog directory not found"):
            list_catalog_files(tmp_path / "missing")

    def test_empty_directory(self, catalog_dir):
        """Test an empty catalog yields no files."""
        assert list_catalog_files(catalog_dir) == []


class TestLoadCatalogEntry:
    """Test parsing and validation of catalog documents."""

    def test_full_entry(self, catalog_dir):
        """Test all fields are loaded and image paths resolve against the catalog."""
        path = write_entry(catalog_dir, "001.json", {
            "name": "Cat #1",
            "description": "A cat",
            "imagePath": "cat.jpg",
            "attributes": [
                {"trait_type": "Color", "value": "Black"},
                {"trait": "Lives", "value": 9}
            ],
            "royaltyPercentage": 7
        })

        entry = load_catalog_entry(path, catalog_dir)

        assert isinstance(entry, CatalogEntry)
        assert entry.name == "Cat #1"
        assert entry.description == "A cat"
        assert entry.image_path == catalog_dir / "cat.jpg"
        assert entry.source_file == "001.json"
        assert [(a.trait_type, a.value) for a in entry.attributes] == [("Color", "Black"), ("Lives", 9)]
        assert entry.royalty_percentage == 7

    def test_defaults(self, catalog_dir):
        """Test optional fields fall back to defaults."""
        path = write_entry(catalog_dir, "001.json", {"name": "Cat", "imagePath": "cat.jpg"})

        entry = load_catalog_entry(path)

        assert entry.description == ""
        assert entry.attributes == ()
        assert entry.royalty_percentage is None

    def test_absolute_image_path(self, catalog_dir, tmp_path):
        """Test absolute image paths are used as-is."""
        image = tmp_path / "elsewhere.jpg"
        image.write_bytes(b"\xff")
        path = write_entry(catalog_dir, "001.json", {"name": "Cat", "imagePath": str(image)}, image=None)

        assert load_catalog_entry(path, catalog_dir).image_path == image

    def test_missing_name(self, catalog_dir):
        """Test entries without a name are malformed."""
        path = write_entry(catalog_dir, "001.json", {"imagePath": "cat.jpg"})

        with pytest.raises(CatalogEntryMalformed, match="'name'") as exc_info:
            load_catalog_entry(path)
        assert exc_info.value.source_file == "001.json"

    def test_missing_image_file(self, catalog_dir):
        """Test entries pointing at a missing image are malformed."""
        path = write_entry(catalog_dir, "001.json", {"name": "Cat", "imagePath": "gone.jpg"}, image=None)

        with pytest.raises(CatalogEntryMalformed, match="Image file not found"):
            load_catalog_entry(path)

    def test_missing_image_field(self, catalog_dir):
        """Test entries without an image path are malformed."""
        path = write_entry(catalog_dir, "001.json", {"name": "Cat"}, image=None)

        with pytest.raises(CatalogEntryMalformed, match="imagePath"):
            load_catalog_entry(path)

    def test_invalid_json(self, catalog_dir):
        """Test unparsable documents are malformed."""
        path = catalog_dir / "001.json"
        path.write_text("{broken")

        with pytest.raises(CatalogEntryMalformed, match="Invalid JSON"):
            load_catalog_entry(path)

    @pytest.mark.parametrize("royalty", [-1, 101, "5", True])
    def test_invalid_royalty(self, catalog_dir, royalty):
        """Test royalty overrides must be numbers within 0..100."""
        path = write_entry(catalog_dir, "001.json", {
            "name": "Cat", "imagePath": "cat.jpg", "royaltyPercentage": royalty
        })

        with pytest.raises(CatalogEntryMalformed, match="royaltyPercentage"):
            load_catalog_entry(path)

    def test_invalid_attributes(self, catalog_dir):
        """Test attributes must be trait/value objects."""
        path = write_entry(catalog_dir, "001.json", {
            "name": "Cat", "imagePath": "cat.jpg", "attributes": [{"value": 1}]
        })

        with pytest.raises(CatalogEntryMalformed, match="trait_type"):
            load_catalog_entry(path)


class TestMetadataDocument:
    """Test metadata document construction."""

    def test_document_shape(self, catalog_dir):
        """Test the document follows the token metadata standard."""
        path = write_entry(catalog_dir, "001.json", {
            "name": "Cat",
            "description": "A cat",
            "imagePath": "cat.jpg",
            "attributes": [{"trait_type": "Color", "value": "Black"}]
        })
        entry = load_catalog_entry(path)

        document = build_metadata(entry, "https://arweave.net/img")

        assert document == {
            "name": "Cat",
            "description": "A cat",
            "image": "https://arweave.net/img",
            "attributes": [{"trait_type": "Color", "value": "Black"}],
            "properties": {
                "files": [{"uri": "https://arweave.net/img", "type": "image/jpeg"}],
                "category": "image"
            }
        }

    def test_empty_attributes(self, catalog_dir):
        """Test entries without attributes produce an empty list."""
        path = write_entry(catalog_dir, "001.json", {"name": "Cat", "imagePath": "cat.jpg"})

        document = build_metadata(load_catalog_entry(path), "uri")

        assert document["attributes"] == []

    def test_serialization_is_stable(self):
        """Test key order does not change the serialized bytes."""
        first = serialize_metadata({"name": "Cat", "image": "x", "attributes": []})
        second = serialize_metadata({"attributes": [], "image": "x", "name": "Cat"})

        assert first == second
        assert json.loads(first) == {"name": "Cat", "image": "x", "attributes": []}
