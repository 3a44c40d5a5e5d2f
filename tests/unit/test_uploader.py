"""
Unit tests for asset uploads.
"""

import asyncio

import pytest

from network.turbo import StorageNetworkError
from nft.exceptions import CatalogEntryMalformed, UploadFailure
from nft.funding import FundingManager
from nft.uploader import AssetUploader, PlaceholderIds


class TestPlaceholderIds:
    """Test simulation id generation."""

    def test_sequential(self):
        ids = PlaceholderIds()
        assert [ids.next_id() for _ in range(3)] == [
            "simulation_id_000001",
            "simulation_id_000002",
            "simulation_id_000003",
        ]

    def test_random(self):
        ids = PlaceholderIds("random")
        value = ids.next_id()

        assert value.startswith("simulation_id_")
        suffix = value[len("simulation_id_"):]
        assert len(suffix) == 8
        assert suffix.isalnum() and suffix == suffix.lower()

    def test_prefixes_count_separately(self):
        ids = PlaceholderIds()

        assert ids.next_id() == "simulation_id_000001"
        assert ids.next_id("sim_metadata") == "sim_metadata_000001"
        assert ids.next_id() == "simulation_id_000002"

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            PlaceholderIds("uuid")


class TestSimulatedUpload:
    """Test uploads in simulation mode."""

    def test_no_network_calls(self, sim_config, storage):
        """Test simulation never reaches the storage client."""
        funding = FundingManager(storage)
        uploader = AssetUploader(sim_config, storage, funding)

        async def run():
            return [await uploader.upload(b"data", "image/jpeg") for _ in range(2)]

        first, second = asyncio.run(run())

        assert storage.calls == []
        assert first.simulated
        assert first.content_id == "simulation_id_000001"
        assert second.content_id == "simulation_id_000002"
        assert first.permanent_uri == "https://arweave.net/simulation_id_000001"

    def test_metadata_prefix(self, sim_config):
        """Test metadata placeholders are distinguishable from image placeholders."""
        uploader = AssetUploader(sim_config)

        async def run():
            image = await uploader.upload(b"img", "image/jpeg")
            metadata = await uploader.upload(b"{}", "application/json")
            return image, metadata

        image, metadata = asyncio.run(run())

        assert image.content_id == "simulation_id_000001"
        assert metadata.content_id == "sim_metadata_000001"
        assert metadata.permanent_uri == "https://arweave.net/sim_metadata_000001"

    def test_without_collaborators(self, sim_config):
        """Test simulation needs no storage client or funding manager."""
        result = asyncio.run(AssetUploader(sim_config).upload(b"{}", "application/json"))

        assert result.size == 2
        assert result.content_type == "application/json"


class TestLiveUpload:
    """Test uploads in live mode."""

    def test_requires_collaborators(self, live_config):
        with pytest.raises(ValueError):
            AssetUploader(live_config)

    def test_funds_then_uploads(self, live_config, storage):
        """Test the funding check precedes every upload."""
        uploader = AssetUploader(live_config, storage, FundingManager(storage))

        result = asyncio.run(uploader.upload(b"12345", "image/jpeg"))

        assert storage.calls[0] == ("get_upload_cost", 5)
        assert storage.calls[-1] == ("upload_file", 5, "image/jpeg")
        assert result.content_id == "content-1"
        assert result.permanent_uri == "https://arweave.net/content-1"
        assert not result.simulated

    def test_empty_id(self, live_config, storage):
        """Test a missing content id is an upload failure."""
        async def no_id(data, content_type):
            return ""
        storage.upload_file = no_id
        uploader = AssetUploader(live_config, storage, FundingManager(storage))

        with pytest.raises(UploadFailure, match="no id"):
            asyncio.run(uploader.upload(b"x", "image/jpeg"))

    def test_storage_error(self, live_config, storage):
        """Test storage network errors become upload failures."""
        async def broken(data, content_type):
            raise StorageNetworkError("HTTP 500", 500)
        storage.upload_file = broken
        uploader = AssetUploader(live_config, storage, FundingManager(storage))

        with pytest.raises(UploadFailure, match="HTTP 500"):
            asyncio.run(uploader.upload(b"x", "image/jpeg"))

    def test_unreadable_path(self, live_config, storage, tmp_path):
        uploader = AssetUploader(live_config, storage, FundingManager(storage))

        with pytest.raises(CatalogEntryMalformed):
            asyncio.run(uploader.upload_path(tmp_path / "missing.jpg", "image/jpeg"))
        assert storage.calls == []
