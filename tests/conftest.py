"""
Pytest configuration and fixtures for batchmint tests.
"""

import json
from pathlib import Path

import pytest
from solders.keypair import Keypair

from cli.config import PipelineConfig
from crypto.keys import save_keypair


class FakeStorageClient:
    """In-memory stand-in for TurboClient that records every call."""

    def __init__(self, price: int = 100, balance: int = 1_000, rate: int = 1_000_000):
        self.price = price
        self.balance = balance
        self.rate = rate
        self.calls = []
        self.top_ups = []
        self.uploads = []

    async def get_upload_cost(self, byte_count):
        self.calls.append(("get_upload_cost", byte_count))
        return self.price

    async def get_balance(self):
        self.calls.append(("get_balance",))
        return self.balance

    async def get_exchange_rate(self, token_amount):
        self.calls.append(("get_exchange_rate", token_amount))
        return self.rate

    async def top_up(self, token_amount):
        self.calls.append(("top_up", token_amount))
        self.top_ups.append(token_amount)
        self.balance += token_amount * self.rate // 1_000_000_000
        return f"topup-{len(self.top_ups)}"

    async def upload_file(self, data, content_type):
        self.calls.append(("upload_file", len(data), content_type))
        self.uploads.append((data, content_type))
        return f"content-{len(self.uploads)}"


def write_catalog(catalog_dir: Path, count: int, prefix: str = "item") -> Path:
    """Create `count` catalog entries with matching image files."""
    images = catalog_dir / "images"
    images.mkdir(parents=True, exist_ok=True)

    for i in range(1, count + 1):
        image = images / f"{prefix}-{i}.jpg"
        image.write_bytes(b"\xff\xd8\xff" + f"image {i}".encode())
        entry = {
            "name": f"{prefix.title()} #{i}",
            "description": f"Test asset {i}",
            "imagePath": f"images/{prefix}-{i}.jpg",
            "attributes": [{"trait_type": "Index", "value": i}]
        }
        (catalog_dir / f"{prefix}-{i:02d}.json").write_text(json.dumps(entry))

    return catalog_dir


@pytest.fixture
def catalog_dir(tmp_path):
    """Empty catalog directory."""
    directory = tmp_path / "nfts"
    directory.mkdir()
    return directory


@pytest.fixture
def operator():
    """Operator keypair."""
    return Keypair()


@pytest.fixture
def keyfile(tmp_path, operator):
    """Key file holding the operator keypair."""
    return save_keypair(operator, tmp_path / "keypair.json")


@pytest.fixture
def sim_config(tmp_path, catalog_dir, keyfile):
    """Simulation-mode configuration."""
    return PipelineConfig(
        keypair_path=keyfile,
        catalog_dir=catalog_dir,
        simulate=True,
        chunk_size=3,
        report_path=tmp_path / "results.json"
    )


@pytest.fixture
def live_config(tmp_path, catalog_dir, keyfile):
    """Live-mode configuration (collaborators are always faked in tests)."""
    return PipelineConfig(
        keypair_path=keyfile,
        catalog_dir=catalog_dir,
        simulate=False,
        chunk_size=3,
        royalty_percentage=5,
        priority_fee=50_000,
        report_path=tmp_path / "results.json"
    )


@pytest.fixture
def storage():
    """Fake storage client with enough balance for any upload."""
    return FakeStorageClient()


@pytest.fixture
def make_catalog(catalog_dir):
    """Factory filling the catalog directory with valid entries."""
    def _make(count: int, prefix: str = "item") -> Path:
        return write_catalog(catalog_dir, count, prefix)
    return _make


@pytest.fixture
def storage_factory():
    """Factory for fake storage clients with custom price/balance/rate."""
    return FakeStorageClient
