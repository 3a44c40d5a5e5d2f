"""
Unit tests for batch orchestration.
"""

import asyncio
import json

import pytest

from nft.batch import BatchOrchestrator, chunked, gather_settled
from nft.minter import MintExecutor
from nft.outcomes import MintStatus, SimulatedOutcome, load_report
from nft.uploader import AssetUploader


def simulated_orchestrator(config, lines=None):
    executor = MintExecutor(config, AssetUploader(config))
    return BatchOrchestrator(config, executor, on_progress=lines.append if lines is not None else None)


class TestHelpers:
    """Test chunking and join-all helpers."""

    def test_chunked(self):
        assert chunked(list(range(7)), 3) == [[0, 1, 2], [3, 4, 5], [6]]
        assert chunked([], 3) == []
        assert chunked([1, 2], 5) == [[1, 2]]

    def test_chunked_invalid_size(self):
        with pytest.raises(ValueError):
            chunked([1], 0)

    def test_gather_settled_keeps_order_and_errors(self):
        async def ok(value, delay):
            await asyncio.sleep(delay)
            return value

        async def boom():
            raise RuntimeError("boom")

        async def run():
            return await gather_settled([ok(1, 0.01), boom(), ok(3, 0)])

        results = asyncio.run(run())

        assert [r.ok for r in results] == [True, False, True]
        assert results[0].value == 1
        assert results[2].value == 3
        assert isinstance(results[1].error, RuntimeError)


class TestBatchOrchestrator:
    """Test catalog processing in chunks."""

    def test_chunks_and_report(self, sim_config, make_catalog):
        """Test seven entries in chunks of three produce three batches."""
        make_catalog(7)
        lines = []

        report = asyncio.run(simulated_orchestrator(sim_config, lines).run_batch())

        assert report.chunk_count == 3
        assert lines[0] == "Processing 7 NFTs in chunks of 3..."
        batch_lines = [line for line in lines if line.startswith("Processing batch")]
        assert batch_lines == [
            "Processing batch 1/3 (3 items)",
            "Processing batch 2/3 (3 items)",
            "Processing batch 3/3 (1 items)",
        ]
        assert len([line for line in lines if line.startswith("  Finished:")]) == 7

        saved = load_report(sim_config.report_path)
        assert len(saved) == 7
        assert all(item["status"] == "simulated" for item in saved)
        assert [item["name"] for item in saved] == [f"Item #{i}" for i in range(1, 8)]
        assert len({item["assetAddress"] for item in saved}) == 7
        assert report.counts() == {"total": 7, "simulated": 7, "success": 0, "failed": 0}

    def test_empty_catalog(self, sim_config):
        """Test an empty catalog writes an empty report."""
        report = asyncio.run(simulated_orchestrator(sim_config).run_batch())

        assert report.chunk_count == 0
        assert json.loads(sim_config.report_path.read_text()) == []

    def test_missing_image_isolated(self, sim_config, make_catalog):
        """Test one broken entry does not affect the others."""
        catalog = make_catalog(5)
        (catalog / "images" / "item-3.jpg").unlink()
        lines = []

        report = asyncio.run(simulated_orchestrator(sim_config, lines).run_batch())

        assert [o.status for o in report.outcomes] == [
            MintStatus.SIMULATED, MintStatus.SIMULATED, MintStatus.FAILED,
            MintStatus.SIMULATED, MintStatus.SIMULATED,
        ]
        failed = report.failed[0]
        assert failed.source_file == "item-03.json"
        assert failed.error_message
        assert any(line.startswith("  Failed: item-03.json - ") for line in lines)

        saved = load_report(sim_config.report_path)
        assert saved[2]["status"] == "failed"
        assert saved[2]["sourceFile"] == "item-03.json"
        assert saved[2]["errorMessage"]

    def test_malformed_entry_isolated(self, sim_config, make_catalog):
        catalog = make_catalog(2)
        (catalog / "item-00.json").write_text("{not json")

        report = asyncio.run(simulated_orchestrator(sim_config).run_batch())

        assert report.counts() == {"total": 3, "simulated": 2, "success": 0, "failed": 1}
        assert report.failed[0].source_file == "item-00.json"

    def test_concurrency_bounded_by_chunk_size(self, sim_config, make_catalog):
        """Test no more than chunk_size items are in flight at once."""
        make_catalog(8)
        state = {"active": 0, "peak": 0}

        class SlowExecutor:
            async def mint_safely(self, entry_file, catalog_dir=None):
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
                await asyncio.sleep(0.01)
                state["active"] -= 1
                return SimulatedOutcome(name=entry_file.name, asset_address="addr")

        report = asyncio.run(BatchOrchestrator(sim_config, SlowExecutor()).run_batch())

        assert len(report.outcomes) == 8
        assert state["peak"] == sim_config.chunk_size

    def test_unexpected_error_becomes_failure(self, sim_config, make_catalog):
        """Test errors escaping the executor are recorded as failures."""
        make_catalog(3)

        class FlakyExecutor:
            async def mint_safely(self, entry_file, catalog_dir=None):
                if entry_file.name == "item-02.json":
                    raise RuntimeError("disk on fire")
                return SimulatedOutcome(name=entry_file.name, asset_address="addr")

        report = asyncio.run(BatchOrchestrator(sim_config, FlakyExecutor()).run_batch())

        assert len(report.outcomes) == 3
        assert report.failed[0].source_file == "item-02.json"
        assert report.failed[0].error_message == "disk on fire"
        assert report.failed[0].error_type == "RuntimeError"
