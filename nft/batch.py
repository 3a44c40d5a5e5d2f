"""
batchmint - Batch Orchestration

Runs a whole catalog through the mint executor in fixed-size chunks.

Chunks run one after another; items inside a chunk run concurrently and
are all awaited (join-all) before the next chunk starts, so at most
`chunk_size` pipelines are in flight. A failing item never cancels its
siblings or later chunks.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Dict, Generic, Iterable, List, Optional, Sequence, TypeVar, Union

from .catalog import list_catalog_files
from .minter import MintExecutor
from .outcomes import FailedOutcome, MintOutcome, MintStatus, summarize, write_report


T = TypeVar("T")


@dataclass
class Settled(Generic[T]):
    """Result of an awaitable that either returned or raised."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_settled(awaitables: Iterable[Awaitable[T]]) -> List[Settled[T]]:
    """
    Run awaitables concurrently and wait for all of them.

    Exceptions are captured as values; results keep input order.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    return [
        Settled(error=result) if isinstance(result, BaseException) else Settled(value=result)
        for result in results
    ]


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    """Split items into consecutive chunks of `size` (last may be shorter)."""
    if size < 1:
        raise ValueError("Chunk size must be at least 1")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


@dataclass
class BatchReport:
    """Outcome of a batch run."""

    outcomes: List[MintOutcome]
    chunk_count: int
    report_path: Optional[Path] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    def counts(self) -> Dict[str, int]:
        return summarize(self.outcomes)

    @property
    def failed(self) -> List[FailedOutcome]:
        return [o for o in self.outcomes if o.status == MintStatus.FAILED]


class BatchOrchestrator:
    """Processes a catalog directory chunk by chunk."""

    def __init__(self, config, executor: MintExecutor,
                 on_progress: Optional[Callable[[str], None]] = None):
        """
        Initialize orchestrator.

        Args:
            config: PipelineConfig for the run
            executor: MintExecutor used for every item
            on_progress: Receives one human-readable line per event
        """
        self.config = config
        self.executor = executor
        self.on_progress = on_progress
        self.logger = logging.getLogger(__name__)

    def _emit(self, message: str):
        self.logger.info(message)
        if self.on_progress is not None:
            self.on_progress(message)

    def _report_outcome(self, outcome: MintOutcome):
        if outcome.status == MintStatus.FAILED:
            self._emit(f"  Failed: {outcome.source_file} - {outcome.error_message}")
        else:
            self._emit(f"  Finished: {outcome.name}")

    async def _mint_item(self, entry_file: Path, catalog_dir: Path) -> MintOutcome:
        outcome = await self.executor.mint_safely(entry_file, catalog_dir)
        self._report_outcome(outcome)
        return outcome

    async def run_batch(self, catalog_dir: Optional[Union[str, Path]] = None) -> BatchReport:
        """
        Mint every entry of a catalog and write the report.

        Args:
            catalog_dir: Catalog directory (defaults to the configured one)

        Returns:
            BatchReport with one outcome per catalog file, in catalog order

        Raises:
            FatalStartupError: If the catalog directory does not exist
        """
        directory = Path(catalog_dir if catalog_dir is not None else self.config.catalog_dir)
        files = list_catalog_files(directory)
        chunks = chunked(files, self.config.chunk_size)

        report = BatchReport(outcomes=[], chunk_count=len(chunks))
        self._emit(f"Processing {len(files)} NFTs in chunks of {self.config.chunk_size}...")

        for index, chunk in enumerate(chunks, start=1):
            self._emit(f"Processing batch {index}/{len(chunks)} ({len(chunk)} items)")

            settled = await gather_settled(self._mint_item(path, directory) for path in chunk)

            for path, result in zip(chunk, settled):
                if result.ok:
                    report.outcomes.append(result.value)
                    continue

                self.logger.error(f"Unexpected error minting {path.name}", exc_info=result.error)
                outcome = FailedOutcome.from_exception(path.name, result.error)
                self._report_outcome(outcome)
                report.outcomes.append(outcome)

        report.report_path = write_report(report.outcomes, self.config.report_path)
        report.finished_at = datetime.now(timezone.utc)
        return report
