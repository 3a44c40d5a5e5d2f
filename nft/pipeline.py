"""
batchmint - Pipeline Wiring

Builds the components for a run from a PipelineConfig and executes the
batch. Simulation runs construct no network clients at all.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from crypto.exceptions import KeyFileError
from crypto.keys import load_keypair
from network.ledger import SolanaLedgerClient
from network.turbo import TurboClient, TurboConfig

from .batch import BatchOrchestrator, BatchReport
from .exceptions import FatalStartupError
from .funding import FundingManager
from .minter import MintExecutor
from .uploader import AssetUploader, PlaceholderIds


logger = logging.getLogger(__name__)


def _load_operator(config):
    try:
        return load_keypair(config.keypair_path)
    except KeyFileError as e:
        raise FatalStartupError(str(e)) from e


def _check_catalog(config):
    catalog_dir = Path(config.catalog_dir).expanduser()
    if not catalog_dir.is_dir():
        raise FatalStartupError(f"Catalog directory not found: {catalog_dir}")


async def run_pipeline(config, on_progress: Optional[Callable[[str], None]] = None) -> BatchReport:
    """
    Run a full batch.

    Args:
        config: PipelineConfig for the run
        on_progress: Receives per-item progress lines

    Returns:
        BatchReport

    Raises:
        FatalStartupError: Missing/invalid key file or catalog directory
    """
    operator = _load_operator(config)
    _check_catalog(config)

    if config.simulate:
        logger.info("Running in simulation mode; no network calls will be made")
        uploader = AssetUploader(config, placeholders=PlaceholderIds(config.placeholder_mode))
        executor = MintExecutor(config, uploader)
        return await BatchOrchestrator(config, executor, on_progress).run_batch()

    logger.info(f"Running live on {config.network} via {config.rpc_url} as {operator.pubkey()}")
    turbo_config = TurboConfig(
        upload_url=config.upload_url,
        payment_url=config.payment_url,
        gateway_url=config.gateway_url,
        timeout=config.request_timeout
    )

    async with SolanaLedgerClient(config.rpc_url, operator, config.commitment) as ledger:
        async with TurboClient(operator, turbo_config, token_sender=ledger.transfer) as turbo:
            funding = FundingManager(turbo, serialize=config.serialize_funding)
            uploader = AssetUploader(config, turbo, funding)
            executor = MintExecutor(config, uploader, ledger, operator.pubkey())
            return await BatchOrchestrator(config, executor, on_progress).run_batch()
