"""
batchmint - Mint Executor

Mints one catalog entry: image upload, metadata upload, then (live mode)
the on-chain creation transaction. Uploads always finish before the
transaction is built because the asset's URI is immutable once created.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from network.ledger import Creator, FeeConfig, LedgerError, RoyaltyConfig

from .catalog import CatalogEntry, load_catalog_entry
from .exceptions import MintPipelineError, TransactionFailure
from .metadata import IMAGE_CONTENT_TYPE, METADATA_CONTENT_TYPE, build_metadata, serialize_metadata
from .outcomes import FailedOutcome, MintOutcome, SimulatedOutcome, SuccessOutcome
from .uploader import AssetUploader


def royalty_basis_points(entry: CatalogEntry, default_percentage: float) -> int:
    """
    Royalty in basis points for an entry.

    A missing or zero per-entry percentage falls back to the default.
    """
    percentage = entry.royalty_percentage or default_percentage
    return int(round(percentage * 100))


class MintExecutor:
    """Runs the mint pipeline for single catalog entries."""

    def __init__(self, config, uploader: AssetUploader, ledger=None,
                 operator: Optional[Pubkey] = None):
        """
        Initialize executor.

        Args:
            config: PipelineConfig for the run
            uploader: AssetUploader for images and metadata
            ledger: SolanaLedgerClient (live mode only)
            operator: Operator public key; receives royalties and owns new assets
        """
        if not config.simulate and (ledger is None or operator is None):
            raise ValueError("Live minting requires a ledger client and an operator key")

        self.config = config
        self.uploader = uploader
        self.ledger = ledger
        self.operator = operator
        self.logger = logging.getLogger(__name__)

    async def mint_one(self, entry: CatalogEntry) -> MintOutcome:
        """
        Mint a single entry.

        Raises:
            MintPipelineError: Any per-item failure (upload, funding, transaction)
        """
        image = await self.uploader.upload_path(entry.image_path, IMAGE_CONTENT_TYPE)

        document = build_metadata(entry, image.permanent_uri)
        metadata = await self.uploader.upload(serialize_metadata(document), METADATA_CONTENT_TYPE)

        asset = Keypair()
        asset_address = str(asset.pubkey())

        if self.config.simulate:
            self.logger.info(f"[SIM] Would mint {entry.name} as {asset_address}")
            return SimulatedOutcome(name=entry.name, asset_address=asset_address)

        royalty = RoyaltyConfig(
            basis_points=royalty_basis_points(entry, self.config.royalty_percentage),
            creators=(Creator(self.operator, 100),)
        )

        try:
            result = await self.ledger.create_asset(
                asset=asset,
                owner=self.operator,
                name=entry.name,
                uri=metadata.permanent_uri,
                royalty=royalty,
                fee=FeeConfig(self.config.priority_fee)
            )
        except LedgerError as e:
            raise TransactionFailure(str(e), e.signature) from e

        return SuccessOutcome(
            name=entry.name,
            asset_address=result.asset_address,
            metadata_uri=metadata.permanent_uri,
            signature=result.signature
        )

    async def mint_safely(self, entry_file: Union[str, Path],
                          catalog_dir: Optional[Union[str, Path]] = None) -> MintOutcome:
        """
        Load and mint one catalog file, converting per-item errors to a
        failed outcome instead of raising.
        """
        source_file = Path(entry_file).name

        try:
            entry = load_catalog_entry(entry_file, catalog_dir)
            return await self.mint_one(entry)
        except (MintPipelineError, OSError, ValueError) as e:
            self.logger.debug(f"Mint of {source_file} failed", exc_info=True)
            return FailedOutcome.from_exception(source_file, e)
