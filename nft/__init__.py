"""
batchmint - NFT Minting Pipeline

This package mints a catalog of NFTs: images and metadata go to Arweave
through Turbo, assets are created on Solana with Metaplex Core.
"""

from .exceptions import (
    CatalogEntryMalformed,
    ConfigError,
    FatalStartupError,
    InsufficientFundingSource,
    MintPipelineError,
    TransactionFailure,
    UploadFailure,
)

from .catalog import (
    CatalogAttribute,
    CatalogEntry,
    list_catalog_files,
    load_catalog_entry,
)

from .metadata import (
    IMAGE_CONTENT_TYPE,
    METADATA_CONTENT_TYPE,
    NFTMetadata,
    build_metadata,
    serialize_metadata,
)

from .outcomes import (
    FailedOutcome,
    MintOutcome,
    MintStatus,
    SimulatedOutcome,
    SuccessOutcome,
    summarize,
    write_report,
)

from .funding import FundingDecision, FundingManager, compute_top_up
from .uploader import AssetUploader, PlaceholderIds, UploadResult
from .minter import MintExecutor, royalty_basis_points
from .batch import BatchOrchestrator, BatchReport, Settled, chunked, gather_settled
from .pipeline import run_pipeline

__version__ = "1.0.0"

__all__ = [
    # Errors
    "CatalogEntryMalformed",
    "ConfigError",
    "FatalStartupError",
    "InsufficientFundingSource",
    "MintPipelineError",
    "TransactionFailure",
    "UploadFailure",

    # Catalog and metadata
    "CatalogAttribute",
    "CatalogEntry",
    "list_catalog_files",
    "load_catalog_entry",
    "IMAGE_CONTENT_TYPE",
    "METADATA_CONTENT_TYPE",
    "NFTMetadata",
    "build_metadata",
    "serialize_metadata",

    # Outcomes
    "FailedOutcome",
    "MintOutcome",
    "MintStatus",
    "SimulatedOutcome",
    "SuccessOutcome",
    "summarize",
    "write_report",

    # Pipeline
    "FundingDecision",
    "FundingManager",
    "compute_top_up",
    "AssetUploader",
    "PlaceholderIds",
    "UploadResult",
    "MintExecutor",
    "royalty_basis_points",
    "BatchOrchestrator",
    "BatchReport",
    "Settled",
    "chunked",
    "gather_settled",
    "run_pipeline",
]
