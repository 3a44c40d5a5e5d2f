"""
Minting Pipeline Exceptions for batchmint

Per-item errors (everything except FatalStartupError) are caught at the
item boundary and recorded as failed outcomes; FatalStartupError aborts the
run before any chunk starts.
"""

from typing import Optional


class MintPipelineError(Exception):
    """Base exception for all minting pipeline errors."""
    pass


class FatalStartupError(MintPipelineError):
    """Raised when the run cannot start (missing key file or catalog)."""
    pass


class ConfigError(FatalStartupError):
    """Raised when configuration values are invalid."""
    pass


class CatalogEntryMalformed(MintPipelineError):
    """Raised when a catalog entry is missing fields or its image is unreadable."""

    def __init__(self, message: str, source_file: Optional[str] = None):
        self.source_file = source_file
        super().__init__(message)


class InsufficientFundingSource(MintPipelineError):
    """Raised when the storage balance could not be topped up to cover an upload."""

    def __init__(self, message: str, deficit: Optional[int] = None):
        self.deficit = deficit
        super().__init__(message)


class UploadFailure(MintPipelineError):
    """Raised when the storage network fails or returns no content id."""
    pass


class TransactionFailure(MintPipelineError):
    """Raised when the ledger rejects or fails to confirm a transaction."""

    def __init__(self, message: str, signature: Optional[str] = None):
        self.signature = signature
        super().__init__(message)
