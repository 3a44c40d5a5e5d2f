"""
batchmint - Network Clients

Clients for the two external services a mint run talks to:
- Turbo (Arweave bundling) for content storage and storage credits
- A Solana RPC node for asset creation and SOL transfers
"""

from .dataitem import DataItem, deep_hash, encode_tags

from .turbo import (
    StorageNetworkError,
    TurboClient,
    TurboConfig,
)

from .ledger import (
    NETWORK_RPC_URLS,
    CreateAssetResult,
    Creator,
    FeeConfig,
    LedgerError,
    RoyaltyConfig,
    SolanaLedgerClient,
)

__all__ = [
    "DataItem",
    "deep_hash",
    "encode_tags",
    "StorageNetworkError",
    "TurboClient",
    "TurboConfig",
    "NETWORK_RPC_URLS",
    "CreateAssetResult",
    "Creator",
    "FeeConfig",
    "LedgerError",
    "RoyaltyConfig",
    "SolanaLedgerClient",
]
