"""
batchmint - Storage Funding

Makes sure the Turbo credit balance covers an upload before it is sent,
buying credits with SOL when it does not.

The manager never caches the balance. By default checks are serialized
behind one lock per run so concurrent uploads in a chunk cannot all see the
same stale balance and each buy a top-up. A top-up is not followed by a
balance re-check: if it settles slowly the upload may still fail with an
upload error.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from network.ledger import LedgerError
from network.turbo import StorageNetworkError

from .exceptions import InsufficientFundingSource, UploadFailure


LAMPORTS_PER_SOL = 1_000_000_000


def compute_top_up(deficit: int, rate: int, unit: int = LAMPORTS_PER_SOL) -> int:
    """
    Convert a credit deficit into the token amount that covers it.

    Args:
        deficit: Missing credits (winc)
        rate: Credits bought by `unit` tokens
        unit: Token amount the rate refers to

    Returns:
        Token amount, rounded up so that `amount * rate // unit >= deficit`
    """
    if deficit <= 0:
        return 0
    if rate <= 0:
        raise InsufficientFundingSource(f"Exchange rate unavailable ({rate} winc per {unit})", deficit)
    return -(-deficit * unit // rate)


@dataclass
class FundingDecision:
    """Result of a funding check."""

    byte_size: int
    price: int
    balance: int
    top_up_amount: int = 0

    @property
    def topped_up(self) -> bool:
        return self.top_up_amount > 0

    @property
    def deficit(self) -> int:
        return max(self.price - self.balance, 0)


class FundingManager:
    """Tops up the storage account before uploads when needed."""

    def __init__(self, storage_client, serialize: bool = True,
                 token_unit: int = LAMPORTS_PER_SOL):
        """
        Initialize funding manager.

        Args:
            storage_client: Object with async get_upload_cost, get_balance,
                get_exchange_rate and top_up methods
            serialize: Run checks one at a time
            token_unit: Token amount the exchange rate is quoted for
        """
        self.client = storage_client
        self.token_unit = token_unit
        self.logger = logging.getLogger(__name__)
        self._serialize = serialize
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop = None

        self._stats = {
            "checks": 0,
            "top_ups": 0,
            "tokens_spent": 0
        }

    @property
    def serialized(self) -> bool:
        return self._serialize

    def _get_lock(self) -> asyncio.Lock:
        # Locks belong to one event loop; each asyncio.run gets its own
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def ensure_funded(self, byte_size: int) -> FundingDecision:
        """
        Ensure the balance covers an upload of `byte_size` bytes.

        Raises:
            InsufficientFundingSource: If the top-up cannot be made
            UploadFailure: If price or balance cannot be queried
        """
        if byte_size < 0:
            raise ValueError("Byte size must be non-negative")

        if not self._serialize:
            return await self._ensure_funded(byte_size)

        async with self._get_lock():
            return await self._ensure_funded(byte_size)

    async def _ensure_funded(self, byte_size: int) -> FundingDecision:
        self._stats["checks"] += 1

        try:
            price = await self.client.get_upload_cost(byte_size)
            balance = await self.client.get_balance()
        except StorageNetworkError as e:
            raise UploadFailure(f"Could not query storage price or balance: {e}") from e

        decision = FundingDecision(byte_size=byte_size, price=price, balance=balance)
        if balance >= price:
            self.logger.debug(f"Balance {balance} winc covers {byte_size} bytes ({price} winc)")
            return decision

        deficit = price - balance
        try:
            rate = await self.client.get_exchange_rate(self.token_unit)
        except StorageNetworkError as e:
            raise InsufficientFundingSource(f"Could not fetch exchange rate: {e}", deficit) from e

        amount = compute_top_up(deficit, rate, self.token_unit)
        self.logger.info(f"Topping up storage balance with {amount} lamports (deficit {deficit} winc)")

        try:
            await self.client.top_up(amount)
        except (StorageNetworkError, LedgerError) as e:
            raise InsufficientFundingSource(f"Top-up of {amount} lamports failed: {e}", deficit) from e

        self._stats["top_ups"] += 1
        self._stats["tokens_spent"] += amount
        decision.top_up_amount = amount
        return decision

    def get_stats(self) -> Dict[str, Any]:
        return dict(self._stats)
