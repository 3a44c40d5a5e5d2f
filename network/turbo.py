"""
batchmint - Turbo Storage Client

This module provides an async client for the Turbo bundling service, which
stores content permanently on Arweave. It covers pricing, balance queries,
balance top-ups paid in SOL, and signed data item uploads.

Prices and balances are expressed in winc (winston credits); token amounts
in the token's base unit (lamports for Solana).
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from solders.keypair import Keypair

from .dataitem import DataItem


DEFAULT_UPLOAD_URL = "https://upload.ardrive.io"
DEFAULT_PAYMENT_URL = "https://payment.ardrive.io"
DEFAULT_GATEWAY_URL = "https://arweave.net"
DEFAULT_TOKEN = "solana"

# (destination address, token amount) -> transaction id
TokenSender = Callable[[str, int], Awaitable[str]]


class StorageNetworkError(Exception):
    """Exception for Turbo service failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class TurboConfig:
    """Configuration for the Turbo upload and payment services."""
    upload_url: str = DEFAULT_UPLOAD_URL
    payment_url: str = DEFAULT_PAYMENT_URL
    gateway_url: str = DEFAULT_GATEWAY_URL
    token: str = DEFAULT_TOKEN
    timeout: float = 60.0

    def __post_init__(self):
        self.upload_url = self.upload_url.rstrip('/')
        self.payment_url = self.payment_url.rstrip('/')
        self.gateway_url = self.gateway_url.rstrip('/')
        if self.timeout <= 0:
            raise ValueError("Timeout must be positive")


class TurboClient:
    """
    Async Turbo client authenticated by the operator's Solana keypair.

    Top-ups need a token sender: a coroutine that transfers lamports to the
    Turbo deposit wallet and returns the transaction signature.
    """

    def __init__(self, signer: Keypair, config: Optional[TurboConfig] = None,
                 token_sender: Optional[TokenSender] = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        self.signer = signer
        self.config = config or TurboConfig()
        self.token_sender = token_sender
        self.logger = logging.getLogger(__name__)

        self._http = http_client or httpx.AsyncClient(timeout=self.config.timeout)
        self._owns_http = http_client is None

        self._stats = {
            "total_requests": 0,
            "failed_requests": 0,
            "bytes_uploaded": 0,
            "uploads": 0,
            "top_ups": 0,
            "total_time": 0.0,
            "last_request_time": None
        }

    @property
    def address(self) -> str:
        """Native (Solana) address of the paying account."""
        return str(self.signer.pubkey())

    async def __aenter__(self) -> 'TurboClient':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        start_time = time.time()
        self._stats["total_requests"] += 1

        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            self._stats["failed_requests"] += 1
            raise StorageNetworkError(f"{method} {url} timed out: {e}") from e
        except httpx.HTTPError as e:
            self._stats["failed_requests"] += 1
            raise StorageNetworkError(f"{method} {url} failed: {e}") from e
        finally:
            self._stats["total_time"] += time.time() - start_time
            self._stats["last_request_time"] = datetime.now(timezone.utc)

        self.logger.debug(f"{method} {url} -> HTTP {response.status_code}")
        return response

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        if response.is_error:
            self._stats["failed_requests"] += 1
            raise StorageNetworkError(
                f"{response.request.method} {response.request.url} returned "
                f"HTTP {response.status_code}: {response.text[:200]}",
                response.status_code
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise StorageNetworkError(f"Invalid JSON response: {e}", response.status_code) from e

        if not isinstance(payload, dict):
            raise StorageNetworkError("Unexpected response shape", response.status_code)
        return payload

    @staticmethod
    def _winc(payload: Dict[str, Any]) -> int:
        try:
            return int(payload["winc"])
        except (KeyError, TypeError, ValueError) as e:
            raise StorageNetworkError(f"Response is missing a valid 'winc' amount: {payload}") from e

    async def get_upload_cost(self, byte_count: int) -> int:
        """
        Get the price of storing a payload.

        Args:
            byte_count: Payload size in bytes

        Returns:
            Price in winc
        """
        response = await self._request("GET", f"{self.config.payment_url}/v1/price/bytes/{byte_count}")
        return self._winc(self._json(response))

    async def get_balance(self) -> int:
        """Get the paying account's credit balance in winc."""
        response = await self._request(
            "GET",
            f"{self.config.payment_url}/v1/account/balance/{self.config.token}",
            params={"address": self.address}
        )

        # Accounts that never topped up are unknown to the payment service
        if response.status_code == 404:
            return 0

        return self._winc(self._json(response))

    async def get_exchange_rate(self, token_amount: int) -> int:
        """
        Get how many winc a token amount buys.

        Args:
            token_amount: Amount in the token's base unit

        Returns:
            Credits in winc
        """
        response = await self._request(
            "GET", f"{self.config.payment_url}/v1/price/{self.config.token}/{token_amount}"
        )
        return self._winc(self._json(response))

    async def get_deposit_address(self) -> str:
        """Get the Turbo wallet that accepts top-up transfers for our token."""
        response = await self._request("GET", f"{self.config.payment_url}/v1/info")
        payload = self._json(response)

        address = payload.get("addresses", {}).get(self.config.token)
        if not address:
            raise StorageNetworkError(f"Turbo did not report a {self.config.token} deposit address")
        return address

    async def top_up(self, token_amount: int) -> str:
        """
        Buy credits by transferring tokens to Turbo.

        Args:
            token_amount: Amount in the token's base unit

        Returns:
            Transaction id of the transfer
        """
        if token_amount <= 0:
            raise ValueError("Top-up amount must be positive")
        if self.token_sender is None:
            raise StorageNetworkError("No token sender configured for top-ups")

        destination = await self.get_deposit_address()
        tx_id = await self.token_sender(destination, token_amount)

        response = await self._request(
            "POST",
            f"{self.config.payment_url}/v1/account/balance/{self.config.token}",
            json={"tx_id": tx_id}
        )
        self._json(response)

        self._stats["top_ups"] += 1
        self.logger.info(f"Submitted top-up of {token_amount} to Turbo (tx {tx_id})")
        return tx_id

    async def upload_file(self, data: bytes, content_type: str) -> str:
        """
        Upload a payload as a signed data item.

        Args:
            data: Payload bytes
            content_type: MIME type recorded in the Content-Type tag

        Returns:
            Content id assigned by Turbo (empty string if none was returned)
        """
        item = DataItem(data=data, tags=[("Content-Type", content_type)])
        item_id = item.sign(self.signer)

        response = await self._request(
            "POST",
            f"{self.config.upload_url}/v1/tx/{self.config.token}",
            content=item.to_bytes(),
            headers={"Content-Type": "application/octet-stream"}
        )
        payload = self._json(response)

        content_id = payload.get("id") or ""
        if content_id and content_id != item_id:
            self.logger.warning(f"Turbo returned id {content_id}, expected {item_id}")

        self._stats["uploads"] += 1
        self._stats["bytes_uploaded"] += len(data)
        return content_id

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics."""
        return dict(self._stats)
