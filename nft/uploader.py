"""
batchmint - Asset Uploader

Uploads images and metadata documents to permanent storage. In simulation
mode it hands out placeholder addresses without any network or funding
calls.
"""

import itertools
import logging
import secrets
import string
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from network.turbo import DEFAULT_GATEWAY_URL, StorageNetworkError

from .exceptions import CatalogEntryMalformed, UploadFailure
from .metadata import METADATA_CONTENT_TYPE


PLACEHOLDER_MODES = ("sequential", "random")
# Placeholder prefixes by content type; anything else uses PlaceholderIds.prefix
PLACEHOLDER_PREFIXES = {METADATA_CONTENT_TYPE: "sim_metadata"}
_BASE36 = string.digits + string.ascii_lowercase


class PlaceholderIds:
    """
    Placeholder content ids for simulation runs.

    `sequential` ids are reproducible across runs; `random` ids look like
    real ones in demo output but may collide.
    """

    def __init__(self, mode: str = "sequential", prefix: str = "simulation_id"):
        if mode not in PLACEHOLDER_MODES:
            raise ValueError(f"Unknown placeholder mode: {mode}")
        self.mode = mode
        self.prefix = prefix
        self._counters = {}

    def next_id(self, prefix: Optional[str] = None) -> str:
        """Next id; each prefix counts on its own in sequential mode."""
        prefix = prefix or self.prefix
        if self.mode == "random":
            suffix = "".join(secrets.choice(_BASE36) for _ in range(8))
        else:
            counter = self._counters.setdefault(prefix, itertools.count(1))
            suffix = f"{next(counter):06d}"
        return f"{prefix}_{suffix}"


@dataclass(frozen=True)
class UploadResult:
    """Permanent address of an uploaded payload."""

    content_id: str
    permanent_uri: str
    content_type: str
    size: int
    simulated: bool = False


class AssetUploader:
    """Uploads payloads through the funding manager and storage client."""

    def __init__(self, config, storage_client=None, funding=None,
                 placeholders: Optional[PlaceholderIds] = None):
        """
        Initialize uploader.

        Args:
            config: PipelineConfig for the run
            storage_client: TurboClient (live mode only)
            funding: FundingManager (live mode only)
            placeholders: Id generator for simulation mode
        """
        if not config.simulate and (storage_client is None or funding is None):
            raise ValueError("Live uploads require a storage client and a funding manager")

        self.config = config
        self.storage_client = storage_client
        self.funding = funding
        self.placeholders = placeholders or PlaceholderIds(getattr(config, "placeholder_mode", "sequential"))
        self.gateway_url = (getattr(config, "gateway_url", None) or DEFAULT_GATEWAY_URL).rstrip('/')
        self.logger = logging.getLogger(__name__)

    def _uri_for(self, content_id: str) -> str:
        return f"{self.gateway_url}/{content_id}"

    async def upload(self, data: bytes, content_type: str) -> UploadResult:
        """
        Upload a payload.

        Args:
            data: Payload bytes
            content_type: MIME type

        Returns:
            UploadResult with the permanent URI

        Raises:
            UploadFailure: If the storage network errors or returns no id
            InsufficientFundingSource: If the account cannot be funded
        """
        if self.config.simulate:
            content_id = self.placeholders.next_id(PLACEHOLDER_PREFIXES.get(content_type))
            return UploadResult(content_id, self._uri_for(content_id), content_type, len(data), simulated=True)

        await self.funding.ensure_funded(len(data))

        try:
            content_id = await self.storage_client.upload_file(data, content_type)
        except StorageNetworkError as e:
            raise UploadFailure(f"Upload of {content_type} payload failed: {e}") from e

        if not content_id:
            raise UploadFailure(f"Storage network returned no id for {content_type} payload")

        uri = self._uri_for(content_id)
        self.logger.debug(f"Uploaded {len(data)} bytes ({content_type}) to {uri}")
        return UploadResult(content_id, uri, content_type, len(data))

    async def upload_path(self, path: Union[str, Path], content_type: str) -> UploadResult:
        """Read a file and upload its contents."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise CatalogEntryMalformed(f"Cannot read {path}: {e}") from e

        return await self.upload(data, content_type)
