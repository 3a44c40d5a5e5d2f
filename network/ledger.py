"""
batchmint - Solana Ledger Client

This module submits Metaplex Core asset creation transactions to a Solana
cluster and performs plain SOL transfers (used to pay for storage top-ups).

The MPL Core `CreateV1` instruction is encoded here with Borsh:
    discriminator (u8 = 0) | data state (u8) | name (string) | uri (string)
    | plugins (option<vec<PluginAuthorityPair>>)
"""

import logging
import struct
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.compute_budget import set_compute_unit_price
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction


MPL_CORE_PROGRAM_ID = Pubkey.from_string("CoREENxT6tW1HoK8ypY1SxRMZTcVPm7R94rH4PZNhX7d")

NETWORK_RPC_URLS = {
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "localnet": "http://127.0.0.1:8899",
}

CREATE_V1_DISCRIMINATOR = 0
DATA_STATE_ACCOUNT = 0
PLUGIN_ROYALTIES = 0
RULE_SET_NONE = 0
MAX_BASIS_POINTS = 10_000


class LedgerError(Exception):
    """Exception for rejected or unconfirmed ledger transactions."""

    def __init__(self, message: str, signature: Optional[str] = None):
        self.message = message
        self.signature = signature
        super().__init__(message)


@dataclass(frozen=True)
class Creator:
    """Royalty recipient and its share of royalties."""
    address: Pubkey
    percentage: int


@dataclass(frozen=True)
class RoyaltyConfig:
    """Royalties plugin settings for a new asset."""
    basis_points: int
    creators: Tuple[Creator, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not 0 <= self.basis_points <= MAX_BASIS_POINTS:
            raise ValueError(f"Royalty basis points must be within 0..{MAX_BASIS_POINTS}")
        if self.creators and sum(c.percentage for c in self.creators) != 100:
            raise ValueError("Creator percentages must add up to 100")


@dataclass(frozen=True)
class FeeConfig:
    """Compute-unit price paid for scheduling priority."""
    micro_lamports: int = 0


@dataclass
class CreateAssetResult:
    """Outcome of a confirmed asset creation."""
    asset_address: str
    signature: str
    tx_status: str


def encode_u8(value: int) -> bytes:
    return struct.pack("<B", value)


def encode_u16(value: int) -> bytes:
    return struct.pack("<H", value)


def encode_u32(value: int) -> bytes:
    return struct.pack("<I", value)


def encode_string(value: str) -> bytes:
    raw = value.encode('utf-8')
    return encode_u32(len(raw)) + raw


def encode_royalties_plugin(royalty: RoyaltyConfig) -> bytes:
    """Encode a Royalties plugin with no rule set and the default authority."""
    out = bytearray()
    out += encode_u8(PLUGIN_ROYALTIES)
    out += encode_u16(royalty.basis_points)
    out += encode_u32(len(royalty.creators))
    for creator in royalty.creators:
        out += bytes(creator.address)
        out += encode_u8(creator.percentage)
    out += encode_u8(RULE_SET_NONE)
    # authority: None
    out += encode_u8(0)
    return bytes(out)


def encode_create_v1(name: str, uri: str, royalty: Optional[RoyaltyConfig]) -> bytes:
    """Encode the instruction data for MPL Core CreateV1."""
    out = bytearray()
    out += encode_u8(CREATE_V1_DISCRIMINATOR)
    out += encode_u8(DATA_STATE_ACCOUNT)
    out += encode_string(name)
    out += encode_string(uri)

    if royalty is None:
        out += encode_u8(0)
    else:
        out += encode_u8(1)
        out += encode_u32(1)
        out += encode_royalties_plugin(royalty)

    return bytes(out)


def create_asset_instruction(asset: Pubkey, payer: Pubkey, owner: Pubkey,
                             name: str, uri: str,
                             royalty: Optional[RoyaltyConfig]) -> Instruction:
    """
    Build an MPL Core CreateV1 instruction.

    Omitted optional accounts (collection, authority, update authority, log
    wrapper) are passed as the program id.
    """
    accounts = [
        AccountMeta(asset, True, True),
        AccountMeta(MPL_CORE_PROGRAM_ID, False, False),
        AccountMeta(MPL_CORE_PROGRAM_ID, False, False),
        AccountMeta(payer, True, True),
        AccountMeta(owner, False, False),
        AccountMeta(MPL_CORE_PROGRAM_ID, False, False),
        AccountMeta(SYSTEM_PROGRAM_ID, False, False),
        AccountMeta(MPL_CORE_PROGRAM_ID, False, False),
    ]
    return Instruction(MPL_CORE_PROGRAM_ID, encode_create_v1(name, uri, royalty), accounts)


class SolanaLedgerClient:
    """
    Async Solana client for asset creation and transfers.

    The payer signs and pays for every transaction.
    """

    def __init__(self, rpc_url: str, payer: Keypair, commitment: str = "confirmed",
                 client: Optional[AsyncClient] = None):
        self.rpc_url = rpc_url
        self.payer = payer
        self.commitment = Commitment(commitment)
        self.logger = logging.getLogger(__name__)
        self._client = client or AsyncClient(rpc_url, commitment=self.commitment)

        self._stats = {
            "submitted": 0,
            "confirmed": 0,
            "failed": 0
        }

    async def __aenter__(self) -> 'SolanaLedgerClient':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        await self._client.close()

    async def _submit(self, instructions: Sequence[Instruction], signers: List[Keypair]) -> str:
        """Sign, send and confirm a transaction. Returns its signature."""
        signature = None
        self._stats["submitted"] += 1

        try:
            blockhash_resp = await self._client.get_latest_blockhash(self.commitment)
            blockhash = blockhash_resp.value.blockhash

            message = Message.new_with_blockhash(list(instructions), self.payer.pubkey(), blockhash)
            transaction = Transaction(signers, message, blockhash)

            send_resp = await self._client.send_raw_transaction(
                bytes(transaction),
                opts=TxOpts(skip_preflight=False, preflight_commitment=self.commitment)
            )
            signature = send_resp.value
            self.logger.debug(f"Submitted transaction {signature}")

            confirm_resp = await self._client.confirm_transaction(signature, commitment=self.commitment)
        except (RPCException, UnconfirmedTxError, SolanaRpcException, httpx.HTTPError) as e:
            self._stats["failed"] += 1
            raise LedgerError(
                f"Transaction failed: {e}",
                str(signature) if signature is not None else None
            ) from e

        statuses = confirm_resp.value
        status = statuses[0] if statuses else None
        if status is None:
            self._stats["failed"] += 1
            raise LedgerError(f"Transaction {signature} was not confirmed", str(signature))
        if status.err is not None:
            self._stats["failed"] += 1
            raise LedgerError(f"Transaction {signature} failed on-chain: {status.err}", str(signature))

        self._stats["confirmed"] += 1
        return str(signature)

    async def create_asset(self, asset: Keypair, owner: Pubkey, name: str, uri: str,
                           royalty: Optional[RoyaltyConfig] = None,
                           fee: Optional[FeeConfig] = None) -> CreateAssetResult:
        """
        Create an MPL Core asset.

        Args:
            asset: Fresh keypair that becomes the asset address
            owner: Owner of the new asset
            name: Asset name
            uri: Metadata document URI
            royalty: Royalties plugin settings
            fee: Compute-unit price

        Returns:
            CreateAssetResult for the confirmed transaction
        """
        instructions = []
        if fee is not None and fee.micro_lamports > 0:
            instructions.append(set_compute_unit_price(fee.micro_lamports))
        instructions.append(create_asset_instruction(
            asset.pubkey(), self.payer.pubkey(), owner, name, uri, royalty
        ))

        signature = await self._submit(instructions, [self.payer, asset])
        asset_address = str(asset.pubkey())
        self.logger.info(f"Created asset {asset_address} ({name}) in {signature}")

        return CreateAssetResult(
            asset_address=asset_address,
            signature=signature,
            tx_status=str(self.commitment)
        )

    async def transfer(self, destination: str, lamports: int) -> str:
        """
        Transfer SOL from the payer.

        Args:
            destination: Base58 recipient address
            lamports: Amount to send

        Returns:
            Transaction signature
        """
        try:
            to_pubkey = Pubkey.from_string(destination)
        except ValueError as e:
            raise LedgerError(f"Invalid destination address {destination!r}") from e

        instruction = transfer(TransferParams(
            from_pubkey=self.payer.pubkey(), to_pubkey=to_pubkey, lamports=lamports
        ))
        signature = await self._submit([instruction], [self.payer])
        self.logger.info(f"Transferred {lamports} lamports to {destination} in {signature}")
        return signature

    def get_stats(self):
        return dict(self._stats)
