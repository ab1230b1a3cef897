"""Solana RPC Client wrapper for the bundler SDK"""
import json
from typing import Optional, List, Dict, Any
from dataclasses import dataclass
import structlog
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed, Finalized
from solana.rpc.core import RPCException, TransactionExpiredBlockheightExceededError
from solana.rpc.models import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature

from bundler_sdk.config import get_settings
from bundler_sdk.errors import DuplicateProcessed, FreshnessExpired

logger = structlog.get_logger()
settings = get_settings()

ALREADY_PROCESSED = "already been processed"


@dataclass(frozen=True)
class FreshnessToken:
    """Recent blockhash and the last block height it can land in"""
    blockhash: Hash
    last_valid_block_height: int


@dataclass(frozen=True)
class ConfirmationResult:
    """Terminal confirmation status of a submitted transaction"""
    signature: str
    err: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return self.err is None


class SolanaClient:
    """Async Solana RPC client exposing the calls the token backend needs"""

    def __init__(self, rpc_url: Optional[str] = None, poll_interval: float = 0.5):
        self.rpc_url = rpc_url or settings.provider_url
        self.poll_interval = poll_interval
        self._client: Optional[AsyncClient] = None

    async def connect(self) -> None:
        """Establish connection to Solana RPC"""
        if self._client is None:
            self._client = AsyncClient(self.rpc_url, commitment=Confirmed)
            logger.info("Connected to Solana RPC", url=self.rpc_url)

    async def disconnect(self) -> None:
        """Close RPC connection"""
        if self._client:
            await self._client.close()
            self._client = None
            logger.info("Disconnected from Solana RPC", url=self.rpc_url)

    @property
    def client(self) -> AsyncClient:
        """Get the async client, raise if not connected"""
        if self._client is None:
            raise RuntimeError("Solana client not connected. Call connect() first.")
        return self._client

    async def get_slot(self, commitment: Commitment = Confirmed) -> int:
        """Get current slot"""
        response = await self.client.get_slot(commitment=commitment)
        return response.value

    async def get_block_height(self, commitment: Commitment = Confirmed) -> int:
        """Get current block height"""
        response = await self.client.get_block_height(commitment=commitment)
        return response.value

    async def get_epoch_block_height(self) -> int:
        """Get block height as reported by the current epoch info"""
        response = await self.client.get_epoch_info()
        return response.value.block_height or 0

    async def get_latest_blockhash(self, commitment: Commitment = Finalized) -> FreshnessToken:
        """Get a recent blockhash together with its validity limit"""
        response = await self.client.get_latest_blockhash(commitment=commitment)
        return FreshnessToken(
            blockhash=response.value.blockhash,
            last_valid_block_height=response.value.last_valid_block_height,
        )

    async def get_balance(self, address: Pubkey, commitment: Commitment = Confirmed) -> int:
        """Get account balance in lamports"""
        response = await self.client.get_balance(address, commitment=commitment)
        return response.value

    async def send_raw_transaction(self, serialized: bytes) -> str:
        """Broadcast a signed, serialized transaction and return its signature"""
        try:
            response = await self.client.send_raw_transaction(
                serialized,
                opts=TxOpts(skip_confirmation=True, preflight_commitment=Confirmed),
            )
        except RPCException as e:
            if ALREADY_PROCESSED in str(e):
                raise DuplicateProcessed(str(e)) from e
            raise
        return str(response.value)

    async def confirm_transaction(
        self,
        signature: str,
        token: FreshnessToken,
        commitment: Commitment = Finalized,
    ) -> ConfirmationResult:
        """
        Wait until the transaction reaches ``commitment``.

        Polling stops once the block height passes the token's last valid
        height, in which case FreshnessExpired is raised.
        """
        try:
            response = await self.client.confirm_transaction(
                Signature.from_string(signature),
                commitment,
                sleep_seconds=self.poll_interval,
                last_valid_block_height=token.last_valid_block_height,
            )
        except TransactionExpiredBlockheightExceededError as e:
            raise FreshnessExpired(signature) from e

        status = response.value[0]
        return ConfirmationResult(
            signature=signature,
            err=status.err if status is not None else None,
        )

    async def get_transaction(
        self,
        signature: str,
        commitment: Commitment = Finalized,
        max_supported_version: int = 0,
    ) -> Optional[Dict[str, Any]]:
        """
        Get transaction details.

        Returns ``{"slot", "meta", "account_keys"}`` or None when the
        transaction is unknown. ``meta`` is None when the node did not
        return execution metadata.
        """
        sig = Signature.from_string(signature)
        response = await self.client.get_transaction(
            sig,
            encoding="json",
            commitment=commitment,
            max_supported_transaction_version=max_supported_version,
        )
        if response.value is None:
            return None

        data = json.loads(response.value.to_json())
        message = data.get("transaction", {}).get("message", {})
        return {
            "slot": data["slot"],
            "meta": data.get("meta"),
            "account_keys": _account_keys(message.get("accountKeys", [])),
        }


def _account_keys(keys: List[Any]) -> List[str]:
    # jsonParsed encodings return objects instead of plain strings
    return [key["pubkey"] if isinstance(key, dict) else key for key in keys]


# One client per endpoint
_solana_clients: Dict[str, SolanaClient] = {}


async def get_solana_client(rpc_url: Optional[str] = None) -> SolanaClient:
    """Get or create the Solana client for an endpoint"""
    url = rpc_url or settings.provider_url
    client = _solana_clients.get(url)
    if client is None:
        client = SolanaClient(url, poll_interval=settings.resubmit_interval)
        await client.connect()
        _solana_clients[url] = client
    return client


async def close_solana_clients() -> None:
    """Close every cached Solana client"""
    while _solana_clients:
        _, client = _solana_clients.popitem()
        await client.disconnect()


async def close_solana_client(rpc_url: Optional[str] = None) -> None:
    """Close the cached Solana client for one endpoint"""
    client = _solana_clients.pop(rpc_url or settings.provider_url, None)
    if client is not None:
        await client.disconnect()
