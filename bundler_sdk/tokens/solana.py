"""
Solana payment backend.

Transfers are plain SystemProgram transfers. Confirmation follows the usual
"rebroadcast until the blockhash dies" approach: the signed bytes are sent
repeatedly while a confirmation wait runs alongside, and every rebroadcast
carries the same signature so the network deduplicates them.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Optional

import base58
import structlog
from solana.rpc.commitment import Commitment
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID, TransferParams, transfer

from bundler_sdk.config import get_settings
from bundler_sdk.errors import (
    DuplicateProcessed,
    FreshnessExpired,
    InvalidAddress,
    NotFound,
    SigningFailed,
    SubmissionFailed,
    TransactionFailed,
    UnresolvedMeta,
)
from bundler_sdk.schemas.transaction import Tx
from bundler_sdk.services.retry import retry_async
from bundler_sdk.services.solana_client import (
    ALREADY_PROCESSED,
    FreshnessToken,
    SolanaClient,
    get_solana_client,
)
from bundler_sdk.signers import WalletAdapter, verify
from bundler_sdk.tokens.base import BaseToken, TokenConfig

logger = structlog.get_logger()

U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class UnsignedTransaction:
    """A transfer bound to a fee payer and a blockhash, ready to sign"""
    message: Message
    fee_payer: Pubkey
    token: FreshnessToken
    amount: int
    destination: Pubkey


def is_already_processed(error: BaseException) -> bool:
    return isinstance(error, DuplicateProcessed) or ALREADY_PROCESSED in str(error)


class SolanaToken(BaseToken):
    """Native SOL payments"""

    base = ("lamports", 10**9)

    def __init__(self, config: TokenConfig, client: Optional[SolanaClient] = None):
        super().__init__(config)
        settings = get_settings()
        self.finality = Commitment(self.opts.get("finality", settings.finality))
        self.confirm_commitment = Commitment(
            self.opts.get("confirm_commitment", settings.confirm_commitment)
        )
        self.resubmit_interval: float = self.opts.get("resubmit_interval", settings.resubmit_interval)
        self.blockhash_retries: int = self.opts.get("blockhash_retries", settings.blockhash_retries)
        self.blockhash_min_timeout: float = self.opts.get(
            "blockhash_min_timeout", settings.blockhash_min_timeout
        )
        self.fee_lamports: int = self.opts.get("fee_lamports", settings.fee_lamports)
        self.min_confirm = self.opts.get("min_confirmations", settings.min_confirmations)
        self._client = client

    async def get_provider(self) -> SolanaClient:
        """Get the RPC client, connecting on first use"""
        if self._client is None:
            self._client = await get_solana_client(self.provider_url)
        return self._client

    @property
    def signer(self) -> WalletAdapter:
        if self.wallet is None:
            raise SigningFailed("No wallet configured for solana")
        return self.wallet

    def _payer(self) -> Pubkey:
        try:
            return self.signer.public_key
        except SigningFailed:
            raise
        except Exception as e:
            raise SigningFailed(f"Wallet has no public key: {e}") from e

    @property
    def address(self) -> str:
        return str(self._payer())

    async def get_public_key(self) -> bytes:
        return bytes(self._payer())

    def owner_to_address(self, owner: Any) -> str:
        if isinstance(owner, str):
            owner = owner.encode()
        return base58.b58encode(bytes(owner)).decode()

    async def sign(self, data: bytes) -> bytes:
        """Sign the hex encoding of ``data``, as injected Solana wallets do"""
        try:
            return self.signer.sign_message(data.hex().encode())
        except SigningFailed:
            raise
        except Exception as e:
            raise SigningFailed(f"Wallet failed to sign message: {e}") from e

    def verify(self, public_key: bytes, data: bytes, signature: bytes) -> bool:
        return verify(public_key, data.hex().encode(), signature)

    async def get_current_height(self) -> int:
        provider = await self.get_provider()
        return await provider.get_epoch_block_height()

    async def get_fee(self, amount: int, destination: Optional[str] = None) -> int:
        # Flat per-signature fee; a transfer carries a single signature
        return self.fee_lamports

    @staticmethod
    def decode_address(address: str) -> Pubkey:
        try:
            pubkey = Pubkey.from_string(address)
        except (ValueError, TypeError) as e:
            raise InvalidAddress(address) from e
        if pubkey == SYSTEM_PROGRAM_ID:
            raise InvalidAddress(address, "system program cannot receive transfers")
        return pubkey

    async def _fetch_freshness_token(self) -> FreshnessToken:
        provider = await self.get_provider()

        async def attempt(bail) -> FreshnessToken:
            try:
                token = await provider.get_latest_blockhash(self.finality)
                height = await provider.get_block_height(self.finality)
            except Exception as e:
                if "blockhash" not in str(e).lower():
                    bail(e)
                raise
            if height >= token.last_valid_block_height:
                raise FreshnessExpired(
                    message=f"Fetched blockhash {token.blockhash} already expired at height {height}"
                )
            return token

        return await retry_async(
            attempt,
            attempts=self.blockhash_retries,
            min_timeout=self.blockhash_min_timeout,
            operation_name="get_latest_blockhash",
        )

    async def create_transaction(
        self,
        amount: int,
        destination: str,
        fee: Optional[int] = None,
    ) -> UnsignedTransaction:
        """
        Build an unsigned transfer of ``amount`` lamports to ``destination``.

        Solana fees are fixed per signature, so ``fee`` is accepted but not
        applied.
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or not 0 <= amount <= U64_MAX:
            raise ValueError(f"Amount must be a lamport count between 0 and 2^64-1, got {amount!r}")
        to_pubkey = self.decode_address(destination)
        payer = self._payer()
        if fee is not None:
            logger.debug("Ignoring explicit fee", fee=fee)

        token = await self._fetch_freshness_token()
        instruction = transfer(
            TransferParams(from_pubkey=payer, to_pubkey=to_pubkey, lamports=amount)
        )
        message = Message.new_with_blockhash([instruction], payer, token.blockhash)

        logger.info(
            "Created transfer",
            amount=amount,
            destination=destination,
            last_valid_block_height=token.last_valid_block_height,
        )
        return UnsignedTransaction(
            message=message,
            fee_payer=payer,
            token=token,
            amount=amount,
            destination=to_pubkey,
        )

    async def send_transaction(self, unsigned: UnsignedTransaction) -> str:
        """
        Sign, broadcast and confirm a transfer.

        Returns:
            The signature of the transaction

        Raises:
            SigningFailed: The wallet could not sign
            SubmissionFailed: The first broadcast was rejected
            TransactionFailed: The transaction landed but failed on-chain
            FreshnessExpired: The blockhash expired first; rebuild and retry
        """
        provider = await self.get_provider()

        try:
            signed = self.signer.sign_transaction(unsigned)
        except SigningFailed:
            raise
        except Exception as e:
            raise SigningFailed(f"Wallet failed to sign transaction: {e}") from e

        serialized = bytes(signed)
        try:
            signature = await provider.send_raw_transaction(serialized)
        except Exception as e:
            raise SubmissionFailed(f"Broadcast rejected: {e}") from e
        logger.info(
            "Submitted transaction",
            signature=signature,
            last_valid_block_height=unsigned.token.last_valid_block_height,
        )

        confirmation = asyncio.create_task(
            provider.confirm_transaction(signature, unsigned.token, self.finality)
        )
        try:
            last_error = await self._rebroadcast(
                provider, serialized, signature, unsigned.token, confirmation
            )
        except BaseException:
            confirmation.cancel()
            raise

        try:
            result = await confirmation
        except FreshnessExpired as e:
            logger.warning("Blockhash expired before confirmation", signature=signature)
            raise FreshnessExpired(signature, last_error) from (last_error or e)

        if not result.ok:
            logger.error("Transaction failed", signature=signature, err=str(result.err))
            raise TransactionFailed(signature, result.err)

        logger.info("Transaction confirmed", signature=signature, commitment=self.finality)
        return signature

    async def _rebroadcast(
        self,
        provider: SolanaClient,
        serialized: bytes,
        signature: str,
        token: FreshnessToken,
        confirmation: "asyncio.Task[Any]",
    ) -> Optional[SubmissionFailed]:
        # Validators drop broadcasts; keep resending until something resolves
        last_error: Optional[SubmissionFailed] = None
        height = await provider.get_block_height(self.confirm_commitment)
        while height < token.last_valid_block_height and not confirmation.done():
            try:
                logger.debug("Rebroadcasting", signature=signature, block_height=height)
                await provider.send_raw_transaction(serialized)
            except Exception as e:
                if is_already_processed(e):
                    logger.info("Transaction already processed", signature=signature)
                    break
                logger.warning("Rebroadcast failed", signature=signature, error=str(e))
                last_error = SubmissionFailed(f"Rebroadcast rejected: {e}")
            await asyncio.sleep(self.resubmit_interval)
            height = await provider.get_block_height(self.confirm_commitment)
        return last_error

    async def get_transaction(self, tx_id: str) -> Tx:
        """
        Look up a finalized transfer.

        The amount is the balance change of the second account, which is the
        recipient for a plain two-party transfer.
        """
        provider = await self.get_provider()
        stx = await provider.get_transaction(tx_id, self.finality)
        if stx is None:
            raise NotFound(f"Confirmed tx {tx_id} not found")

        current_slot = await provider.get_slot(self.finality)
        meta = stx["meta"]
        if meta is None:
            raise UnresolvedMeta(f"Unable to resolve transaction {tx_id}")

        amount = meta["postBalances"][1] - meta["preBalances"][1]
        keys = stx["account_keys"]
        return Tx(
            from_address=keys[0],
            to_address=keys[1],
            amount=amount,
            block_height=stx["slot"],
            pending=False,
            confirmed=current_slot - stx["slot"] >= self.min_confirm,
        )
