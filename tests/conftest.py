"""Pytest configuration and fixtures for bundler SDK tests"""
import asyncio
from typing import Any, Dict, List, Optional

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.transaction import Transaction

from bundler_sdk.errors import FreshnessExpired
from bundler_sdk.services.solana_client import ConfirmationResult, FreshnessToken
from bundler_sdk.signers import KeypairSigner
from bundler_sdk.tokens import SolanaToken, TokenConfig

ALREADY_PROCESSED_MESSAGE = (
    "Transaction simulation failed: This transaction has already been processed"
)


class FakeSolanaNetwork:
    """
    In-memory stand-in for SolanaClient.

    Block height advances by ``height_step`` every time it is read, which
    gives tests a deterministic clock for blockhash expiry.
    """

    def __init__(
        self,
        block_height: int = 100,
        validity_window: int = 150,
        slot: int = 5000,
        height_step: int = 1,
    ):
        self.block_height = block_height
        self.height_step = height_step
        self.slot = slot
        self.blockhash = Hash.new_unique()
        self.last_valid_block_height = block_height + validity_window

        self.broadcasts: List[bytes] = []
        self.send_errors: Dict[int, Exception] = {}
        self.land_on_broadcast: Optional[int] = None
        self.reject_duplicates = False
        self.landed: Optional[str] = None
        self.execution_err: Any = None
        self.confirm_after_polls = 0
        self.confirm_polls = 0
        self.transactions: Dict[str, Dict[str, Any]] = {}

    async def get_latest_blockhash(self, commitment=None) -> FreshnessToken:
        return FreshnessToken(self.blockhash, self.last_valid_block_height)

    async def get_block_height(self, commitment=None) -> int:
        height = self.block_height
        self.block_height += self.height_step
        return height

    async def get_epoch_block_height(self) -> int:
        return self.block_height

    async def get_slot(self, commitment=None) -> int:
        return self.slot

    async def send_raw_transaction(self, serialized: bytes) -> str:
        self.broadcasts.append(serialized)
        attempt = len(self.broadcasts)
        signature = str(Transaction.from_bytes(serialized).signatures[0])

        if attempt in self.send_errors:
            raise self.send_errors[attempt]
        if self.landed == signature and self.reject_duplicates:
            raise Exception(ALREADY_PROCESSED_MESSAGE)
        if self.land_on_broadcast is not None and attempt >= self.land_on_broadcast:
            self.landed = signature
        return signature

    async def confirm_transaction(self, signature: str, token: FreshnessToken, commitment=None):
        while True:
            self.confirm_polls += 1
            if self.landed == signature and self.confirm_polls > self.confirm_after_polls:
                return ConfirmationResult(signature=signature, err=self.execution_err)
            if await self.get_block_height() > token.last_valid_block_height:
                raise FreshnessExpired(signature)
            await asyncio.sleep(0)

    async def get_transaction(self, signature: str, commitment=None):
        return self.transactions.get(signature)


@pytest.fixture
def network() -> FakeSolanaNetwork:
    return FakeSolanaNetwork()


@pytest.fixture
def keypair() -> Keypair:
    return Keypair()


@pytest.fixture
def token_config(keypair) -> TokenConfig:
    return TokenConfig(
        name="solana",
        provider_url="http://localhost:8899",
        wallet=KeypairSigner(keypair),
        opts={"resubmit_interval": 0, "blockhash_min_timeout": 0},
    )


@pytest.fixture
def token(token_config, network) -> SolanaToken:
    return SolanaToken(token_config, client=network)


@pytest.fixture
def destination() -> str:
    return str(Keypair().pubkey())


@pytest.fixture
def network_factory():
    return FakeSolanaNetwork
