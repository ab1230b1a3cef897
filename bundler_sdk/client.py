"""High level client: pick a backend and fund a bundler account"""
from typing import Any, Optional

import structlog

from bundler_sdk.config import get_settings
from bundler_sdk.schemas.transaction import FundReceipt, Tx
from bundler_sdk.services.solana_client import close_solana_client
from bundler_sdk.tokens import BaseToken, TokenConfig, get_token_backend

logger = structlog.get_logger()


class BundlerClient:
    """Wallet-side entry point for paying a bundler node"""

    def __init__(
        self,
        currency: Optional[str] = None,
        wallet: Any = None,
        provider_url: Optional[str] = None,
        **opts: Any,
    ):
        settings = get_settings()
        self.currency = (currency or settings.currency).lower()
        self.provider_url = provider_url or settings.provider_url
        self.wallet = wallet
        self.opts = opts
        self._token: Optional[BaseToken] = None

    def ready(self) -> "BundlerClient":
        """Select the backend for the configured currency"""
        if self._token is None:
            self._token = get_token_backend(
                TokenConfig(
                    name=self.currency,
                    provider_url=self.provider_url,
                    wallet=self.wallet,
                    opts=self.opts,
                )
            )
            logger.info("Token backend ready", currency=self.currency, provider=self.provider_url)
        return self

    @property
    def token(self) -> BaseToken:
        if self._token is None:
            raise RuntimeError("Client not ready. Call ready() first.")
        return self._token

    @property
    def address(self) -> Optional[str]:
        if self.wallet is None:
            return None
        return self.token.address

    async def fund(self, amount: int, destination: str, fee: Optional[int] = None) -> FundReceipt:
        """
        Pay ``amount`` base units to ``destination`` and wait for confirmation.

        FreshnessExpired is not retried here; the caller decides whether to
        fund again.
        """
        unsigned = await self.token.create_transaction(amount, destination, fee)
        tx_id = await self.token.send_transaction(unsigned)
        reward = await self.token.get_fee(amount, destination)
        logger.info("Funded account", tx_id=tx_id, amount=amount, target=destination)
        return FundReceipt(id=tx_id, quantity=amount, reward=reward, target=destination)

    async def get_transaction(self, tx_id: str) -> Tx:
        return await self.token.get_transaction(tx_id)

    async def close(self) -> None:
        await close_solana_client(self.provider_url)
