"""Network services shared by token backends"""
from .retry import retry_async
from .solana_client import (
    ConfirmationResult,
    FreshnessToken,
    SolanaClient,
    close_solana_client,
    close_solana_clients,
    get_solana_client,
)

__all__ = [
    "retry_async",
    "SolanaClient",
    "FreshnessToken",
    "ConfirmationResult",
    "get_solana_client",
    "close_solana_client",
    "close_solana_clients",
]
