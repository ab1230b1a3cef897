"""Payment backends, selected by currency name"""
from typing import Dict, Type

from bundler_sdk.errors import UnsupportedCurrency
from .base import BaseToken, TokenConfig
from .solana import SolanaToken, UnsignedTransaction

TOKEN_BACKENDS: Dict[str, Type[BaseToken]] = {
    "solana": SolanaToken,
}


def get_token_backend(config: TokenConfig) -> BaseToken:
    """Instantiate the backend registered for ``config.name``"""
    backend = TOKEN_BACKENDS.get(config.name.lower())
    if backend is None:
        supported = ", ".join(sorted(TOKEN_BACKENDS))
        raise UnsupportedCurrency(f"Unknown/unsupported currency {config.name} (supported: {supported})")
    return backend(config)


__all__ = [
    "TOKEN_BACKENDS",
    "get_token_backend",
    "BaseToken",
    "TokenConfig",
    "SolanaToken",
    "UnsignedTransaction",
]
