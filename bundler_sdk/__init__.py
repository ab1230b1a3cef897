"""Bundler network payment SDK"""
from .client import BundlerClient
from .errors import (
    BundlerError,
    DuplicateProcessed,
    FreshnessExpired,
    InvalidAddress,
    NotFound,
    SigningFailed,
    SubmissionFailed,
    TransactionFailed,
    UnresolvedMeta,
    UnsupportedCurrency,
)
from .log import configure_logging
from .schemas import FundReceipt, Tx
from .signers import KeypairSigner
from .tokens import TOKEN_BACKENDS, SolanaToken, TokenConfig, get_token_backend

__all__ = [
    "BundlerClient",
    "KeypairSigner",
    "configure_logging",
    # Backends
    "TOKEN_BACKENDS",
    "get_token_backend",
    "SolanaToken",
    "TokenConfig",
    # Schemas
    "Tx",
    "FundReceipt",
    # Errors
    "BundlerError",
    "InvalidAddress",
    "SigningFailed",
    "SubmissionFailed",
    "DuplicateProcessed",
    "FreshnessExpired",
    "TransactionFailed",
    "NotFound",
    "UnresolvedMeta",
    "UnsupportedCurrency",
]
