"""Exceptions raised by the bundler SDK"""
from typing import Any, Optional


class BundlerError(Exception):
    """Base class for all SDK errors"""


class InvalidAddress(BundlerError):
    """Destination is not a usable address for the selected chain"""

    def __init__(self, address: str, reason: str = "malformed address"):
        self.address = address
        super().__init__(f"Invalid address {address!r}: {reason}")


class SigningFailed(BundlerError):
    """The signer refused or failed to sign"""


class SubmissionFailed(BundlerError):
    """Raw transaction submission was rejected by the RPC node"""


class DuplicateProcessed(BundlerError):
    """The network already processed an identical transaction"""


class FreshnessExpired(BundlerError):
    """Blockhash validity window passed before the transaction resolved.

    The transfer must be rebuilt from ``create_transaction``.
    """

    def __init__(
        self,
        signature: Optional[str] = None,
        last_error: Optional[BaseException] = None,
        message: Optional[str] = None,
    ):
        self.signature = signature
        self.last_error = last_error
        if message is None:
            message = f"Blockhash expired before transaction {signature} was confirmed"
        if last_error is not None:
            message += f" (last submission error: {last_error})"
        super().__init__(message)


class TransactionFailed(BundlerError):
    """Transaction was confirmed but executed with an error"""

    def __init__(self, signature: str, err: Any):
        self.signature = signature
        self.err = err
        super().__init__(f"Transaction {signature} failed on-chain: {err}")


class NotFound(BundlerError):
    """Transaction is not known to the network at the requested commitment"""


class UnresolvedMeta(BundlerError):
    """Transaction was returned without execution metadata"""


class UnsupportedCurrency(BundlerError):
    """No token backend is registered for the currency"""
