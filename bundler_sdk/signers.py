"""Signing oracles used by token backends"""
from typing import Optional, Protocol

import structlog
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from bundler_sdk.errors import SigningFailed

logger = structlog.get_logger()


class WalletAdapter(Protocol):
    """Anything that can sign Solana transactions and messages for one key"""

    @property
    def public_key(self) -> Pubkey: ...

    def sign_transaction(self, unsigned) -> Transaction: ...

    def sign_message(self, message: bytes) -> bytes: ...


class KeypairSigner:
    """Wallet adapter backed by an in-memory ed25519 keypair"""

    def __init__(self, keypair: Optional[Keypair] = None):
        self._keypair = keypair

    @property
    def keypair(self) -> Keypair:
        if self._keypair is None:
            raise SigningFailed("Wallet has no key loaded")
        return self._keypair

    @property
    def public_key(self) -> Pubkey:
        return self.keypair.pubkey()

    def sign_transaction(self, unsigned) -> Transaction:
        """Sign an UnsignedTransaction with this wallet as fee payer"""
        return Transaction([self.keypair], unsigned.message, unsigned.token.blockhash)

    def sign_message(self, message: bytes) -> bytes:
        return bytes(self.keypair.sign_message(message))


def verify(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """Check an ed25519 signature over ``message``"""
    # solders panics on wrong-length input instead of raising ValueError
    if len(public_key) != 32 or len(signature) != 64:
        return False
    try:
        return Signature.from_bytes(signature).verify(Pubkey.from_bytes(public_key), message)
    except ValueError as e:
        logger.debug("Malformed signature or key", error=str(e))
        return False
