"""Common interface implemented by every chain backend"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from bundler_sdk.schemas.transaction import Tx


@dataclass
class TokenConfig:
    """Everything a backend needs to talk to its chain"""
    name: str
    provider_url: str
    wallet: Any = None
    opts: Dict[str, Any] = field(default_factory=dict)


class BaseToken(ABC):
    """
    Capability interface for a payment backend.

    Backends are picked from the selection table in ``bundler_sdk.tokens``
    by currency name; shared code only relies on the methods below.
    """

    base: Tuple[str, int]
    min_confirm: int = 1

    def __init__(self, config: TokenConfig):
        self.name = config.name
        self.provider_url = config.provider_url
        self.wallet = config.wallet
        self.opts = config.opts

    @abstractmethod
    async def create_transaction(self, amount: int, destination: str, fee: Optional[int] = None) -> Any:
        """Build an unsigned transfer of ``amount`` base units to ``destination``"""

    @abstractmethod
    async def send_transaction(self, unsigned: Any) -> str:
        """Sign, submit and confirm a transaction, returning its id"""

    @abstractmethod
    async def get_transaction(self, tx_id: str) -> Tx:
        """Look up a finalized transfer"""

    @abstractmethod
    async def get_fee(self, amount: int, destination: Optional[str] = None) -> int:
        """Fee in base units for a transfer"""

    @abstractmethod
    async def get_current_height(self) -> int:
        """Current chain height"""

    @abstractmethod
    async def get_public_key(self) -> bytes:
        """Raw public key of the loaded wallet"""

    @abstractmethod
    async def sign(self, data: bytes) -> bytes:
        """Sign arbitrary data with the loaded wallet"""

    @abstractmethod
    def verify(self, public_key: bytes, data: bytes, signature: bytes) -> bool:
        """Verify a signature produced by ``sign``"""

    @abstractmethod
    def owner_to_address(self, owner: Any) -> str:
        """Encode a raw owner key as a chain address"""

    @property
    @abstractmethod
    def address(self) -> str:
        """Address of the loaded wallet"""
