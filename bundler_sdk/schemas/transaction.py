"""Transaction schemas"""
from pydantic import BaseModel


class Tx(BaseModel):
    """A finalized native transfer as seen on-chain"""
    from_address: str
    to_address: str
    amount: int  # base units; negative when the destination lost funds
    block_height: int
    pending: bool
    confirmed: bool

    class Config:
        frozen = True


class FundReceipt(BaseModel):
    """Receipt for a funding transfer"""
    id: str
    quantity: int
    reward: int
    target: str
