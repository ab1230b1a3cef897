"""Pydantic schemas"""
from .transaction import Tx, FundReceipt

__all__ = ["Tx", "FundReceipt"]
