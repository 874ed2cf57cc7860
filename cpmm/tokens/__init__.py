"""Fungible assets and custody transfer helpers."""

from cpmm.tokens.base import Asset
from cpmm.tokens.erc20 import FungibleToken, MintableToken
from cpmm.tokens.transfer import safe_transfer, safe_transfer_from

__all__ = [
    "Asset",
    "FungibleToken",
    "MintableToken",
    "safe_transfer",
    "safe_transfer_from",
]
