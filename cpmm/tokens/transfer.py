"""Best-effort transfer helpers for conforming and non-conforming assets.

A transfer is accepted when the asset returns True, None, or empty bytes, or
bytes that ABI-decode to a true bool. Anything else is TransferFailed:
a raised error, False, a decoded false, or bytes that do not decode.
"""

from __future__ import annotations

from typing import Any

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from cpmm.errors import TransferFailed
from cpmm.tokens.base import Asset


def safe_transfer(token: Asset, sender: str, to: str, value: int) -> None:
    """Transfer `value` of `token` from `sender` to `to`.

    Raises:
        TransferFailed: If the asset rejects the transfer in any way
    """
    try:
        result = token.transfer(sender, to, value)
    except Exception as err:
        raise TransferFailed(f"transfer of {value} from {sender} to {to} raised") from err
    _require_success(token, result)


def safe_transfer_from(token: Asset, spender: str, owner: str, to: str, value: int) -> None:
    """Transfer `value` of `token` from `owner` to `to` using `spender`'s allowance.

    Raises:
        TransferFailed: If the asset rejects the transfer in any way
    """
    try:
        result = token.transfer_from(spender, owner, to, value)
    except Exception as err:
        raise TransferFailed(f"transfer_from of {value} from {owner} to {to} raised") from err
    _require_success(token, result)


def _require_success(token: Asset, result: Any) -> None:
    if result is None or result is True:
        return
    if isinstance(result, (bytes, bytearray)):
        if len(result) == 0:
            return
        try:
            (ok,) = decode(["bool"], bytes(result))
        except DecodingError as err:
            raise TransferFailed(f"{token.address} returned undecodable data") from err
        if ok:
            return
    raise TransferFailed(f"{token.address} reported failure: {result!r}")
