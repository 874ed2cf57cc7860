"""Deterministic ledger address derivation.

A ledger's address depends only on the registry's address and the canonical
pair, so any party can compute it without querying the registry:

    address = keccak(0xff ++ registry ++ keccak(token0 ++ token1) ++ LEDGER_CODE_HASH)[12:]
"""

from __future__ import annotations

from eth_abi.packed import encode_packed
from eth_utils import keccak

from cpmm.math.pricing import sort_tokens
from cpmm.models.types import normalize_address

# Hash of the fixed ledger template every registry deploys
LEDGER_CODE_HASH = keccak(text="cpmm.pools.ledger.PoolLedger/v1")


def pair_salt(token_a: str, token_b: str) -> bytes:
    """Salt for a pair, independent of argument order."""
    token0, token1 = sort_tokens(token_a, token_b)
    return keccak(encode_packed(["address", "address"], [_to_bytes(token0), _to_bytes(token1)]))


def compute_ledger_address(registry: str, token_a: str, token_b: str) -> str:
    """Address at which `registry` deploys the ledger for (token_a, token_b).

    Raises:
        IdenticalAddresses: If both tokens are the same
        ZeroAddress: If either token is the null address
    """
    digest = keccak(
        b"\xff" + _to_bytes(normalize_address(registry)) + pair_salt(token_a, token_b)
        + LEDGER_CODE_HASH
    )
    return "0x" + digest[12:].hex()


def _to_bytes(address: str) -> bytes:
    return bytes.fromhex(address[2:])
