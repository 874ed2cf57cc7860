"""Shared type definitions for ledger models.

These types are used across notification models and address handling.
"""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from cpmm.constants import UINT256_MAX


def validate_amount(value: Any) -> int:
    """Validate that a value is a non-negative uint256 amount.

    Args:
        value: Value to validate (int or decimal string)

    Returns:
        The amount as an int

    Raises:
        ValueError: If value is not a valid non-negative integer within uint256 range
    """
    if isinstance(value, bool):
        raise ValueError("Amount cannot be a bool")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError as err:
            raise ValueError(f"Amount must be a decimal integer string: '{value}'") from err
    if not isinstance(value, int):
        raise ValueError(f"Amount must be int or string, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"Amount cannot be negative: {value}")
    if value > UINT256_MAX:
        raise ValueError(f"Amount overflow: {value} > 2^256-1")
    return value


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an address to lowercase with 0x prefix.

    Lowercase hex addresses of equal length compare lexicographically in the
    same order as their numeric values, which is what canonical pair
    ordering relies on.

    Raises:
        ValueError: If validate=True and address is not a valid address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a 0x-prefixed 20-byte hex address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def validate_address(value: Any) -> str:
    """Validate and normalize an address for model fields."""
    if not isinstance(value, str):
        raise ValueError(f"Address must be a string, got {type(value).__name__}")
    return normalize_address(value, validate=True)


# 20-byte address, normalized to lowercase
Address = Annotated[
    str,
    BeforeValidator(validate_address),
    Field(pattern=r"^0x[a-f0-9]{40}$"),
]

# Non-negative amount bounded by uint256
Amount = Annotated[
    int,
    BeforeValidator(validate_amount),
    Field(description="256-bit unsigned integer"),
]
