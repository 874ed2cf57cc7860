"""Protocol constants for the constant-product ledger.

Centralizes the reference system's fee, lock and integer-width parameters.
"""

# Claim units permanently locked to ZERO_ADDRESS on the first deposit
MINIMUM_LIQUIDITY = 1_000

# Fee in basis points of FEE_BASE (30 = 0.3%)
FEE_BPS = 30
FEE_BASE = 10_000
# 10_000 - 30; identical to the 997/1000 form after truncation
DEFAULT_FEE_MULTIPLIER = FEE_BASE - FEE_BPS

# Integer widths
RESERVE_BITS = 112
UINT32_MODULUS = 2**32
UINT224_MAX = 2**224 - 1
UINT256_MAX = 2**256 - 1
UINT256_MODULUS = 2**256

# UQ112x112 fixed-point resolution
Q112 = 2**112

# Null holder for the permanent liquidity lock
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
