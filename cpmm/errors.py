"""Ledger error classes.

Every failed operation raises one of these and leaves no state behind.
"""


class LedgerError(Exception):
    """Base error for ledger, registry, router and token operations."""

    pass


# --- Preconditions ---


class ZeroAmount(LedgerError):
    """An amount that must be positive was zero."""

    pass


class InvalidPath(LedgerError):
    """A swap path must name at least two assets."""

    pass


class AlreadyInitialized(LedgerError):
    """The ledger's asset pair was already set."""

    pass


class Forbidden(LedgerError):
    """Caller is not allowed to perform this operation."""

    pass


class InvalidRecipient(LedgerError):
    """Trade output cannot be sent to one of the pool's own assets."""

    pass


class InvalidCallee(LedgerError):
    """Callback data was supplied but the recipient cannot receive the callback."""

    pass


# --- Liquidity / invariant guardrails ---


class InsufficientLiquidity(LedgerError):
    """Reserves are empty or too small for the requested amount."""

    pass


class InsufficientLiquidityMinted(LedgerError):
    """A deposit would mint zero claim units."""

    pass


class InsufficientLiquidityBurned(LedgerError):
    """A withdrawal would return zero of either asset."""

    pass


class InsufficientOutputAmount(LedgerError):
    """A trade requested no output, or produced less than the caller's minimum."""

    pass


class InsufficientInputAmount(LedgerError):
    """A trade received no input for the output it sent."""

    pass


class InvalidK(LedgerError):
    """The fee-adjusted reserve product decreased across a trade."""

    pass


class BalanceOverflow(LedgerError):
    """A custody balance does not fit in a reserve slot."""

    pass


class Locked(LedgerError):
    """A mutating operation is already in progress on this ledger."""

    pass


# --- Custody ---


class TransferFailed(LedgerError):
    """An asset transfer raised, returned false, or returned undecodable data."""

    pass


class InsufficientBalance(LedgerError):
    """Holder balance is below the transfer or burn amount."""

    pass


class InsufficientAllowance(LedgerError):
    """Spender allowance is below the transfer amount."""

    pass


# --- Registry ---


class IdenticalAddresses(LedgerError):
    """A pair cannot be formed from one asset."""

    pass


class ZeroAddress(LedgerError):
    """The null address is not a valid asset."""

    pass


class PairExists(LedgerError):
    """A ledger already exists for this unordered asset pair."""

    pass


class PairNotFound(LedgerError):
    """No ledger exists for this unordered asset pair."""

    pass


# --- Router ---


class Expired(LedgerError):
    """The operation's deadline has passed."""

    pass


class InsufficientAAmount(LedgerError):
    """Amount of the first asset fell below the caller's minimum."""

    pass


class InsufficientBAmount(LedgerError):
    """Amount of the second asset fell below the caller's minimum."""

    pass


class ExcessiveInputAmount(LedgerError):
    """Required input exceeds the caller's maximum."""

    pass


# --- Oracle ---


class PeriodNotElapsed(LedgerError):
    """The averaging window has not fully elapsed since the last update."""

    pass


class UnknownAsset(LedgerError):
    """Asset is not one of the ledger's pair."""

    pass


# --- Environment ---


class ContractNotFound(LedgerError):
    """Nothing is deployed at the address."""

    pass
