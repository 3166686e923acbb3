"""Ledger error types."""


class LedgerError(Exception):
    """Base class for every ledger failure.

    ``code`` is a stable name callers can match on without importing the
    concrete exception class.
    """
    code = "LedgerError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidAmountError(LedgerError):
    """Raised when a stake or unstake request moves zero units."""
    code = "InvalidAmount"


class InsufficientStakeError(LedgerError):
    """Raised when a withdrawal exceeds the staked amount."""
    code = "InsufficientStake"


class UnauthorizedError(LedgerError):
    """Raised when the caller does not own the targeted record."""
    code = "Unauthorized"


class RecordNotFoundError(LedgerError):
    """Raised when no record exists at the caller's address."""
    code = "NotFound"


class AlreadyExistsError(LedgerError):
    """Raised when creating a record that is already present."""
    code = "AlreadyExists"


class InsufficientExternalFundsError(LedgerError):
    """Raised by the vault when the owner cannot cover a deposit."""
    code = "InsufficientExternalFunds"


class ArithmeticOverflowError(LedgerError):
    """Raised when accrual or balance arithmetic leaves the u64 range."""
    code = "ArithmeticOverflow"


class InvalidIdentityError(LedgerError, ValueError):
    """Raised for an empty owner identity or namespace."""
    code = "InvalidIdentity"
