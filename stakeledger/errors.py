"""Exception types shared by the ledger engines and the asset ledger.

Every rejection carries a stable ``code`` (for programmatic dispatch by callers)
and a human-readable message.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all rejected calls."""

    code: str = "ledger_error"

    def __init__(self, message: str | None = None) -> None:
        self.reason = message or self.code
        super().__init__(self.reason)


class ZeroAmount(LedgerError):
    code = "zero_amount"


class InvalidAmount(LedgerError):
    code = "invalid_amount"


class InsufficientBalance(LedgerError):
    code = "insufficient_balance"


class InsufficientAllowance(LedgerError):
    code = "insufficient_allowance"


class NothingStaked(LedgerError):
    """Raised when reward is injected while nothing is staked."""

    code = "nothing_staked"


class AlreadyInitialized(LedgerError):
    code = "already_initialized"


class NotInitialized(LedgerError):
    code = "not_initialized"


class StillLocked(LedgerError):
    code = "still_locked"


class Unauthorized(LedgerError):
    code = "unauthorized"


class InvalidEpochConfig(LedgerError):
    code = "invalid_epoch_config"


class InvalidPoolConfig(LedgerError):
    code = "invalid_pool_config"


class UnknownPool(LedgerError):
    code = "unknown_pool"


class DuplicatePool(LedgerError):
    code = "duplicate_pool"


class InvariantViolation(LedgerError):
    """Raised when a post-state violates one or more invariants."""

    code = "invariant"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


ERRORS_BY_CODE: dict[str, type[LedgerError]] = {
    cls.code: cls
    for cls in (
        ZeroAmount,
        InvalidAmount,
        InsufficientBalance,
        InsufficientAllowance,
        NothingStaked,
        AlreadyInitialized,
        NotInitialized,
        StillLocked,
        Unauthorized,
        InvalidEpochConfig,
        InvalidPoolConfig,
        UnknownPool,
        DuplicatePool,
    )
}
