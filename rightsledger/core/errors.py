"""Error value hierarchy: no ledger operation raises for business failures.

Every error is a frozen dataclass value that can be pattern-matched,
serialized, and stored. Base class LedgerError, five @final subclasses:

- ValidationError          malformed creation parameters (with FieldViolations)
- PreconditionViolation    bad input or state: amount, pause, compliance, role, index
- ExternalTransferError    the payment-asset ledger rejected a pull/push
- InvariantViolationError  conservation/overdraw check failed; never clamped
- PersistenceError         audit outbox transport failed
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import final

from rightsledger.core.types import UtcDatetime

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

# Compliance
ALREADY_ACCEPTED: str = "ALREADY_ACCEPTED"
SENDER_NOT_COMPLIANT: str = "SENDER_NOT_COMPLIANT"
RECIPIENT_NOT_COMPLIANT: str = "RECIPIENT_NOT_COMPLIANT"

# Instrument state
INSTRUMENT_PAUSED: str = "INSTRUMENT_PAUSED"
NOT_PAUSED: str = "NOT_PAUSED"
INSTRUMENT_INACTIVE: str = "INSTRUMENT_INACTIVE"
UNAUTHORIZED: str = "UNAUTHORIZED"
REENTRANT_CALL: str = "REENTRANT_CALL"

# Issuance
INVALID_AMOUNT: str = "INVALID_AMOUNT"
BELOW_MINIMUM_INVESTMENT: str = "BELOW_MINIMUM_INVESTMENT"
INVESTMENT_TOO_SMALL: str = "INVESTMENT_TOO_SMALL"
NOT_ENOUGH_UNITS_AVAILABLE: str = "NOT_ENOUGH_UNITS_AVAILABLE"

# Unit movements
INSUFFICIENT_BALANCE: str = "INSUFFICIENT_BALANCE"
RESERVED_ACCOUNT: str = "RESERVED_ACCOUNT"

# Distribution / claims
NO_UNITS_SOLD_YET: str = "NO_UNITS_SOLD_YET"
DISTRIBUTION_TOO_SMALL: str = "DISTRIBUTION_TOO_SMALL"
INVALID_DISTRIBUTION: str = "INVALID_DISTRIBUTION"
ALREADY_CLAIMED: str = "ALREADY_CLAIMED"
NO_UNITS_HELD: str = "NO_UNITS_HELD"
NOTHING_TO_CLAIM: str = "NOTHING_TO_CLAIM"
DISTRIBUTION_OVERDRAWN: str = "DISTRIBUTION_OVERDRAWN"

# Admin
INSUFFICIENT_PROCEEDS: str = "INSUFFICIENT_PROCEEDS"

# Registry
INDEX_OUT_OF_BOUNDS: str = "INDEX_OUT_OF_BOUNDS"
UNKNOWN_INSTRUMENT: str = "UNKNOWN_INSTRUMENT"

# External / infra
TRANSFER_FAILED: str = "TRANSFER_FAILED"
CONSERVATION_VIOLATION: str = "CONSERVATION_VIOLATION"
PERSISTENCE_ERROR: str = "PERSISTENCE_ERROR"


@dataclass(frozen=True, slots=True)
class LedgerError:
    """Base error value. NOT @final, has subclasses."""

    message: str
    code: str
    timestamp: UtcDatetime
    source: str  # "module.function" that produced this error

    def with_context(self, context: str) -> LedgerError:
        """Return a copy with context prepended to message."""
        return replace(self, message=f"{context}: {self.message}")

    def to_dict(self) -> dict[str, object]:
        """Serialize to dict with stable, documented keys."""
        return {
            "message": self.message,
            "code": self.code,
            "timestamp": self.timestamp.value.isoformat(),
            "source": self.source,
        }


@final
@dataclass(frozen=True, slots=True)
class FieldViolation:
    """Describes a single field validation failure."""

    path: str  # e.g. "info.unit_price"
    constraint: str  # e.g. "must be > 0"
    actual_value: str  # e.g. "0"


@final
@dataclass(frozen=True, slots=True)
class ValidationError(LedgerError):
    """One or more fields failed validation."""

    fields: tuple[FieldViolation, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            **LedgerError.to_dict(self),
            "fields": [
                {"path": f.path, "constraint": f.constraint, "actual_value": f.actual_value}
                for f in self.fields
            ],
        }


@final
@dataclass(frozen=True, slots=True)
class PreconditionViolation(LedgerError):
    """Bad input or state. Surfaces immediately, nothing was applied."""

    subject: str  # account, index or instrument the check was about

    def to_dict(self) -> dict[str, object]:
        return {**LedgerError.to_dict(self), "subject": self.subject}


@final
@dataclass(frozen=True, slots=True)
class ExternalTransferError(LedgerError):
    """The payment-asset ledger rejected a transfer or balance read."""

    operation: str  # "transfer" | "transfer_from" | "balance_of"
    from_account: str
    to_account: str
    amount: str

    def to_dict(self) -> dict[str, object]:
        return {
            **LedgerError.to_dict(self),
            "operation": self.operation,
            "from_account": self.from_account,
            "to_account": self.to_account,
            "amount": self.amount,
        }


@final
@dataclass(frozen=True, slots=True)
class InvariantViolationError(LedgerError):
    """A conservation law or accounting bound would be violated."""

    law_name: str
    expected: str
    actual: str

    def to_dict(self) -> dict[str, object]:
        return {
            **LedgerError.to_dict(self),
            "law_name": self.law_name,
            "expected": self.expected,
            "actual": self.actual,
        }


@final
@dataclass(frozen=True, slots=True)
class PersistenceError(LedgerError):
    """Audit outbox or storage operation failed."""

    operation: str

    def to_dict(self) -> dict[str, object]:
        return {**LedgerError.to_dict(self), "operation": self.operation}


type OperationError = PreconditionViolation | ExternalTransferError | InvariantViolationError
