"""Shared helpers that reduce error-value construction to a 1-liner."""

from __future__ import annotations

from rightsledger.core.errors import (
    FieldViolation,
    PreconditionViolation,
    ValidationError,
)
from rightsledger.core.result import Err
from rightsledger.core.types import UtcDatetime


def precondition(
    code: str, message: str, subject: str, timestamp: UtcDatetime, source: str,
) -> Err[PreconditionViolation]:
    """Create Err[PreconditionViolation]."""
    return Err(PreconditionViolation(
        message=message, code=code, timestamp=timestamp, source=source, subject=subject,
    ))


def val_err(
    message: str,
    code: str,
    timestamp: UtcDatetime,
    source: str,
    fields: tuple[FieldViolation, ...] = (),
) -> Err[ValidationError]:
    """Create Err[ValidationError]."""
    return Err(ValidationError(
        message=message, code=code,
        timestamp=timestamp, source=source, fields=fields,
    ))


def require_positive(
    violations: list[FieldViolation], path: str, value: int | None,
) -> None:
    """Append a violation unless value is an int > 0 (None means 'not given')."""
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        violations.append(FieldViolation(
            path=path, constraint="must be an int > 0", actual_value=str(value),
        ))
