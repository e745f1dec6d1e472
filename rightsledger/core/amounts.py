"""Integer amounts, the library Decimal context, and refined string types.

Ledger arithmetic is done on int minor units so floor division is exact.
Decimal appears only at the presentation edge (funding percentages)
and always under LEDGER_DECIMAL_CONTEXT.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import (
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import final

from rightsledger.core.result import Err, Ok

LEDGER_DECIMAL_CONTEXT = Context(
    prec=78,  # wide enough for uint256-sized base-unit amounts
    rounding=ROUND_HALF_EVEN,
    Emin=-999999,
    Emax=999999,
    capitals=1,
    clamp=0,
    flags=[],
    traps=[InvalidOperation, DivisionByZero, Overflow],
)

PERCENT_QUANTUM = Decimal("0.01")


@final
@dataclass(frozen=True, slots=True)
class NonEmptyStr:
    """String constrained to be non-empty."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise TypeError("NonEmptyStr requires non-empty string")

    @staticmethod
    def parse(raw: str) -> Ok[NonEmptyStr] | Err[str]:
        if not raw or not raw.strip():
            return Err("NonEmptyStr requires non-empty string")
        return Ok(NonEmptyStr(value=raw))


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) on non-negative ints, without precision loss."""
    if denominator <= 0:
        raise ZeroDivisionError(f"mul_div denominator must be > 0, got {denominator}")
    return (a * b) // denominator


def percentage(part: int, whole: int) -> Decimal:
    """part / whole as a percentage rounded to two places. 0 when whole is 0."""
    if whole <= 0:
        return Decimal("0.00")
    with localcontext(LEDGER_DECIMAL_CONTEXT):
        return (Decimal(part) * 100 / Decimal(whole)).quantize(PERCENT_QUANTUM)
