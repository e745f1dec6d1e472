"""DistributionLedger: append-only distribution records and claim flags.

Proportional math:

    PRO_RATED      actual = declared * sold_units // max_supply
    FULL_DECLARED  actual = declared
    share          = total_amount * entitled_units // snapshot_sold_units

A record's snapshot_sold_units never changes once written. The ledger also
tracks how much of each distribution has been paid out; paid never exceeds
total_amount (the floor-division remainder stays in custody).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from rightsledger.core._validation import precondition
from rightsledger.core.amounts import mul_div
from rightsledger.core.errors import INVALID_DISTRIBUTION, PreconditionViolation
from rightsledger.core.result import Err, Ok
from rightsledger.core.types import UtcDatetime
from rightsledger.instrument.types import Distribution, DistributionMode


def funded_amount(
    declared_amount: int, sold_units: int, max_supply: int, mode: DistributionMode,
) -> int:
    """What the distributor actually pays for a declared amount."""
    match mode:
        case DistributionMode.PRO_RATED:
            return mul_div(declared_amount, sold_units, max_supply)
        case DistributionMode.FULL_DECLARED:
            return declared_amount


def claim_share(distribution: Distribution, entitled_units: int) -> int:
    """Holder's floor share of one distribution."""
    return mul_div(distribution.total_amount, entitled_units, distribution.snapshot_sold_units)


@final
@dataclass(frozen=True, slots=True)
class DistributionState:
    """Captured ledger state for rolling back a failed operation."""

    record_count: int
    claimed: frozenset[tuple[str, int]]
    paid: tuple[int, ...]


@final
class DistributionLedger:
    """Distributions and claim records of one instrument."""

    def __init__(self) -> None:
        self._records: list[Distribution] = []
        self._claimed: set[tuple[str, int]] = set()
        self._paid: list[int] = []

    def record(
        self,
        total_amount: int,
        declared_amount: int,
        snapshot_sold_units: int,
        timestamp: UtcDatetime,
        description: str,
    ) -> Distribution:
        """Append a funded distribution. Callers have already validated amounts."""
        if total_amount <= 0 or snapshot_sold_units <= 0:
            raise TypeError(
                f"Distribution requires total_amount > 0 and snapshot_sold_units > 0, "
                f"got {total_amount} / {snapshot_sold_units}"
            )
        distribution = Distribution(
            index=len(self._records),
            total_amount=total_amount,
            declared_amount=declared_amount,
            snapshot_sold_units=snapshot_sold_units,
            timestamp=timestamp,
            description=description,
        )
        self._records.append(distribution)
        self._paid.append(0)
        return distribution

    def get(
        self, index: int, timestamp: UtcDatetime,
    ) -> Ok[Distribution] | Err[PreconditionViolation]:
        if 0 <= index < len(self._records):
            return Ok(self._records[index])
        return precondition(
            INVALID_DISTRIBUTION,
            f"Distribution index {index} out of range (count={len(self._records)})",
            str(index), timestamp, "ledger.distribution.DistributionLedger.get",
        )

    def count(self) -> int:
        return len(self._records)

    def records(self) -> tuple[Distribution, ...]:
        return tuple(self._records)

    def latest(self) -> Distribution | None:
        return self._records[-1] if self._records else None

    def is_claimed(self, account: str, index: int) -> bool:
        return (account, index) in self._claimed

    def mark_claimed(self, account: str, index: int) -> None:
        self._claimed.add((account, index))

    def paid(self, index: int) -> int:
        return self._paid[index]

    def add_paid(self, index: int, amount: int) -> None:
        self._paid[index] += amount

    def remaining(self, index: int) -> int:
        """Funded but not yet paid out for one distribution."""
        return self._records[index].total_amount - self._paid[index]

    def reserved(self) -> int:
        """Funded but not yet paid out, across all distributions."""
        return sum(r.total_amount for r in self._records) - sum(self._paid)

    def snapshot(self) -> DistributionState:
        return DistributionState(
            record_count=len(self._records),
            claimed=frozenset(self._claimed),
            paid=tuple(self._paid),
        )

    def restore(self, state: DistributionState) -> None:
        del self._records[state.record_count:]
        self._claimed = set(state.claimed)
        self._paid = list(state.paid)
