"""Workflow data types for durable revenue distribution rounds.

A round funds one distribution, lists the holders owed a share and settles
each of them. Activity outputs carry either a result or an error string so
that business failures travel as values, not as activity exceptions.

All types: @final @dataclass(frozen=True, slots=True).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import final

from rightsledger.instrument.types import ClaimPayout, PushFailure

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoundOutcome(Enum):
    """Terminal states of a distribution round."""

    COMPLETED = "Completed"  # every claimant paid
    PARTIALLY_SETTLED = "PartiallySettled"  # distribution recorded, some payouts failed
    FAILED = "Failed"  # distribution not recorded


# ---------------------------------------------------------------------------
# Workflow input
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class DistributionRoundInput:
    """One distribution round. round_id doubles as the Temporal Workflow ID."""

    round_id: str
    instrument_id: str
    distributor: str
    declared_amount: int
    description: str = ""

    def __post_init__(self) -> None:
        if not self.round_id:
            raise TypeError("DistributionRoundInput.round_id must be non-empty")
        if self.declared_amount <= 0:
            raise TypeError(
                f"DistributionRoundInput.declared_amount must be > 0, got {self.declared_amount}"
            )


# ---------------------------------------------------------------------------
# Activity I/O: record distribution
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class DistributeInput:
    instrument_id: str
    distributor: str
    declared_amount: int
    description: str = ""


@final
@dataclass(frozen=True, slots=True)
class DistributeOutput:
    """Recorded distribution index and funded amount, or an error."""

    distribution_index: int | None = None
    total_amount: int = 0
    error: str | None = None

    def __post_init__(self) -> None:
        if (self.distribution_index is None) == (self.error is None):
            raise TypeError(
                "DistributeOutput must have exactly one of distribution_index or error"
            )


# ---------------------------------------------------------------------------
# Activity I/O: claimants
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class ClaimantsInput:
    instrument_id: str
    distribution_index: int


@final
@dataclass(frozen=True, slots=True)
class ClaimantsOutput:
    holders: tuple[str, ...] = ()
    error: str | None = None


# ---------------------------------------------------------------------------
# Activity I/O: settle one holder
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class SettleClaimInput:
    instrument_id: str
    distributor: str
    holder: str
    distribution_index: int


@final
@dataclass(frozen=True, slots=True)
class SettleClaimOutput:
    """Amount paid to holder, or the error code and message of the failed payout."""

    holder: str
    amount: int = 0
    error_code: str | None = None
    error: str | None = None

    @property
    def paid(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Workflow output
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class DistributionRoundResult:
    """Terminal outcome of a distribution round."""

    round_id: str
    outcome: RoundOutcome
    distribution_index: int | None = None
    total_amount: int = 0
    paid: tuple[ClaimPayout, ...] = ()
    failed: tuple[PushFailure, ...] = ()
    rejection_reasons: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.outcome != RoundOutcome.FAILED and self.distribution_index is None:
            raise TypeError(f"{self.outcome.value} outcome requires distribution_index")
        if self.outcome == RoundOutcome.FAILED and self.distribution_index is not None:
            raise TypeError("Failed outcome must not have distribution_index")

    @property
    def total_paid(self) -> int:
        return sum(p.amount for p in self.paid)
