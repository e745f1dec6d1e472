"""Instrument domain types: creation info, issuance terms, distribution records.

All types are @final frozen dataclasses. Amounts are ints:
payment amounts in the payment asset's minor units, unit quantities in the
instrument's base units (10 ** unit_decimals base units = one whole unit).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import final

from rightsledger.core.types import Period, UtcDatetime


class DistributionMode(Enum):
    """How a distributor's declared amount becomes a funded distribution."""

    PRO_RATED = "ProRated"  # declared as if fully sold, charged declared * sold / max
    FULL_DECLARED = "FullDeclared"  # charged exactly the declared amount


class ClaimBasis(Enum):
    """Which balance entitles a holder to a share of a distribution."""

    SNAPSHOT = "Snapshot"  # balance held when the distribution was recorded
    CURRENT_BALANCE = "CurrentBalance"  # balance held at claim time


@final
@dataclass(frozen=True, slots=True)
class InstrumentInfo:
    """Caller-supplied creation parameters for one instrument.

    Exactly one of unit_price / max_supply_units must be given; the other is
    derived from total_value. Fields left as None take the ledger defaults.
    """

    total_value: int
    expected_periodic_income: int = 0
    unit_price: int | None = None  # payment minor units per whole unit
    max_supply_units: int | None = None  # whole units
    min_investment: int | None = None  # gross payment floor; defaults to unit_price
    fee_percent: int | None = None
    metadata_uri: str = ""
    income_period: Period | None = None
    distributors: tuple[str, ...] = ()
    compliance_required: bool | None = None
    distribution_mode: DistributionMode | None = None
    claim_basis: ClaimBasis | None = None


@final
@dataclass(frozen=True, slots=True)
class IssuanceTerms:
    """Immutable pricing terms fixed at instrument creation."""

    unit_price: int
    max_supply: int  # base units
    payment_decimals: int
    unit_decimals: int
    fee_percent: int
    min_investment: int

    def __post_init__(self) -> None:
        if self.unit_price <= 0:
            raise TypeError(f"IssuanceTerms.unit_price must be > 0, got {self.unit_price}")
        if self.max_supply <= 0:
            raise TypeError(f"IssuanceTerms.max_supply must be > 0, got {self.max_supply}")
        if self.fee_percent < 0:
            raise TypeError(f"IssuanceTerms.fee_percent must be >= 0, got {self.fee_percent}")

    @property
    def one_unit(self) -> int:
        """Base units in one whole unit."""
        return 10 ** self.unit_decimals

    @property
    def unit_scale(self) -> int:
        """Precision gap between unit and payment asset (1e12 for 18 vs 6 decimals)."""
        return 10 ** max(self.unit_decimals - self.payment_decimals, 0)


@final
@dataclass(frozen=True, slots=True)
class InvestmentQuote:
    """Result of pricing a gross payment: fee, net and units bought."""

    payment_amount: int
    fee: int
    net_amount: int
    units: int


@final
@dataclass(frozen=True, slots=True)
class Distribution:
    """One funded revenue event. Never mutated after it is recorded."""

    index: int
    total_amount: int
    declared_amount: int
    snapshot_sold_units: int
    timestamp: UtcDatetime
    description: str


@final
@dataclass(frozen=True, slots=True)
class ClaimPayout:
    """A settled claim: holder was paid amount for distribution_index."""

    holder: str
    distribution_index: int
    amount: int


@final
@dataclass(frozen=True, slots=True)
class PushFailure:
    """A holder whose push payout failed; other holders are unaffected."""

    holder: str
    code: str
    message: str


@final
@dataclass(frozen=True, slots=True)
class PushReport:
    """Outcome of pushing one distribution to every entitled holder."""

    distribution_index: int
    paid: tuple[ClaimPayout, ...]
    failed: tuple[PushFailure, ...]

    @property
    def total_paid(self) -> int:
        return sum(p.amount for p in self.paid)
