"""Core types: UtcDatetime, Clock, Period.

Every timestamp in the ledger is a UtcDatetime; naive datetimes are
rejected at construction.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal, final

from rightsledger.core.result import Err, Ok


@final
@dataclass(frozen=True, slots=True)
class UtcDatetime:
    """Timezone-aware UTC datetime. Naive datetimes are rejected."""

    value: datetime

    def __post_init__(self) -> None:
        if self.value.tzinfo is None:
            raise TypeError("UtcDatetime requires timezone-aware datetime, got naive")

    @staticmethod
    def parse(raw: datetime) -> Ok[UtcDatetime] | Err[str]:
        """Parse a datetime, rejecting naive (no tzinfo) datetimes."""
        if raw.tzinfo is None:
            return Err("UtcDatetime requires timezone-aware datetime, got naive")
        return Ok(UtcDatetime(value=raw.astimezone(UTC)))

    @staticmethod
    def now() -> UtcDatetime:
        return UtcDatetime(value=datetime.now(tz=UTC))


type Clock = Callable[[], UtcDatetime]

type PeriodUnit = Literal["D", "W", "M", "Y"]


@final
@dataclass(frozen=True, slots=True)
class Period:
    """A time period: multiplier x unit (e.g. 1M, 3M, 1Y)."""

    multiplier: int
    unit: PeriodUnit

    def __post_init__(self) -> None:
        if self.multiplier <= 0:
            raise TypeError(f"Period.multiplier must be > 0, got {self.multiplier}")
        if self.unit not in ("D", "W", "M", "Y"):
            raise TypeError(f"Period.unit must be one of D/W/M/Y, got {self.unit!r}")

    @staticmethod
    def parse(raw: str) -> Ok[Period] | Err[str]:
        """Parse tenor strings such as '1M', '3M', '1Y', '2W'."""
        if len(raw) < 2 or not raw[:-1].isdigit():
            return Err(f"Period must look like '<n><D|W|M|Y>', got {raw!r}")
        unit = raw[-1].upper()
        multiplier = int(raw[:-1])
        if unit not in ("D", "W", "M", "Y"):
            return Err(f"Period unit must be one of D/W/M/Y, got {unit!r}")
        if multiplier <= 0:
            return Err(f"Period multiplier must be > 0, got {multiplier}")
        return Ok(Period(multiplier=multiplier, unit=unit))  # type: ignore[arg-type]

    def __str__(self) -> str:
        return f"{self.multiplier}{self.unit}"
