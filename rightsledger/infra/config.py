"""Ledger defaults, audit topic names, and worker configuration.

No broker or Temporal client is created here. Pure configuration data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from rightsledger.instrument.types import ClaimBasis, DistributionMode

# ---------------------------------------------------------------------------
# Topic names
# ---------------------------------------------------------------------------

TOPIC_REGISTRY_EVENTS: str = "rightsledger.registry.events"
TOPIC_INSTRUMENT_EVENTS: str = "rightsledger.instrument.events"

AUDIT_TOPICS: tuple[str, ...] = (
    TOPIC_REGISTRY_EVENTS,
    TOPIC_INSTRUMENT_EVENTS,
)


# ---------------------------------------------------------------------------
# Ledger defaults
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class LedgerConfig:
    """Registry-wide defaults applied to every instrument it creates.

    InstrumentInfo fields left as None fall back to these values.
    """

    payment_decimals: int = 6
    unit_decimals: int = 18
    platform_fee_percent: int = 2  # gross-up: fee = amount * p / (100 + p)
    fee_recipient: str = "platform-treasury"
    compliance_required: bool = True
    distribution_mode: DistributionMode = DistributionMode.PRO_RATED
    claim_basis: ClaimBasis = ClaimBasis.SNAPSHOT

    def __post_init__(self) -> None:
        if self.payment_decimals < 0 or self.unit_decimals < 0:
            raise TypeError("LedgerConfig decimals must be >= 0")
        if self.platform_fee_percent < 0:
            raise TypeError(
                f"LedgerConfig.platform_fee_percent must be >= 0, got {self.platform_fee_percent}"
            )
        if not self.fee_recipient:
            raise TypeError("LedgerConfig.fee_recipient must be non-empty")


# ---------------------------------------------------------------------------
# Temporal worker configuration
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class WorkerConfig:
    """Where the distribution worker connects and which queue it polls."""

    target_host: str = "localhost:7233"
    namespace: str = "default"
    task_queue: str = "revenue-distribution"
