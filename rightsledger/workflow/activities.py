"""Activity implementations for the revenue distribution workflow.

Activities are thin wrappers over an InstrumentRegistry. All ledger logic
lives in the pure library layer; activities translate Ok/Err results into
frozen-dataclass outputs with an optional error field.

Each activity:
- Is decorated with @activity.defn
- Takes a single frozen-dataclass input
- Returns a frozen-dataclass output (with optional error field)
- Never retries a money movement (the workflow runs them with maximum_attempts=1)
"""

from __future__ import annotations

from typing import final

from temporalio import activity

from rightsledger.core.errors import LedgerError
from rightsledger.core.result import Err, Ok
from rightsledger.ledger.registry import InstrumentRegistry
from rightsledger.workflow.types import (
    ClaimantsInput,
    ClaimantsOutput,
    DistributeInput,
    DistributeOutput,
    SettleClaimInput,
    SettleClaimOutput,
)


def _describe(error: LedgerError) -> str:
    return f"{error.code}: {error.message}"


@final
class LedgerActivities:
    """Activities bound to one registry. Register the bound methods on a Worker."""

    def __init__(self, registry: InstrumentRegistry) -> None:
        self._registry = registry

    # -----------------------------------------------------------------------
    # 1. record_distribution
    # -----------------------------------------------------------------------

    @activity.defn(name="record_distribution")
    async def record_distribution(self, inp: DistributeInput) -> DistributeOutput:
        """Fund and record one distribution.

        Timeout: 30s | Retries: none (pulls funds from the distributor)
        """
        activity.logger.info(
            "Recording distribution of %d on %s by %s",
            inp.declared_amount, inp.instrument_id, inp.distributor,
        )
        match self._registry.get(inp.instrument_id):
            case Err(e):
                return DistributeOutput(error=_describe(e))
            case Ok(instrument):
                pass
        match instrument.distribute(inp.distributor, inp.declared_amount, inp.description):
            case Err(e):
                activity.logger.warning(
                    "Distribution on %s rejected: %s", inp.instrument_id, _describe(e),
                )
                return DistributeOutput(error=_describe(e))
            case Ok(distribution):
                return DistributeOutput(
                    distribution_index=distribution.index,
                    total_amount=distribution.total_amount,
                )

    # -----------------------------------------------------------------------
    # 2. list_claimants
    # -----------------------------------------------------------------------

    @activity.defn(name="list_claimants")
    async def list_claimants(self, inp: ClaimantsInput) -> ClaimantsOutput:
        """Holders with a non-zero pending share. Read-only, safe to retry."""
        match self._registry.get(inp.instrument_id):
            case Err(e):
                return ClaimantsOutput(error=_describe(e))
            case Ok(instrument):
                pass
        holders = instrument.claimants(inp.distribution_index)
        activity.logger.info(
            "Distribution %d on %s has %d claimants",
            inp.distribution_index, inp.instrument_id, len(holders),
        )
        return ClaimantsOutput(holders=holders)

    # -----------------------------------------------------------------------
    # 3. settle_holder_claim
    # -----------------------------------------------------------------------

    @activity.defn(name="settle_holder_claim")
    async def settle_holder_claim(self, inp: SettleClaimInput) -> SettleClaimOutput:
        """Pay one holder's share on the distributor's authority.

        Timeout: 30s | Retries: none
        Idempotent: yes (a second settlement fails with ALREADY_CLAIMED)
        """
        match self._registry.get(inp.instrument_id):
            case Err(e):
                return SettleClaimOutput(holder=inp.holder, error_code=e.code, error=e.message)
            case Ok(instrument):
                pass
        match instrument.settle_claim(inp.distributor, inp.holder, inp.distribution_index):
            case Err(e):
                activity.logger.warning(
                    "Settlement of %s on %s #%d failed: %s",
                    inp.holder, inp.instrument_id, inp.distribution_index, _describe(e),
                )
                return SettleClaimOutput(holder=inp.holder, error_code=e.code, error=e.message)
            case Ok(payout):
                return SettleClaimOutput(holder=inp.holder, amount=payout.amount)
