"""Durable workflow for one revenue distribution round.

Steps: record distribution -> list claimants -> settle each claimant.

Determinism contract: this module contains NO I/O, NO randomness,
NO system clock access, NO mutable globals. All ledger interaction is
delegated to Activities. Settlement activities are never retried: a payout
that failed is reported in the result, not attempted again.
"""

from __future__ import annotations

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from rightsledger.instrument.types import ClaimPayout, PushFailure
    from rightsledger.workflow.activities import LedgerActivities
    from rightsledger.workflow.types import (
        ClaimantsInput,
        DistributeInput,
        DistributionRoundInput,
        DistributionRoundResult,
        RoundOutcome,
        SettleClaimInput,
    )

# -- Retry policies --

MONEY_MOVEMENT_RETRY = RetryPolicy(maximum_attempts=1)

READ_RETRY = RetryPolicy(
    initial_interval=timedelta(seconds=1),
    backoff_coefficient=2.0,
    maximum_interval=timedelta(seconds=10),
    maximum_attempts=3,
)

ACTIVITY_TIMEOUT = timedelta(seconds=30)


@workflow.defn(name="RevenueDistributionRound")
class RevenueDistributionWorkflow:
    """Durable workflow for one distribution round.

    Invariants maintained:
    - Every round reaches exactly one terminal outcome
    - No holder is settled unless the distribution was recorded
    - Each holder is settled at most once per round
    """

    def __init__(self) -> None:
        self._status: str = "RECEIVED"
        self._settled: int = 0
        self._claimants: int = 0

    # -- Queries --

    @workflow.query
    def get_status(self) -> str:
        """Current workflow phase."""
        return self._status

    @workflow.query
    def get_progress(self) -> tuple[int, int]:
        """(holders settled or failed so far, total claimants)."""
        return (self._settled, self._claimants)

    # -- Main workflow --

    @workflow.run
    async def run(self, inp: DistributionRoundInput) -> DistributionRoundResult:
        """Execute the distribution round."""

        # --- Step 1: Record the distribution ---
        self._status = "DISTRIBUTING"
        recorded = await workflow.execute_activity_method(
            LedgerActivities.record_distribution,
            DistributeInput(
                instrument_id=inp.instrument_id,
                distributor=inp.distributor,
                declared_amount=inp.declared_amount,
                description=inp.description,
            ),
            start_to_close_timeout=ACTIVITY_TIMEOUT,
            retry_policy=MONEY_MOVEMENT_RETRY,
        )
        if recorded.error is not None:
            self._status = "FAILED"
            return DistributionRoundResult(
                round_id=inp.round_id,
                outcome=RoundOutcome.FAILED,
                rejection_reasons=(recorded.error,),
            )
        index = recorded.distribution_index
        assert index is not None  # guaranteed when error is None

        # --- Step 2: List claimants ---
        self._status = "LISTING_CLAIMANTS"
        claimants = await workflow.execute_activity_method(
            LedgerActivities.list_claimants,
            ClaimantsInput(instrument_id=inp.instrument_id, distribution_index=index),
            start_to_close_timeout=ACTIVITY_TIMEOUT,
            retry_policy=READ_RETRY,
        )
        if claimants.error is not None:
            self._status = "PARTIALLY_SETTLED"
            return DistributionRoundResult(
                round_id=inp.round_id,
                outcome=RoundOutcome.PARTIALLY_SETTLED,
                distribution_index=index,
                total_amount=recorded.total_amount,
                rejection_reasons=(claimants.error,),
            )
        self._claimants = len(claimants.holders)
        workflow.logger.info(
            "Round %s: settling %d holders of distribution %d",
            inp.round_id, self._claimants, index,
        )

        # --- Step 3: Settle each holder ---
        self._status = "SETTLING"
        paid: list[ClaimPayout] = []
        failed: list[PushFailure] = []
        for holder in claimants.holders:
            out = await workflow.execute_activity_method(
                LedgerActivities.settle_holder_claim,
                SettleClaimInput(
                    instrument_id=inp.instrument_id,
                    distributor=inp.distributor,
                    holder=holder,
                    distribution_index=index,
                ),
                start_to_close_timeout=ACTIVITY_TIMEOUT,
                retry_policy=MONEY_MOVEMENT_RETRY,
            )
            if out.paid:
                paid.append(ClaimPayout(
                    holder=holder, distribution_index=index, amount=out.amount,
                ))
            else:
                failed.append(PushFailure(
                    holder=holder, code=out.error_code or "", message=out.error or "",
                ))
            self._settled += 1

        outcome = RoundOutcome.COMPLETED if not failed else RoundOutcome.PARTIALLY_SETTLED
        self._status = "COMPLETED" if not failed else "PARTIALLY_SETTLED"
        if failed:
            workflow.logger.warning(
                "Round %s: %d of %d payouts failed", inp.round_id, len(failed), self._claimants,
            )
        return DistributionRoundResult(
            round_id=inp.round_id,
            outcome=outcome,
            distribution_index=index,
            total_amount=recorded.total_amount,
            paid=tuple(paid),
            failed=tuple(failed),
        )
