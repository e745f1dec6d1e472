"""Worker for the revenue distribution workflow.

Starts a Temporal worker with the distribution workflow and the ledger
activities of one registry registered on the configured task queue.

Usage::

    import asyncio
    from rightsledger.workflow.worker import run_worker

    asyncio.run(run_worker(registry))
"""

from __future__ import annotations

from temporalio.client import Client
from temporalio.worker import Worker

from rightsledger.infra.config import WorkerConfig
from rightsledger.ledger.registry import InstrumentRegistry
from rightsledger.workflow.activities import LedgerActivities
from rightsledger.workflow.converter import LEDGER_DATA_CONVERTER
from rightsledger.workflow.distribution_workflow import RevenueDistributionWorkflow


def build_worker(
    client: Client, registry: InstrumentRegistry, config: WorkerConfig,
) -> Worker:
    """Worker with the distribution workflow and activities bound to registry."""
    activities = LedgerActivities(registry)
    return Worker(
        client,
        task_queue=config.task_queue,
        workflows=[RevenueDistributionWorkflow],
        activities=[
            activities.record_distribution,
            activities.list_claimants,
            activities.settle_holder_claim,
        ],
    )


async def run_worker(
    registry: InstrumentRegistry, config: WorkerConfig | None = None,
) -> None:
    """Connect to Temporal and run the worker until interrupted."""
    config = config or WorkerConfig()
    client = await Client.connect(
        config.target_host, namespace=config.namespace,
        data_converter=LEDGER_DATA_CONVERTER,
    )
    await build_worker(client, registry, config).run()
