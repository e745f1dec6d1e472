"""rightsledger.infra: Infrastructure protocols, adapters, and configuration."""

from rightsledger.infra.config import AUDIT_TOPICS as AUDIT_TOPICS
from rightsledger.infra.config import TOPIC_INSTRUMENT_EVENTS as TOPIC_INSTRUMENT_EVENTS
from rightsledger.infra.config import TOPIC_REGISTRY_EVENTS as TOPIC_REGISTRY_EVENTS
from rightsledger.infra.config import LedgerConfig as LedgerConfig
from rightsledger.infra.config import WorkerConfig as WorkerConfig
from rightsledger.infra.memory_adapter import InMemoryAssetLedger as InMemoryAssetLedger
from rightsledger.infra.memory_adapter import InMemoryEventBus as InMemoryEventBus
from rightsledger.infra.protocols import AssetLedgerPort as AssetLedgerPort
from rightsledger.infra.protocols import EventBus as EventBus
from rightsledger.infra.publisher import AuditPublisher as AuditPublisher
