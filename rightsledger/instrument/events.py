"""Audit events: immutable records of successful operations.

Each successful operation emits its events exactly once; a failed or
rolled-back operation emits nothing. Events are consumed by external
observers (indexers, front-ends) through the audit outbox.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from rightsledger.core.types import UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class InstrumentCreated:
    instrument_id: str
    creator: str
    name: str
    symbol: str
    unit_price: int
    max_supply: int
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class TermsAccepted:
    instrument_id: str
    account: str
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class Invested:
    instrument_id: str
    investor: str
    net_amount: int
    units: int
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class PlatformFeeCollected:
    instrument_id: str
    investor: str
    fee_recipient: str
    fee: int
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class RevenueDistributed:
    instrument_id: str
    distribution_index: int
    total_amount: int
    declared_amount: int
    snapshot_sold_units: int
    description: str
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class RevenueClaimed:
    instrument_id: str
    holder: str
    distribution_index: int
    amount: int
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class UnitsTransferred:
    instrument_id: str
    sender: str
    recipient: str
    units: int
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class UnitsBurned:
    instrument_id: str
    holder: str
    units: int
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class Paused:
    instrument_id: str
    by: str
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class Unpaused:
    instrument_id: str
    by: str
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class ActivationChanged:
    instrument_id: str
    by: str
    active: bool
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class MetadataUpdated:
    instrument_id: str
    by: str
    metadata_uri: str
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class ProceedsWithdrawn:
    instrument_id: str
    by: str
    recipient: str
    amount: int
    timestamp: UtcDatetime


type AuditEvent = (
    InstrumentCreated
    | TermsAccepted
    | Invested
    | PlatformFeeCollected
    | RevenueDistributed
    | RevenueClaimed
    | UnitsTransferred
    | UnitsBurned
    | Paused
    | Unpaused
    | ActivationChanged
    | MetadataUpdated
    | ProceedsWithdrawn
)
