"""Infrastructure protocol definitions.

Ledger code depends on these abstractions; infrastructure implements them.
Every method returns Ok[T] | Err[...]: external failures are visible values
in the type system, never invisible exceptions.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from rightsledger.core.errors import ExternalTransferError, PersistenceError
from rightsledger.core.result import Err, Ok


@runtime_checkable
class AssetLedgerPort(Protocol):
    """The external payment asset (a fungible token ledger), treated as a black box.

    Amounts are ints in the asset's minor units.

    Invariants expected of implementations:
      - transfer() moves amount from sender to `to` or changes nothing.
      - transfer_from() spends the owner's allowance granted to spender and
        moves amount from owner to `to`, or changes nothing.
    """

    def transfer(
        self, sender: str, to: str, amount: int,
    ) -> Ok[None] | Err[ExternalTransferError]: ...

    def transfer_from(
        self, spender: str, owner: str, to: str, amount: int,
    ) -> Ok[None] | Err[ExternalTransferError]: ...

    def balance_of(
        self, account: str,
    ) -> Ok[int] | Err[ExternalTransferError]: ...


@runtime_checkable
class EventBus(Protocol):
    """Append-only event transport for audit events.

    Messages are keyed for deterministic partitioning. Values are opaque
    bytes: serialization is the caller's responsibility.
    """

    def publish(
        self, topic: str, key: str, value: bytes,
    ) -> Ok[None] | Err[PersistenceError]: ...
