"""Capability-based access control.

Two static capabilities, assigned once when an instrument is created.
Checks are an explicit (caller, capability) lookup; there is no role
transfer or revocation primitive.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import final

from rightsledger.core._validation import precondition
from rightsledger.core.errors import UNAUTHORIZED, PreconditionViolation
from rightsledger.core.result import Err, Ok
from rightsledger.core.types import UtcDatetime


class Capability(Enum):
    ADMIN = "Admin"  # pause/unpause, metadata, activate/deactivate, withdraw
    DISTRIBUTOR = "Distributor"  # distribute, push payouts


@final
@dataclass(frozen=True, slots=True)
class RoleTable:
    """Immutable capability -> holders mapping."""

    grants: tuple[tuple[Capability, frozenset[str]], ...]

    @staticmethod
    def for_creator(creator: str, extra_distributors: Iterable[str] = ()) -> RoleTable:
        """Creator gets every capability; extra accounts get DISTRIBUTOR only."""
        distributors = frozenset({creator, *extra_distributors})
        return RoleTable(grants=(
            (Capability.ADMIN, frozenset({creator})),
            (Capability.DISTRIBUTOR, distributors),
        ))

    def holders(self, capability: Capability) -> frozenset[str]:
        for cap, accounts in self.grants:
            if cap is capability:
                return accounts
        return frozenset()

    def has(self, account: str, capability: Capability) -> bool:
        return account in self.holders(capability)


def require_capability(
    roles: RoleTable,
    caller: str,
    capability: Capability,
    timestamp: UtcDatetime,
    source: str,
) -> Ok[None] | Err[PreconditionViolation]:
    """Ok(None) if caller holds capability, else Err(UNAUTHORIZED)."""
    if roles.has(caller, capability):
        return Ok(None)
    return precondition(
        UNAUTHORIZED,
        f"{caller} lacks the {capability.value} capability",
        caller, timestamp, source,
    )
