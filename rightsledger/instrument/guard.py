"""TransferGuard: gate applied to every unit-balance change.

Order of checks:
  1. paused instrument -> INSTRUMENT_PAUSED
  2. sender not accepted -> SENDER_NOT_COMPLIANT      (compliance instruments only)
  3. recipient not accepted -> RECIPIENT_NOT_COMPLIANT (compliance instruments only)

The pool (instrument account) and the burn sink are exempt from compliance.
"""

from __future__ import annotations

from typing import final

from rightsledger.core._validation import precondition
from rightsledger.core.errors import (
    INSTRUMENT_PAUSED,
    RECIPIENT_NOT_COMPLIANT,
    SENDER_NOT_COMPLIANT,
    PreconditionViolation,
)
from rightsledger.core.result import Err, Ok
from rightsledger.core.types import UtcDatetime
from rightsledger.instrument.compliance import ComplianceGate

BURN_ACCOUNT: str = "burn:0"

_SOURCE = "instrument.guard.TransferGuard.check"


@final
class TransferGuard:
    """Pause + compliance check for unit movements of one instrument."""

    def __init__(
        self,
        gate: ComplianceGate,
        pool_account: str,
        *,
        compliance_required: bool,
    ) -> None:
        self._gate = gate
        self._exempt = frozenset({pool_account, BURN_ACCOUNT})
        self._compliance_required = compliance_required

    @property
    def compliance_required(self) -> bool:
        return self._compliance_required

    def is_exempt(self, account: str) -> bool:
        return account in self._exempt

    def check(
        self,
        sender: str,
        recipient: str,
        *,
        paused: bool,
        timestamp: UtcDatetime,
    ) -> Ok[None] | Err[PreconditionViolation]:
        if paused:
            return precondition(
                INSTRUMENT_PAUSED, "Instrument is paused", sender, timestamp, _SOURCE,
            )
        if not self._compliance_required:
            return Ok(None)
        if sender not in self._exempt and not self._gate.is_accepted(sender):
            return precondition(
                SENDER_NOT_COMPLIANT, f"Sender {sender} has not accepted the terms",
                sender, timestamp, _SOURCE,
            )
        if recipient not in self._exempt and not self._gate.is_accepted(recipient):
            return precondition(
                RECIPIENT_NOT_COMPLIANT, f"Recipient {recipient} has not accepted the terms",
                recipient, timestamp, _SOURCE,
            )
        return Ok(None)
