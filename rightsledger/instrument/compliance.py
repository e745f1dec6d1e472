"""ComplianceGate: per-account, set-once terms acceptance.

Records are created lazily on first acceptance and can never be cleared.
"""

from __future__ import annotations

from typing import final

from rightsledger.core._validation import precondition
from rightsledger.core.errors import ALREADY_ACCEPTED, PreconditionViolation
from rightsledger.core.result import Err, Ok
from rightsledger.core.types import UtcDatetime
from rightsledger.instrument.events import TermsAccepted


@final
class ComplianceGate:
    """Set-once acceptance flags for one instrument."""

    def __init__(self, instrument_id: str) -> None:
        self._instrument_id = instrument_id
        self._accepted: set[str] = set()

    def accept_terms(
        self, account: str, timestamp: UtcDatetime,
    ) -> Ok[TermsAccepted] | Err[PreconditionViolation]:
        """Flip the account's flag to accepted. A second call fails."""
        if account in self._accepted:
            return precondition(
                ALREADY_ACCEPTED, f"{account} already accepted the terms",
                account, timestamp, "instrument.compliance.ComplianceGate.accept_terms",
            )
        self._accepted.add(account)
        return Ok(TermsAccepted(
            instrument_id=self._instrument_id, account=account, timestamp=timestamp,
        ))

    def is_accepted(self, account: str) -> bool:
        return account in self._accepted

    def accepted_accounts(self) -> frozenset[str]:
        return frozenset(self._accepted)

    def restore(self, accepted: frozenset[str]) -> None:
        """Reset to a previously captured state (rollback of a failed operation)."""
        self._accepted = set(accepted)
