"""Instrument: one tokenized revenue-rights asset.

Binds the issuance pricing, unit book, distribution ledger, compliance gate
and transfer guard of a single instrument, and is the only writer of their
state.

Execution model:
  - Every state-changing operation is atomic. The instrument checkpoints its
    state, runs the operation, and on Err restores the checkpoint and drops
    the operation's pending audit events. Events of a successful operation are
    appended to the log exactly once.
  - Every state-changing operation holds a per-instrument reentrancy flag; a
    call re-entering through an AssetLedgerPort callback fails with
    REENTRANT_CALL.
  - Internal effects are applied before external transfers. The external
    ledger cannot be rolled back by a checkpoint, so the one two-transfer
    operation (invest) refunds its first pull if the second one fails.

Instrument is @final but NOT a dataclass: it holds mutable internal state.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Concatenate, final

from rightsledger.core._validation import precondition
from rightsledger.core.amounts import percentage
from rightsledger.core.errors import (
    ALREADY_CLAIMED,
    DISTRIBUTION_OVERDRAWN,
    DISTRIBUTION_TOO_SMALL,
    INSTRUMENT_INACTIVE,
    INSTRUMENT_PAUSED,
    INSUFFICIENT_PROCEEDS,
    INVALID_AMOUNT,
    NO_UNITS_HELD,
    NO_UNITS_SOLD_YET,
    NOT_ENOUGH_UNITS_AVAILABLE,
    NOT_PAUSED,
    NOTHING_TO_CLAIM,
    REENTRANT_CALL,
    RESERVED_ACCOUNT,
    ExternalTransferError,
    InvariantViolationError,
    OperationError,
    PreconditionViolation,
)
from rightsledger.core.result import Err, Ok
from rightsledger.core.types import Clock, UtcDatetime
from rightsledger.infra.protocols import AssetLedgerPort
from rightsledger.instrument.access import Capability, RoleTable, require_capability
from rightsledger.instrument.compliance import ComplianceGate
from rightsledger.instrument.events import (
    ActivationChanged,
    AuditEvent,
    Invested,
    MetadataUpdated,
    Paused,
    PlatformFeeCollected,
    ProceedsWithdrawn,
    RevenueClaimed,
    RevenueDistributed,
    TermsAccepted,
    UnitsBurned,
    UnitsTransferred,
    Unpaused,
)
from rightsledger.instrument.guard import BURN_ACCOUNT, TransferGuard
from rightsledger.instrument.schedule import is_distribution_overdue, next_distribution_due
from rightsledger.instrument.types import (
    ClaimBasis,
    ClaimPayout,
    Distribution,
    DistributionMode,
    InstrumentInfo,
    InvestmentQuote,
    IssuanceTerms,
    PushFailure,
    PushReport,
)
from rightsledger.ledger.book import BookState, UnitBook
from rightsledger.ledger.distribution import (
    DistributionLedger,
    DistributionState,
    claim_share,
    funded_amount,
)
from rightsledger.ledger.issuance import quote_investment

type _Op[T] = Callable[[list[AuditEvent]], Ok[T] | Err[OperationError]]


def _non_reentrant[**P, T](
    method: Callable[Concatenate[Instrument, P], T],
) -> Callable[Concatenate[Instrument, P], T | Err[PreconditionViolation]]:
    """Fail with REENTRANT_CALL while another operation of the same instrument runs."""

    @functools.wraps(method)
    def wrapper(
        self: Instrument, *args: P.args, **kwargs: P.kwargs,
    ) -> T | Err[PreconditionViolation]:
        if self._entered:
            return precondition(
                REENTRANT_CALL,
                f"{method.__name__} re-entered while another operation is running",
                self.instrument_id, self._clock(), f"ledger.instrument.Instrument.{method.__name__}",
            )
        self._entered = True
        try:
            return method(self, *args, **kwargs)
        finally:
            self._entered = False

    return wrapper


@final
@dataclass(frozen=True, slots=True)
class _Checkpoint:
    book: BookState
    distributions: DistributionState
    accepted: frozenset[str]
    investors: tuple[str, ...]
    invested: tuple[tuple[str, int], ...]
    raised: int
    withdrawn: int
    active: bool
    paused: bool
    metadata_uri: str


@final
class Instrument:
    """Fixed-supply revenue-rights instrument with pull-based distributions."""

    def __init__(
        self,
        *,
        instrument_id: str,
        name: str,
        symbol: str,
        creator: str,
        info: InstrumentInfo,
        terms: IssuanceTerms,
        roles: RoleTable,
        asset_ledger: AssetLedgerPort,
        fee_recipient: str,
        compliance_required: bool,
        distribution_mode: DistributionMode,
        claim_basis: ClaimBasis,
        clock: Clock,
    ) -> None:
        self._id = instrument_id
        self._name = name
        self._symbol = symbol
        self._creator = creator
        self._info = info
        self._terms = terms
        self._roles = roles
        self._assets = asset_ledger
        self._fee_recipient = fee_recipient
        self._mode = distribution_mode
        self._claim_basis = claim_basis
        self._clock = clock
        self._created_at = clock()

        self._book = UnitBook(instrument_id, terms.max_supply)
        self._gate = ComplianceGate(instrument_id)
        self._guard = TransferGuard(
            self._gate, instrument_id, compliance_required=compliance_required,
        )
        self._distributions = DistributionLedger()

        self._investors: list[str] = []
        self._investor_set: set[str] = set()
        self._invested: dict[str, int] = {}
        self._raised = 0
        self._withdrawn = 0
        self._active = True
        self._paused = False
        self._metadata_uri = info.metadata_uri
        self._events: list[AuditEvent] = []
        self._entered = False

    # ------------------------------------------------------------------
    # Compliance
    # ------------------------------------------------------------------

    @_non_reentrant
    def accept_terms(
        self, account: str,
    ) -> Ok[TermsAccepted] | Err[OperationError]:
        """Record that account accepted the instrument's terms. Set-once."""
        now = self._clock()

        def op(events: list[AuditEvent]) -> Ok[TermsAccepted] | Err[OperationError]:
            match self._gate.accept_terms(account, now):
                case Err() as e:
                    return e
                case Ok(event):
                    events.append(event)
                    return Ok(event)

        return self._apply(op)

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    @_non_reentrant
    def invest(
        self, caller: str, payment_amount: int,
    ) -> Ok[InvestmentQuote] | Err[OperationError]:
        """Buy units from the pool with a gross payment (fee included).

        Pulls net into custody and the fee to the fee recipient; both pulls
        need the caller's allowance for this instrument on the asset ledger.
        """
        now = self._clock()
        source = "ledger.instrument.Instrument.invest"

        def op(events: list[AuditEvent]) -> Ok[InvestmentQuote] | Err[OperationError]:
            if not self._active:
                return precondition(
                    INSTRUMENT_INACTIVE, "Instrument is not active", caller, now, source,
                )
            if self._guard.is_exempt(caller):
                return precondition(
                    RESERVED_ACCOUNT, f"Reserved account {caller} cannot invest",
                    caller, now, source,
                )
            match self._guard.check(self._id, caller, paused=self._paused, timestamp=now):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            match quote_investment(self._terms, payment_amount, now, caller):
                case Err() as e:
                    return e
                case Ok(quote):
                    pass
            pool = self._book.balance_of(self._id)
            if quote.units > pool:
                return precondition(
                    NOT_ENOUGH_UNITS_AVAILABLE,
                    f"Investment needs {quote.units} units, pool holds {pool}",
                    caller, now, source,
                )

            match self._book.move(self._id, caller, quote.units, now):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            if caller not in self._investor_set:
                self._investor_set.add(caller)
                self._investors.append(caller)
            self._invested[caller] = self._invested.get(caller, 0) + quote.net_amount
            self._raised += quote.net_amount

            match self._assets.transfer_from(self._id, caller, self._id, quote.net_amount):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            if quote.fee > 0:
                match self._assets.transfer_from(
                    self._id, caller, self._fee_recipient, quote.fee,
                ):
                    case Err(fee_error):
                        return self._refund(caller, quote.net_amount, fee_error)
                    case Ok(_):
                        pass

            events.append(Invested(
                instrument_id=self._id, investor=caller,
                net_amount=quote.net_amount, units=quote.units, timestamp=now,
            ))
            if quote.fee > 0:
                events.append(PlatformFeeCollected(
                    instrument_id=self._id, investor=caller,
                    fee_recipient=self._fee_recipient, fee=quote.fee, timestamp=now,
                ))
            return Ok(quote)

        return self._apply(op)

    def quote_investment(
        self, payment_amount: int,
    ) -> Ok[InvestmentQuote] | Err[PreconditionViolation]:
        """Pure projection of invest(): fee, net and units, pool included."""
        now = self._clock()
        match quote_investment(self._terms, payment_amount, now):
            case Err() as e:
                return e
            case Ok(quote):
                pass
        if quote.units > self.available_units():
            return precondition(
                NOT_ENOUGH_UNITS_AVAILABLE,
                f"Investment needs {quote.units} units, pool holds {self.available_units()}",
                "", now, "ledger.instrument.Instrument.quote_investment",
            )
        return Ok(quote)

    # ------------------------------------------------------------------
    # Distribution
    # ------------------------------------------------------------------

    @_non_reentrant
    def distribute(
        self, caller: str, declared_amount: int, description: str = "",
    ) -> Ok[Distribution] | Err[OperationError]:
        """Fund and record a distribution against the currently sold units."""
        now = self._clock()
        source = "ledger.instrument.Instrument.distribute"

        def op(events: list[AuditEvent]) -> Ok[Distribution] | Err[OperationError]:
            match require_capability(self._roles, caller, Capability.DISTRIBUTOR, now, source):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            if declared_amount <= 0:
                return precondition(
                    INVALID_AMOUNT, f"Declared amount must be > 0, got {declared_amount}",
                    caller, now, source,
                )
            sold = self.sold_units()
            if sold == 0:
                return precondition(
                    NO_UNITS_SOLD_YET, "No units sold yet, nobody to distribute to",
                    caller, now, source,
                )
            actual = funded_amount(declared_amount, sold, self._terms.max_supply, self._mode)
            if actual == 0:
                return precondition(
                    DISTRIBUTION_TOO_SMALL,
                    f"Declared amount {declared_amount} funds nothing at {sold} sold units",
                    caller, now, source,
                )

            distribution = self._distributions.record(
                total_amount=actual,
                declared_amount=declared_amount,
                snapshot_sold_units=sold,
                timestamp=now,
                description=description,
            )
            self._book.close_epoch()

            match self._assets.transfer_from(self._id, caller, self._id, actual):
                case Err() as e:
                    return e
                case Ok(_):
                    pass

            events.append(RevenueDistributed(
                instrument_id=self._id,
                distribution_index=distribution.index,
                total_amount=distribution.total_amount,
                declared_amount=declared_amount,
                snapshot_sold_units=sold,
                description=description,
                timestamp=now,
            ))
            return Ok(distribution)

        return self._apply(op)

    @_non_reentrant
    def claim_revenue(
        self, caller: str, distribution_index: int,
    ) -> Ok[ClaimPayout] | Err[OperationError]:
        """Pull caller's share of one distribution. At most once per pair."""
        now = self._clock()
        return self._apply(lambda events: self._pay_claim(caller, distribution_index, now, events))

    @_non_reentrant
    def settle_claim(
        self, caller: str, holder: str, distribution_index: int,
    ) -> Ok[ClaimPayout] | Err[OperationError]:
        """Distributor pays holder exactly what holder's own claim would pay."""
        now = self._clock()
        match require_capability(
            self._roles, caller, Capability.DISTRIBUTOR, now,
            "ledger.instrument.Instrument.settle_claim",
        ):
            case Err() as e:
                return e
            case Ok(_):
                pass
        return self._apply(lambda events: self._pay_claim(holder, distribution_index, now, events))

    @_non_reentrant
    def push_distribution(
        self, caller: str, distribution_index: int,
    ) -> Ok[PushReport] | Err[OperationError]:
        """Pay every entitled holder of one distribution.

        Each payout is its own atomic step: a failed payout is reported and
        rolled back without affecting the others. Holders whose share is zero
        are skipped. Cost is linear in the number of accounts that ever held units.
        """
        now = self._clock()
        match require_capability(
            self._roles, caller, Capability.DISTRIBUTOR, now,
            "ledger.instrument.Instrument.push_distribution",
        ):
            case Err() as e:
                return e
            case Ok(_):
                pass
        match self._distributions.get(distribution_index, now):
            case Err() as e:
                return e
            case Ok(distribution):
                pass

        paid: list[ClaimPayout] = []
        failed: list[PushFailure] = []
        for holder in self._claim_candidates(distribution_index):
            entitled = self._entitled_units(holder, distribution_index)
            if claim_share(distribution, entitled) == 0:
                continue
            result = self._apply(
                lambda events, h=holder: self._pay_claim(h, distribution_index, now, events),
            )
            match result:
                case Ok(payout):
                    paid.append(payout)
                case Err(error):
                    failed.append(PushFailure(
                        holder=holder, code=error.code, message=error.message,
                    ))
        return Ok(PushReport(
            distribution_index=distribution_index, paid=tuple(paid), failed=tuple(failed),
        ))

    def pending_revenue(self, account: str, distribution_index: int) -> int:
        """What claim_revenue(account, distribution_index) would pay right now, else 0."""
        match self._check_claim(account, distribution_index, self._clock()):
            case Ok((_, share)):
                return share
            case Err(_):
                return 0

    def claimants(self, distribution_index: int) -> tuple[str, ...]:
        """Accounts with a non-zero pending share of one distribution."""
        return tuple(
            a for a in self._claim_candidates(distribution_index)
            if self.pending_revenue(a, distribution_index) > 0
        )

    def has_claimed(self, account: str, distribution_index: int) -> bool:
        return self._distributions.is_claimed(account, distribution_index)

    # ------------------------------------------------------------------
    # Unit movements
    # ------------------------------------------------------------------

    @_non_reentrant
    def transfer(
        self, caller: str, to: str, units: int,
    ) -> Ok[None] | Err[OperationError]:
        """Peer-to-peer unit transfer through the transfer guard."""
        now = self._clock()
        source = "ledger.instrument.Instrument.transfer"

        def op(events: list[AuditEvent]) -> Ok[None] | Err[OperationError]:
            if self._guard.is_exempt(to):
                return precondition(
                    RESERVED_ACCOUNT, f"Cannot transfer units to reserved account {to}",
                    to, now, source,
                )
            if self._guard.is_exempt(caller):
                return precondition(
                    RESERVED_ACCOUNT, f"Reserved account {caller} cannot send units",
                    caller, now, source,
                )
            if units <= 0:
                return precondition(
                    INVALID_AMOUNT, f"Units must be > 0, got {units}", caller, now, source,
                )
            match self._guard.check(caller, to, paused=self._paused, timestamp=now):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            match self._book.move(caller, to, units, now):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            events.append(UnitsTransferred(
                instrument_id=self._id, sender=caller, recipient=to, units=units, timestamp=now,
            ))
            return Ok(None)

        return self._apply(op)

    @_non_reentrant
    def burn(self, caller: str, units: int) -> Ok[None] | Err[OperationError]:
        """Move units to the burn sink. They stay in total supply and sold units."""
        now = self._clock()

        def op(events: list[AuditEvent]) -> Ok[None] | Err[OperationError]:
            if self._guard.is_exempt(caller):
                return precondition(
                    RESERVED_ACCOUNT, f"Reserved account {caller} cannot burn units",
                    caller, now, "ledger.instrument.Instrument.burn",
                )
            if units <= 0:
                return precondition(
                    INVALID_AMOUNT, f"Units must be > 0, got {units}",
                    caller, now, "ledger.instrument.Instrument.burn",
                )
            match self._guard.check(caller, BURN_ACCOUNT, paused=self._paused, timestamp=now):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            match self._book.move(caller, BURN_ACCOUNT, units, now):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            events.append(UnitsBurned(
                instrument_id=self._id, holder=caller, units=units, timestamp=now,
            ))
            return Ok(None)

        return self._apply(op)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    @_non_reentrant
    def pause(self, caller: str) -> Ok[None] | Err[OperationError]:
        now = self._clock()

        def op(events: list[AuditEvent]) -> Ok[None] | Err[OperationError]:
            source = "ledger.instrument.Instrument.pause"
            match require_capability(self._roles, caller, Capability.ADMIN, now, source):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            if self._paused:
                return precondition(
                    INSTRUMENT_PAUSED, "Instrument is already paused", caller, now, source,
                )
            self._paused = True
            events.append(Paused(instrument_id=self._id, by=caller, timestamp=now))
            return Ok(None)

        return self._apply(op)

    @_non_reentrant
    def unpause(self, caller: str) -> Ok[None] | Err[OperationError]:
        now = self._clock()

        def op(events: list[AuditEvent]) -> Ok[None] | Err[OperationError]:
            source = "ledger.instrument.Instrument.unpause"
            match require_capability(self._roles, caller, Capability.ADMIN, now, source):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            if not self._paused:
                return precondition(
                    NOT_PAUSED, "Instrument is not paused", caller, now, source,
                )
            self._paused = False
            events.append(Unpaused(instrument_id=self._id, by=caller, timestamp=now))
            return Ok(None)

        return self._apply(op)

    @_non_reentrant
    def set_active(self, caller: str, active: bool) -> Ok[None] | Err[OperationError]:
        """Activate or deactivate investment. Existing holdings are unaffected."""
        now = self._clock()

        def op(events: list[AuditEvent]) -> Ok[None] | Err[OperationError]:
            match require_capability(
                self._roles, caller, Capability.ADMIN, now,
                "ledger.instrument.Instrument.set_active",
            ):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            self._active = active
            events.append(ActivationChanged(
                instrument_id=self._id, by=caller, active=active, timestamp=now,
            ))
            return Ok(None)

        return self._apply(op)

    @_non_reentrant
    def update_metadata(self, caller: str, metadata_uri: str) -> Ok[None] | Err[OperationError]:
        now = self._clock()

        def op(events: list[AuditEvent]) -> Ok[None] | Err[OperationError]:
            match require_capability(
                self._roles, caller, Capability.ADMIN, now,
                "ledger.instrument.Instrument.update_metadata",
            ):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            self._metadata_uri = metadata_uri
            events.append(MetadataUpdated(
                instrument_id=self._id, by=caller, metadata_uri=metadata_uri, timestamp=now,
            ))
            return Ok(None)

        return self._apply(op)

    @_non_reentrant
    def withdraw_proceeds(
        self, caller: str, to: str, amount: int,
    ) -> Ok[None] | Err[OperationError]:
        """Send net subscription proceeds out of custody.

        Revenue funded for distributions is never withdrawable: only
        raised - withdrawn is. The share of revenue owed to burned units and
        the floor-rounding dust of each distribution are reserved too, so
        they stay in custody for good. There is no sweep for them.
        """
        now = self._clock()
        source = "ledger.instrument.Instrument.withdraw_proceeds"

        def op(events: list[AuditEvent]) -> Ok[None] | Err[OperationError]:
            match require_capability(self._roles, caller, Capability.ADMIN, now, source):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            if amount <= 0:
                return precondition(
                    INVALID_AMOUNT, f"Amount must be > 0, got {amount}", caller, now, source,
                )
            available = self.withdrawable_proceeds()
            if amount > available:
                return precondition(
                    INSUFFICIENT_PROCEEDS,
                    f"Requested {amount}, only {available} of proceeds is withdrawable",
                    caller, now, source,
                )
            self._withdrawn += amount
            match self._assets.transfer(self._id, to, amount):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
            events.append(ProceedsWithdrawn(
                instrument_id=self._id, by=caller, recipient=to, amount=amount, timestamp=now,
            ))
            return Ok(None)

        return self._apply(op)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def instrument_id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def creator(self) -> str:
        return self._creator

    @property
    def terms(self) -> IssuanceTerms:
        return self._terms

    @property
    def total_value(self) -> int:
        return self._info.total_value

    @property
    def expected_periodic_income(self) -> int:
        return self._info.expected_periodic_income

    @property
    def metadata_uri(self) -> str:
        return self._metadata_uri

    @property
    def fee_recipient(self) -> str:
        return self._fee_recipient

    @property
    def distribution_mode(self) -> DistributionMode:
        return self._mode

    @property
    def claim_basis(self) -> ClaimBasis:
        return self._claim_basis

    @property
    def compliance_required(self) -> bool:
        return self._guard.compliance_required

    @property
    def created_at(self) -> UtcDatetime:
        return self._created_at

    def is_active(self) -> bool:
        return self._active

    def is_paused(self) -> bool:
        return self._paused

    def has_capability(self, account: str, capability: Capability) -> bool:
        return self._roles.has(account, capability)

    def is_accepted(self, account: str) -> bool:
        return self._gate.is_accepted(account)

    def max_supply(self) -> int:
        return self._terms.max_supply

    def available_units(self) -> int:
        """Unsold units still held by the pool."""
        return self._book.balance_of(self._id)

    def sold_units(self) -> int:
        return self._terms.max_supply - self._book.balance_of(self._id)

    def funding_percentage(self) -> Decimal:
        """sold / max_supply as a percentage, two decimal places."""
        return percentage(self.sold_units(), self._terms.max_supply)

    def balance_of(self, account: str) -> int:
        return self._book.balance_of(account)

    def total_supply(self) -> int:
        """Sum of every balance; always equals max_supply."""
        return self._book.total_supply()

    def positions(self) -> tuple[tuple[str, int], ...]:
        return self._book.positions()

    def distribution_count(self) -> int:
        return self._distributions.count()

    def distribution(self, index: int) -> Ok[Distribution] | Err[PreconditionViolation]:
        return self._distributions.get(index, self._clock())

    def distributions(self) -> tuple[Distribution, ...]:
        return self._distributions.records()

    def distribution_paid(self, index: int) -> int:
        """Amount of distribution `index` already paid out (0 if out of range)."""
        if 0 <= index < self._distributions.count():
            return self._distributions.paid(index)
        return 0

    def investor_count(self) -> int:
        return len(self._investors)

    def investors(self) -> tuple[str, ...]:
        """Distinct investors in order of first investment."""
        return tuple(self._investors)

    def invested_total(self, account: str) -> int:
        """Lifetime net amount invested by account."""
        return self._invested.get(account, 0)

    def raised_total(self) -> int:
        return self._raised

    def withdrawable_proceeds(self) -> int:
        return self._raised - self._withdrawn

    def reserved_revenue(self) -> int:
        """Distributed revenue not yet paid out to holders."""
        return self._distributions.reserved()

    def custody_balance(self) -> Ok[int] | Err[ExternalTransferError]:
        """Payment-asset balance held by the instrument on the external ledger."""
        return self._assets.balance_of(self._id)

    def events(self) -> tuple[AuditEvent, ...]:
        return tuple(self._events)

    def next_distribution_due(self) -> UtcDatetime | None:
        """Last distribution (or creation) time advanced by the income period."""
        period = self._info.income_period
        if period is None:
            return None
        latest = self._distributions.latest()
        anchor = latest.timestamp if latest is not None else self._created_at
        return next_distribution_due(anchor, period)

    def is_distribution_overdue(self, now: UtcDatetime | None = None) -> bool:
        period = self._info.income_period
        if period is None:
            return False
        latest = self._distributions.latest()
        anchor = latest.timestamp if latest is not None else self._created_at
        return is_distribution_overdue(anchor, period, now or self._clock())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _entitled_units(self, account: str, distribution_index: int) -> int:
        match self._claim_basis:
            case ClaimBasis.SNAPSHOT:
                return self._book.balance_at(account, distribution_index)
            case ClaimBasis.CURRENT_BALANCE:
                return self._book.balance_of(account)

    def _claim_candidates(self, distribution_index: int) -> tuple[str, ...]:
        return tuple(
            a for a in self._book.accounts()
            if not self._guard.is_exempt(a)
            and not self._distributions.is_claimed(a, distribution_index)
        )

    def _check_claim(
        self, holder: str, distribution_index: int, now: UtcDatetime,
    ) -> Ok[tuple[Distribution, int]] | Err[OperationError]:
        source = "ledger.instrument.Instrument.claim_revenue"
        match self._distributions.get(distribution_index, now):
            case Err() as e:
                return e
            case Ok(distribution):
                pass
        if self._guard.is_exempt(holder):
            return precondition(
                RESERVED_ACCOUNT, f"Reserved account {holder} cannot claim revenue",
                holder, now, source,
            )
        if self._distributions.is_claimed(holder, distribution_index):
            return precondition(
                ALREADY_CLAIMED,
                f"{holder} already claimed distribution {distribution_index}",
                holder, now, source,
            )
        entitled = self._entitled_units(holder, distribution_index)
        if entitled == 0:
            return precondition(
                NO_UNITS_HELD,
                f"{holder} held no units for distribution {distribution_index}",
                holder, now, source,
            )
        share = claim_share(distribution, entitled)
        if share == 0:
            return precondition(
                NOTHING_TO_CLAIM,
                f"{holder}'s share of distribution {distribution_index} rounds to 0",
                holder, now, source,
            )
        remaining = self._distributions.remaining(distribution_index)
        if share > remaining:
            return Err(InvariantViolationError(
                message=(
                    f"Paying {share} to {holder} would overdraw distribution "
                    f"{distribution_index} (remaining {remaining})"
                ),
                code=DISTRIBUTION_OVERDRAWN,
                timestamp=now,
                source=source,
                law_name="sum(payouts) <= total_amount",
                expected=f"<= {remaining}",
                actual=str(share),
            ))
        return Ok((distribution, share))

    def _pay_claim(
        self,
        holder: str,
        distribution_index: int,
        now: UtcDatetime,
        events: list[AuditEvent],
    ) -> Ok[ClaimPayout] | Err[OperationError]:
        match self._check_claim(holder, distribution_index, now):
            case Err() as e:
                return e
            case Ok((_, share)):
                pass
        # claimed flag is written before the external transfer
        self._distributions.mark_claimed(holder, distribution_index)
        self._distributions.add_paid(distribution_index, share)
        match self._assets.transfer(self._id, holder, share):
            case Err() as e:
                return e
            case Ok(_):
                pass
        events.append(RevenueClaimed(
            instrument_id=self._id, holder=holder,
            distribution_index=distribution_index, amount=share, timestamp=now,
        ))
        return Ok(ClaimPayout(holder=holder, distribution_index=distribution_index, amount=share))

    def _refund(
        self, investor: str, amount: int, cause: ExternalTransferError,
    ) -> Err[ExternalTransferError]:
        """Return an already-pulled amount after a later pull failed."""
        match self._assets.transfer(self._id, investor, amount):
            case Err(refund_error):
                return Err(cause.with_context(  # type: ignore[arg-type]
                    f"refund of {amount} to {investor} also failed ({refund_error.message})",
                ))
            case Ok(_):
                return Err(cause)

    def _apply[T](self, op: _Op[T]) -> Ok[T] | Err[OperationError]:
        checkpoint = self._checkpoint()
        pending: list[AuditEvent] = []
        try:
            result = op(pending)
        except BaseException:
            self._restore(checkpoint)
            raise
        if isinstance(result, Err):
            self._restore(checkpoint)
            return result
        self._events.extend(pending)
        return result

    def _checkpoint(self) -> _Checkpoint:
        return _Checkpoint(
            book=self._book.snapshot(),
            distributions=self._distributions.snapshot(),
            accepted=self._gate.accepted_accounts(),
            investors=tuple(self._investors),
            invested=tuple(self._invested.items()),
            raised=self._raised,
            withdrawn=self._withdrawn,
            active=self._active,
            paused=self._paused,
            metadata_uri=self._metadata_uri,
        )

    def _restore(self, cp: _Checkpoint) -> None:
        self._book.restore(cp.book)
        self._distributions.restore(cp.distributions)
        self._gate.restore(cp.accepted)
        self._investors = list(cp.investors)
        self._investor_set = set(cp.investors)
        self._invested = dict(cp.invested)
        self._raised = cp.raised
        self._withdrawn = cp.withdrawn
        self._active = cp.active
        self._paused = cp.paused
        self._metadata_uri = cp.metadata_uri
