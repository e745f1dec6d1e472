"""InstrumentRegistry: creates, indexes and enumerates instruments.

The registry owns the ledger-wide defaults (LedgerConfig), the payment-asset
port shared by every instrument, and an append-only log of InstrumentCreated
events. Instrument ids are deterministic: derived from creator, creation
sequence number and symbol.

InstrumentRegistry is @final but NOT a dataclass: it holds mutable internal state.
"""

from __future__ import annotations

from typing import final

from rightsledger.core._validation import precondition, val_err
from rightsledger.core.amounts import NonEmptyStr
from rightsledger.core.errors import (
    INDEX_OUT_OF_BOUNDS,
    UNKNOWN_INSTRUMENT,
    FieldViolation,
    PersistenceError,
    PreconditionViolation,
    ValidationError,
)
from rightsledger.core.result import Err, Ok
from rightsledger.core.serialization import derive_id
from rightsledger.core.types import Clock, UtcDatetime
from rightsledger.infra.config import (
    TOPIC_INSTRUMENT_EVENTS,
    TOPIC_REGISTRY_EVENTS,
    LedgerConfig,
)
from rightsledger.infra.protocols import AssetLedgerPort
from rightsledger.infra.publisher import AuditPublisher
from rightsledger.instrument.access import RoleTable
from rightsledger.instrument.events import InstrumentCreated
from rightsledger.instrument.types import InstrumentInfo
from rightsledger.ledger.instrument import Instrument
from rightsledger.ledger.issuance import derive_terms

REGISTRY_SOURCE_ID = "registry"
_ID_PREFIX = "RL-"


@final
class InstrumentRegistry:
    """Factory and index of every instrument on one payment-asset ledger."""

    def __init__(
        self,
        asset_ledger: AssetLedgerPort,
        config: LedgerConfig | None = None,
        clock: Clock = UtcDatetime.now,
    ) -> None:
        self._assets = asset_ledger
        self._config = config or LedgerConfig()
        self._clock = clock
        self._instruments: list[Instrument] = []
        self._by_id: dict[str, Instrument] = {}
        self._by_creator: dict[str, list[str]] = {}
        self._events: list[InstrumentCreated] = []

    @property
    def config(self) -> LedgerConfig:
        return self._config

    def create_instrument(
        self, caller: str, name: str, symbol: str, info: InstrumentInfo,
    ) -> Ok[str] | Err[ValidationError]:
        """Validate info, fix issuance terms and register a new instrument.

        The creator receives every capability; info.distributors receive
        DISTRIBUTOR. The entire supply starts in the instrument's pool.
        """
        now = self._clock()
        source = "ledger.registry.InstrumentRegistry.create_instrument"

        violations: list[FieldViolation] = []
        for path, raw in (("caller", caller), ("name", name), ("symbol", symbol)):
            if isinstance(NonEmptyStr.parse(raw), Err):
                violations.append(FieldViolation(
                    path=path, constraint="must be non-empty", actual_value=repr(raw),
                ))
        if violations:
            return val_err("Instrument creation validation failed", "CREATE_VALIDATION",
                           now, source, tuple(violations))

        cfg = self._config
        match derive_terms(
            info,
            payment_decimals=cfg.payment_decimals,
            unit_decimals=cfg.unit_decimals,
            default_fee_percent=cfg.platform_fee_percent,
            timestamp=now,
        ):
            case Err() as e:
                return e
            case Ok(terms):
                pass

        instrument_id = derive_id(_ID_PREFIX, caller, str(len(self._instruments)), symbol)
        instrument = Instrument(
            instrument_id=instrument_id,
            name=name,
            symbol=symbol,
            creator=caller,
            info=info,
            terms=terms,
            roles=RoleTable.for_creator(caller, info.distributors),
            asset_ledger=self._assets,
            fee_recipient=cfg.fee_recipient,
            compliance_required=(
                cfg.compliance_required if info.compliance_required is None
                else info.compliance_required
            ),
            distribution_mode=info.distribution_mode or cfg.distribution_mode,
            claim_basis=info.claim_basis or cfg.claim_basis,
            clock=self._clock,
        )
        self._instruments.append(instrument)
        self._by_id[instrument_id] = instrument
        self._by_creator.setdefault(caller, []).append(instrument_id)
        self._events.append(InstrumentCreated(
            instrument_id=instrument_id,
            creator=caller,
            name=name,
            symbol=symbol,
            unit_price=terms.unit_price,
            max_supply=terms.max_supply,
            timestamp=now,
        ))
        return Ok(instrument_id)

    def get(self, instrument_id: str) -> Ok[Instrument] | Err[PreconditionViolation]:
        instrument = self._by_id.get(instrument_id)
        if instrument is None:
            return precondition(
                UNKNOWN_INSTRUMENT, f"Unknown instrument: {instrument_id}",
                instrument_id, self._clock(), "ledger.registry.InstrumentRegistry.get",
            )
        return Ok(instrument)

    def get_at(self, index: int) -> Ok[Instrument] | Err[PreconditionViolation]:
        """Instrument by creation order."""
        if 0 <= index < len(self._instruments):
            return Ok(self._instruments[index])
        return precondition(
            INDEX_OUT_OF_BOUNDS,
            f"Instrument index {index} out of range (count={len(self._instruments)})",
            str(index), self._clock(), "ledger.registry.InstrumentRegistry.get_at",
        )

    def is_valid(self, instrument_id: str) -> bool:
        return instrument_id in self._by_id

    def count(self) -> int:
        return len(self._instruments)

    def instruments(self) -> tuple[Instrument, ...]:
        return tuple(self._instruments)

    def instruments_of(self, creator: str) -> tuple[str, ...]:
        """Ids of the instruments created by creator, in creation order."""
        return tuple(self._by_creator.get(creator, ()))

    def events(self) -> tuple[InstrumentCreated, ...]:
        return tuple(self._events)

    def publish_events(self, publisher: AuditPublisher) -> Ok[int] | Err[PersistenceError]:
        """Flush unpublished registry and instrument events through publisher.

        Registry events go first, then each instrument's log in creation order.
        Stops at the first bus failure; a later call resumes where it stopped.
        """
        total = 0
        match publisher.publish_pending(TOPIC_REGISTRY_EVENTS, REGISTRY_SOURCE_ID, self._events):
            case Err() as e:
                return e
            case Ok(n):
                total += n
        for instrument in self._instruments:
            match publisher.publish_pending(
                TOPIC_INSTRUMENT_EVENTS, instrument.instrument_id, instrument.events(),
            ):
                case Err() as e:
                    return e
                case Ok(n):
                    total += n
        return Ok(total)
