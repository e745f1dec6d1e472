"""Tests for rightsledger.ledger.registry: creation, lookup and event publishing."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from conftest import UNIT, USD
from rightsledger.core.errors import INDEX_OUT_OF_BOUNDS, UNKNOWN_INSTRUMENT
from rightsledger.core.result import Err, Ok, unwrap
from rightsledger.core.types import UtcDatetime
from rightsledger.infra.config import (
    TOPIC_INSTRUMENT_EVENTS,
    TOPIC_REGISTRY_EVENTS,
    LedgerConfig,
)
from rightsledger.infra.memory_adapter import InMemoryAssetLedger, InMemoryEventBus
from rightsledger.infra.publisher import AuditPublisher
from rightsledger.instrument.access import Capability
from rightsledger.instrument.events import InstrumentCreated
from rightsledger.instrument.types import ClaimBasis, DistributionMode, InstrumentInfo
from rightsledger.ledger.registry import REGISTRY_SOURCE_ID, InstrumentRegistry

_TS = UtcDatetime(value=datetime(2025, 6, 15, 10, 0, 0, tzinfo=UTC))
_INFO = InstrumentInfo(total_value=100_000 * USD, unit_price=100 * USD)


def _registry(config: LedgerConfig | None = None) -> InstrumentRegistry:
    return InstrumentRegistry(InMemoryAssetLedger(), config, clock=lambda: _TS)


def _code(result: Ok | Err) -> str:
    match result:
        case Err(e):
            return e.code
        case Ok(v):
            pytest.fail(f"expected Err, got Ok({v!r})")


class TestCreate:
    def test_terms_from_unit_price(self) -> None:
        registry = _registry()
        inst = unwrap(registry.get(unwrap(registry.create_instrument("issuer", "Farm", "FRM", _INFO))))
        assert inst.terms.unit_price == 100 * USD
        assert inst.max_supply() == 1_000 * UNIT
        assert inst.available_units() == 1_000 * UNIT
        assert inst.creator == "issuer"
        assert inst.created_at == _TS

    def test_ids_are_unique_and_deterministic(self) -> None:
        first, second = _registry(), _registry()
        ids_a = [unwrap(first.create_instrument("issuer", "Farm", "FRM", _INFO)) for _ in range(3)]
        ids_b = [unwrap(second.create_instrument("issuer", "Farm", "FRM", _INFO)) for _ in range(3)]
        assert len(set(ids_a)) == 3
        assert ids_a == ids_b
        assert all(i.startswith("RL-") for i in ids_a)

    def test_empty_name_rejected(self) -> None:
        registry = _registry()
        assert _code(registry.create_instrument("issuer", "", "FRM", _INFO)) == "CREATE_VALIDATION"
        assert registry.count() == 0
        assert registry.events() == ()

    def test_invalid_terms_rejected(self) -> None:
        bad = InstrumentInfo(total_value=100 * USD, unit_price=100 * USD, max_supply_units=5)
        assert _code(_registry().create_instrument("issuer", "Farm", "FRM", bad)) == "TERMS_VALIDATION"

    def test_config_defaults_apply(self) -> None:
        registry = _registry(LedgerConfig(platform_fee_percent=5, compliance_required=False))
        inst = unwrap(registry.get(unwrap(registry.create_instrument("issuer", "Farm", "FRM", _INFO))))
        assert inst.terms.fee_percent == 5
        assert not inst.compliance_required
        assert inst.distribution_mode == DistributionMode.PRO_RATED
        assert inst.claim_basis == ClaimBasis.SNAPSHOT
        assert inst.fee_recipient == "platform-treasury"

    def test_info_overrides_config(self) -> None:
        info = InstrumentInfo(
            total_value=100_000 * USD, unit_price=100 * USD, fee_percent=0,
            compliance_required=False,
            distribution_mode=DistributionMode.FULL_DECLARED,
            claim_basis=ClaimBasis.CURRENT_BALANCE,
        )
        registry = _registry()
        inst = unwrap(registry.get(unwrap(registry.create_instrument("issuer", "Farm", "FRM", info))))
        assert inst.terms.fee_percent == 0
        assert not inst.compliance_required
        assert inst.distribution_mode == DistributionMode.FULL_DECLARED
        assert inst.claim_basis == ClaimBasis.CURRENT_BALANCE

    def test_roles(self) -> None:
        info = InstrumentInfo(total_value=100_000 * USD, unit_price=100 * USD, distributors=("payer",))
        registry = _registry()
        inst = unwrap(registry.get(unwrap(registry.create_instrument("issuer", "Farm", "FRM", info))))
        assert all(inst.has_capability("issuer", c) for c in Capability)
        assert inst.has_capability("payer", Capability.DISTRIBUTOR)
        assert not inst.has_capability("payer", Capability.ADMIN)

    def test_created_event(self) -> None:
        registry = _registry()
        iid = unwrap(registry.create_instrument("issuer", "Farm", "FRM", _INFO))
        assert registry.events() == (InstrumentCreated(
            instrument_id=iid, creator="issuer", name="Farm", symbol="FRM",
            unit_price=100 * USD, max_supply=1_000 * UNIT, timestamp=_TS,
        ),)


class TestLookup:
    def test_get_unknown(self) -> None:
        assert _code(_registry().get("RL-nope")) == UNKNOWN_INSTRUMENT

    def test_get_at(self) -> None:
        registry = _registry()
        iid = unwrap(registry.create_instrument("issuer", "Farm", "FRM", _INFO))
        assert unwrap(registry.get_at(0)).instrument_id == iid
        assert _code(registry.get_at(1)) == INDEX_OUT_OF_BOUNDS
        assert _code(registry.get_at(-1)) == INDEX_OUT_OF_BOUNDS
        assert registry.is_valid(iid)
        assert not registry.is_valid("RL-nope")

    def test_instruments_of(self) -> None:
        registry = _registry()
        a = unwrap(registry.create_instrument("issuer", "Farm", "FRM", _INFO))
        unwrap(registry.create_instrument("other", "Mine", "MNE", _INFO))
        c = unwrap(registry.create_instrument("issuer", "Park", "PRK", _INFO))
        assert registry.instruments_of("issuer") == (a, c)
        assert registry.instruments_of("nobody") == ()
        assert registry.count() == 3
        assert [i.instrument_id for i in registry.instruments()][0] == a


class TestPublish:
    def test_publishes_registry_then_instrument_events(self) -> None:
        registry = _registry(LedgerConfig(compliance_required=False))
        iid = unwrap(registry.create_instrument("issuer", "Farm", "FRM", _INFO))
        unwrap(unwrap(registry.get(iid)).accept_terms("alice"))
        bus = InMemoryEventBus()
        assert unwrap(registry.publish_events(AuditPublisher(bus))) == 2
        assert [k for k, _ in bus.get_messages(TOPIC_REGISTRY_EVENTS)] == [REGISTRY_SOURCE_ID]
        assert [k for k, _ in bus.get_messages(TOPIC_INSTRUMENT_EVENTS)] == [iid]

    def test_resume_after_outage_without_duplicates(self) -> None:
        registry = _registry()
        unwrap(registry.create_instrument("issuer", "Farm", "FRM", _INFO))
        bus = InMemoryEventBus()
        publisher = AuditPublisher(bus)
        bus.set_unavailable(True)
        assert isinstance(registry.publish_events(publisher), Err)
        bus.set_unavailable(False)
        assert unwrap(registry.publish_events(publisher)) == 1
        unwrap(registry.create_instrument("issuer", "Park", "PRK", _INFO))
        assert unwrap(registry.publish_events(publisher)) == 1
        assert unwrap(registry.publish_events(publisher)) == 0
        assert len(bus.get_messages(TOPIC_REGISTRY_EVENTS)) == 2
