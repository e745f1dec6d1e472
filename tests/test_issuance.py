"""Tests for rightsledger.ledger.issuance: terms derivation, fees and unit pricing."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from hypothesis import given
from hypothesis import strategies as st

from conftest import UNIT, USD, fee_percents, payments
from rightsledger.core.errors import (
    BELOW_MINIMUM_INVESTMENT,
    INVALID_AMOUNT,
    INVESTMENT_TOO_SMALL,
)
from rightsledger.core.result import Err, Ok, unwrap
from rightsledger.core.types import UtcDatetime
from rightsledger.instrument.types import InstrumentInfo, IssuanceTerms
from rightsledger.ledger.issuance import (
    compute_fee,
    derive_terms,
    quote_investment,
    units_for,
)

_TS = UtcDatetime(value=datetime(2025, 6, 15, 10, 0, 0, tzinfo=UTC))


def _terms(
    unit_price: int = 50 * USD, max_units: int = 2000, fee_percent: int = 2,
    min_investment: int = 1,
) -> IssuanceTerms:
    return IssuanceTerms(
        unit_price=unit_price,
        max_supply=max_units * UNIT,
        payment_decimals=6,
        unit_decimals=18,
        fee_percent=fee_percent,
        min_investment=min_investment,
    )


def _derive(info: InstrumentInfo) -> Ok[IssuanceTerms] | Err:
    return derive_terms(
        info, payment_decimals=6, unit_decimals=18, default_fee_percent=2, timestamp=_TS,
    )


# ---------------------------------------------------------------------------
# Terms derivation
# ---------------------------------------------------------------------------


class TestDeriveTerms:
    def test_from_max_supply(self) -> None:
        terms = unwrap(_derive(InstrumentInfo(total_value=100_000 * USD, max_supply_units=2000)))
        assert terms.unit_price == 50 * USD
        assert terms.max_supply == 2000 * UNIT
        assert terms.fee_percent == 2
        assert terms.min_investment == terms.unit_price

    def test_from_unit_price(self) -> None:
        terms = unwrap(_derive(InstrumentInfo(total_value=100_000 * USD, unit_price=50 * USD)))
        assert terms.max_supply == 2000 * UNIT

    def test_fractional_supply_from_unit_price(self) -> None:
        terms = unwrap(_derive(InstrumentInfo(total_value=100 * USD, unit_price=30 * USD)))
        assert terms.max_supply == 100 * UNIT // 30

    def test_explicit_fee_and_minimum(self) -> None:
        terms = unwrap(_derive(InstrumentInfo(
            total_value=1_000 * USD, max_supply_units=10, fee_percent=0, min_investment=5 * USD,
        )))
        assert terms.fee_percent == 0
        assert terms.min_investment == 5 * USD

    @pytest.mark.parametrize("info", [
        InstrumentInfo(total_value=1_000 * USD),
        InstrumentInfo(total_value=1_000 * USD, unit_price=1, max_supply_units=1),
        InstrumentInfo(total_value=0, max_supply_units=10),
        InstrumentInfo(total_value=1_000 * USD, max_supply_units=0),
        InstrumentInfo(total_value=1_000 * USD, unit_price=-5),
        InstrumentInfo(total_value=1_000 * USD, max_supply_units=10, fee_percent=-1),
        InstrumentInfo(total_value=1_000 * USD, max_supply_units=10, expected_periodic_income=-1),
        InstrumentInfo(total_value=10, max_supply_units=1_000),
    ])
    def test_rejected(self, info: InstrumentInfo) -> None:
        match _derive(info):
            case Err(e):
                assert e.code == "TERMS_VALIDATION"
                assert e.fields
            case Ok(_):
                pytest.fail(f"{info} must be rejected")


# ---------------------------------------------------------------------------
# Fee and units
# ---------------------------------------------------------------------------


class TestFee:
    def test_scenario_gross_102(self) -> None:
        """$102 at 2% gross-up: $2 fee, $100 net, 2 units at $50."""
        quote = unwrap(quote_investment(_terms(), 102 * USD, _TS))
        assert quote.fee == 2 * USD
        assert quote.net_amount == 100 * USD
        assert quote.units == 2 * UNIT

    def test_zero_fee(self) -> None:
        assert compute_fee(1_000, 0) == 0

    @given(payments(), fee_percents())
    def test_fee_bounds(self, payment: int, fee_percent: int) -> None:
        fee = compute_fee(payment, fee_percent)
        assert 0 <= fee <= payment
        assert fee * (100 + fee_percent) <= payment * fee_percent

    @given(payments(), fee_percents())
    def test_net_monotonic(self, payment: int, fee_percent: int) -> None:
        net = payment - compute_fee(payment, fee_percent)
        net_next = payment + 1 - compute_fee(payment + 1, fee_percent)
        assert net_next >= net

    @given(payments())
    def test_units_monotonic(self, payment: int) -> None:
        terms = _terms()
        a = units_for(payment, terms)
        b = units_for(payment + 1, terms)
        assert b >= a

    @given(st.integers(min_value=0, max_value=10_000 * USD))
    def test_units_never_overpay(self, net: int) -> None:
        terms = _terms()
        assert units_for(net, terms) * terms.unit_price // terms.one_unit <= net


class TestQuote:
    def test_invalid_amount(self) -> None:
        match quote_investment(_terms(), 0, _TS):
            case Err(e):
                assert e.code == INVALID_AMOUNT
            case Ok(_):
                pytest.fail("zero payment")

    def test_below_minimum(self) -> None:
        match quote_investment(_terms(min_investment=10 * USD), 9 * USD, _TS, "alice"):
            case Err(e):
                assert e.code == BELOW_MINIMUM_INVESTMENT
                assert e.subject == "alice"
            case Ok(_):
                pytest.fail("below minimum")

    def test_too_small(self) -> None:
        terms = _terms(unit_price=10**30, max_units=1)
        match quote_investment(terms, 1, _TS):
            case Err(e):
                assert e.code == INVESTMENT_TOO_SMALL
            case Ok(_):
                pytest.fail("buys no units")
