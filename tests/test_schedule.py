"""Tests for rightsledger.instrument.schedule and instrument distribution cadence."""

from __future__ import annotations

from datetime import UTC, datetime

from hypothesis import given

from conftest import USD, periods, utc_datetimes
from rightsledger.core.result import unwrap
from rightsledger.core.types import Period, UtcDatetime
from rightsledger.infra.config import LedgerConfig
from rightsledger.infra.memory_adapter import InMemoryAssetLedger
from rightsledger.instrument.schedule import (
    add_period,
    distribution_schedule,
    is_distribution_overdue,
    next_distribution_due,
)
from rightsledger.instrument.types import InstrumentInfo
from rightsledger.ledger.registry import InstrumentRegistry


def _utc(y: int, m: int, d: int) -> UtcDatetime:
    return UtcDatetime(value=datetime(y, m, d, tzinfo=UTC))


_MONTHLY = Period(multiplier=1, unit="M")


class TestAddPeriod:
    def test_month_end_clamps(self) -> None:
        assert add_period(datetime(2025, 1, 31, tzinfo=UTC), _MONTHLY) == datetime(2025, 2, 28, tzinfo=UTC)

    def test_leap_year(self) -> None:
        assert add_period(datetime(2024, 1, 31, tzinfo=UTC), _MONTHLY) == datetime(2024, 2, 29, tzinfo=UTC)

    def test_weeks_and_years(self) -> None:
        start = datetime(2025, 3, 1, tzinfo=UTC)
        assert add_period(start, Period(multiplier=2, unit="W")) == datetime(2025, 3, 15, tzinfo=UTC)
        assert add_period(start, Period(multiplier=1, unit="Y")) == datetime(2026, 3, 1, tzinfo=UTC)
        assert add_period(start, Period(multiplier=10, unit="D"), times=3) == datetime(2025, 3, 31, tzinfo=UTC)

    @given(utc_datetimes(), periods())
    def test_always_advances(self, start: UtcDatetime, period: Period) -> None:
        assert next_distribution_due(start, period).value > start.value


class TestSchedule:
    def test_not_chained_from_month_end(self) -> None:
        dates = distribution_schedule(_utc(2025, 1, 31), _MONTHLY, 3)
        assert dates == (_utc(2025, 2, 28), _utc(2025, 3, 31), _utc(2025, 4, 30))

    def test_empty(self) -> None:
        assert distribution_schedule(_utc(2025, 1, 31), _MONTHLY, 0) == ()

    @given(utc_datetimes(), periods())
    def test_strictly_increasing(self, start: UtcDatetime, period: Period) -> None:
        dates = distribution_schedule(start, period, 4)
        assert all(a.value < b.value for a, b in zip(dates, dates[1:]))

    def test_overdue(self) -> None:
        anchor = _utc(2025, 1, 15)
        assert not is_distribution_overdue(anchor, _MONTHLY, _utc(2025, 2, 15))
        assert is_distribution_overdue(anchor, _MONTHLY, _utc(2025, 2, 16))


class TestInstrumentCadence:
    def test_due_moves_with_each_distribution(self) -> None:
        now = [_utc(2025, 1, 31)]
        assets = InMemoryAssetLedger()
        registry = InstrumentRegistry(
            assets, LedgerConfig(compliance_required=False), clock=lambda: now[0],
        )
        iid = unwrap(registry.create_instrument(
            "issuer", "Farm", "FRM",
            InstrumentInfo(
                total_value=100_000 * USD, unit_price=100 * USD, income_period=_MONTHLY,
            ),
        ))
        inst = unwrap(registry.get(iid))
        assert inst.next_distribution_due() == _utc(2025, 2, 28)
        assert not inst.is_distribution_overdue()

        assets.mint("alice", 1_020 * USD)
        assets.approve("alice", iid, 1_020 * USD)
        unwrap(inst.invest("alice", 1_020 * USD))
        assets.mint("issuer", 1_000 * USD)
        assets.approve("issuer", iid, 1_000 * USD)

        now[0] = _utc(2025, 3, 10)
        assert inst.is_distribution_overdue()
        unwrap(inst.distribute("issuer", 1_000 * USD))
        assert inst.next_distribution_due() == _utc(2025, 4, 10)
        assert not inst.is_distribution_overdue()

    def test_no_period_never_overdue(self) -> None:
        registry = InstrumentRegistry(InMemoryAssetLedger())
        iid = unwrap(registry.create_instrument(
            "issuer", "Farm", "FRM", InstrumentInfo(total_value=100_000 * USD, unit_price=100 * USD),
        ))
        inst = unwrap(registry.get(iid))
        assert inst.next_distribution_due() is None
        assert not inst.is_distribution_overdue(_utc(2100, 1, 1))
