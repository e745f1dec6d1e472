"""Hypothesis profiles and shared strategies for rightsledger.

Strategies are composable: ledger-level operation sequences are built from
the account and amount strategies below.
"""

from __future__ import annotations

from datetime import UTC, datetime

from hypothesis import HealthCheck, settings
from hypothesis import strategies as st
from hypothesis.strategies import SearchStrategy

from rightsledger.core.types import Period, UtcDatetime

# ---------------------------------------------------------------------------
# Hypothesis global settings
# ---------------------------------------------------------------------------

settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.register_profile(
    "dev",
    max_examples=50,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.load_profile("dev")


# ===================================================================
# PRIMITIVE STRATEGIES
# ===================================================================

USD = 10 ** 6  # payment minor units per dollar
UNIT = 10 ** 18  # base units per whole unit

INVESTORS: tuple[str, ...] = ("alice", "bob", "carol", "dave")


def utc_datetimes() -> SearchStrategy[UtcDatetime]:
    return st.datetimes(
        min_value=datetime(2000, 1, 1),
        max_value=datetime(2100, 1, 1),
        timezones=st.just(UTC),
    ).map(lambda dt: UtcDatetime(value=dt))


def periods() -> SearchStrategy[Period]:
    return st.builds(
        Period,
        multiplier=st.integers(min_value=1, max_value=24),
        unit=st.sampled_from(["D", "W", "M", "Y"]),
    )


def investors() -> SearchStrategy[str]:
    return st.sampled_from(INVESTORS)


def payments(max_dollars: int = 5_000) -> SearchStrategy[int]:
    """Gross payments in minor units, from 1 minor unit up to max_dollars."""
    return st.integers(min_value=1, max_value=max_dollars * USD)


def fee_percents() -> SearchStrategy[int]:
    return st.integers(min_value=0, max_value=20)


# ===================================================================
# LEDGER OPERATION STRATEGIES
# ===================================================================

type LedgerOp = tuple[str, str, str, int]  # (kind, actor, counterparty, amount)


def ledger_ops() -> SearchStrategy[LedgerOp]:
    """One random instrument operation. Amounts may be invalid on purpose."""
    return st.one_of(
        st.tuples(st.just("invest"), investors(), st.just(""), payments()),
        st.tuples(
            st.just("distribute"), st.just("issuer"), st.just(""),
            st.integers(min_value=1, max_value=2_000_000 * USD),
        ),
        st.tuples(
            st.just("claim"), investors(), st.just(""), st.integers(min_value=0, max_value=5),
        ),
        st.tuples(
            st.just("transfer"), investors(), investors(),
            st.integers(min_value=1, max_value=20 * UNIT),
        ),
        st.tuples(st.just("burn"), investors(), st.just(""), st.integers(min_value=1, max_value=5 * UNIT)),
        st.tuples(
            st.just("push"), st.just("issuer"), st.just(""), st.integers(min_value=0, max_value=5),
        ),
    )
