"""Issuance pricing: terms derivation, fee, and unit conversion.

Fee convention is gross-up: the amount an investor sends already includes
the platform fee.

    fee   = payment * fee_percent // (100 + fee_percent)
    net   = payment - fee
    units = net * one_unit // unit_price

Every division floors, so rounding favors the pool. net (and therefore
units) is non-decreasing in payment: one more minor unit of payment raises
the fee by at most one minor unit.
"""

from __future__ import annotations

from rightsledger.core._validation import precondition, require_positive, val_err
from rightsledger.core.amounts import mul_div
from rightsledger.core.errors import (
    BELOW_MINIMUM_INVESTMENT,
    INVALID_AMOUNT,
    INVESTMENT_TOO_SMALL,
    FieldViolation,
    PreconditionViolation,
    ValidationError,
)
from rightsledger.core.result import Err, Ok
from rightsledger.core.types import UtcDatetime
from rightsledger.instrument.types import InstrumentInfo, InvestmentQuote, IssuanceTerms

_SOURCE_TERMS = "ledger.issuance.derive_terms"
_SOURCE_QUOTE = "ledger.issuance.quote_investment"


def derive_terms(
    info: InstrumentInfo,
    *,
    payment_decimals: int,
    unit_decimals: int,
    default_fee_percent: int,
    timestamp: UtcDatetime,
) -> Ok[IssuanceTerms] | Err[ValidationError]:
    """Fix unit price and max supply from creation info.

    With unit_price given:       max_supply = total_value * one_unit // unit_price
    With max_supply_units given: unit_price = total_value // max_supply_units
    """
    violations: list[FieldViolation] = []
    require_positive(violations, "info.total_value", info.total_value)
    require_positive(violations, "info.unit_price", info.unit_price)
    require_positive(violations, "info.max_supply_units", info.max_supply_units)
    require_positive(violations, "info.min_investment", info.min_investment)
    if info.expected_periodic_income < 0:
        violations.append(FieldViolation(
            path="info.expected_periodic_income", constraint="must be >= 0",
            actual_value=str(info.expected_periodic_income),
        ))
    fee_percent = default_fee_percent if info.fee_percent is None else info.fee_percent
    if fee_percent < 0:
        violations.append(FieldViolation(
            path="info.fee_percent", constraint="must be >= 0", actual_value=str(fee_percent),
        ))
    if (info.unit_price is None) == (info.max_supply_units is None):
        violations.append(FieldViolation(
            path="info.unit_price|info.max_supply_units",
            constraint="exactly one must be given",
            actual_value=f"{info.unit_price}|{info.max_supply_units}",
        ))
    if violations:
        return val_err(
            "Instrument terms validation failed", "TERMS_VALIDATION",
            timestamp, _SOURCE_TERMS, tuple(violations),
        )

    one_unit = 10 ** unit_decimals
    if info.unit_price is not None:
        unit_price = info.unit_price
        max_supply = info.total_value * one_unit // unit_price
        bad = FieldViolation(
            path="info.unit_price", constraint="must not exceed total_value",
            actual_value=str(unit_price),
        )
    else:
        assert info.max_supply_units is not None
        max_supply = info.max_supply_units * one_unit
        unit_price = info.total_value // info.max_supply_units
        bad = FieldViolation(
            path="info.max_supply_units", constraint="must not exceed total_value",
            actual_value=str(info.max_supply_units),
        )
    if max_supply <= 0 or unit_price <= 0:
        return val_err(
            "Instrument terms leave no units to issue", "TERMS_VALIDATION",
            timestamp, _SOURCE_TERMS, (bad,),
        )
    return Ok(IssuanceTerms(
        unit_price=unit_price,
        max_supply=max_supply,
        payment_decimals=payment_decimals,
        unit_decimals=unit_decimals,
        fee_percent=fee_percent,
        min_investment=info.min_investment or unit_price,
    ))


def compute_fee(payment_amount: int, fee_percent: int) -> int:
    """Gross-up platform fee: the part of payment_amount that is fee (floored)."""
    return mul_div(payment_amount, fee_percent, 100 + fee_percent)


def units_for(net_amount: int, terms: IssuanceTerms) -> int:
    """Base units bought with net_amount at the fixed unit price (floored)."""
    return mul_div(net_amount, terms.one_unit, terms.unit_price)


def quote_investment(
    terms: IssuanceTerms, payment_amount: int, timestamp: UtcDatetime, subject: str = "",
) -> Ok[InvestmentQuote] | Err[PreconditionViolation]:
    """Price a gross payment without touching any state.

    Pool availability is not checked here; only the instrument knows its pool.
    """
    if payment_amount <= 0:
        return precondition(
            INVALID_AMOUNT, f"Payment must be > 0, got {payment_amount}",
            subject, timestamp, _SOURCE_QUOTE,
        )
    if payment_amount < terms.min_investment:
        return precondition(
            BELOW_MINIMUM_INVESTMENT,
            f"Payment {payment_amount} is below the minimum investment {terms.min_investment}",
            subject, timestamp, _SOURCE_QUOTE,
        )
    fee = compute_fee(payment_amount, terms.fee_percent)
    net = payment_amount - fee
    units = units_for(net, terms)
    if units == 0:
        return precondition(
            INVESTMENT_TOO_SMALL,
            f"Net amount {net} buys no units at price {terms.unit_price}",
            subject, timestamp, _SOURCE_QUOTE,
        )
    return Ok(InvestmentQuote(payment_amount=payment_amount, fee=fee, net_amount=net, units=units))
