"""Unit book for one instrument, with conservation law enforcement.

Core invariant: sum of all balances == max_supply, before and after
every move(). The whole supply starts in the pool account; nothing is
minted after construction and nothing is destroyed (burned units sit in
the burn sink).

Balance checkpoints: each distribution closes an epoch. The first time an
account's balance changes in a new epoch, its old balance is written as a
checkpoint, so balance_at(account, d) can answer "what did this account
hold when distribution d was recorded" in O(log n).

UnitBook is @final but NOT a dataclass: it holds mutable internal state.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import final

from rightsledger.core._validation import precondition
from rightsledger.core.errors import (
    CONSERVATION_VIOLATION,
    INSUFFICIENT_BALANCE,
    INVALID_AMOUNT,
    InvariantViolationError,
    PreconditionViolation,
)
from rightsledger.core.result import Err, Ok
from rightsledger.core.types import UtcDatetime

_SOURCE = "ledger.book.UnitBook.move"


@final
@dataclass(frozen=True, slots=True)
class BookState:
    """Captured book state for rolling back a failed operation."""

    balances: tuple[tuple[str, int], ...]
    checkpoints: tuple[tuple[str, tuple[tuple[int, int], ...]], ...]
    epoch: int


@final
class UnitBook:
    """Holder balances of a single fixed-supply instrument."""

    def __init__(self, pool_account: str, max_supply: int) -> None:
        if max_supply <= 0:
            raise TypeError(f"UnitBook requires max_supply > 0, got {max_supply}")
        self._pool = pool_account
        self._max_supply = max_supply
        self._balances: dict[str, int] = {pool_account: max_supply}
        self._checkpoints: dict[str, list[tuple[int, int]]] = {}
        self._epoch = 0

    @property
    def pool_account(self) -> str:
        return self._pool

    @property
    def max_supply(self) -> int:
        return self._max_supply

    @property
    def epoch(self) -> int:
        """Number of closed epochs (== number of recorded distributions)."""
        return self._epoch

    def move(
        self, source: str, destination: str, quantity: int, timestamp: UtcDatetime,
    ) -> Ok[None] | Err[PreconditionViolation | InvariantViolationError]:
        """Move quantity from source to destination, or change nothing."""
        if quantity <= 0:
            return precondition(
                INVALID_AMOUNT, f"Unit quantity must be > 0, got {quantity}",
                source, timestamp, _SOURCE,
            )
        available = self._balances.get(source, 0)
        if available < quantity:
            return precondition(
                INSUFFICIENT_BALANCE,
                f"{source} holds {available} units, cannot move {quantity}",
                source, timestamp, _SOURCE,
            )

        pre_sigma = self.total_supply()
        old = {source: available, destination: self._balances.get(destination, 0)}
        self._write_checkpoint(source)
        self._write_checkpoint(destination)
        self._balances[source] = available - quantity
        self._balances[destination] = self._balances.get(destination, 0) + quantity

        post_sigma = self.total_supply()
        if pre_sigma != post_sigma or post_sigma != self._max_supply:
            for account, balance in old.items():
                self._balances[account] = balance
            return Err(InvariantViolationError(
                message="Unit conservation violated",
                code=CONSERVATION_VIOLATION,
                timestamp=timestamp,
                source=_SOURCE,
                law_name="sum(balances) == max_supply",
                expected=str(self._max_supply),
                actual=str(post_sigma),
            ))
        return Ok(None)

    def close_epoch(self) -> int:
        """Freeze current balances as the snapshot of the distribution being recorded.

        Returns the index of the epoch just closed.
        """
        closed = self._epoch
        self._epoch += 1
        return closed

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def balance_at(self, account: str, epoch_index: int) -> int:
        """Balance held when epoch epoch_index was closed."""
        if epoch_index >= self._epoch:
            return self.balance_of(account)
        checkpoints = self._checkpoints.get(account)
        if not checkpoints:
            return self.balance_of(account)
        i = bisect_right(checkpoints, epoch_index, key=lambda cp: cp[0])
        if i < len(checkpoints):
            return checkpoints[i][1]
        return self.balance_of(account)

    def total_supply(self) -> int:
        """Sum of every balance, pool included."""
        return sum(self._balances.values())

    def accounts(self) -> tuple[str, ...]:
        """Every account that has ever held units, pool excluded, in first-seen order."""
        return tuple(a for a in self._balances if a != self._pool)

    def positions(self) -> tuple[tuple[str, int], ...]:
        """All non-zero (account, balance) pairs, sorted by account."""
        return tuple(sorted((a, q) for a, q in self._balances.items() if q != 0))

    def snapshot(self) -> BookState:
        return BookState(
            balances=tuple(self._balances.items()),
            checkpoints=tuple((a, tuple(cps)) for a, cps in self._checkpoints.items()),
            epoch=self._epoch,
        )

    def restore(self, state: BookState) -> None:
        self._balances = dict(state.balances)
        self._checkpoints = {a: list(cps) for a, cps in state.checkpoints}
        self._epoch = state.epoch

    def _write_checkpoint(self, account: str) -> None:
        # epoch 0 has no recorded distribution to remember balances for
        if self._epoch == 0:
            return
        checkpoints = self._checkpoints.setdefault(account, [])
        if not checkpoints or checkpoints[-1][0] < self._epoch:
            checkpoints.append((self._epoch, self._balances.get(account, 0)))
