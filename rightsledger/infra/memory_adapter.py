"""In-memory implementations of the infrastructure protocols.

Test doubles that let the suite run without a real token ledger or broker.
All classes are @final. None of them are production code.
"""

from __future__ import annotations

from collections import defaultdict
from typing import final

from rightsledger.core.errors import (
    PERSISTENCE_ERROR,
    TRANSFER_FAILED,
    ExternalTransferError,
    PersistenceError,
)
from rightsledger.core.result import Err, Ok
from rightsledger.core.types import UtcDatetime


def _transfer_error(
    operation: str, from_account: str, to_account: str, amount: int, detail: str,
) -> ExternalTransferError:
    return ExternalTransferError(
        message=detail,
        code=TRANSFER_FAILED,
        timestamp=UtcDatetime.now(),
        source=f"memory_adapter.InMemoryAssetLedger.{operation}",
        operation=operation,
        from_account=from_account,
        to_account=to_account,
        amount=str(amount),
    )


@final
class InMemoryAssetLedger:
    """A fungible-token ledger with balances and allowances.

    `frozen` accounts reject every transfer in or out, which lets tests
    simulate an external failure at a precise point of an operation.
    """

    def __init__(self, symbol: str = "USDC") -> None:
        self.symbol = symbol
        self._balances: dict[str, int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)
        self._frozen: set[str] = set()

    # -- AssetLedgerPort --

    def transfer(
        self, sender: str, to: str, amount: int,
    ) -> Ok[None] | Err[ExternalTransferError]:
        match self._check(sender, to, amount, "transfer"):
            case Err() as e:
                return e
            case Ok(_):
                pass
        self._balances[sender] -= amount
        self._balances[to] += amount
        return Ok(None)

    def transfer_from(
        self, spender: str, owner: str, to: str, amount: int,
    ) -> Ok[None] | Err[ExternalTransferError]:
        match self._check(owner, to, amount, "transfer_from"):
            case Err() as e:
                return e
            case Ok(_):
                pass
        if self._allowances[(owner, spender)] < amount:
            return Err(_transfer_error(
                "transfer_from", owner, to, amount,
                f"Allowance of {spender} over {owner} is "
                f"{self._allowances[(owner, spender)]}, need {amount}",
            ))
        self._allowances[(owner, spender)] -= amount
        self._balances[owner] -= amount
        self._balances[to] += amount
        return Ok(None)

    def balance_of(self, account: str) -> Ok[int] | Err[ExternalTransferError]:
        return Ok(self._balances.get(account, 0))

    # -- Test helpers --

    def mint(self, account: str, amount: int) -> None:
        """Test-only helper: credit an account out of thin air."""
        self._balances[account] += amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Test-only helper: set spender's allowance over owner's funds."""
        self._allowances[(owner, spender)] = amount

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def freeze(self, account: str) -> None:
        """Test-only helper: reject every transfer touching account."""
        self._frozen.add(account)

    def unfreeze(self, account: str) -> None:
        self._frozen.discard(account)

    def total_supply(self) -> int:
        """Sum of all balances. Only mint() changes it."""
        return sum(self._balances.values())

    def _check(
        self, from_account: str, to: str, amount: int, operation: str,
    ) -> Ok[None] | Err[ExternalTransferError]:
        if amount <= 0:
            return Err(_transfer_error(
                operation, from_account, to, amount, f"Amount must be > 0, got {amount}",
            ))
        for account in (from_account, to):
            if account in self._frozen:
                return Err(_transfer_error(
                    operation, from_account, to, amount, f"Account {account} is frozen",
                ))
        if self._balances[from_account] < amount:
            return Err(_transfer_error(
                operation, from_account, to, amount,
                f"Insufficient balance: {from_account} holds "
                f"{self._balances[from_account]}, needs {amount}",
            ))
        return Ok(None)


@final
class InMemoryEventBus:
    """In-memory event bus. Messages stored per-topic as (key, value) pairs."""

    def __init__(self) -> None:
        self._topics: dict[str, list[tuple[str, bytes]]] = {}
        self._unavailable = False

    def publish(
        self, topic: str, key: str, value: bytes,
    ) -> Ok[None] | Err[PersistenceError]:
        if self._unavailable:
            return Err(PersistenceError(
                message=f"Event bus unavailable, cannot publish to {topic}",
                code=PERSISTENCE_ERROR,
                timestamp=UtcDatetime.now(),
                source="memory_adapter.InMemoryEventBus.publish",
                operation="publish",
            ))
        self._topics.setdefault(topic, []).append((key, value))
        return Ok(None)

    def set_unavailable(self, unavailable: bool) -> None:
        """Test-only helper: make publish() fail."""
        self._unavailable = unavailable

    def get_messages(self, topic: str) -> list[tuple[str, bytes]]:
        """Test-only helper."""
        return list(self._topics.get(topic, []))

    def topic_count(self) -> int:
        """Test-only helper."""
        return len(self._topics)
