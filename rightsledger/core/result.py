"""Result[T, E]: explicit success/failure values for rightsledger.

Operations that can fail return Ok[T] | Err[E]; they never raise for
business failures. Callers pattern-match on the two variants.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, final


@final
@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Success variant of Result."""

    value: T


@final
@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failure variant of Result."""

    error: E


type Result[T, E] = Ok[T] | Err[E]


def unwrap[T](result: Ok[T] | Err[Any]) -> T:
    """Extract the Ok value or raise RuntimeError. Tests and boundaries only."""
    if isinstance(result, Ok):
        return result.value
    if isinstance(result, Err):
        raise RuntimeError(f"unwrap on Err: {result.error}")
    raise TypeError(f"Expected Ok or Err, got {type(result).__name__}")
