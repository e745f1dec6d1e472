"""Tests for rightsledger.core.result: Result[T, E] error handling."""

from __future__ import annotations

import dataclasses

import pytest
from hypothesis import given
from hypothesis import strategies as st

from rightsledger.core.result import Err, Ok, unwrap

# ---------------------------------------------------------------------------
# Core: Ok and Err hold values, are frozen, support pattern matching
# ---------------------------------------------------------------------------


class TestOkBasics:
    def test_ok_holds_value(self) -> None:
        assert Ok(42).value == 42

    def test_ok_is_frozen(self) -> None:
        ok = Ok(42)
        with pytest.raises(dataclasses.FrozenInstanceError):
            ok.value = 99  # type: ignore[misc]

    def test_ok_equality(self) -> None:
        assert Ok(42) == Ok(42)
        assert Ok(42) != Ok(99)

    def test_pattern_match_ok(self) -> None:
        match Ok(42):
            case Ok(v):
                assert v == 42
            case _:
                pytest.fail("Should match Ok")


class TestErrBasics:
    def test_err_holds_error(self) -> None:
        assert Err("fail").error == "fail"

    def test_err_is_frozen(self) -> None:
        err = Err("fail")
        with pytest.raises(dataclasses.FrozenInstanceError):
            err.error = "other"  # type: ignore[misc]

    def test_pattern_match_err(self) -> None:
        match Err("fail"):
            case Err(e):
                assert e == "fail"
            case _:
                pytest.fail("Should match Err")


class TestHelpers:
    def test_unwrap_ok(self) -> None:
        assert unwrap(Ok("x")) == "x"

    def test_unwrap_err_raises(self) -> None:
        with pytest.raises(RuntimeError):
            unwrap(Err("x"))

    @given(st.integers())
    def test_unwrap_returns_ok_value(self, x: int) -> None:
        assert unwrap(Ok(x)) == x

    def test_unwrap_rejects_non_result(self) -> None:
        with pytest.raises(TypeError):
            unwrap(42)  # type: ignore[arg-type]
