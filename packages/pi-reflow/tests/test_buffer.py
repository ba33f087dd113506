"""Tests for pi.reflow.buffer and pi.reflow.limits."""

from __future__ import annotations

import pytest

from pi.reflow.buffer import ScratchBuffer
from pi.reflow.errors import InternalInvariantError, LengthOverflowError
from pi.reflow.limits import checked_add


class TestScratchBuffer:
    """Growth policy and reservation checks."""

    def test_first_reservation_has_floor(self) -> None:
        buf = ScratchBuffer()
        buf.reserve(10)
        assert buf.capacity == 128

    def test_doubles(self) -> None:
        buf = ScratchBuffer()
        buf.reserve(10)
        buf.reserve(200)
        assert buf.capacity == 256

    def test_jumps_to_large_request(self) -> None:
        buf = ScratchBuffer()
        buf.reserve(10)
        buf.reserve(1000)
        assert buf.capacity == 1000

    def test_never_shrinks(self) -> None:
        buf = ScratchBuffer()
        buf.reserve(1000)
        buf.reserve(5)
        assert buf.capacity == 1000

    def test_capped_at_max_length_plus_one(self) -> None:
        buf = ScratchBuffer(max_length=100)
        buf.reserve(50)
        assert buf.capacity == 101
        with pytest.raises(InternalInvariantError):
            buf.reserve(102)

    def test_write_and_getvalue(self) -> None:
        buf = ScratchBuffer()
        buf.reserve(5)
        buf.write("ab")
        buf.write("cde")
        assert buf.getvalue() == "abcde"
        assert len(buf) == 5

    def test_reserve_clears_contents(self) -> None:
        buf = ScratchBuffer()
        buf.reserve(2)
        buf.write("ab")
        buf.reserve(2)
        assert buf.getvalue() == ""

    def test_overrun_is_an_invariant_error(self) -> None:
        buf = ScratchBuffer()
        buf.reserve(2)
        with pytest.raises(InternalInvariantError, match="overrun"):
            buf.write("abc")


class TestCheckedAdd:
    def test_within_limit(self) -> None:
        assert checked_add(1, 2, 3, "testing") == 3

    def test_over_limit(self) -> None:
        with pytest.raises(LengthOverflowError, match="while testing") as exc_info:
            checked_add(2, 2, 3, "testing")
        assert exc_info.value.operation == "testing"
        assert exc_info.value.limit == 3
        assert isinstance(exc_info.value, OverflowError)

    def test_negative_total(self) -> None:
        with pytest.raises(LengthOverflowError):
            checked_add(-5, 1, 10, "testing")
