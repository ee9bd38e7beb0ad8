from __future__ import annotations

import pytest

from skillcert.core.clock import Clock, ManualClock, SystemClock


def test_clocks_satisfy_protocol() -> None:
    assert isinstance(SystemClock(), Clock)
    assert isinstance(ManualClock(), Clock)


def test_system_clock_returns_int_seconds() -> None:
    now = SystemClock().now()
    assert isinstance(now, int)
    assert now > 1_600_000_000


def test_manual_clock_advance_and_set() -> None:
    clock = ManualClock(start=100)
    assert clock.now() == 100
    assert clock.advance(5) == 105
    clock.set(200)
    assert clock.now() == 200


def test_manual_clock_never_goes_backwards() -> None:
    clock = ManualClock(start=100)
    with pytest.raises(ValueError):
        clock.advance(-1)
    with pytest.raises(ValueError):
        clock.set(99)
    assert clock.now() == 100
