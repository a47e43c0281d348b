"""
.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

import math

import numpy as np
import pytest

from rdsim.trackers.interrupts import (
    ConstantInterrupts,
    FixedInterrupts,
    RealtimeInterrupts,
    StepInterrupts,
    parse_interrupt,
)


def test_interrupt_constant():
    """Test the ConstantInterrupts class."""
    ival1 = ConstantInterrupts(2)
    ival2 = ival1.copy()  # test copying too

    assert ival1.initialize(1) == pytest.approx(1)
    assert ival1.next(3, 1) == pytest.approx(5)
    assert ival1.next(3, 2) == pytest.approx(7)
    assert ival1.dt == 2

    assert ival2.initialize(0) == pytest.approx(0)
    assert ival2.next(3, 1) == pytest.approx(4)
    assert ival2.next(3, 2) == pytest.approx(6)

    ival = parse_interrupt(2)
    assert isinstance(ival, ConstantInterrupts)
    assert ival.initialize(1) == pytest.approx(1)
    assert ival.next(3, 1) == pytest.approx(5)

    with pytest.raises(ValueError):
        ConstantInterrupts(0)


def test_interrupt_constant_due():
    """Test when constant interrupts are due."""
    ival = ConstantInterrupts(1)
    ival.initialize(0)
    assert ival.is_due(0, 0, atol=1e-9)
    ival.next(0, 0)
    assert not ival.is_due(0.5, 1)
    assert not ival.is_due(1 - 1e-6, 2)
    assert ival.is_due(1 - 1e-6, 2, atol=1e-5)
    assert ival.is_due(1, 2, atol=1e-9)

    # the next interrupt always lies strictly in the future
    assert ival.next(1, 2) == pytest.approx(2)
    assert ival.next(2, 3) == pytest.approx(3)


def test_interrupt_tstart():
    """Test the t_start argument of interrupts."""
    ival = ConstantInterrupts(dt=2, t_start=7)
    assert ival.initialize(0) == pytest.approx(7)
    assert ival.next(3, 1) == pytest.approx(9)
    assert ival.next(3, 2) == pytest.approx(11)
    assert ival.next(3, 3) == pytest.approx(13)


def test_interrupt_fixed():
    """Test the FixedInterrupts class."""
    ival = FixedInterrupts([1, 3])
    assert ival.initialize(0) == pytest.approx(1)
    assert ival.next(1, 1) == pytest.approx(3)
    assert np.isinf(ival.next(1, 2))

    ival = FixedInterrupts([1, 3, 5])
    assert ival.initialize(2) == pytest.approx(3)
    assert ival.next(4, 1) == pytest.approx(5)
    assert np.isinf(ival.next(5, 2))

    ival = FixedInterrupts([1, 3, 5, 7])
    assert ival.initialize(0) == pytest.approx(1)
    assert ival.next(6, 1) == pytest.approx(7)

    ival = parse_interrupt([1, 3])
    assert isinstance(ival, FixedInterrupts)
    assert np.isinf(ival.initialize(4))

    ival = parse_interrupt(np.arange(3))
    assert ival.initialize(0) == pytest.approx(0)
    assert ival.is_due(0, 0, atol=1e-9)
    assert ival.next(0, 0) == pytest.approx(1)
    assert not ival.is_due(0.5, 1)
    assert ival.next(0, 0) == pytest.approx(2)
    assert np.isinf(ival.next(0, 0))
    assert not ival.is_due(100, 100)

    # edge cases
    ival = FixedInterrupts([])
    assert np.isinf(ival.initialize(0))
    ival = FixedInterrupts(1)
    assert ival.initialize(0) == pytest.approx(1)
    assert np.isinf(ival.next(0, 0))
    with pytest.raises(ValueError):
        FixedInterrupts([[1]])

    # copies start from scratch
    ival = FixedInterrupts([1, 2])
    ival.initialize(0)
    ival.next(1, 1)
    assert ival.copy().initialize(0) == pytest.approx(1)


def test_interrupt_steps():
    """Test the StepInterrupts class."""
    ival = StepInterrupts(10, 1)
    assert math.isinf(ival.initialize(0, 0))
    due = []
    for step in range(25):
        if ival.is_due(step * 0.1, step):
            due.append(step)
            assert math.isinf(ival.next(step * 0.1, step))
    assert due == [1, 11, 21]

    ival = StepInterrupts(3)
    ival.initialize(0, step=4)
    assert not ival.is_due(0, 5)
    assert ival.is_due(0, 6)

    with pytest.raises(ValueError):
        StepInterrupts(0)
    with pytest.raises(ValueError):
        StepInterrupts(1.5)
    with pytest.raises(ValueError):
        StepInterrupts(2, -1)


@pytest.mark.parametrize(
    "data,every,start",
    [("steps(5)", 5, 0), ("steps(10, 1)", 10, 1), ("steps( 2 ,3 )", 2, 3)],
)
def test_interrupt_parse_steps(data, every, start):
    """Test parsing step interrupts from strings."""
    ival = parse_interrupt(data)
    assert isinstance(ival, StepInterrupts)
    assert ival.every == every
    assert ival.start == start


def test_interrupt_realtime(monkeypatch):
    """Test the RealtimeInterrupts class."""
    now = [100.0]
    monkeypatch.setattr("rdsim.trackers.interrupts.time.monotonic", lambda: now[0])

    for ival in [RealtimeInterrupts(2), parse_interrupt("2")]:
        assert isinstance(ival, RealtimeInterrupts)
        assert math.isinf(ival.initialize(0))
        assert ival.is_due(0, 0)  # first call happens right away
        assert math.isinf(ival.next(0, 0))
        now[0] += 1
        assert not ival.is_due(1, 1)
        now[0] += 1
        assert ival.is_due(1, 2)
        ival.next(1, 2)

    with pytest.raises(ValueError):
        RealtimeInterrupts(-1)
    with pytest.raises(ValueError):
        RealtimeInterrupts("a while")


def test_interrupt_parse_errors():
    """Test invalid interrupt data."""
    with pytest.raises(ValueError):
        parse_interrupt("steps(a)")
    with pytest.raises(ValueError):
        parse_interrupt("steps(1, 2, 3)")
    with pytest.raises(TypeError):
        parse_interrupt(None)

    ival = ConstantInterrupts(3)
    assert parse_interrupt(ival) is ival
