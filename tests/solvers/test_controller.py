"""
.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

import numpy as np
import pytest

from rdsim.fields import FieldStore
from rdsim.grids import CartesianGrid
from rdsim.pdes import BrusselatorParameters, BrusselatorPDE
from rdsim.solvers import Controller, OperatorSplittingSolver
from rdsim.tools.numba import get_compilation_count
from rdsim.trackers import (
    CallbackTracker,
    DataTracker,
    FinishedSimulation,
    FixedInterrupts,
)


def _get_setup(rng, **kwargs):
    """Return a small solver together with a perturbed stationary state."""
    grid = CartesianGrid.square(4, 8)
    parameters = BrusselatorParameters(**kwargs)
    c1, c2 = parameters.steady_state
    state = FieldStore(grid, c1, c2 + rng.uniform(-0.01, 0.01, size=grid.shape))
    solver = OperatorSplittingSolver(BrusselatorPDE(parameters), tolerance=1e-6)
    return solver, state


def test_controller_basic(rng):
    """Test basic properties of the controller."""
    solver, state = _get_setup(rng)
    data = DataTracker(lambda s, t: s.C1.average, "steps(1)")
    controller = Controller(solver, t_range=5, tracker=data)
    assert controller.t_range == (0, 5)
    result = controller.run(state)

    assert isinstance(result, FieldStore)
    assert result is not state
    assert data.times == [0, 1, 2, 3, 4, 5]
    assert data.steps == [0, 1, 2, 3, 4, 5]
    info = controller.diagnostics["controller"]
    assert info["successful"]
    assert info["stop_reason"] == "Reached final time"
    assert info["t_final"] == 5
    assert info["steps"] == 5
    assert controller.diagnostics["solver"]["steps"] == 5
    assert controller.diagnostics["solver"]["class"] == "OperatorSplittingSolver"


def test_controller_keeps_initial_state(rng):
    """Test that the initial state is not modified."""
    solver, state = _get_setup(rng)
    initial = state.copy()
    result = Controller(solver, t_range=3, tracker=None).run(state)
    assert state == initial
    assert result != initial


def test_controller_time_interrupts(rng):
    """Test that interrupts in simulation time are hit exactly."""
    solver, state = _get_setup(rng)
    data = DataTracker(lambda s: s.C1.data.copy(), FixedInterrupts([2.5]))
    steps = DataTracker(lambda s, t: t, "steps(1)")
    controller = Controller(solver, t_range=5, tracker=[data, steps])
    controller.run(state)

    assert data.times == [2.5]
    assert data.steps == [3]
    # the time steps are shortened to hit the interrupt
    np.testing.assert_allclose(np.diff(steps.times), [2.5 / 3] * 3 + [2.5 / 3] * 3)
    assert controller.info["steps"] == 6


def test_controller_dt_max(rng):
    """Test the maximal time step."""
    solver, state = _get_setup(rng)
    data = DataTracker(lambda s, t: t, "steps(1)")
    Controller(solver, t_range=(1, 2), tracker=data, dt_max=0.25).run(state)
    np.testing.assert_allclose(data.times, [1, 1.25, 1.5, 1.75, 2])

    with pytest.raises(ValueError):
        Controller(solver, t_range=1, dt_max=0)
    with pytest.raises(ValueError):
        Controller(solver, t_range=(2, 1))
    with pytest.raises(ValueError):
        Controller(solver, t_range=(1, 2, 3))


def test_controller_tracker_order(rng):
    """Test that trackers are handled in the given order."""
    solver, state = _get_setup(rng)
    calls = []
    trackers = [
        CallbackTracker(lambda s, t: calls.append(("a", t)), "steps(2)"),
        CallbackTracker(lambda s, t: calls.append(("b", t)), "steps(1)"),
    ]
    Controller(solver, t_range=2, tracker=trackers).run(state)
    assert calls == [("a", 0), ("b", 0), ("b", 1), ("a", 2), ("b", 2)]


def test_controller_abort(rng):
    """Test how the controller handles trackers stopping the simulation."""
    solver, state = _get_setup(rng)

    def stop(state, t):
        if t >= 2:
            raise StopIteration

    controller = Controller(solver, t_range=10, tracker=CallbackTracker(stop))
    controller.run(state)
    assert not controller.info["successful"]
    assert controller.info["t_final"] == 2
    assert controller.info["stop_reason"] == "Tracker raised StopIteration"

    def finish(state, t):
        if t >= 3:
            raise FinishedSimulation("Reached the goal")

    controller = Controller(solver, t_range=10, tracker=CallbackTracker(finish))
    controller.run(state)
    assert controller.info["successful"]
    assert controller.info["t_final"] == 3
    assert controller.info["stop_reason"] == "Reached the goal"


def test_controller_error(rng):
    """Test that other exceptions are propagated."""
    solver, state = _get_setup(rng)

    def fail(state, t):
        if t > 0:
            raise RuntimeError("failure")

    controller = Controller(solver, t_range=10, tracker=CallbackTracker(fail))
    with pytest.raises(RuntimeError):
        controller.run(state)
    assert controller.diagnostics["last_tracker_time"] == 1


def test_controller_compilation_count(rng):
    """Test that compilations during a run are reported."""
    solver, state = _get_setup(rng)
    count = get_compilation_count()
    controller = Controller(solver, t_range=1, tracker=None)
    controller.run(state)
    jit_count = controller.info["jit_count"]
    assert jit_count["make_stepper"] >= 0
    assert jit_count["simulation"] >= 0
    assert sum(jit_count.values()) == get_compilation_count() - count

    # kernels are compiled once, so a second run does not compile anything
    controller.run(state)
    assert controller.info["jit_count"] == {"make_stepper": 0, "simulation": 0}
    assert get_compilation_count() > 0
