"""Time loop of simulations, which advances the state and handles trackers.

.. autosummary::
   :nosignatures:

   Controller

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import datetime
import logging
import time
from typing import Any, Callable, Union

from .. import __version__
from ..fields.store import FieldStore
from ..tools.numba import get_compilation_count
from ..trackers.base import (
    FinishedSimulation,
    TrackerCollection,
    TrackerCollectionDataType,
)
from .clock import SimulationClock
from .splitting import OperatorSplittingSolver

_logger = logging.getLogger(__name__)

TRangeType = Union[float, tuple[float, float]]

TIME_TOLERANCE = 1e-9
"""float: relative tolerance, in units of the maximal step, for comparing times"""


class Controller:
    """Runs a simulation from the start to the end time.

    In each iteration, the controller asks the clock for the next time step, lets the
    solver advance the state, and hands the new state to all trackers that are due.
    Steps never exceed `dt_max` and are shortened so the final time and the times
    requested by trackers are hit exactly.

    A tracker can end the simulation early by raising :class:`StopIteration` (marking
    the run as failed) or :class:`~rdsim.trackers.base.FinishedSimulation` (marking it
    as successful). A :class:`KeyboardInterrupt` also ends the run gracefully, while
    all other exceptions propagate. In all cases, details are collected in
    :attr:`diagnostics`.
    """

    diagnostics: dict[str, Any]
    """dict: information about the last run, including solver and timing details"""

    _get_current_time: Callable = time.process_time
    """callable: clock used for measuring the time spent in the solver and trackers"""

    def __init__(
        self,
        solver: OperatorSplittingSolver,
        t_range: TRangeType,
        tracker: TrackerCollectionDataType = "auto",
        *,
        dt_max: float = 1.0,
    ):
        """
        Args:
            solver (:class:`~rdsim.solvers.splitting.OperatorSplittingSolver`):
                The solver advancing the state by single steps
            t_range (float or tuple):
                The final time, in which case the simulation starts at zero, or a pair
                of start and final time
            tracker:
                The trackers, given as instances of
                :class:`~rdsim.trackers.base.TrackerBase`, as names listed by
                :func:`~rdsim.trackers.base.get_named_trackers`, or as a list of those.
                Trackers act in the order of the list. `"auto"` displays a progress bar
                and stops simulations whose state is no longer finite.
            dt_max (float):
                The largest allowed time step
        """
        if dt_max <= 0:
            raise ValueError(f"`dt_max` must be positive, got {dt_max}")
        self.solver = solver
        self.t_range = t_range  # type: ignore
        self.trackers = TrackerCollection.from_data(tracker)
        self.dt_max = float(dt_max)

        self.info: dict[str, Any] = {}
        self.diagnostics = {"controller": self.info, "package_version": __version__}

    @property
    def t_range(self) -> tuple[float, float]:
        """tuple: the start and the final time of the simulation"""
        return self._t_range

    @t_range.setter
    def t_range(self, value: TRangeType):
        if isinstance(value, (tuple, list)):
            if len(value) != 2:
                raise ValueError("`t_range` must be a number or a pair of numbers")
            t_range = (float(value[0]), float(value[1]))
        else:
            t_range = (0, float(value))
        if t_range[1] < t_range[0]:
            raise ValueError("The final time must not precede the start time")
        self._t_range: tuple[float, float] = t_range  # type: ignore

    def _record_clock(self, clock: SimulationClock) -> None:
        """Copy the state of the clock to the information read by trackers."""
        self.info["t"] = clock.t
        self.info["step"] = clock.step
        self.info["dt"] = clock.dt

    def _stop_requested(self, err: StopIteration, t: float) -> tuple[int, str]:
        """Record why a tracker stopped the simulation.

        Returns:
            tuple: the log level and the message reporting the stop
        """
        finished = isinstance(err, FinishedSimulation)
        self.info["successful"] = finished
        reason = getattr(err, "value", None)
        if reason:
            self.info["stop_reason"] = reason
            details = f" ({reason})"
        else:
            name = "FinishedSimulation" if finished else "StopIteration"
            self.info["stop_reason"] = f"Tracker raised {name}"
            details = ""
        if finished:
            return logging.INFO, f"Simulation finished at t={t}{details}"
        return logging.WARNING, f"Simulation aborted at t={t}{details}"

    def _run(self, state: FieldStore) -> None:
        """Evolve `state` in-place from the start to the final time."""
        t_start, t_end = self.t_range
        get_time = self._get_current_time
        clock = SimulationClock(t_start)
        atol = TIME_TOLERANCE * self.dt_max

        self.info.update({"t_start": t_start, "t_end": t_end, "dt_max": self.dt_max})
        self._record_clock(clock)
        self.diagnostics["solver"] = self.solver.info

        # kernels compile lazily, either while preparing or during the first steps
        jit_count_start = get_compilation_count()
        profiler = {"solver": 0.0, "tracker": 0.0}
        self.info["profiler"] = profiler
        time_compile = get_time()
        stepper = self.solver.make_stepper(state)
        self.trackers.initialize(state, info=self.diagnostics)
        jit_count_loop = get_compilation_count()
        self.info["jit_count"] = {"make_stepper": jit_count_loop - jit_count_start}

        time_tracker = get_time()
        profiler["compilation"] = time_tracker - time_compile
        wall_start = datetime.datetime.now()
        self.info["solver_start"] = str(wall_start)

        _logger.debug("Start simulation at t=%g", clock.t)
        try:
            t_next_action = self.trackers.handle(state, clock.t, clock.step, atol=atol)
            while clock.t < t_end - atol:
                dt = clock.dtnext(self.dt_max, min(t_next_action, t_end))

                time_solver = get_time()
                profiler["tracker"] += time_solver - time_tracker
                stepper(state, dt)
                clock.advance()
                time_tracker = get_time()
                profiler["solver"] += time_tracker - time_solver

                self._record_clock(clock)
                t_next_action = self.trackers.handle(
                    state, clock.t, clock.step, atol=atol
                )

        except StopIteration as err:
            level, msg = self._stop_requested(err, clock.t)
            self.diagnostics["last_tracker_time"] = clock.t

        except KeyboardInterrupt:
            self.info["successful"] = False
            self.info["stop_reason"] = "User interrupted simulation"
            level, msg = logging.INFO, f"Simulation interrupted at t={clock.t}"
            self.diagnostics["last_tracker_time"] = clock.t

        except Exception:
            self.diagnostics["last_tracker_time"] = clock.t
            raise

        else:
            self.info["successful"] = True
            self.info["stop_reason"] = "Reached final time"
            level, msg = logging.INFO, f"Simulation finished at t={t_end}."

        profiler["tracker"] += get_time() - time_tracker
        self.info["solver_duration"] = str(datetime.datetime.now() - wall_start)
        self.info["t_final"] = clock.t
        self.info["steps"] = clock.step
        self.info["jit_count"]["simulation"] = get_compilation_count() - jit_count_loop
        self.trackers.finalize(info=self.diagnostics)

        # log after trackers are finalized, so progress bars are already closed
        _logger.log(level, msg)
        if profiler["tracker"] > max(profiler["solver"], 1):
            _logger.warning(
                "Trackers took longer (%.3g) than the solver (%.3g)",
                profiler["tracker"],
                profiler["solver"],
            )

    def run(self, initial_state: FieldStore) -> FieldStore:
        """Run the simulation.

        Args:
            initial_state (:class:`~rdsim.fields.store.FieldStore`):
                The state at the start time. It is copied and remains unchanged.

        Returns:
            :class:`~rdsim.fields.store.FieldStore`: the state at the final time, or at
            the time a tracker stopped the simulation
        """
        state = initial_state.copy()
        self._run(state)
        return state
