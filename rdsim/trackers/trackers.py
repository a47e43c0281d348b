"""Trackers acting on the state of reaction-diffusion simulations.

.. autosummary::
   :nosignatures:

   CallbackTracker
   ProgressTracker
   DiagnosticsTracker
   DataTracker
   SnapshotTracker
   ConsistencyTracker

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import inspect
import math
import sys
from pathlib import Path
from typing import IO, Any, Callable

import numpy as np

from ..fields.store import FieldStore
from ..tools.docstrings import fill_in_docstring
from ..tools.misc import ensure_directory_exists
from ..tools.output import get_progress_bar_class
from .base import InfoDict, TrackerBase
from .interrupts import InterruptData, RealtimeInterrupts


class CallbackTracker(TrackerBase):
    """Calls a user-supplied function with the current state.

    The function can stop the simulation by raising :class:`StopIteration`, e.g., to
    abort runs in which the mean concentration becomes negative:

    .. code-block:: python

        def check_positive(state):
            if state.C1.average < 0:
                raise StopIteration("negative concentration")

        tracker = CallbackTracker(check_positive, interrupts="steps(100)")
    """

    @fill_in_docstring
    def __init__(self, func: Callable, interrupts: InterruptData = 1):
        """
        Args:
            func:
                Function with signature `(state)` or `(state, time)`, receiving the
                :class:`~rdsim.fields.store.FieldStore` that the solver advances. The
                state changes later, so data that should be kept must be copied.
            interrupts:
                {ARG_TRACKER_INTERRUPT}
        """
        super().__init__(interrupts=interrupts)
        self._callback = func
        self._num_args = len(inspect.signature(func).parameters)
        if self._num_args not in {1, 2}:
            raise ValueError(
                f"Callback must accept the state and optionally the time, but it takes "
                f"{self._num_args} arguments"
            )

    def _call(self, state: FieldStore, t: float):
        if self._num_args == 1:
            return self._callback(state)
        return self._callback(state, t)

    def handle(self, state: FieldStore, t: float) -> None:
        self._call(state, t)


class ProgressTracker(TrackerBase):
    """Displays the simulation time in a :mod:`tqdm` progress bar."""

    name = "progress"

    @fill_in_docstring
    def __init__(
        self,
        interrupts: InterruptData | None = None,
        *,
        fancy: bool = True,
        ndigits: int = 5,
        leave: bool = True,
    ):
        """
        Args:
            interrupts:
                {ARG_TRACKER_INTERRUPT}
                By default, the bar is updated about once per second.
            fancy (bool):
                Use a widget in jupyter notebooks if possible
            ndigits (int):
                Digits after the decimal point of the displayed time
            leave (bool):
                Keep the bar visible after the simulation
        """
        if interrupts is None:
            interrupts = RealtimeInterrupts(duration=1)
        super().__init__(interrupts=interrupts)
        self.fancy = fancy
        self.ndigits = ndigits
        self.leave = leave

    def initialize(self, state: FieldStore, info: InfoDict = None) -> float:
        t_first = super().initialize(state, info)
        controller = self._info.get("controller", {})
        bar_class = get_progress_bar_class(self.fancy)
        self.progress_bar = bar_class(
            total=controller.get("t_end"),
            initial=controller.get("t_start", 0),
            leave=self.leave,
        )
        self.progress_bar.set_description("Initializing")
        return t_first

    def handle(self, state: FieldStore, t: float) -> None:
        total = self.progress_bar.total
        self.progress_bar.n = round(min(t, total) if total else t, self.ndigits)
        self.progress_bar.set_description(f"step {self.step}")

    def finalize(self, info: InfoDict = None) -> None:
        super().finalize(info)
        self.progress_bar.set_description("")
        controller = {} if info is None else info.get("controller", {})
        reached_end = controller.get("t_final", -math.inf) >= controller.get(
            "t_end", -math.inf
        )
        if reached_end and self.progress_bar.total:
            # rounding may leave the bar just below 100%
            self.progress_bar.n = self.progress_bar.total
            self.progress_bar.refresh()
        self.progress_bar.close()

    def __del__(self):
        if hasattr(self, "progress_bar") and not self.progress_bar.disable:
            self.progress_bar.close()


class DiagnosticsTracker(TrackerBase):
    """Tracker writing a line with the step, time, and solver iterations.

    Each line contains the number of completed steps, the current time, the last time
    step, and the number of multigrid cycles needed for the two concentration fields.
    """

    name = "diagnostics"

    @fill_in_docstring
    def __init__(
        self,
        interrupts: InterruptData = "steps(10, 1)",
        *,
        stream: IO[str] | None = None,
    ):
        """
        Args:
            interrupts:
                {ARG_TRACKER_INTERRUPT}
            stream:
                The stream to which the lines are written. Defaults to
                :data:`sys.stderr`.
        """
        super().__init__(interrupts=interrupts)
        self.stream = stream

    def format_line(self, t: float) -> str:
        """Return the diagnostic line for the current state of the simulation."""
        mgstats = self._info.get("solver", {}).get("mgstats")
        if mgstats is None:
            iterations = (0, 0)
        else:
            iterations = (mgstats[0].i, mgstats[1].i)
        return "%d %g %g %d %d" % ((self.step, t, self.dt) + iterations)

    def handle(self, state: FieldStore, t: float) -> None:
        stream = sys.stderr if self.stream is None else self.stream
        stream.write(self.format_line(t) + "\n")
        stream.flush()


class DataTracker(CallbackTracker):
    """Collects the values returned by a function during the simulation.

    For instance, the spatial mean and variance of the first concentration can be
    recorded every 10 time units:

    .. code-block:: python

        def get_statistics(state):
            return {"mean": state.C1.average, "var": state.C1.fluctuations**2}

        tracker = DataTracker(get_statistics, interrupts=10)

    Attributes:
        times (list): The simulation times at which data was collected
        steps (list): The corresponding step counts
        data (list): The return values of the function
    """

    @fill_in_docstring
    def __init__(self, func: Callable, interrupts: InterruptData = 1):
        """
        Args:
            func:
                Function with signature `(state)` or `(state, time)` returning the data
                that is collected. Arrays that reference the state must be copied.
            interrupts:
                {ARG_TRACKER_INTERRUPT}
        """
        super().__init__(func=func, interrupts=interrupts)
        self.times: list[float] = []
        self.steps: list[int] = []
        self.data: list[Any] = []

    def handle(self, state: FieldStore, t: float) -> None:
        self.times.append(t)
        self.steps.append(self.step)
        self.data.append(self._call(state, t))


class SnapshotTracker(TrackerBase):
    """Tracker writing the concentration fields to compressed numpy files.

    The files can be read with :func:`numpy.load` and contain the arrays `C1` and `C2`
    together with the time `t`, the step `step`, and the grid bounds `bounds`.
    """

    @fill_in_docstring
    def __init__(self, filename: str | Path, interrupts: InterruptData):
        """
        Args:
            filename (str or :class:`~pathlib.Path`):
                Path of the written file. The path may contain the placeholders `{t}`
                and `{step}`, which are replaced by the current time and step,
                respectively. Without placeholders, the file is overwritten at each
                interrupt.
            interrupts:
                {ARG_TRACKER_INTERRUPT}
        """
        super().__init__(interrupts=interrupts)
        self.filename = str(filename)
        self.written: list[Path] = []

    def handle(self, state: FieldStore, t: float) -> None:
        path = Path(self.filename.format(t=t, step=self.step))
        ensure_directory_exists(path.parent)
        np.savez_compressed(
            path,
            C1=state.C1.data,
            C2=state.C2.data,
            t=t,
            step=self.step,
            bounds=np.array(state.grid.axes_bounds),
        )
        self._logger.info("Wrote snapshot at t=%g to `%s`", t, path)
        self.written.append(path)


class ConsistencyTracker(TrackerBase):
    """Stops the simulation once a concentration contains NaN or infinite values."""

    name = "consistency"

    @fill_in_docstring
    def __init__(self, interrupts: InterruptData | None = None):
        """
        Args:
            interrupts:
                {ARG_TRACKER_INTERRUPT}
                By default, the state is checked about once per second.
        """
        if interrupts is None:
            interrupts = RealtimeInterrupts(duration=1)
        super().__init__(interrupts=interrupts)

    def handle(self, state: FieldStore, t: float) -> None:
        if not state.is_finite:
            raise StopIteration("Field was not finite")
