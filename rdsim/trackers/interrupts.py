"""Interrupts deciding when trackers act on the state of a simulation.

Interrupts determine when a tracker handles the state of a simulation. Interrupts that
are defined in simulation time report the time of their next occurrence, so the time
steps of the simulation can be adjusted to hit them exactly. In contrast, interrupts
based on the step counter or the elapsed real time do not affect the time step.


.. autosummary::
   :nosignatures:

   ConstantInterrupts
   FixedInterrupts
   StepInterrupts
   RealtimeInterrupts
   parse_interrupt

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import copy
import math
import re
import time
from abc import ABCMeta, abstractmethod
from collections.abc import Sequence
from typing import TypeVar, Union

import numpy as np

TInterrupt = TypeVar("TInterrupt", bound="InterruptsBase")


class InterruptsBase(metaclass=ABCMeta):
    """Base class of all interrupts."""

    def copy(self: TInterrupt) -> TInterrupt:
        return copy.copy(self)

    @abstractmethod
    def initialize(self, t: float, step: int = 0) -> float:
        """Reset the interrupt at the beginning of a simulation.

        Args:
            t (float): The start time of the simulation
            step (int): The starting step of the simulation

        Returns:
            float: The first time the simulation needs to be interrupted. Infinity is
            returned if the interrupt is not tied to the simulation time.
        """

    @abstractmethod
    def is_due(self, t: float, step: int, atol: float = 0) -> bool:
        """Determine whether the interrupt occurs at the current point.

        Args:
            t (float): The current time of the simulation
            step (int): The number of completed steps
            atol (float): Absolute tolerance when comparing times

        Returns:
            bool: `True` if the tracker needs to be handled now
        """

    @abstractmethod
    def next(self, t: float, step: int) -> float:
        """Advance to the next interrupt after one has been handled.

        Args:
            t (float):
                The current time point of the simulation. The next interrupt lies later
                than this time, so interrupts might be skipped.
            step (int):
                The number of completed steps

        Returns:
            float: The time of the next interrupt or infinity if the interrupt is not
            tied to the simulation time.
        """


class FixedInterrupts(InterruptsBase):
    """Interrupts at a given list of simulation times."""

    def __init__(self, interrupts: np.ndarray | Sequence[float]):
        self.interrupts = np.atleast_1d(np.asarray(interrupts, dtype=float))
        if self.interrupts.ndim != 1:
            raise ValueError("Interrupt times must form a one-dimensional sequence")
        self._index = 0

    def __repr__(self):
        return f"{self.__class__.__name__}(interrupts={self.interrupts})"

    def copy(self):
        return self.__class__(interrupts=self.interrupts.copy())

    def _advance(self, t: float) -> float:
        """Skip all interrupts lying before `t` and return the next one."""
        while self._index < len(self.interrupts) and self.interrupts[self._index] < t:
            self._index += 1
        if self._index < len(self.interrupts):
            return float(self.interrupts[self._index])
        return math.inf  # no interrupts left

    @property
    def t_next(self) -> float:
        """float: time of the upcoming interrupt"""
        if self._index < len(self.interrupts):
            return float(self.interrupts[self._index])
        return math.inf

    def initialize(self, t: float, step: int = 0) -> float:
        self._index = 0
        return self._advance(t)

    def is_due(self, t: float, step: int, atol: float = 0) -> bool:
        return t > self.t_next - atol

    def next(self, t: float, step: int) -> float:
        self._index += 1
        return self._advance(t)


class ConstantInterrupts(InterruptsBase):
    """Interrupts separated by a constant duration of simulation time."""

    def __init__(self, dt: float = 1, t_start: float | None = None):
        """
        Args:
            dt (float):
                The simulation time between two interrupts
            t_start (float, optional):
                Time of the first interrupt. Defaults to the start time of the
                simulation. Later values skip an initial transient.
        """
        self.dt = float(dt)
        if self.dt <= 0:
            raise ValueError("Duration between interrupts must be positive")
        self.t_start = None if t_start is None else float(t_start)
        self.t_next = math.inf  # next time it should be called

    def __repr__(self):
        return f"{self.__class__.__name__}(dt={self.dt:g}, t_start={self.t_start})"

    def initialize(self, t: float, step: int = 0) -> float:
        if self.t_start is None:
            self.t_next = t
        else:
            self.t_next = max(t, self.t_start)
        return self.t_next

    def is_due(self, t: float, step: int, atol: float = 0) -> bool:
        return t > self.t_next - atol

    def next(self, t: float, step: int) -> float:
        self.t_next += self.dt
        # skip interrupts that were missed by long steps
        if self.t_next <= t:
            n = math.ceil((t - self.t_next) / self.dt)
            self.t_next += self.dt * n
            if self.t_next <= t:
                self.t_next += self.dt

        return self.t_next


class StepInterrupts(InterruptsBase):
    """Interrupts after a fixed number of simulation steps."""

    def __init__(self, every: int = 1, start: int = 0):
        """
        Args:
            every (int):
                The number of steps between subsequent interrupts
            start (int):
                The step at which the first interrupt occurs
        """
        if every < 1 or int(every) != every:
            raise ValueError(f"`every` must be a positive integer, got {every}")
        if start < 0 or int(start) != start:
            raise ValueError(f"`start` must be a non-negative integer, got {start}")
        self.every = int(every)
        self.start = int(start)
        self.step_next = self.start

    def __repr__(self):
        return f"{self.__class__.__name__}(every={self.every}, start={self.start})"

    def initialize(self, t: float, step: int = 0) -> float:
        self.step_next = self.start
        if self.step_next < step:
            n = math.ceil((step - self.step_next) / self.every)
            self.step_next += n * self.every
        return math.inf

    def is_due(self, t: float, step: int, atol: float = 0) -> bool:
        return step >= self.step_next

    def next(self, t: float, step: int) -> float:
        self.step_next += self.every
        if self.step_next <= step:
            n = (step - self.step_next) // self.every + 1
            self.step_next += n * self.every
        return math.inf


class RealtimeInterrupts(InterruptsBase):
    """Interrupts separated by a minimal duration of wall-clock time.

    The interrupt is checked after every step, so the actual spacing also depends on
    the computational cost of individual steps.
    """

    def __init__(self, duration: float | str):
        """
        Args:
            duration (float or str):
                Minimal number of seconds between two interrupts
        """
        try:
            self.duration = float(duration)
        except ValueError as err:
            raise ValueError(f"Could not interpret `{duration}` as duration") from err
        if self.duration < 0:
            raise ValueError("Duration must not be negative")
        self._last_time = -math.inf

    def __repr__(self):
        return f"{self.__class__.__name__}(duration={self.duration:g})"

    def initialize(self, t: float, step: int = 0) -> float:
        # the first call happens right away
        self._last_time = -math.inf
        return math.inf

    def is_due(self, t: float, step: int, atol: float = 0) -> bool:
        return time.monotonic() - self._last_time >= self.duration

    def next(self, t: float, step: int) -> float:
        self._last_time = time.monotonic()
        return math.inf


InterruptData = Union[InterruptsBase, int, float, str, Sequence[float], np.ndarray]


def parse_interrupt(data: InterruptData) -> InterruptsBase:
    """Obtain an interrupt from a compact description.

    Args:
        data (str or number or :class:`InterruptsBase`):
            Interrupts are returned unchanged, numbers imply
            :class:`ConstantInterrupts`, and sequences of times imply
            :class:`FixedInterrupts`. The strings :code:`"steps(EVERY)"` and
            :code:`"steps(EVERY, START)"` define :class:`StepInterrupts`, while other
            strings give the wall-clock duration of :class:`RealtimeInterrupts`.

    Returns:
        :class:`InterruptsBase`: the interrupt
    """
    if isinstance(data, InterruptsBase):
        return data

    elif isinstance(data, (int, float)):
        return ConstantInterrupts(data)

    elif isinstance(data, str):
        if data.startswith("steps"):
            regex = r"steps\(\s*([0-9]+)\s*(?:,\s*([0-9]+)\s*)?\)"
            matches = re.fullmatch(regex, data.strip(), re.IGNORECASE)
            if matches:
                every = int(matches.group(1))
                start = int(matches.group(2)) if matches.group(2) else 0
                return StepInterrupts(every, start)
            else:
                raise ValueError(f"Malformed step interrupt `{data}`")
        else:
            return RealtimeInterrupts(data)

    elif hasattr(data, "__iter__"):
        return FixedInterrupts(data)  # type: ignore

    raise TypeError(f"Cannot create interrupt from `{data!r}`")
