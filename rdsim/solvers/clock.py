"""Simulation clock determining the time steps of a simulation.

The clock keeps track of the simulation time and the number of completed steps. Time
steps are chosen such that upcoming events are hit exactly, while the duration between
events is split into steps of equal length that do not exceed the requested maximum.

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import math

TEPS = 1e-9
"""float: relative tolerance when splitting the time until the next event"""


class SimulationClock:
    """Keeps track of the simulation time and the step counter."""

    def __init__(self, t_start: float = 0.0):
        """
        Args:
            t_start (float):
                The initial time of the simulation
        """
        self.t = float(t_start)
        self.step = 0
        self.dt = 0.0
        self._t_next = self.t

    def __repr__(self):
        return f"{self.__class__.__name__}(t={self.t:g}, step={self.step})"

    def dtnext(self, dt: float, t_next: float = math.inf) -> float:
        """Determine the time step so that the next event is reached exactly.

        If the next event lies within the maximal step `dt`, the returned step ends
        precisely at the event. Otherwise, the remaining time is divided into the
        smallest number of equal steps that do not exceed `dt` (up to a small relative
        tolerance).

        Args:
            dt (float):
                The maximal time step
            t_next (float):
                Time of the next event. Infinity implies that there is no event.

        Returns:
            float: The time step, which is also stored in :attr:`dt`
        """
        if dt <= 0:
            raise ValueError(f"Time step must be positive, got {dt}")

        if math.isfinite(t_next) and t_next > self.t:
            remaining = t_next - self.t
            n = int(remaining / dt)
            if n == 0:
                dt = remaining
                self._t_next = t_next
            else:
                dt1 = remaining / n
                if dt1 > dt * (1.0 + TEPS):
                    dt = remaining / (n + 1)
                elif dt1 < dt:
                    dt = dt1
                self._t_next = self.t + dt
        else:
            self._t_next = self.t + dt

        self.dt = dt
        return dt

    def advance(self) -> None:
        """Complete a step of the duration last returned by :meth:`dtnext`."""
        if self._t_next <= self.t:
            raise RuntimeError("Time step has not been determined")
        self.t = self._t_next
        self.step += 1
