"""Base classes for trackers.

A tracker combines an interrupt, which decides when it acts, with an action applied to
the current state, like writing diagnostics or storing a snapshot. The controller keeps
its trackers in a :class:`TrackerCollection`, which also computes the next time at
which the time stepping needs to stop.

.. autosummary::
   :nosignatures:

   FinishedSimulation
   TrackerBase
   TrackerCollection
   get_named_trackers

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import logging
import math
from abc import ABCMeta, abstractmethod
from collections.abc import Sequence
from typing import Any, Optional, Union

from ..fields.store import FieldStore
from ..tools.docstrings import fill_in_docstring
from .interrupts import InterruptData, parse_interrupt

_base_logger = logging.getLogger(__name__.rsplit(".", 1)[0])
""":class:`logging.Logger`: parent of the loggers of all tracker classes"""

InfoDict = Optional[dict[str, Any]]
TrackerDataType = Union["TrackerBase", str]

AUTO_TRACKERS = ("progress", "consistency")
"""tuple: names of the trackers used when `tracker="auto"`"""


class FinishedSimulation(StopIteration):
    """Signals that a simulation reached its goal before the final time."""


class TrackerBase(metaclass=ABCMeta):
    """Base class of all trackers.

    Subclasses that define a class attribute `name` are registered, so they can be
    created from that name using :meth:`from_data`.
    """

    _logger: logging.Logger
    _subclasses: dict[str, type[TrackerBase]] = {}  # registered by name

    @fill_in_docstring
    def __init__(self, interrupts: InterruptData = 1):
        """
        Args:
            interrupts:
                {ARG_TRACKER_INTERRUPT}
        """
        self.interrupt = parse_interrupt(interrupts)
        self._info: dict[str, Any] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._logger = _base_logger.getChild(cls.__qualname__)
        name = getattr(cls, "name", None)
        if name is not None:
            if name == "auto":
                raise ValueError("`auto` is reserved and cannot name a tracker")
            cls._subclasses[name] = cls

    @classmethod
    def from_data(cls, data: TrackerDataType, **kwargs) -> TrackerBase:
        """Obtain a tracker instance.

        Args:
            data (str or :class:`TrackerBase`):
                Either a tracker, which is returned unchanged, or the name of a
                registered tracker class, which is instantiated with `kwargs`

        Returns:
            :class:`TrackerBase`: the tracker
        """
        if isinstance(data, TrackerBase):
            return data
        if not isinstance(data, str):
            raise ValueError(f"Cannot create tracker from `{data!r}`")
        try:
            tracker_cls = cls._subclasses[data]
        except KeyError as err:
            names = ", ".join(sorted(cls._subclasses))
            raise ValueError(f"Unknown tracker `{data}`; choose from {names}") from err
        return tracker_cls(**kwargs)

    def _controller_value(self, key: str, default):
        return self._info.get("controller", {}).get(key, default)

    @property
    def step(self) -> int:
        """int: the number of steps completed by the simulation"""
        return self._controller_value("step", 0)  # type: ignore

    @property
    def dt(self) -> float:
        """float: the duration of the last completed step"""
        return self._controller_value("dt", 0.0)  # type: ignore

    def initialize(self, state: FieldStore, info: InfoDict = None) -> float:
        """Prepare the tracker for a simulation.

        Args:
            state (:class:`~rdsim.fields.store.FieldStore`):
                The initial state of the simulation
            info (dict):
                Information about the simulation. The tracker keeps a reference, so it
                sees values that the controller updates later, e.g., the step count.

        Returns:
            float: the first time at which the tracker needs to act
        """
        if info is not None:
            self._info = info
        return self.interrupt.initialize(
            self._controller_value("t_start", 0), self._controller_value("step", 0)
        )

    @abstractmethod
    def handle(self, state: FieldStore, t: float) -> None:
        """Act on the current state.

        Args:
            state (:class:`~rdsim.fields.store.FieldStore`):
                The current state of the simulation
            t (float):
                The current time
        """

    def finalize(self, info: InfoDict = None) -> None:
        """Clean up after the simulation finished.

        Args:
            info (dict):
                Final information about the simulation
        """


TrackerCollectionDataType = Union[Sequence[TrackerDataType], TrackerDataType, None]


class TrackerCollection:
    """Ordered group of trackers that are handled together."""

    tracker_action_times: list[float]
    """list: the next time at which each tracker needs to act"""
    time_next_action: float
    """float: the earliest of the times in :attr:`tracker_action_times`"""

    def __init__(self, trackers: list[TrackerBase] | None = None):
        """
        Args:
            trackers (list): The trackers in the order in which they are handled
        """
        if trackers is not None and not hasattr(trackers, "__iter__"):
            raise ValueError(f"`trackers` must be a list of trackers, not {trackers}")
        self.trackers: list[TrackerBase] = [] if trackers is None else list(trackers)

        # nothing is due before the collection is initialized
        self.tracker_action_times = []
        self.time_next_action = math.inf

    def __len__(self) -> int:
        return len(self.trackers)

    @classmethod
    def from_data(cls, data: TrackerCollectionDataType, **kwargs) -> TrackerCollection:
        """Create a collection from various descriptions of trackers.

        Args:
            data:
                `None` for no trackers, `"auto"` for the default trackers, a single
                tracker or tracker name, or a sequence of those. Items of sequences
                that are `None` are skipped.
            **kwargs:
                Arguments used when a single tracker is created from its name

        Returns:
            :class:`TrackerCollection`: the trackers
        """
        if data == "auto":
            data = AUTO_TRACKERS

        if data is None:
            trackers: list[TrackerBase] = []
        elif isinstance(data, TrackerCollection):
            trackers = data.trackers
        elif isinstance(data, (TrackerBase, str)):
            trackers = [TrackerBase.from_data(data, **kwargs)]
        elif isinstance(data, (list, tuple)):
            trackers = []
            seen_interrupts: set[int] = set()
            for item in data:
                if item is None:
                    continue
                tracker = TrackerBase.from_data(item)
                # each tracker advances its own interrupt
                if id(tracker.interrupt) in seen_interrupts:
                    tracker.interrupt = tracker.interrupt.copy()
                seen_interrupts.add(id(tracker.interrupt))
                trackers.append(tracker)
        else:
            raise TypeError(f"Cannot create trackers from `{data.__class__.__name__}`")

        return cls(trackers)

    def initialize(self, state: FieldStore, info: InfoDict = None) -> float:
        """Prepare all trackers for a simulation.

        Args:
            state (:class:`~rdsim.fields.store.FieldStore`):
                The initial state of the simulation
            info (dict):
                Information about the simulation

        Returns:
            float: the first time at which any tracker needs to act
        """
        self.tracker_action_times = [t.initialize(state, info) for t in self.trackers]
        self.time_next_action = min(self.tracker_action_times, default=math.inf)
        return self.time_next_action

    def handle(
        self, state: FieldStore, t: float, step: int = 0, atol: float = 1.0e-8
    ) -> float:
        """Let all trackers that are due act on the state.

        Trackers act in the order of the collection. If a tracker raises
        :class:`StopIteration`, the remaining trackers still act before the exception
        is raised again.

        Args:
            state (:class:`~rdsim.fields.store.FieldStore`):
                The current state of the simulation
            t (float):
                The current time
            step (int):
                The number of completed steps
            atol (float):
                Trackers whose next time is at most `atol` after `t` are considered due

        Returns:
            float: the next time at which any tracker needs to act
        """
        stop_request: StopIteration | None = None
        for i, tracker in enumerate(self.trackers):
            if not tracker.interrupt.is_due(t, step, atol=atol):
                continue
            try:
                tracker.handle(state, t)
            except StopIteration as err:
                stop_request = err
            self.tracker_action_times[i] = tracker.interrupt.next(t, step)

        if stop_request is not None:
            raise stop_request

        self.time_next_action = min(self.tracker_action_times, default=math.inf)
        return self.time_next_action

    def finalize(self, info: InfoDict = None) -> None:
        """Clean up all trackers.

        Args:
            info (dict):
                Final information about the simulation
        """
        for tracker in self.trackers:
            tracker.finalize(info=info)


def get_named_trackers() -> dict[str, type[TrackerBase]]:
    """dict: all tracker classes that can be created by name"""
    return TrackerBase._subclasses.copy()
