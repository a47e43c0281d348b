"""Classes for tracking simulation results in controlled interrupts.

Trackers are classes that receive the state of the simulation to analyze, store, or
output it. They are handled after every step in the order in which they were given,
whenever their interrupt is due. The trackers defined in this module are:

.. autosummary::
   :nosignatures:

   ~trackers.CallbackTracker
   ~trackers.ProgressTracker
   ~trackers.DiagnosticsTracker
   ~trackers.DataTracker
   ~trackers.SnapshotTracker
   ~trackers.ConsistencyTracker

Some trackers can also be referenced by name for convenience when using them in
simulations. The list of supported names is returned by
:func:`~rdsim.trackers.base.get_named_trackers`. Trackers can interrupt the simulation
by raising the special exception :class:`StopIteration`.

For each tracker, the interrupts at which it is called can be decided using one of the
following classes:

.. autosummary::
   :nosignatures:

   ~interrupts.FixedInterrupts
   ~interrupts.ConstantInterrupts
   ~interrupts.StepInterrupts
   ~interrupts.RealtimeInterrupts

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from .base import FinishedSimulation, TrackerCollection, get_named_trackers
from .interrupts import (
    ConstantInterrupts,
    FixedInterrupts,
    RealtimeInterrupts,
    StepInterrupts,
    parse_interrupt,
)
from .trackers import (
    CallbackTracker,
    ConsistencyTracker,
    DataTracker,
    DiagnosticsTracker,
    ProgressTracker,
    SnapshotTracker,
)

__all__ = [
    "CallbackTracker",
    "ConsistencyTracker",
    "ConstantInterrupts",
    "DataTracker",
    "DiagnosticsTracker",
    "FinishedSimulation",
    "FixedInterrupts",
    "ProgressTracker",
    "RealtimeInterrupts",
    "SnapshotTracker",
    "StepInterrupts",
    "TrackerCollection",
    "get_named_trackers",
    "parse_interrupt",
]
