"""Solvers define how the concentrations are advanced in time.

.. autosummary::
   :nosignatures:

   ~multigrid.MultigridSolver
   ~diffusion.ImplicitDiffusionSolver
   ~diffusion.diffuse
   ~splitting.OperatorSplittingSolver
   ~clock.SimulationClock
   ~controller.Controller

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from .clock import SimulationClock
from .controller import Controller
from .diffusion import ImplicitDiffusionSolver, diffuse
from .multigrid import MGStats, MultigridSolver
from .splitting import OperatorSplittingSolver

__all__ = [
    "Controller",
    "ImplicitDiffusionSolver",
    "MGStats",
    "MultigridSolver",
    "OperatorSplittingSolver",
    "SimulationClock",
    "diffuse",
]
