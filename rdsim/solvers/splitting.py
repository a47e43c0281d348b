"""Defines a semi-implicit solver using operator splitting.

Each time step advances the two species one after the other. The reaction terms of a
species are evaluated with the current concentrations, split into a source and a
linear part, and then combined with an implicit diffusion step. Consequently, the
second species already sees the updated concentration of the first species.

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..fields.store import FieldStore
from ..pdes.brusselator import BrusselatorPDE
from .diffusion import ImplicitDiffusionSolver
from .multigrid import MGStats

_logger = logging.getLogger(__name__)
""":class:`logging.Logger`: Logger for the splitting solver."""

StepperType = Callable[[FieldStore, float], tuple[MGStats, MGStats]]


class OperatorSplittingSolver:
    """Semi-implicit solver advancing the species of the Brusselator sequentially."""

    def __init__(self, pde: BrusselatorPDE, **kwargs):
        """
        Args:
            pde (:class:`~rdsim.pdes.brusselator.BrusselatorPDE`):
                The reaction-diffusion system that is solved
            **kwargs:
                Additional arguments are forwarded to
                :class:`~rdsim.solvers.multigrid.MultigridSolver`, e.g., to set the
                `tolerance` of the implicit diffusion steps.
        """
        self.pde = pde
        self.solver_kwargs = kwargs
        self.info: dict[str, Any] = {
            "class": self.__class__.__name__,
            "pde_class": self.pde.__class__.__name__,
        }

    def make_stepper(self, state: FieldStore) -> StepperType:
        """Return a function that advances the state by a single time step.

        Args:
            state (:class:`~rdsim.fields.store.FieldStore`):
                An example of the state, which determines the grid

        Returns:
            Function with signature `(state, dt)` that advances the state in-place and
            returns the statistics of the two implicit diffusion steps
        """
        grid = state.grid
        diffusion = ImplicitDiffusionSolver(grid, **self.solver_kwargs)
        diffusivity1, diffusivity2 = self.pde.get_diffusivities(grid)

        self.info["tolerance"] = diffusion.tolerance
        self.info["multigrid_levels"] = diffusion.multigrid.num_levels
        self.info["steps"] = 0
        self.info["multigrid_cycles"] = 0
        self.info["unconverged_solves"] = 0
        self.info["mgstats"] = None

        def stepper(state: FieldStore, dt: float) -> tuple[MGStats, MGStats]:
            """Advance `state` in-place by the time step `dt`."""
            # first species with the current concentrations
            self.pde.evaluate_first_species(state)
            mgd1 = diffusion.diffuse(
                state.C1, dt, diffusivity1, r=state.r, beta=state.beta
            )

            # second species with the updated first species
            self.pde.evaluate_second_species(state)
            mgd2 = diffusion.diffuse(
                state.C2, dt, diffusivity2, r=state.r, beta=state.beta
            )

            self.info["steps"] += 1
            self.info["multigrid_cycles"] += mgd1.i + mgd2.i
            self.info["unconverged_solves"] += (not mgd1.converged) + (
                not mgd2.converged
            )
            self.info["mgstats"] = (mgd1, mgd2)
            return mgd1, mgd2

        _logger.debug(
            "Created stepper with %d multigrid levels", diffusion.multigrid.num_levels
        )
        return stepper
