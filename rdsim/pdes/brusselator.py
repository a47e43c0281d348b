r"""The Brusselator with spatial coupling.

The `Brusselator <https://en.wikipedia.org/wiki/Brusselator>`_ is a model for an
autocatalytic reaction involving two chemical species with concentrations
:math:`C_1` and :math:`C_2`. Including diffusion, the dynamics read

.. math::
    \partial_t C_1 &= \nabla^2 C_1 + k\bigl(k_a - (k_b + 1) C_1 + C_1^2 C_2\bigr) \\
    \partial_t C_2 &= D \nabla^2 C_2 + k\bigl(k_b C_1 - C_1^2 C_2\bigr)

The homogeneous stationary state :math:`C_1 = k_a`, :math:`C_2 = k_b/k_a` becomes
unstable with respect to spatial perturbations for :math:`k_b` above

.. math::
    k_b^\mathrm{crit} = \Bigl(1 + k_a \sqrt{1/D}\Bigr)^2

and the distance to this threshold is quantified by the control parameter
:math:`\mu`, such that :math:`k_b = k_b^\mathrm{crit} (1 + \mu)`.

For the semi-implicit integration, each reaction term is split into a source :math:`r`
and a coefficient :math:`\beta` of the term linear in the respective species,
:math:`\partial_t C = D \nabla^2 C + r + \beta C`. The split is exact, so the
nonlinearity only enters through the other species and through :math:`\beta`, which
are both evaluated explicitly.

.. autosummary::
   :nosignatures:

   BrusselatorParameters
   BrusselatorPDE

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Sequence

import numba as nb
import numpy as np

from ..fields.face import FaceVectorField
from ..fields.scalar import ScalarField
from ..fields.store import FieldStore
from ..grids.cartesian import CartesianGrid
from ..tools.numba import jit


@dataclasses.dataclass(frozen=True)
class BrusselatorParameters:
    """Immutable set of parameters of the Brusselator.

    The derived parameter :attr:`kb` is calculated once from the control parameter
    `mu` when the instance is created.
    """

    k: float = 1.0  # reaction rate
    ka: float = 4.5  # production of the first species
    D: float = 8.0  # ratio of the diffusivities of the second and first species
    mu: float = 0.04  # distance to the instability threshold
    kb: float = dataclasses.field(init=False)  # derived bifurcation parameter

    def __post_init__(self):
        if self.D <= 0:
            raise ValueError(f"Diffusivity ratio `D` must be positive, got {self.D}")
        object.__setattr__(self, "kb", self.kb_crit * (1.0 + self.mu))

    @property
    def nu(self) -> float:
        """float: inverse square root of the diffusivity ratio"""
        return math.sqrt(1.0 / self.D)

    @property
    def kb_crit(self) -> float:
        """float: value of `kb` at the onset of the pattern-forming instability"""
        return (1.0 + self.ka * self.nu) ** 2

    @property
    def critical_wavenumber(self) -> float:
        """float: wavenumber of the mode that becomes unstable first"""
        return math.sqrt(self.k * self.ka * self.nu)

    @property
    def steady_state(self) -> tuple[float, float]:
        """tuple: the homogeneous stationary concentrations"""
        return self.ka, self.kb / self.ka

    def with_mu(self, mu: float) -> BrusselatorParameters:
        """Return parameters with a different control parameter.

        Args:
            mu (float): The new control parameter
        """
        return dataclasses.replace(self, mu=mu)


@jit(parallel=True)
def _first_species_terms(c1, c2, k, ka, kb, r, beta) -> None:
    """Source and linear coefficient of the reaction of the first species."""
    nx, ny = c1.shape
    for i in nb.prange(nx):
        for j in range(ny):
            r[i, j] = k * ka
            beta[i, j] = k * (c1[i, j] * c2[i, j] - kb - 1.0)


@jit(parallel=True)
def _second_species_terms(c1, k, kb, r, beta) -> None:
    """Source and linear coefficient of the reaction of the second species."""
    nx, ny = c1.shape
    for i in nb.prange(nx):
        for j in range(ny):
            r[i, j] = k * kb * c1[i, j]
            beta[i, j] = -k * c1[i, j] * c1[i, j]


class BrusselatorPDE:
    """Brusselator reaction-diffusion system with split reaction terms."""

    def __init__(
        self,
        parameters: BrusselatorParameters | None = None,
        *,
        diffusivity: float | Sequence[float] | None = None,
    ):
        """
        Args:
            parameters (:class:`BrusselatorParameters`):
                The parameters of the reaction kinetics. Default parameters are used if
                omitted.
            diffusivity (float or tuple, optional):
                The diffusivity of the second species along each axis. Defaults to the
                diffusivity ratio `D` along both axes. Note that the derived parameter
                `kb` is always based on `D`.
        """
        if parameters is None:
            parameters = BrusselatorParameters()
        self.parameters = parameters
        if diffusivity is None:
            diffusivity = (parameters.D, parameters.D)
        diffusivity_arr = np.broadcast_to(np.asarray(diffusivity, dtype=float), (2,))
        self.diffusivity = tuple(float(d) for d in diffusivity_arr)

    def __repr__(self):
        return f"{self.__class__.__name__}(parameters={self.parameters!r})"

    @property
    def expression(self) -> dict[str, str]:
        """dict: the expressions of the right hand sides of the equations"""
        p = self.parameters
        return {
            "C1": f"∇²C1 + {p.k:g} * ({p.ka:g} - {p.kb + 1:g} * C1 + C1² * C2)",
            "C2": f"{p.D:g} * ∇²C2 + {p.k:g} * ({p.kb:g} * C1 - C1² * C2)",
        }

    def get_diffusivities(self, grid: CartesianGrid) -> tuple[float, FaceVectorField]:
        """Return the diffusivities of both species.

        Args:
            grid (:class:`~rdsim.grids.cartesian.CartesianGrid`):
                The grid on which the fields are defined

        Returns:
            tuple: The isotropic diffusivity of the first species and the face field
            of diffusivities of the second species
        """
        return 1.0, FaceVectorField.uniform(grid, self.diffusivity)

    def reaction_rates(self, state: FieldStore) -> tuple[ScalarField, ScalarField]:
        """Evaluate the full reaction terms of both species.

        Args:
            state (:class:`~rdsim.fields.store.FieldStore`):
                The current concentrations

        Returns:
            tuple: Two scalar fields with the reaction rates
        """
        p = self.parameters
        c1, c2 = state.C1.data, state.C2.data
        rate1 = p.k * (p.ka - (p.kb + 1) * c1 + c1**2 * c2)
        rate2 = p.k * (p.kb * c1 - c1**2 * c2)
        return (
            ScalarField(state.grid, rate1, label="rate C1"),
            ScalarField(state.grid, rate2, label="rate C2"),
        )

    def evaluate_first_species(self, state: FieldStore) -> None:
        """Write the split reaction terms of `C1` into the auxiliary fields.

        Args:
            state (:class:`~rdsim.fields.store.FieldStore`):
                The current concentrations. The results are stored in `state.r` and
                `state.beta`.
        """
        p = self.parameters
        _first_species_terms(
            state.C1.data, state.C2.data, p.k, p.ka, p.kb, state.r.data, state.beta.data
        )

    def evaluate_second_species(self, state: FieldStore) -> None:
        """Write the split reaction terms of `C2` into the auxiliary fields.

        These terms only depend on `C1`, which should already have been advanced in
        the current step.

        Args:
            state (:class:`~rdsim.fields.store.FieldStore`):
                The current concentrations. The results are stored in `state.r` and
                `state.beta`.
        """
        p = self.parameters
        _second_species_terms(state.C1.data, p.k, p.kb, state.r.data, state.beta.data)
