r"""Implicit (backward Euler) time steps of reaction-diffusion equations.

A single step advances a scalar field :math:`c` governed by

.. math::
    \partial_t c = \nabla\cdot\bigl(\alpha \nabla c\bigr) + r + \beta c

over a duration :math:`\Delta t`, treating all terms implicitly. The resulting linear
problem

.. math::
    \nabla\cdot\bigl(\alpha \nabla c'\bigr) + \Bigl(\beta - \frac{1}{\Delta t}\Bigr) c'
        = -\frac{c}{\Delta t} - r

for the new field :math:`c'` is solved with the multigrid method. Since diffusion is
treated implicitly, the step is stable for arbitrary :math:`\Delta t` as long as
:math:`\beta` is not too large.

.. autosummary::
   :nosignatures:

   ImplicitDiffusionSolver
   diffuse
   get_operator_matrix

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Union

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import spsolve

from ..fields.face import FaceVectorField
from ..fields.scalar import ScalarField
from ..grids.cartesian import CartesianGrid
from ..tools.docstrings import fill_in_docstring
from .multigrid import MGStats, MultigridSolver

CoefficientData = Union[FaceVectorField, float, Sequence[float], None]


def get_face_coefficient(
    grid: CartesianGrid, coefficient: CoefficientData
) -> FaceVectorField:
    """Convert various formats of diffusivities to a face field.

    Args:
        grid (:class:`~rdsim.grids.cartesian.CartesianGrid`):
            The grid on which the coefficient is defined
        coefficient:
            `None` implies unit diffusivity, numbers and sequences of numbers define
            uniform diffusivities, and face fields are returned unchanged.

    Returns:
        :class:`~rdsim.fields.face.FaceVectorField`: the diffusivity on the faces
    """
    if coefficient is None:
        return FaceVectorField.uniform(grid, 1.0)
    elif isinstance(coefficient, FaceVectorField):
        if coefficient.grid != grid:
            raise ValueError("Diffusivity is defined on an incompatible grid")
        return coefficient
    else:
        return FaceVectorField.uniform(grid, coefficient)


def get_operator_matrix(
    coefficient: FaceVectorField, lam: np.ndarray
) -> sparse.csr_matrix:
    r"""Get sparse matrix of the linear operator solved in implicit steps.

    The matrix represents the discretized operator
    :math:`\nabla\cdot(\alpha \nabla c) + \lambda c` acting on the flattened cell values
    with the same stencil that the multigrid solver uses. Direct solvers based on this
    matrix are only feasible on small grids, but they provide a reference solution.

    Args:
        coefficient (:class:`~rdsim.fields.face.FaceVectorField`):
            The diffusivity :math:`\alpha` on the faces
        lam (:class:`~numpy.ndarray`):
            The coefficient :math:`\lambda` of the linear term in each cell

    Returns:
        :class:`scipy.sparse.csr_matrix`: the operator acting on `c.ravel()`
    """
    grid = coefficient.grid
    dim_x, dim_y = grid.shape
    scale_x, scale_y = grid.discretization**-2
    px, py = grid.periodic

    def i(x, y):
        """Helper function for flattening the index."""
        return x * dim_y + y

    rows: list[int] = []
    cols: list[int] = []
    values: list[float] = []

    def add_flux(x, y, nx, ny, weight):
        """Add the flux between cell (x, y) and its neighbor (nx, ny)."""
        rows.extend([i(x, y), i(x, y)])
        cols.extend([i(nx, ny), i(x, y)])
        values.extend([weight, -weight])

    cx = coefficient.data_x * scale_x
    cy = coefficient.data_y * scale_y
    for x in range(dim_x):
        for y in range(dim_y):
            if x > 0 or px:
                add_flux(x, y, (x - 1) % dim_x, y, cx[x, y])
            if x < dim_x - 1 or px:
                add_flux(x, y, (x + 1) % dim_x, y, cx[x + 1, y])
            if y > 0 or py:
                add_flux(x, y, x, (y - 1) % dim_y, cy[x, y])
            if y < dim_y - 1 or py:
                add_flux(x, y, x, (y + 1) % dim_y, cy[x, y + 1])

    size = dim_x * dim_y
    matrix = sparse.coo_matrix((values, (rows, cols)), shape=(size, size))
    # duplicate entries are summed when converting the format
    return (matrix + sparse.diags(np.ravel(lam))).tocsr()


class ImplicitDiffusionSolver:
    """Advances scalar fields by implicit diffusion steps with reactive terms."""

    _logger = logging.getLogger(__name__)

    def __init__(self, grid: CartesianGrid, **kwargs):
        """
        Args:
            grid (:class:`~rdsim.grids.cartesian.CartesianGrid`):
                The grid on which all fields are defined
            **kwargs:
                Additional arguments are forwarded to
                :class:`~rdsim.solvers.multigrid.MultigridSolver`, e.g., to set the
                `tolerance` of the linear solver.
        """
        self.grid = grid
        self.multigrid = MultigridSolver(grid, **kwargs)
        self._rhs = np.empty(grid.shape)
        self._lam = np.empty(grid.shape)

    @property
    def tolerance(self) -> float:
        """float: residual tolerance of the linear solver"""
        return self.multigrid.tolerance

    @fill_in_docstring
    def diffuse(
        self,
        field: ScalarField,
        dt: float,
        coefficient: CoefficientData = None,
        r: ScalarField | None = None,
        beta: ScalarField | None = None,
    ) -> MGStats:
        """Advance `field` in-place by an implicit step of duration `dt`.

        Args:
            field (:class:`~rdsim.fields.scalar.ScalarField`):
                The field that is advanced
            dt (float):
                The time step
            coefficient:
                {ARG_DIFFUSION_COEFFICIENT}
            r (:class:`~rdsim.fields.scalar.ScalarField`, optional):
                Additive source term. Defaults to zero.
            beta (:class:`~rdsim.fields.scalar.ScalarField`, optional):
                Coefficient of the term linear in the field. Defaults to zero. The
                supplied field is not modified.

        Returns:
            :class:`~rdsim.solvers.multigrid.MGStats`: Statistics of the linear solve
        """
        if not self._prepare(field, dt, r, beta):
            return MGStats()
        face_coefficient = get_face_coefficient(self.grid, coefficient)
        return self.multigrid.solve(field.data, self._rhs, face_coefficient, self._lam)

    def _prepare(
        self,
        field: ScalarField,
        dt: float,
        r: ScalarField | None,
        beta: ScalarField | None,
    ) -> bool:
        """Set up the right hand side and the linear coefficient of a step.

        Returns:
            bool: whether the field needs to be changed at all
        """
        if field.grid != self.grid:
            raise ValueError("Field is defined on an incompatible grid")
        if dt < 0:
            raise ValueError(f"Time step must not be negative, got {dt}")
        if dt == 0:
            return False
        idt = 1 / dt

        # right hand side of the linear problem
        np.multiply(field.data, -idt, out=self._rhs)
        if r is not None:
            self._rhs -= r.data

        # coefficient of the linear term
        if beta is None:
            self._lam[...] = -idt
        else:
            np.subtract(beta.data, idt, out=self._lam)
        return True

    @fill_in_docstring
    def diffuse_direct(
        self,
        field: ScalarField,
        dt: float,
        coefficient: CoefficientData = None,
        r: ScalarField | None = None,
        beta: ScalarField | None = None,
    ) -> None:
        """Advance `field` in-place using a sparse direct solver.

        The result agrees with :meth:`diffuse` up to the tolerance of the multigrid
        solver. Since the cost grows quickly with the number of cells, this method is
        mostly useful to check results on small grids.

        Args:
            field (:class:`~rdsim.fields.scalar.ScalarField`):
                The field that is advanced
            dt (float):
                The time step
            coefficient:
                {ARG_DIFFUSION_COEFFICIENT}
            r (:class:`~rdsim.fields.scalar.ScalarField`, optional):
                Additive source term. Defaults to zero.
            beta (:class:`~rdsim.fields.scalar.ScalarField`, optional):
                Coefficient of the term linear in the field. Defaults to zero.
        """
        if not self._prepare(field, dt, r, beta):
            return
        face_coefficient = get_face_coefficient(self.grid, coefficient)
        matrix = get_operator_matrix(face_coefficient, self._lam)
        solution = spsolve(matrix, self._rhs.ravel())
        field.data = solution.reshape(self.grid.shape)


@fill_in_docstring
def diffuse(
    field: ScalarField,
    dt: float,
    coefficient: CoefficientData = None,
    r: ScalarField | None = None,
    beta: ScalarField | None = None,
    **kwargs,
) -> MGStats:
    """Advance `field` in-place by an implicit diffusion step.

    This convenience function sets up a new solver for every call. Use
    :class:`ImplicitDiffusionSolver` when many steps are performed on the same grid.

    Args:
        field (:class:`~rdsim.fields.scalar.ScalarField`):
            The field that is advanced
        dt (float):
            The time step
        coefficient:
            {ARG_DIFFUSION_COEFFICIENT}
        r (:class:`~rdsim.fields.scalar.ScalarField`, optional):
            Additive source term
        beta (:class:`~rdsim.fields.scalar.ScalarField`, optional):
            Coefficient of the term linear in the field
        **kwargs:
            Arguments forwarded to :class:`~rdsim.solvers.multigrid.MultigridSolver`

    Returns:
        :class:`~rdsim.solvers.multigrid.MGStats`: Statistics of the linear solve
    """
    solver = ImplicitDiffusionSolver(field.grid, **kwargs)
    return solver.diffuse(field, dt, coefficient, r=r, beta=beta)
