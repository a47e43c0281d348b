r"""Geometric multigrid solver for variable-coefficient Helmholtz problems.

The solver determines :math:`a` from the linear problem

.. math::
    \nabla\cdot\bigl(\alpha \nabla a\bigr) + \lambda a = b

on a two-dimensional Cartesian grid, where the diffusivity :math:`\alpha` is given on
the cell faces and :math:`\lambda` and :math:`b` are given in the cells. Non-periodic
boundaries are impermeable, i.e., there is no flux across them.

Every cycle restricts the current residual to all coarser grids and then solves for
the correction from the coarsest to the finest level. On each level, the correction
interpolated from the coarser level is improved by red-black Gauss-Seidel sweeps. The
number of sweeps adapts to the observed convergence rate.

.. autosummary::
   :nosignatures:

   MGStats
   MultigridSolver

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np

from .. import config
from ..fields.face import FaceVectorField
from ..grids.cartesian import CartesianGrid
from ..tools.numba import jit

_logger = logging.getLogger(__name__)
""":class:`logging.Logger`: Logger for the multigrid solver."""


@dataclass
class MGStats:
    """Convergence statistics of a single multigrid solve."""

    i: int = 0  # number of multigrid cycles
    resb: float = 0.0  # maximal residual before solving
    resa: float = 0.0  # maximal residual after solving
    sum: float = 0.0  # sum of the right hand side
    nrelax: int = 0  # number of relaxations per level in the last cycle
    minlevel: int = 0  # index of the coarsest level that was used
    converged: bool = True  # whether the residual dropped below the tolerance

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@jit
def _neighbor(k: int, n: int, periodic: bool) -> int:
    """Index of a neighboring cell or -1 if it lies outside a closed boundary."""
    if k < 0:
        return n - 1 if periodic else -1
    if k >= n:
        return 0 if periodic else -1
    return k


@jit
def _residual(a, b, res, cx, cy, lam, idx2, idy2, px, py) -> float:
    """Calculate the residual `res = b - L(a)` and return its maximal magnitude."""
    nx, ny = a.shape
    res_max = 0.0
    for i in range(nx):
        for j in range(ny):
            center = a[i, j]
            flux = 0.0
            k = _neighbor(i - 1, nx, px)
            if k >= 0:
                flux += cx[i, j] * idx2 * (a[k, j] - center)
            k = _neighbor(i + 1, nx, px)
            if k >= 0:
                flux += cx[i + 1, j] * idx2 * (a[k, j] - center)
            k = _neighbor(j - 1, ny, py)
            if k >= 0:
                flux += cy[i, j] * idy2 * (a[i, k] - center)
            k = _neighbor(j + 1, ny, py)
            if k >= 0:
                flux += cy[i, j + 1] * idy2 * (a[i, k] - center)

            value = b[i, j] - flux - lam[i, j] * center
            res[i, j] = value
            if abs(value) > res_max:
                res_max = abs(value)
    return res_max


@jit
def _relax(da, res, cx, cy, lam, idx2, idy2, px, py, nrelax) -> None:
    """Red-black Gauss-Seidel sweeps for the correction equation `L(da) = res`"""
    nx, ny = da.shape
    for _ in range(nrelax):
        for color in range(2):
            for i in range(nx):
                for j in range((i + color) % 2, ny, 2):
                    num = -res[i, j]
                    den = -lam[i, j]
                    k = _neighbor(i - 1, nx, px)
                    if k >= 0:
                        c = cx[i, j] * idx2
                        num += c * da[k, j]
                        den += c
                    k = _neighbor(i + 1, nx, px)
                    if k >= 0:
                        c = cx[i + 1, j] * idx2
                        num += c * da[k, j]
                        den += c
                    k = _neighbor(j - 1, ny, py)
                    if k >= 0:
                        c = cy[i, j] * idy2
                        num += c * da[i, k]
                        den += c
                    k = _neighbor(j + 1, ny, py)
                    if k >= 0:
                        c = cy[i, j + 1] * idy2
                        num += c * da[i, k]
                        den += c
                    da[i, j] = num / den


@jit
def _prolongate(coarse, fine, px, py) -> None:
    """Bilinear interpolation of cell values from the coarse to the fine grid."""
    nx, ny = fine.shape
    cnx, cny = coarse.shape
    for i in range(nx):
        ci = i // 2
        ci2 = _neighbor(ci + (1 if i % 2 else -1), cnx, px)
        if ci2 < 0:
            ci2 = ci  # mirror the value at closed boundaries
        for j in range(ny):
            cj = j // 2
            cj2 = _neighbor(cj + (1 if j % 2 else -1), cny, py)
            if cj2 < 0:
                cj2 = cj
            fine[i, j] = (
                9 * coarse[ci, cj]
                + 3 * (coarse[ci2, cj] + coarse[ci, cj2])
                + coarse[ci2, cj2]
            ) / 16


def _restrict_cells(fine: np.ndarray, coarse: np.ndarray) -> None:
    """Average the values of four fine cells into the covering coarse cell."""
    coarse[...] = 0.25 * (
        fine[0::2, 0::2] + fine[1::2, 0::2] + fine[0::2, 1::2] + fine[1::2, 1::2]
    )


class _Level:
    """Data associated with a single level of the multigrid hierarchy."""

    def __init__(self, grid: CartesianGrid):
        nx, ny = grid.shape
        self.grid = grid
        self.res = np.zeros((nx, ny))
        self.da = np.zeros((nx, ny))
        self.lam = np.zeros((nx, ny))
        self.cx = np.zeros((nx + 1, ny))
        self.cy = np.zeros((nx, ny + 1))
        dx, dy = grid.discretization
        self.idx2 = 1 / dx**2
        self.idy2 = 1 / dy**2
        self.px, self.py = bool(grid.periodic[0]), bool(grid.periodic[1])

    def residual(self, a: np.ndarray, b: np.ndarray) -> float:
        return _residual(  # type: ignore
            a, b, self.res, self.cx, self.cy, self.lam,
            self.idx2, self.idy2, self.px, self.py,
        )  # fmt: skip

    def relax(self, nrelax: int) -> None:
        _relax(
            self.da, self.res, self.cx, self.cy, self.lam,
            self.idx2, self.idy2, self.px, self.py, nrelax,
        )  # fmt: skip


class MultigridSolver:
    r"""Solves :math:`\nabla\cdot(\alpha \nabla a) + \lambda a = b` iteratively.

    The hierarchy of coarser grids and all temporary arrays are allocated once, so the
    same instance can be used efficiently for many solves on the same grid.
    """

    def __init__(
        self,
        grid: CartesianGrid,
        *,
        tolerance: float | None = None,
        maxiter: int | None = None,
        miniter: int | None = None,
        nrelax: int | None = None,
        coarsest_size: int | None = None,
    ):
        """
        Args:
            grid (:class:`~rdsim.grids.cartesian.CartesianGrid`):
                The finest grid on which the problem is posed
            tolerance (float):
                Maximal residual that is accepted as converged. Defaults to the
                configuration value `multigrid.tolerance`.
            maxiter (int):
                Maximal number of cycles. Defaults to `multigrid.maxiter`.
            miniter (int):
                Minimal number of cycles. Defaults to `multigrid.miniter`.
            nrelax (int):
                Initial number of relaxation sweeps per level. Defaults to
                `multigrid.nrelax`.
            coarsest_size (int):
                Smallest number of cells along an axis on the coarsest level. Defaults
                to `multigrid.coarsest_size`.
        """
        self.grid = grid
        self.tolerance = config["multigrid.tolerance"] if tolerance is None else tolerance
        self.maxiter = config["multigrid.maxiter"] if maxiter is None else maxiter
        self.miniter = config["multigrid.miniter"] if miniter is None else miniter
        self.nrelax = config["multigrid.nrelax"] if nrelax is None else nrelax
        if coarsest_size is None:
            coarsest_size = config["multigrid.coarsest_size"]
        if self.tolerance <= 0:
            raise ValueError("`tolerance` must be positive")
        if self.nrelax < 1:
            raise ValueError("`nrelax` must be at least one")

        self.levels = [_Level(g) for g in grid.get_hierarchy(coarsest_size)]
        _logger.debug(
            "Initialized multigrid hierarchy with shapes %s",
            [level.grid.shape for level in self.levels],
        )

    @property
    def num_levels(self) -> int:
        """int: number of grids in the multigrid hierarchy"""
        return len(self.levels)

    def _set_coefficients(self, coefficient: FaceVectorField, lam: np.ndarray) -> None:
        """Store the operator coefficients on all levels of the hierarchy."""
        if coefficient.grid != self.grid:
            raise ValueError("Coefficient is defined on an incompatible grid")
        finest = self.levels[0]
        finest.cx[...] = coefficient.data_x
        finest.cy[...] = coefficient.data_y
        finest.lam[...] = lam

        for fine, coarse in zip(self.levels[:-1], self.levels[1:]):
            _restrict_cells(fine.lam, coarse.lam)
            # a coarse face covers two fine faces
            coarse.cx[...] = 0.5 * (fine.cx[::2, 0::2] + fine.cx[::2, 1::2])
            coarse.cy[...] = 0.5 * (fine.cy[0::2, ::2] + fine.cy[1::2, ::2])

    def _cycle(self, a: np.ndarray, nrelax: int) -> None:
        """Apply a single multigrid cycle improving `a` in-place.

        The residual on the finest level must be up to date.
        """
        for fine, coarse in zip(self.levels[:-1], self.levels[1:]):
            _restrict_cells(fine.res, coarse.res)

        coarsest = self.levels[-1]
        coarsest.da[...] = 0
        coarsest.relax(nrelax)
        for coarse, fine in zip(self.levels[:0:-1], self.levels[-2::-1]):
            _prolongate(coarse.da, fine.da, fine.px, fine.py)
            fine.relax(nrelax)

        a += self.levels[0].da

    def solve(
        self,
        a: np.ndarray,
        b: np.ndarray,
        coefficient: FaceVectorField,
        lam: np.ndarray,
    ) -> MGStats:
        """Solve the linear problem, updating `a` in-place.

        The solver never raises an exception when it does not converge. Instead, it
        keeps the best estimate, logs a warning, and reports the remaining residual.

        Args:
            a (:class:`~numpy.ndarray`):
                Initial guess, which is replaced by the solution
            b (:class:`~numpy.ndarray`):
                The right hand side
            coefficient (:class:`~rdsim.fields.face.FaceVectorField`):
                Diffusivity on the cell faces
            lam (:class:`~numpy.ndarray`):
                The coefficient of the linear term

        Returns:
            :class:`MGStats`: Convergence statistics of the solve
        """
        if a.shape != self.grid.shape or b.shape != self.grid.shape:
            raise ValueError(f"Data must have shape {self.grid.shape}")
        self._set_coefficients(coefficient, lam)
        finest = self.levels[0]

        stats = MGStats(nrelax=self.nrelax, minlevel=self.num_levels - 1)
        stats.sum = float(b.sum())
        stats.resb = stats.resa = finest.residual(a, b)
        res_prev = stats.resb

        while stats.i < self.maxiter and (
            stats.i < self.miniter or stats.resa > self.tolerance
        ):
            self._cycle(a, stats.nrelax)
            stats.resa = finest.residual(a, b)
            if stats.resa > self.tolerance:
                # adjust the number of relaxations to the convergence rate
                if res_prev < 1.2 * stats.resa and stats.nrelax < 100:
                    stats.nrelax += 1
                elif res_prev > 10 * stats.resa and stats.nrelax > 2:
                    stats.nrelax -= 1
            res_prev = stats.resa
            stats.i += 1

        if stats.resa > self.tolerance:
            stats.converged = False
            _logger.warning(
                "Convergence not reached after %d iterations (res: %g, sum: %g)",
                stats.i,
                stats.resa,
                stats.sum,
            )
        return stats
