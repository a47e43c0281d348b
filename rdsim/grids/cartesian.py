r"""Two-dimensional Cartesian grids supporting multigrid hierarchies.

The grid can be thought of as a collection of rectangular boxes, called cells, of equal
size. The bounds define the total area covered by these cells, while the cell
coordinates give the location of the box centers. Along axis :math:`k` the
discretization reads

.. math::
        x^{(k)}_i &= x^{(k)}_\mathrm{min} + \left(i + \frac12\right) \Delta x^{(k)}
        \quad \text{for} \quad i = 0, \ldots, N^{(k)} - 1
    \\
        \Delta x^{(k)} &= \frac{x^{(k)}_\mathrm{max} - x^{(k)}_\mathrm{min}}{N^{(k)}}

.. autosummary::
   :nosignatures:

   CartesianGrid

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import itertools
from collections.abc import Iterator, Sequence
from typing import Any

import numpy as np

from ..tools.typing import CellIndex


class DimensionError(ValueError):
    """Exception indicating that dimensions were inconsistent."""


def _check_shape(shape: int | Sequence[int]) -> tuple[int, ...]:
    """Checks the consistency of shape tuples."""
    if hasattr(shape, "__iter__"):
        shape_list: Sequence[int] = shape  # type: ignore
    else:
        shape_list = [shape]  # type: ignore

    if len(shape_list) == 0:
        raise ValueError("Require at least one dimension")

    # convert the shape to a tuple of integers
    result = []
    for dim in shape_list:
        if dim == int(dim) and dim >= 1:
            result.append(int(dim))
        else:
            raise ValueError(f"{dim!r} is not a valid number of support points")
    return tuple(result)


class CartesianGrid:
    """Two-dimensional Cartesian grid with uniform discretization along each axis."""

    dim = 2
    num_axes = 2
    axes = ["x", "y"]

    def __init__(
        self,
        bounds: Sequence[tuple[float, float]] | Sequence[float] | float,
        shape: int | Sequence[int],
        periodic: Sequence[bool] | bool = False,
    ):
        """
        Args:
            bounds:
                Give the coordinate range for each axis. This is either a tuple of two
                numbers (lower and upper bound) for each axis or a single number per
                axis, which then sets the upper bound while the lower bound is zero. A
                single number sets the same upper bound for both axes.
            shape (int or list):
                The number of cells along each axis. A single number implies a square
                arrangement of cells.
            periodic (bool or list):
                Specifies which axes possess periodic boundary conditions. Non-periodic
                axes have reflecting (no-flux) boundaries.
        """
        bounds_arr = np.array(bounds, ndmin=1, dtype=np.double)
        if bounds_arr.ndim == 1:
            # only the upper bounds are given
            if bounds_arr.size == 1:
                bounds_arr = np.full(self.dim, bounds_arr[0])
            bounds_arr = np.c_[np.zeros(len(bounds_arr)), bounds_arr]
        if bounds_arr.shape != (self.dim, 2):
            raise DimensionError(
                f"Do not know how to interpret shape {bounds_arr.shape} for bounds"
            )
        if np.any(bounds_arr[:, 1] <= bounds_arr[:, 0]):
            raise ValueError(f"Upper bounds must exceed lower bounds, got {bounds}")

        shape_tpl = _check_shape(shape)
        if len(shape_tpl) == 1:
            shape_tpl = shape_tpl * self.dim
        if len(shape_tpl) != self.dim:
            raise DimensionError(
                f"Grid of dimension {self.dim} requires {self.dim} values for `shape`, "
                f"got {shape}"
            )

        if isinstance(periodic, (bool, np.bool_)):
            self.periodic = [bool(periodic)] * self.dim
        elif len(periodic) != self.dim:
            raise DimensionError(
                "Number of axes with specified periodicity does not match grid "
                f"dimension ({len(periodic)} != {self.dim})"
            )
        else:
            self.periodic = [bool(p) for p in periodic]

        self._shape = shape_tpl
        self._axes_bounds = tuple((float(lo), float(hi)) for lo, hi in bounds_arr)
        self._discretization = (bounds_arr[:, 1] - bounds_arr[:, 0]) / self._shape

    @classmethod
    def square(cls, size: float, resolution: int, periodic: bool = False):
        """Create a square grid starting at the origin.

        Args:
            size (float): The side length of the square domain
            resolution (int): The number of cells along each axis
            periodic (bool): Whether both axes are periodic
        """
        return cls([size, size], [resolution, resolution], periodic=periodic)

    @property
    def shape(self) -> tuple[int, int]:
        """tuple: number of cells along each axis"""
        return self._shape  # type: ignore

    @property
    def axes_bounds(self) -> tuple[tuple[float, float], ...]:
        """tuple: lower and upper bounds of each axis"""
        return self._axes_bounds

    @property
    def discretization(self) -> np.ndarray:
        """:class:`numpy.array`: the linear size of a cell along each axis"""
        return self._discretization

    @property
    def cell_volume(self) -> float:
        """float: area associated with each cell"""
        return float(np.prod(self._discretization))

    @property
    def num_cells(self) -> int:
        """int: total number of cells"""
        return int(np.prod(self.shape))

    @property
    def volume(self) -> float:
        """float: total area covered by the grid"""
        return float(np.prod([hi - lo for lo, hi in self.axes_bounds]))

    @property
    def axes_coords(self) -> tuple[np.ndarray, ...]:
        """tuple: coordinates of the cell centers along each axis"""
        return tuple(
            lo + (np.arange(n) + 0.5) * dx
            for (lo, _), n, dx in zip(self.axes_bounds, self.shape, self.discretization)
        )

    @property
    def cell_coords(self) -> np.ndarray:
        """:class:`~numpy.ndarray`: coordinates of all cell centers

        The last axis of the returned array enumerates the coordinate components.
        """
        return np.moveaxis(np.meshgrid(*self.axes_coords, indexing="ij"), 0, -1)

    @property
    def state(self) -> dict[str, Any]:
        """dict: the state of the grid"""
        return {
            "bounds": self.axes_bounds,
            "shape": self.shape,
            "periodic": self.periodic,
        }

    def __repr__(self):
        bounds = ", ".join(f"[{lo:g}, {hi:g}]" for lo, hi in self.axes_bounds)
        return (
            f"{self.__class__.__name__}(bounds=({bounds}), shape={self.shape}, "
            f"periodic={self.periodic})"
        )

    def __eq__(self, other):
        if not isinstance(other, CartesianGrid):
            return NotImplemented
        return (
            self.shape == other.shape
            and self.axes_bounds == other.axes_bounds
            and self.periodic == other.periodic
        )

    def __hash__(self):
        return hash((self.shape, self.axes_bounds, tuple(self.periodic)))

    def iter_cells(self) -> Iterator[CellIndex]:
        """Iterate over all cells of the grid.

        Returns:
            An iterator over tuples of integers, which can be used as indices into the
            data of fields defined on this grid
        """
        yield from itertools.product(*(range(n) for n in self.shape))

    def contains_cell(self, cell: Sequence[int]) -> bool:
        """Check whether `cell` denotes a valid cell of the grid."""
        return len(cell) == self.dim and all(0 <= c < n for c, n in zip(cell, self.shape))

    @property
    def can_coarsen(self) -> bool:
        """bool: whether the grid can be coarsened by a factor of two"""
        return all(n % 2 == 0 for n in self.shape)

    def coarsen(self) -> CartesianGrid:
        """Return the grid with half the resolution along each axis.

        Each cell of the returned grid covers four cells of the current grid.
        """
        if not self.can_coarsen:
            raise ValueError(f"Cannot coarsen grid of shape {self.shape}")
        shape = tuple(n // 2 for n in self.shape)
        return self.__class__(self.axes_bounds, shape, periodic=self.periodic)

    def get_hierarchy(self, coarsest_size: int = 1) -> list[CartesianGrid]:
        """Return the list of successively coarsened grids.

        Args:
            coarsest_size (int):
                The grid is not coarsened further when the number of cells along an
                axis would drop below this value.

        Returns:
            list: The grids ordered from this (finest) grid to the coarsest one
        """
        grids: list[CartesianGrid] = [self]
        while grids[-1].can_coarsen and min(grids[-1].shape) // 2 >= coarsest_size:
            grids.append(grids[-1].coarsen())
        return grids
