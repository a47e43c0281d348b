"""Defines vector-valued coefficients located on the faces of grid cells.

Face-centered quantities are the natural representation of diffusivities in
finite-volume discretizations, since they determine the flux between two
neighboring cells. Along the first axis, the face with index `i` separates the
cells `i - 1` and `i`, so there are `N + 1` faces for `N` cells.

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from ..grids.cartesian import CartesianGrid, DimensionError
from .scalar import ScalarField


class FaceVectorField:
    """Vector field whose components are stored on the cell faces normal to them."""

    def __init__(self, grid: CartesianGrid, data_x: np.ndarray, data_y: np.ndarray):
        """
        Args:
            grid (:class:`~rdsim.grids.cartesian.CartesianGrid`):
                Grid defining the space on which this field is defined
            data_x (:class:`~numpy.ndarray`):
                Values on the faces normal to the x-axis with shape `(Nx + 1, Ny)`
            data_y (:class:`~numpy.ndarray`):
                Values on the faces normal to the y-axis with shape `(Nx, Ny + 1)`
        """
        nx, ny = grid.shape
        data_x = np.array(data_x, dtype=np.double)
        data_y = np.array(data_y, dtype=np.double)
        if data_x.shape != (nx + 1, ny):
            raise DimensionError(f"x-components must have shape {(nx + 1, ny)}")
        if data_y.shape != (nx, ny + 1):
            raise DimensionError(f"y-components must have shape {(nx, ny + 1)}")
        self.grid = grid
        self.data_x = data_x
        self.data_y = data_y

    @classmethod
    def uniform(
        cls, grid: CartesianGrid, value: float | Sequence[float]
    ) -> FaceVectorField:
        """Create a field that is constant in space.

        Args:
            grid (:class:`~rdsim.grids.cartesian.CartesianGrid`):
                Grid defining the space on which this field is defined
            value (float or tuple):
                The value of the components. A single number sets the same value for
                both axes, while two numbers allow for anisotropic coefficients.
        """
        values = np.broadcast_to(np.asarray(value, dtype=np.double), (grid.dim,))
        nx, ny = grid.shape
        return cls(
            grid, np.full((nx + 1, ny), values[0]), np.full((nx, ny + 1), values[1])
        )

    @classmethod
    def from_cell_values(cls, field: ScalarField) -> FaceVectorField:
        """Create a face field by averaging cell values onto the faces.

        Faces on the boundary of non-periodic axes take the value of the adjacent cell.
        For periodic axes, the boundary faces average the cells on either side.

        Args:
            field (:class:`~rdsim.fields.scalar.ScalarField`):
                The values in the cells
        """
        grid = field.grid
        data = field.data
        nx, ny = grid.shape

        data_x = np.empty((nx + 1, ny))
        data_x[1:-1] = 0.5 * (data[1:] + data[:-1])
        if grid.periodic[0]:
            data_x[0] = data_x[-1] = 0.5 * (data[0] + data[-1])
        else:
            data_x[0], data_x[-1] = data[0], data[-1]

        data_y = np.empty((nx, ny + 1))
        data_y[:, 1:-1] = 0.5 * (data[:, 1:] + data[:, :-1])
        if grid.periodic[1]:
            data_y[:, 0] = data_y[:, -1] = 0.5 * (data[:, 0] + data[:, -1])
        else:
            data_y[:, 0], data_y[:, -1] = data[:, 0], data[:, -1]

        return cls(grid, data_x, data_y)

    @property
    def components(self) -> tuple[np.ndarray, np.ndarray]:
        """tuple: the data of both components"""
        return self.data_x, self.data_y

    @property
    def is_isotropic(self) -> bool:
        """bool: whether both components are equal and uniform"""
        value = self.data_x.flat[0]
        return bool(np.all(self.data_x == value) and np.all(self.data_y == value))

    def __repr__(self):
        return f"{self.__class__.__name__}(grid={self.grid!r})"

    def copy(self) -> FaceVectorField:
        return self.__class__(self.grid, self.data_x.copy(), self.data_y.copy())
