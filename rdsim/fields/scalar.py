"""Defines a scalar field over a Cartesian grid.

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from ..grids.cartesian import CartesianGrid

if TYPE_CHECKING:
    from ..tools.typing import CellIndex, FloatOrArray


class ScalarField:
    """Scalar field discretized on the cells of a grid.

    The values are stored in a :class:`~numpy.ndarray` of the same shape as the grid,
    so cells returned by :meth:`~rdsim.grids.cartesian.CartesianGrid.iter_cells` can be
    used as indices into the field.
    """

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        grid: CartesianGrid,
        data: FloatOrArray | None = None,
        *,
        label: str | None = None,
        dtype=np.double,
    ):
        """
        Args:
            grid (:class:`~rdsim.grids.cartesian.CartesianGrid`):
                Grid defining the space on which this field is defined
            data (Number or :class:`~numpy.ndarray`, optional):
                Field values at the cell centers. A single number sets a homogeneous
                field. If omitted, the field is initialized with zeros.
            label (str, optional):
                Name of the field
            dtype (numpy dtype):
                The data type of the field
        """
        if not isinstance(grid, CartesianGrid):
            raise TypeError(f"Fields require a CartesianGrid, not {grid.__class__}")
        self.grid = grid
        self._data = np.zeros(grid.shape, dtype=dtype)
        if data is not None:
            self.data = data  # type: ignore
        self.label = label

    @classmethod
    def random_uniform(
        cls,
        grid: CartesianGrid,
        vmin: float = 0,
        vmax: float = 1,
        *,
        label: str | None = None,
        rng: np.random.Generator | None = None,
    ) -> ScalarField:
        """Create field with uncorrelated, uniformly distributed values.

        Args:
            grid (:class:`~rdsim.grids.cartesian.CartesianGrid`):
                Grid defining the space on which this field is defined
            vmin (float):
                Smallest possible random value
            vmax (float):
                Largest random value
            label (str, optional):
                Name of the field
            rng (:class:`~numpy.random.Generator`):
                Random number generator (default: :func:`~numpy.random.default_rng()`)
        """
        if rng is None:
            rng = np.random.default_rng()
        return cls(grid, rng.uniform(vmin, vmax, size=grid.shape), label=label)

    @property
    def data(self) -> np.ndarray:
        """:class:`~numpy.ndarray`: discretized data at the cell centers"""
        return self._data

    @data.setter
    def data(self, value: FloatOrArray | ScalarField) -> None:
        if isinstance(value, ScalarField):
            self.assert_field_compatible(value)
            self._data[...] = value.data
        else:
            self._data[...] = value

    def __getitem__(self, cell: CellIndex) -> float:
        """Return the value of the field in `cell`"""
        return float(self._data[cell])

    def __setitem__(self, cell: CellIndex, value: float) -> None:
        """Set the value of the field in `cell`"""
        self._data[cell] = value

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(grid={self.grid!r}, data=array(...), "
            f"label={self.label!r})"
        )

    def __eq__(self, other):
        if not isinstance(other, ScalarField):
            return NotImplemented
        return (
            self.grid == other.grid
            and self.label == other.label
            and np.array_equal(self.data, other.data)
        )

    def assert_field_compatible(self, other: ScalarField) -> None:
        """Checks whether `other` is defined on the same grid.

        Args:
            other (:class:`ScalarField`): The other field
        """
        if self.grid != other.grid:
            raise ValueError(f"Grids {self.grid} and {other.grid} are incompatible")

    def copy(self, *, label: str | None = None) -> ScalarField:
        """Return a copy of the field.

        Args:
            label (str, optional): Name of the copied field
        """
        if label is None:
            label = self.label
        return self.__class__(self.grid, self.data.copy(), label=label)

    @property
    def integral(self) -> float:
        """float: integral of the field over the grid"""
        return float(self.data.sum() * self.grid.cell_volume)

    @property
    def average(self) -> float:
        """float: the average of the field"""
        return float(self.data.mean())

    @property
    def fluctuations(self) -> float:
        """float: standard deviation of the field values"""
        return float(self.data.std())

    @property
    def is_finite(self) -> bool:
        """bool: whether all values of the field are finite"""
        return bool(np.all(np.isfinite(self.data)))

    def get_statistics(self) -> dict[str, Any]:
        """Return statistical properties of the field values.

        Returns:
            dict: with the mean, standard deviation, minimum, and maximum
        """
        return {
            "mean": self.average,
            "std": self.fluctuations,
            "min": float(self.data.min()),
            "max": float(self.data.max()),
        }

    def plot(self, ax=None, **kwargs):
        """Visualize the field as an image.

        Args:
            ax (:class:`matplotlib.axes.Axes`, optional):
                The axes into which the image is drawn
            **kwargs:
                Arguments forwarded to :func:`~rdsim.visualization.plotting.plot_field`

        Returns:
            :class:`matplotlib.image.AxesImage`: the created image
        """
        from ..visualization.plotting import plot_field

        return plot_field(self, ax=ax, **kwargs)
